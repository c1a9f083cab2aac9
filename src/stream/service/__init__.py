"""Streaming services."""

from src.stream.service.channels import open_channel

__all__ = ["open_channel"]
