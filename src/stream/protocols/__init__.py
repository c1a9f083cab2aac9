"""Streaming protocols."""

from src.stream.protocols.transport import Connector, StreamConnection

__all__ = [
    "Connector",
    "StreamConnection",
]
