"""Resilient streaming client for venue market-data and account feeds."""

from src.stream.channels import FeedChannel, MarketChannel, SportsChannel
from src.stream.service import open_channel

__all__ = ["FeedChannel", "MarketChannel", "SportsChannel", "open_channel"]
