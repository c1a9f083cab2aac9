"""Channel specializations of the streaming engine."""

from src.stream.channels.base import StreamChannel
from src.stream.channels.feed import FeedChannel
from src.stream.channels.market import MarketChannel
from src.stream.channels.sports import SportsChannel

__all__ = [
    "FeedChannel",
    "MarketChannel",
    "SportsChannel",
    "StreamChannel",
]
