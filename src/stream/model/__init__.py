"""Streamed event models."""

from src.stream.model.auth import AuthCredential, Credential, FeedToken
from src.stream.model.book import BookSnapshot, best_ask, best_bid, reduce_book
from src.stream.model.events import (
    CommentEvent,
    OrderEvent,
    PriceEvent,
    SportsEvent,
    StreamEvent,
    TradeEvent,
)
from src.stream.model.stats import ChannelStats
from src.stream.model.types import BookLevel

__all__ = [
    "AuthCredential",
    "BookLevel",
    "BookSnapshot",
    "ChannelStats",
    "CommentEvent",
    "Credential",
    "FeedToken",
    "OrderEvent",
    "PriceEvent",
    "SportsEvent",
    "StreamEvent",
    "TradeEvent",
    "best_ask",
    "best_bid",
    "reduce_book",
]
