"""
Enums for streaming channels.

This module defines the vocabulary shared by the connection engine and the
channel specializations: channel kinds, run states, wire discriminants and
subscription operations.
"""

from __future__ import annotations

import enum

# =============================================================================
# CHANNEL ENUMS
# =============================================================================


class ChannelKind(str, enum.Enum):
    """
    Logical classes of streamed data.

    Each kind maps to its own endpoint and connection lifecycle.
    """

    MARKET = "market"  # Public order-book depth
    USER = "user"  # Private order and trade events
    SPORTS = "sports"  # Venue-wide sports events
    FEED = "feed"  # Third-party price and comment feed


class RunState(str, enum.Enum):
    """Lifecycle state of one channel connection."""

    STOPPED = "stopped"
    RUNNING = "running"


class FrameStyle(str, enum.Enum):
    """
    Shape of outbound subscription frames.

    CLOB channels carry ids under a named field and mark deltas with an
    ``operation`` key. STREAM channels name the stream explicitly and put
    the operation into ``type``.
    """

    CLOB = "clob"
    STREAM = "stream"


class SubscriptionOperation(str, enum.Enum):
    """Operation carried by a delta subscribe frame."""

    SUBSCRIBE = "subscribe"
    UNSUBSCRIBE = "unsubscribe"


# =============================================================================
# WIRE ENUMS
# =============================================================================


class EventType(str, enum.Enum):
    """
    Recognized discriminant values of inbound messages.

    CLOB channels use the ``event_type`` field, the feed uses ``stream``.
    """

    BOOK = "book"
    ORDER = "order"
    TRADE = "trade"
    SPORTS = "sports"
    PRICES = "prices"
    COMMENTS = "comments"


class DropReason(str, enum.Enum):
    """Why an inbound frame or message was discarded."""

    NOT_TEXT = "not_text"  # Binary frame
    INVALID_JSON = "invalid_json"
    UNEXPECTED_SHAPE = "unexpected_shape"  # Scalar or non-object element
    UNROUTED = "unrouted"  # No recognized discriminant
    INVALID_PAYLOAD = "invalid_payload"  # Matched but failed validation


class OrderSide(str, enum.Enum):
    """Side of an order or trade as reported by the venue."""

    BUY = "BUY"
    SELL = "SELL"

    @classmethod
    def from_exchange(cls, side: str) -> OrderSide:
        """
        Convert a venue side string to the enum.

        Args:
            side: Side string (e.g., "BUY", "sell", "b")

        Returns:
            Normalized OrderSide value

        """
        normalized = side.strip().lower()
        if normalized in {"buy", "b", "bid"}:
            return cls.BUY
        elif normalized in {"sell", "s", "ask"}:
            return cls.SELL
        else:
            raise ValueError(f"Invalid order side: {side}")
