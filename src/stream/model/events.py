"""
Event models for streamed channel messages.

Each model is produced once per inbound message by the dispatcher and handed
to the registered callback. Raw fields are parsed leniently since the venue
encodes numbers as either JSON numbers or strings and timestamps as either
ISO-8601 text or unix epochs.
"""

from datetime import UTC, datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from src.stream.enums import OrderSide
from src.stream.model.types import to_decimal

# Epoch values above this are taken as milliseconds
_MILLIS_THRESHOLD = 10**11


def parse_timestamp(value: Any) -> datetime | None:
    """
    Parse a wire timestamp.

    Accepts ISO-8601 strings (with ``Z`` suffix), unix seconds or
    milliseconds as numbers or numeric strings. Empty values give None.
    """
    if value is None or value == "" or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=UTC)
    if isinstance(value, str):
        text = value.strip()
        if text.lstrip("-").replace(".", "", 1).isdigit():
            value = float(text)
        else:
            parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
            return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)
    if isinstance(value, int | float):
        try:
            seconds = value / 1000 if abs(value) >= _MILLIS_THRESHOLD else value
            return datetime.fromtimestamp(seconds, tz=UTC)
        except (OverflowError, OSError) as e:
            raise ValueError(f"Timestamp out of range: {value!r}") from e
    raise ValueError(f"Unsupported timestamp: {value!r}")


class StreamEvent(BaseModel):
    """Base model for all streamed events."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        str_strip_whitespace=True,
    )


class OrderEvent(StreamEvent):
    """Order status update from the user channel."""

    order_id: str = Field(alias="id", description="Order identifier")
    status: str = ""
    owner: str = ""
    maker_address: str = ""
    market: str = Field(default="", description="Condition identifier")
    asset_id: str = Field(default="", description="Token identifier")
    side: OrderSide | None = None
    original_size: Decimal = Decimal("0")
    size_matched: Decimal = Decimal("0")
    price: Decimal = Decimal("0")
    outcome: str = ""
    expiration: datetime | None = None
    order_type: str = ""
    associate_trades: list[str] = Field(default_factory=list)
    created_at: datetime | None = None

    @field_validator("original_size", "size_matched", "price", mode="before")
    @classmethod
    def parse_number(cls, v: Any) -> Decimal:
        """Accept numeric strings and JSON numbers."""
        return to_decimal(v)

    @field_validator("side", mode="before")
    @classmethod
    def parse_side(cls, v: Any) -> OrderSide | None:
        """Normalize the venue's side spelling."""
        if v in (None, ""):
            return None
        return OrderSide.from_exchange(str(v))

    @field_validator("expiration", "created_at", mode="before")
    @classmethod
    def parse_time(cls, v: Any) -> datetime | None:
        """Accept ISO strings and unix epochs."""
        return parse_timestamp(v)

    @field_validator("associate_trades", mode="before")
    @classmethod
    def parse_trades(cls, v: Any) -> list[str]:
        """Treat null as an empty list."""
        return [] if v is None else v

    @property
    def remaining_size(self) -> Decimal:
        """Size still open on the book."""
        return max(self.original_size - self.size_matched, Decimal("0"))

    @property
    def is_filled(self) -> bool:
        """Check if the order is completely matched."""
        return self.original_size > 0 and self.size_matched >= self.original_size


class TradeEvent(StreamEvent):
    """Trade update from the user channel."""

    trade_id: str = Field(alias="id", description="Trade identifier")
    market: str = Field(default="", description="Condition identifier")
    asset_id: str = Field(default="", description="Token identifier")
    side: OrderSide | None = None
    price: Decimal = Decimal("0")
    size: Decimal = Decimal("0")
    timestamp: datetime | None = None
    maker_address: str = ""
    taker_address: str = ""

    @field_validator("price", "size", mode="before")
    @classmethod
    def parse_number(cls, v: Any) -> Decimal:
        """Accept numeric strings and JSON numbers."""
        return to_decimal(v)

    @field_validator("side", mode="before")
    @classmethod
    def parse_side(cls, v: Any) -> OrderSide | None:
        """Normalize the venue's side spelling."""
        if v in (None, ""):
            return None
        return OrderSide.from_exchange(str(v))

    @field_validator("timestamp", mode="before")
    @classmethod
    def parse_time(cls, v: Any) -> datetime | None:
        """Accept ISO strings and unix epochs."""
        return parse_timestamp(v)

    @property
    def value(self) -> Decimal:
        """Calculate trade value (price * size)."""
        return self.price * self.size


class SportsEvent(StreamEvent):
    """Live sports event update from the sports channel."""

    event_id: int
    sport_id: int = 0
    league: str = ""
    home_team: str = ""
    away_team: str = ""
    start_time: datetime | None = None
    status: str = ""
    score: str = ""
    markets: list[str] = Field(default_factory=list)
    updated_at: datetime | None = None

    @field_validator("start_time", "updated_at", mode="before")
    @classmethod
    def parse_time(cls, v: Any) -> datetime | None:
        """Accept ISO strings and unix epochs."""
        return parse_timestamp(v)

    @field_validator("markets", mode="before")
    @classmethod
    def parse_markets(cls, v: Any) -> list[str]:
        """Treat null as an empty list."""
        return [] if v is None else v

    def to_summary(self) -> str:
        """Generate a human-readable summary."""
        score = f" {self.score}" if self.score else ""
        return f"[{self.league}] {self.home_team} vs {self.away_team}{score} ({self.status})"


class PriceEvent(StreamEvent):
    """
    Price update from the third-party feed.

    The price is opaque: the feed may deliver it encrypted, so it is kept
    as the raw string.
    """

    token_id: str
    price: str = ""
    timestamp: datetime | None = None
    data: str = ""

    @field_validator("price", mode="before")
    @classmethod
    def parse_price(cls, v: Any) -> str:
        """Keep numeric prices as their string form."""
        return "" if v is None else str(v)

    @field_validator("timestamp", mode="before")
    @classmethod
    def parse_time(cls, v: Any) -> datetime | None:
        """Accept ISO strings and unix epochs."""
        return parse_timestamp(v)


class CommentEvent(StreamEvent):
    """Comment update from the third-party feed."""

    comment_id: str = Field(alias="id")
    parent_entity_type: str = ""
    parent_entity_id: int = 0
    user_address: str = ""
    content: str = ""
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @field_validator("comment_id", mode="before")
    @classmethod
    def parse_id(cls, v: Any) -> str:
        """Accept numeric identifiers."""
        return str(v) if isinstance(v, int) and not isinstance(v, bool) else v

    @field_validator("created_at", "updated_at", mode="before")
    @classmethod
    def parse_time(cls, v: Any) -> datetime | None:
        """Accept ISO strings and unix epochs."""
        return parse_timestamp(v)
