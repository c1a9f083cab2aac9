"""
Best-bid/best-ask reduction of full depth updates.

The market channel delivers the whole depth of one asset in every ``book``
message. Consumers only need the top of book, so each message is reduced
to a frozen BookSnapshot at the adapter boundary.
"""

from collections.abc import Callable, Iterable
from datetime import UTC, datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from src.stream.model.types import BookLevel, to_decimal


class BookSnapshot(BaseModel):
    """
    Top of book for one asset at the moment a depth update was observed.

    A side without any positive price is absent (None), never zero-valued.
    The model is frozen for immutability and thread safety.
    """

    asset_id: str = Field(description="Asset (token) identifier without 0x prefix")
    best_bid: BookLevel | None = None
    best_ask: BookLevel | None = None
    observed_at: datetime = Field(description="Local receive time")

    model_config = ConfigDict(frozen=True)

    @property
    def mid_price(self) -> Decimal | None:
        """Get the mid price."""
        if self.best_bid is None or self.best_ask is None:
            return None
        return (self.best_bid.price + self.best_ask.price) / 2

    @property
    def spread(self) -> Decimal | None:
        """Get the spread."""
        if self.best_bid is None or self.best_ask is None:
            return None
        return self.best_ask.price - self.best_bid.price

    @property
    def is_crossed(self) -> bool:
        """Check if the best bid is at or above the best ask."""
        spread = self.spread
        return spread is not None and spread <= 0

    def format_top_of_book(self) -> str:
        """Format top of book summary."""
        bid = f"{self.best_bid.price}x{self.best_bid.size}" if self.best_bid else "-"
        ask = f"{self.best_ask.price}x{self.best_ask.size}" if self.best_ask else "-"
        return f"{self.asset_id}: Bid: {bid} | Ask: {ask}"


def _levels(raw: Any) -> Iterable[tuple[Decimal, Decimal]]:
    """Yield (price, size) for every object entry of a raw side list."""
    if not isinstance(raw, list):
        return
    for entry in raw:
        if not isinstance(entry, dict):
            continue
        yield to_decimal(entry.get("price")), to_decimal(entry.get("size"))


def _best(
    raw: Any, better: Callable[[Decimal, Decimal], bool]
) -> BookLevel | None:
    # Ties keep the first entry seen; only a strictly better price replaces it
    best: tuple[Decimal, Decimal] | None = None
    for price, size in _levels(raw):
        if price <= 0:
            continue
        if best is None or better(price, best[0]):
            best = (price, size)
    if best is None:
        return None
    return BookLevel(price=best[0], size=max(best[1], Decimal("0")))


def best_bid(bids: Any) -> BookLevel | None:
    """Get the bid entry with the strictly highest positive price."""
    return _best(bids, lambda price, current: price > current)


def best_ask(asks: Any) -> BookLevel | None:
    """Get the ask entry with the strictly lowest positive price."""
    return _best(asks, lambda price, current: price < current)


def reduce_book(
    message: dict[str, Any], observed_at: datetime | None = None
) -> BookSnapshot | None:
    """
    Reduce a raw ``book`` message to a BookSnapshot.

    Args:
        message: Decoded book message with ``asset_id``, ``bids`` and ``asks``
        observed_at: Receive time, defaults to now

    Returns:
        Snapshot of the top of book, or None when the message has no asset id

    """
    asset_id = message.get("asset_id")
    if not isinstance(asset_id, str):
        return None

    return BookSnapshot(
        asset_id=asset_id.removeprefix("0x"),
        best_bid=best_bid(message.get("bids")),
        best_ask=best_ask(message.get("asks")),
        observed_at=observed_at or datetime.now(UTC),
    )
