"""
Common types for streamed event models.

This module provides shared type definitions and lenient wire-value
conversions used by the event models and the order-book reducer.
"""

from decimal import Decimal, InvalidOperation
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator


def to_decimal(value: Any) -> Decimal:
    """
    Convert a JSON number or numeric string to Decimal.

    Anything that is not a finite number (missing, boolean, garbage text,
    NaN, infinities) converts to zero.
    """
    if isinstance(value, bool) or value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, int | float | str):
        try:
            result = Decimal(str(value).strip())
        except InvalidOperation:
            return Decimal("0")
    else:
        return Decimal("0")
    return result if result.is_finite() else Decimal("0")


class BookLevel(BaseModel):
    """
    A single price/size pair on one side of the book.

    Using Pydantic for consistency with the rest of the codebase
    and to get automatic validation of Decimal values.
    """

    price: Decimal
    size: Decimal

    model_config = ConfigDict(frozen=True)

    @field_validator("price", "size")
    @classmethod
    def validate_non_negative(cls, v: Decimal) -> Decimal:
        """Ensure price and size are non-negative."""
        if v < 0:
            raise ValueError("Price and size must be non-negative")
        return v

    def to_tuple(self) -> tuple[Decimal, Decimal]:
        """Convert to tuple for compatibility."""
        return (self.price, self.size)
