"""Database layer - engine handle, base classes, and column types."""

from retail_kernel.db.base import UUID, Base, TimestampedBase, TrackedBase, UUIDString
from retail_kernel.db.engine import Database
from retail_kernel.db.types import Currency, CurrencyCode, Money, Quantity

__all__ = [
    "Database",
    "Base",
    "TimestampedBase",
    "TrackedBase",
    "UUIDString",
    "UUID",
    "Money",
    "Quantity",
    "Currency",
    "CurrencyCode",
]
