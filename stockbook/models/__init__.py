from .base import TimestampMixin, UUIDMixin
from .master import AppUser, Location
from .item import RawMaterial, FinishedGood, FinishedGoodStock
from .batch import Batch, BatchUsage
from .stock import StockMovement
from .audit import AuditLog

__all__ = [
    # Base
    "TimestampMixin", "UUIDMixin",
    # Master
    "AppUser", "Location",
    # Items
    "RawMaterial", "FinishedGood", "FinishedGoodStock",
    # Batch
    "Batch", "BatchUsage",
    # Stock
    "StockMovement",
    # Audit
    "AuditLog",
]
