"""
Stock Ledger Reconstruction

Derives the stock level right after each historical movement by walking
backwards from the item's current stock. Movements must be ordered newest
first, and the current stock must come from the same snapshot as the
movements, otherwise the reconstructed balances drift.

    balance_after[i] = anchor - sum(delta[j] for j < i)

where ``anchor`` is the current stock, or, when older pages are requested,
the current stock with the skipped newer movements undone.
"""
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, List, Optional, Sequence

from stockbook.core import settings
from stockbook.core.errors import InvalidArgument, NotFound

QUANTUM = Decimal("0.01")  # Matches Numeric(12, 2) on every quantity column
MIN_LIMIT = 1


def to_quantity(value: Any) -> Decimal:
    """Exact quantity at the persisted precision"""
    if value is None:
        return Decimal("0.00")
    try:
        return Decimal(str(value)).quantize(QUANTUM)
    except InvalidOperation:
        raise InvalidArgument(f"Invalid quantity: {value!r}", field="quantity")


def signed_delta(movement_type: str, quantity: Any) -> Decimal:
    """Effect of one movement on the quantity on hand"""
    qty = to_quantity(quantity)
    if movement_type == "IN":
        return qty
    if movement_type == "OUT":
        return -qty
    if movement_type == "ADJUSTMENT":
        return qty
    raise InvalidArgument(f"Unknown movement type: {movement_type!r}", field="movement_type")


def validate_limit(limit: Any) -> int:
    max_limit = settings.MOVEMENT_HISTORY_MAX_LIMIT
    if isinstance(limit, bool) or not isinstance(limit, int) or not MIN_LIMIT <= limit <= max_limit:
        raise InvalidArgument(f"Limit must be between {MIN_LIMIT} and {max_limit}", field="limit")
    return limit


def _attr(obj: Any, name: str) -> Any:
    if isinstance(obj, dict):
        return obj.get(name)
    return getattr(obj, name, None)


def movement_delta(movement: Any) -> Decimal:
    return signed_delta(_attr(movement, "movement_type"), _attr(movement, "quantity"))


def stock_before(stock_after: Any, movements: Iterable[Any]) -> Decimal:
    """Undo a run of movements, newest first, from a known stock level"""
    running = to_quantity(stock_after)
    for movement in movements:
        running -= movement_delta(movement)
    return running


@dataclass(frozen=True)
class LedgerEntry:
    movement: Any
    balance_after: Decimal


@dataclass(frozen=True)
class LedgerResult:
    item: Any
    current_stock: Decimal
    location_id: Optional[Any]
    limit: int
    entries: List[LedgerEntry] = field(default_factory=list)

    @property
    def balances(self) -> List[Decimal]:
        return [e.balance_after for e in self.entries]


def reconstruct_ledger(
    item: Any,
    current_stock: Any,
    movements: Sequence[Any],
    limit: int = settings.MOVEMENT_HISTORY_DEFAULT_LIMIT,
    location_id: Optional[Any] = None,
    anchor: Optional[Any] = None,
) -> LedgerResult:
    """
    Attach ``balance_after`` to each movement, newest first.

    Args:
        item: the item the movements belong to; None means it does not exist
        current_stock: present-day stock (for the location, when filtered)
        movements: newest-first history; dicts or objects exposing
            movement_type, quantity and location_id
        limit: number of newest movements to reconstruct, 1..5000
        location_id: keep only movements at this location
        anchor: stock level right after the first returned movement, when
            newer movements were skipped by paging; defaults to current_stock

    Raises:
        InvalidArgument: limit out of range, unknown movement type
        NotFound: item is None
    """
    validate_limit(limit)
    if item is None:
        raise NotFound("Item not found")

    current = to_quantity(current_stock)
    if location_id is not None:
        movements = [m for m in movements if _attr(m, "location_id") == location_id]
    window = list(movements)[:limit]

    running = current if anchor is None else to_quantity(anchor)
    entries = []
    for movement in window:
        entries.append(LedgerEntry(movement=movement, balance_after=running))
        # Balance before this movement is the balance after the next (older) one
        running -= movement_delta(movement)

    return LedgerResult(
        item=item,
        current_stock=current,
        location_id=location_id,
        limit=limit,
        entries=entries,
    )
