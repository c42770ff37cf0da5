"""
Stock Service - Business Logic for Stock Movements
"""
import logging
from collections import defaultdict
from sqlalchemy.orm import Session, joinedload
from sqlalchemy import case, func
from datetime import date, timedelta
from decimal import Decimal
from typing import Iterable, List, Optional, Tuple, Union
from uuid import UUID

from stockbook.core import settings
from stockbook.core.errors import InvalidArgument, NotFound
from stockbook.models import (
    FinishedGood, FinishedGoodStock, Location, RawMaterial, StockMovement
)
from stockbook.schemas.stock import StockMovementCreate, StockMovementUpdate
from .audit_service import AuditService, snapshot
from .location_service import LocationService
from .ledger import (
    LedgerResult, movement_delta, reconstruct_ledger, signed_delta,
    stock_before, to_quantity, validate_limit
)

logger = logging.getLogger(__name__)

RAW_MATERIAL = "raw-material"
FINISHED_GOOD = "finished-good"
ITEM_MODELS = {RAW_MATERIAL: RawMaterial, FINISHED_GOOD: FinishedGood}
ITEM_LABELS = {RAW_MATERIAL: "Raw material", FINISHED_GOOD: "Finished good"}

AUDIT_FIELDS = (
    "movement_type", "quantity", "movement_date", "description",
    "raw_material_id", "finished_good_id", "location_id", "batch_id",
)

Item = Union[RawMaterial, FinishedGood]


def _item_column(item_type: str):
    if item_type == RAW_MATERIAL:
        return StockMovement.raw_material_id
    if item_type == FINISHED_GOOD:
        return StockMovement.finished_good_id
    raise InvalidArgument(f"Unknown item type: {item_type!r}", field="item_type")


def _history_row(movement: StockMovement) -> dict:
    return {
        "id": movement.id,
        "movement_type": movement.movement_type,
        "quantity": movement.quantity,
        "movement_date": movement.movement_date,
        "description": movement.description,
        "location_id": movement.location_id,
        "batch": {"id": movement.batch.id, "code": movement.batch.code} if movement.batch else None,
        "location": {"id": movement.location.id, "name": movement.location.name} if movement.location else None,
        "created_at": movement.created_at,
    }


def _delta_expression():
    """SQL equivalent of ledger.signed_delta"""
    return case(
        (StockMovement.movement_type == "OUT", -StockMovement.quantity),
        else_=StockMovement.quantity,
    )


class StockService:
    """Stock movement business logic"""

    # ===================== ITEM ACCESS =====================

    @staticmethod
    def lock_item(db: Session, item_type: str, item_id: UUID, read: bool = False) -> Item:
        """Load an item row with a row lock (FOR SHARE when read=True)"""
        _item_column(item_type)
        model = ITEM_MODELS[item_type]
        item = db.query(model).filter(model.id == item_id).with_for_update(read=read).first()
        if not item:
            raise NotFound(f"{ITEM_LABELS[item_type]} not found")
        return item

    @staticmethod
    def _lock_location_stock(db: Session, finished_good_id: UUID, location_id: UUID) -> Optional[FinishedGoodStock]:
        return db.query(FinishedGoodStock).filter(
            FinishedGoodStock.finished_good_id == finished_good_id,
            FinishedGoodStock.location_id == location_id
        ).with_for_update().first()

    @staticmethod
    def _resolve_location(db: Session, location_id: Optional[UUID]) -> Location:
        if location_id:
            return LocationService.get_location(db, location_id)
        location = LocationService.get_default_location(db)
        if not location:
            raise InvalidArgument("Location required for finished goods", field="location_id")
        return location

    @staticmethod
    def available_stock(db: Session, item: Item, location_id: Optional[UUID] = None) -> Decimal:
        """Current stock of an item, or of a finished good at one location"""
        if isinstance(item, FinishedGood) and location_id:
            row = StockService._lock_location_stock(db, item.id, location_id)
            return to_quantity(row.quantity if row else 0)
        return to_quantity(item.current_stock)

    @staticmethod
    def calculate_stock_at_date(
        db: Session,
        item_type: str,
        item_id: UUID,
        on_date: date,
        location_id: Optional[UUID] = None,
        exclude_movement_id: Optional[UUID] = None
    ) -> Decimal:
        """Stock at the end of on_date, from the movement history"""
        column = _item_column(item_type)
        query = db.query(func.coalesce(func.sum(_delta_expression()), 0)).filter(
            column == item_id,
            StockMovement.movement_date <= on_date
        )
        if location_id:
            query = query.filter(StockMovement.location_id == location_id)
        if exclude_movement_id:
            query = query.filter(StockMovement.id != exclude_movement_id)
        return to_quantity(query.scalar())

    @staticmethod
    def lowest_stock_since(
        db: Session,
        item_type: str,
        item_id: UUID,
        since: date,
        location_id: Optional[UUID] = None,
        exclude_movement_id: Optional[UUID] = None,
        pending: Iterable[Tuple[date, Decimal]] = ()
    ) -> Decimal:
        """
        Lowest end-of-day stock from `since` onward.

        `pending` holds (date, delta) changes not yet flushed; they are
        applied on top of the stored history. A movement being rewritten
        is left out with exclude_movement_id and passed in `pending`.
        """
        column = _item_column(item_type)
        running = StockService.calculate_stock_at_date(
            db, item_type, item_id, since - timedelta(days=1), location_id, exclude_movement_id
        )

        query = db.query(StockMovement.movement_date, func.sum(_delta_expression())).filter(
            column == item_id,
            StockMovement.movement_date >= since
        )
        if location_id:
            query = query.filter(StockMovement.location_id == location_id)
        if exclude_movement_id:
            query = query.filter(StockMovement.id != exclude_movement_id)

        daily = defaultdict(lambda: Decimal("0.00"))
        daily[since] = Decimal("0.00")
        for movement_date, delta in query.group_by(StockMovement.movement_date).all():
            daily[movement_date] += to_quantity(delta)
        for movement_date, delta in pending:
            if movement_date < since:
                running += delta
            else:
                daily[movement_date] += delta

        lowest = None
        for day in sorted(daily):
            running += daily[day]
            if lowest is None or running < lowest:
                lowest = running
        return to_quantity(lowest)

    # ===================== WRITES =====================

    @staticmethod
    def _apply_delta(db: Session, item: Item, delta: Decimal, location_id: Optional[UUID]) -> None:
        item.current_stock = to_quantity(item.current_stock) + delta
        if isinstance(item, FinishedGood):
            row = StockService._lock_location_stock(db, item.id, location_id)
            if row is None:
                row = FinishedGoodStock(finished_good_id=item.id, location_id=location_id, quantity=0)
                db.add(row)
            row.quantity = to_quantity(row.quantity) + delta

    @staticmethod
    def _check_not_negative(db: Session, item: Item, item_type: str, delta: Decimal,
                            on_date: date, location_id: Optional[UUID]) -> None:
        """Reject an outflow that would take stock below zero, now or on any day since on_date"""
        if delta >= 0:
            return

        available = StockService.available_stock(db, item, location_id)
        lowest = StockService.lowest_stock_since(
            db, item_type, item.id, on_date, location_id, pending=[(on_date, delta)]
        )
        requested = -delta
        if available < requested or lowest < 0:
            shortfall_at = min(available, lowest + requested)
            raise InvalidArgument(
                f"Insufficient stock for {item.name} on {on_date.isoformat()}. "
                f"Available: {shortfall_at:.2f}, Requested: {requested:.2f}",
                field="quantity"
            )

    @staticmethod
    def record_movement(
        db: Session,
        item_type: str,
        item: Item,
        movement_type: str,
        quantity: Decimal,
        movement_date: date,
        description: Optional[str] = None,
        location_id: Optional[UUID] = None,
        batch_id: Optional[UUID] = None,
        created_by: Optional[UUID] = None
    ) -> StockMovement:
        """Validate and stage one movement plus its stock update; the caller commits"""
        delta = signed_delta(movement_type, quantity)
        if delta == 0:
            raise InvalidArgument("Quantity cannot be zero", field="quantity")

        if item_type == FINISHED_GOOD:
            location_id = StockService._resolve_location(db, location_id).id
        elif location_id:
            raise InvalidArgument("Raw material movements are not tracked by location", field="location_id")

        StockService._check_not_negative(db, item, item_type, delta, movement_date, location_id)

        movement = StockMovement(
            movement_type=movement_type,
            quantity=to_quantity(quantity),
            movement_date=movement_date,
            description=description,
            raw_material_id=item.id if item_type == RAW_MATERIAL else None,
            finished_good_id=item.id if item_type == FINISHED_GOOD else None,
            location_id=location_id,
            batch_id=batch_id,
            created_by=created_by,
        )
        db.add(movement)
        StockService._apply_delta(db, item, delta, location_id)
        db.flush()
        AuditService.log(db, "stock_movement", movement.id, "INSERT", created_by, after=snapshot(movement, AUDIT_FIELDS))
        return movement

    @staticmethod
    def create_movement(db: Session, data: StockMovementCreate, created_by: Optional[UUID] = None) -> StockMovement:
        """Record a stock movement and update the item's stock atomically"""
        if data.raw_material_id:
            item_type, item_id = RAW_MATERIAL, data.raw_material_id
        else:
            item_type, item_id = FINISHED_GOOD, data.finished_good_id

        try:
            item = StockService.lock_item(db, item_type, item_id)
            movement = StockService.record_movement(
                db, item_type, item,
                movement_type=data.movement_type,
                quantity=data.quantity,
                movement_date=data.movement_date,
                description=data.description,
                location_id=data.location_id,
                created_by=created_by,
            )
            db.commit()
        except Exception:
            db.rollback()
            raise

        db.refresh(movement)
        logger.info(
            f"Stock {movement.movement_type} {movement.quantity} for {item_type} {item_id} "
            f"(stock now {item.current_stock})"
        )
        return movement

    @staticmethod
    def get_movement(db: Session, movement_id: UUID) -> StockMovement:
        movement = db.query(StockMovement).filter(StockMovement.id == movement_id).first()
        if not movement:
            raise NotFound("Stock movement not found")
        return movement

    @staticmethod
    def _movement_item(db: Session, movement: StockMovement) -> Tuple[str, Item]:
        if movement.raw_material_id:
            return RAW_MATERIAL, StockService.lock_item(db, RAW_MATERIAL, movement.raw_material_id)
        return FINISHED_GOOD, StockService.lock_item(db, FINISHED_GOOD, movement.finished_good_id)

    @staticmethod
    def _reject_batch_movement(movement: StockMovement) -> None:
        if movement.batch_id:
            raise InvalidArgument(
                f"Movement belongs to batch {movement.batch.code}; change the batch instead",
                field="batch_id"
            )

    @staticmethod
    def update_movement(db: Session, movement_id: UUID, data: StockMovementUpdate, user_id: Optional[UUID] = None) -> StockMovement:
        """Administrative correction of quantity, date or description"""
        movement = StockService.get_movement(db, movement_id)
        StockService._reject_batch_movement(movement)

        try:
            item_type, item = StockService._movement_item(db, movement)
            before = snapshot(movement, AUDIT_FIELDS)

            new_quantity = data.quantity if data.quantity is not None else movement.quantity
            if movement.movement_type in ("IN", "OUT") and new_quantity < 0:
                raise InvalidArgument("Quantity must be positive for IN and OUT movements", field="quantity")
            new_date = data.movement_date or movement.movement_date

            old_delta = movement_delta(movement)
            new_delta = signed_delta(movement.movement_type, new_quantity)
            diff = new_delta - old_delta

            available = StockService.available_stock(db, item, movement.location_id)
            if available + diff < 0:
                raise InvalidArgument("Update would result in negative stock", field="quantity")
            since = min(movement.movement_date, new_date)
            lowest = StockService.lowest_stock_since(
                db, item_type, item.id, since, movement.location_id,
                exclude_movement_id=movement.id, pending=[(new_date, new_delta)]
            )
            if lowest < 0:
                raise InvalidArgument(
                    f"Insufficient stock for {item.name} after {since.isoformat()}: "
                    f"the change would leave {lowest:.2f}",
                    field="quantity"
                )

            StockService._apply_delta(db, item, diff, movement.location_id)
            movement.quantity = to_quantity(new_quantity)
            movement.movement_date = new_date
            if "description" in data.model_fields_set:
                movement.description = data.description

            AuditService.log(db, "stock_movement", movement.id, "UPDATE", user_id, before=before, after=snapshot(movement, AUDIT_FIELDS))
            db.commit()
        except Exception:
            db.rollback()
            raise

        db.refresh(movement)
        logger.info(f"Corrected stock movement {movement.id}: delta change {diff}")
        return movement

    @staticmethod
    def delete_movement(db: Session, movement_id: UUID, user_id: Optional[UUID] = None) -> None:
        """Remove a movement and reverse its effect on stock"""
        movement = StockService.get_movement(db, movement_id)
        StockService._reject_batch_movement(movement)

        try:
            item_type, item = StockService._movement_item(db, movement)
            reverse = -movement_delta(movement)
            available = StockService.available_stock(db, item, movement.location_id)
            if available + reverse < 0:
                raise InvalidArgument(
                    f"Cannot delete movement: stock of {item.name} would become {available + reverse:.2f}"
                )
            lowest = StockService.lowest_stock_since(
                db, item_type, item.id, movement.movement_date, movement.location_id,
                exclude_movement_id=movement.id
            )
            if lowest < 0:
                raise InvalidArgument(
                    f"Cannot delete movement: stock of {item.name} would drop to {lowest:.2f} "
                    f"after {movement.movement_date.isoformat()}"
                )

            StockService._apply_delta(db, item, reverse, movement.location_id)
            AuditService.log(db, "stock_movement", movement.id, "DELETE", user_id, before=snapshot(movement, AUDIT_FIELDS))
            db.delete(movement)
            db.commit()
        except Exception:
            db.rollback()
            raise

        logger.info(f"Deleted stock movement {movement_id}")

    # ===================== READS =====================

    @staticmethod
    def list_movements_by_date(db: Session, item_type: str, item_id: UUID, on_date: date) -> List[StockMovement]:
        """Movements of one item on one calendar date, in entry order"""
        column = _item_column(item_type)
        return db.query(StockMovement).filter(
            column == item_id,
            StockMovement.movement_date == on_date
        ).order_by(StockMovement.created_at.asc()).all()

    @staticmethod
    def get_item_movements(
        db: Session,
        item_type: str,
        item_id: UUID,
        location_id: Optional[UUID] = None,
        limit: int = settings.MOVEMENT_HISTORY_DEFAULT_LIMIT,
        page: Optional[int] = None
    ) -> Tuple[LedgerResult, Optional[dict]]:
        """
        Movement history with the balance after each movement, newest first.

        The item row is read under a share lock so no movement can be
        written between reading current stock and reading the history.
        """
        validate_limit(limit)
        if page is not None and page < 1:
            raise InvalidArgument("Page must be at least 1", field="page")
        column = _item_column(item_type)
        if location_id and item_type == RAW_MATERIAL:
            raise InvalidArgument("Raw material movements are not tracked by location", field="location_id")

        item = StockService.lock_item(db, item_type, item_id, read=True)
        current = to_quantity(item.current_stock)
        if location_id:
            row = db.query(FinishedGoodStock).filter(
                FinishedGoodStock.finished_good_id == item_id,
                FinishedGoodStock.location_id == location_id
            ).first()
            current = to_quantity(row.quantity if row else 0)

        query = db.query(StockMovement).filter(column == item_id)
        if location_id:
            query = query.filter(StockMovement.location_id == location_id)
        query = query.order_by(StockMovement.movement_date.desc(), StockMovement.created_at.desc())

        skip = (page - 1) * limit if page else 0
        anchor = None
        if skip:
            newer = query.with_entities(StockMovement.movement_type, StockMovement.quantity).limit(skip).all()
            anchor = stock_before(current, newer)

        movements = query.options(
            joinedload(StockMovement.batch),
            joinedload(StockMovement.location)
        ).offset(skip).limit(limit).all()

        # Copied out before commit expires the ORM rows
        rows = [_history_row(m) for m in movements]
        item_row = {"id": item.id, "name": item.name, "kode": getattr(item, "kode", None)}
        result = reconstruct_ledger(item_row, current, rows, limit, location_id=location_id, anchor=anchor)

        pagination = None
        if page is not None:
            total = query.count()
            pagination = {
                "page": page,
                "limit": limit,
                "total": total,
                "total_pages": (total + limit - 1) // limit,
                "has_more": skip + len(movements) < total,
            }
        db.commit()  # Release the share lock
        return result, pagination
