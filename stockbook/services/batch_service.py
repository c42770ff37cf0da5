"""
Batch Service - Production batches and their raw material consumption
"""
import logging
from sqlalchemy.orm import Session, joinedload
from datetime import date
from typing import List, Optional, Tuple
from uuid import UUID

from stockbook.core.errors import Conflict, InvalidArgument, NotFound
from stockbook.models import Batch, BatchUsage, StockMovement
from stockbook.schemas.batch import BatchCreate, BatchMaterial, BatchUpdate
from .audit_service import AuditService, snapshot
from .ledger import movement_delta, to_quantity
from .stock_service import RAW_MATERIAL, StockService

logger = logging.getLogger(__name__)

AUDIT_FIELDS = ("code", "batch_date", "description", "status")


class BatchService:
    """Batch business logic"""

    @staticmethod
    def get_batches(
        db: Session,
        page: Optional[int] = None,
        per_page: Optional[int] = None
    ) -> Tuple[List[Batch], int]:
        query = db.query(Batch).options(joinedload(Batch.usages)).order_by(
            Batch.batch_date.desc(), Batch.created_at.desc()
        )
        total = db.query(Batch).count()
        if page is None and per_page is None:
            return query.all(), total

        page = max(1, page or 1)
        per_page = min(100, max(1, per_page or 50))
        return query.offset((page - 1) * per_page).limit(per_page).all(), total

    @staticmethod
    def get_batch(db: Session, batch_id: UUID) -> Batch:
        batch = db.query(Batch).options(joinedload(Batch.usages)).filter(Batch.id == batch_id).first()
        if not batch:
            raise NotFound("Batch not found")
        return batch

    @staticmethod
    def _check_code(db: Session, code: str, batch_id: Optional[UUID] = None) -> None:
        query = db.query(Batch.id).filter(Batch.code == code)
        if batch_id:
            query = query.filter(Batch.id != batch_id)
        if query.first():
            raise Conflict(f'Batch code "{code}" already exists', field="code")

    @staticmethod
    def _consume_materials(db: Session, batch: Batch, materials: List[BatchMaterial], user_id: Optional[UUID]) -> None:
        """One BatchUsage plus one OUT movement per material, dated on the batch date"""
        for material_data in materials:
            material = StockService.lock_item(db, RAW_MATERIAL, material_data.raw_material_id)
            batch.usages.append(BatchUsage(
                raw_material_id=material.id,
                quantity=material_data.quantity,
            ))
            StockService.record_movement(
                db, RAW_MATERIAL, material,
                movement_type="OUT",
                quantity=material_data.quantity,
                movement_date=batch.batch_date,
                description=f"Batch {batch.code}",
                batch_id=batch.id,
                created_by=user_id,
            )

    @staticmethod
    def _release_materials(db: Session, batch_id: UUID) -> int:
        """Return a batch's consumed materials to stock and drop its movements"""
        movements = db.query(StockMovement).filter(StockMovement.batch_id == batch_id).all()
        for movement in movements:
            material = StockService.lock_item(db, RAW_MATERIAL, movement.raw_material_id)
            material.current_stock = to_quantity(material.current_stock) - movement_delta(movement)
            db.delete(movement)
        return len(movements)

    @staticmethod
    def _redate_movements(db: Session, batch: Batch, old_date: date) -> None:
        """Move the batch's movements to the batch date, keeping every day's stock >= 0"""
        since = min(old_date, batch.batch_date)
        movements = db.query(StockMovement).filter(StockMovement.batch_id == batch.id).all()
        for movement in movements:
            material = StockService.lock_item(db, RAW_MATERIAL, movement.raw_material_id)
            lowest = StockService.lowest_stock_since(
                db, RAW_MATERIAL, material.id, since,
                exclude_movement_id=movement.id,
                pending=[(batch.batch_date, movement_delta(movement))]
            )
            if lowest < 0:
                raise InvalidArgument(
                    f"Insufficient stock for {material.name} on {batch.batch_date.isoformat()}. "
                    f"Moving batch {batch.code} would leave {lowest:.2f}",
                    field="batch_date"
                )
            movement.movement_date = batch.batch_date

    @staticmethod
    def create_batch(db: Session, data: BatchCreate, user_id: Optional[UUID] = None) -> Batch:
        """
        Create a batch and consume its raw materials.

        Each material becomes a BatchUsage plus an OUT movement dated on the
        batch date. Any shortage aborts the whole batch.
        """
        BatchService._check_code(db, data.code)

        try:
            batch = Batch(
                code=data.code,
                batch_date=data.batch_date,
                description=data.description,
                status=data.status,
                created_by=user_id,
            )
            db.add(batch)
            db.flush()

            BatchService._consume_materials(db, batch, data.materials, user_id)

            AuditService.log(db, "batch", batch.id, "INSERT", user_id, after=snapshot(batch, AUDIT_FIELDS))
            db.commit()
        except Exception:
            db.rollback()
            raise

        logger.info(f"Created batch {data.code} using {len(data.materials)} materials")
        return BatchService.get_batch(db, batch.id)

    @staticmethod
    def update_batch(db: Session, batch_id: UUID, data: BatchUpdate, user_id: Optional[UUID] = None) -> Batch:
        """
        Update a batch.

        Header fields are partial. A new date or code follows the batch's
        movements. When materials are given they replace the old usages:
        old consumption is returned to stock first, then the new list is
        consumed with the same stock checks as a new batch, all in one
        transaction.
        """
        batch = BatchService.get_batch(db, batch_id)
        changes = data.model_dump(exclude_unset=True, exclude={"materials"})
        if changes.get("code"):
            BatchService._check_code(db, changes["code"], batch_id)

        try:
            before = snapshot(batch, AUDIT_FIELDS)
            old_date = batch.batch_date
            old_code = batch.code
            for field, value in changes.items():
                if field in ("code", "batch_date", "status") and value is None:
                    continue
                setattr(batch, field, value)

            if data.materials is not None:
                BatchService._release_materials(db, batch.id)
                batch.usages.clear()
                db.flush()
                BatchService._consume_materials(db, batch, data.materials, user_id)
            else:
                if batch.batch_date != old_date:
                    BatchService._redate_movements(db, batch, old_date)
                if batch.code != old_code:
                    for movement in batch.stock_movements:
                        movement.description = f"Batch {batch.code}"

            AuditService.log(db, "batch", batch.id, "UPDATE", user_id, before=before, after=snapshot(batch, AUDIT_FIELDS))
            db.commit()
        except Exception:
            db.rollback()
            raise

        logger.info(f"Updated batch {batch.code}")
        return BatchService.get_batch(db, batch_id)

    @staticmethod
    def delete_batch(db: Session, batch_id: UUID, user_id: Optional[UUID] = None) -> None:
        """Delete a batch and return its consumed materials to stock"""
        batch = BatchService.get_batch(db, batch_id)
        code = batch.code

        try:
            restored = BatchService._release_materials(db, batch_id)
            AuditService.log(db, "batch", batch.id, "DELETE", user_id, before=snapshot(batch, AUDIT_FIELDS))
            db.delete(batch)
            db.commit()
        except Exception:
            db.rollback()
            raise

        logger.info(f"Deleted batch {code}, restored {restored} material movements")
