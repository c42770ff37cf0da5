"""
Finished Good Service - Business Logic for Finished Goods
"""
import logging
from sqlalchemy.orm import Session
from decimal import Decimal
from typing import List, Optional, Tuple
from uuid import UUID

from stockbook.core.errors import Conflict, InvalidArgument, NotFound
from stockbook.models import FinishedGood, FinishedGoodStock, StockMovement
from stockbook.schemas.item import FinishedGoodCreate
from .audit_service import AuditService, snapshot

logger = logging.getLogger(__name__)

AUDIT_FIELDS = ("name", "current_stock")

class FinishedGoodService:
    """Finished good business logic"""
    
    @staticmethod
    def get_finished_goods(
        db: Session,
        location_id: Optional[UUID] = None,
        page: Optional[int] = None,
        per_page: Optional[int] = None
    ) -> Tuple[List[dict], int]:
        """
        Finished goods newest first.

        With location_id, current_stock is the quantity held at that
        location instead of the aggregate.
        """
        query = db.query(FinishedGood).order_by(FinishedGood.created_at.desc())
        total = query.count()
        if page is not None or per_page is not None:
            page = max(1, page or 1)
            per_page = min(100, max(1, per_page or 50))
            query = query.offset((page - 1) * per_page).limit(per_page)
        goods = query.all()
        
        per_location = {}
        if location_id:
            rows = db.query(FinishedGoodStock).filter(
                FinishedGoodStock.location_id == location_id,
                FinishedGoodStock.finished_good_id.in_([g.id for g in goods])
            ).all()
            per_location = {r.finished_good_id: r.quantity for r in rows}
        
        result = []
        for good in goods:
            stock = per_location.get(good.id, Decimal("0")) if location_id else good.current_stock
            result.append({
                "id": good.id,
                "name": good.name,
                "current_stock": stock,
                "created_at": good.created_at,
                "stocks": [
                    {"location_id": s.location_id, "location_name": s.location.name, "quantity": s.quantity}
                    for s in good.stocks
                ],
            })
        return result, total
    
    @staticmethod
    def get_finished_good(db: Session, finished_good_id: UUID) -> FinishedGood:
        good = db.query(FinishedGood).filter(FinishedGood.id == finished_good_id).first()
        if not good:
            raise NotFound("Finished good not found")
        return good
    
    @staticmethod
    def create_finished_good(db: Session, data: FinishedGoodCreate, user_id: Optional[UUID] = None) -> FinishedGood:
        existing = db.query(FinishedGood).filter(FinishedGood.name == data.name).first()
        if existing:
            raise Conflict(f'Product "{data.name}" already exists', field="name")
        
        good = FinishedGood(name=data.name, current_stock=0)
        db.add(good)
        db.flush()
        AuditService.log(db, "finished_good", good.id, "INSERT", user_id, after=snapshot(good, AUDIT_FIELDS))
        db.commit()
        db.refresh(good)
        
        logger.info(f"Created finished good {good.name}")
        return good
    
    @staticmethod
    def update_finished_good(db: Session, finished_good_id: UUID, data: FinishedGoodCreate, user_id: Optional[UUID] = None) -> FinishedGood:
        good = FinishedGoodService.get_finished_good(db, finished_good_id)
        
        duplicate = db.query(FinishedGood).filter(
            FinishedGood.name == data.name,
            FinishedGood.id != finished_good_id
        ).first()
        if duplicate:
            raise Conflict(f'Product "{data.name}" already exists', field="name")
        
        before = snapshot(good, AUDIT_FIELDS)
        good.name = data.name
        AuditService.log(db, "finished_good", good.id, "UPDATE", user_id, before=before, after=snapshot(good, AUDIT_FIELDS))
        db.commit()
        db.refresh(good)
        
        logger.info(f"Updated finished good {good.name}")
        return good
    
    @staticmethod
    def delete_finished_good(db: Session, finished_good_id: UUID, user_id: Optional[UUID] = None) -> None:
        """Delete a finished good that was never moved"""
        good = FinishedGoodService.get_finished_good(db, finished_good_id)
        
        in_use = db.query(StockMovement.id).filter(StockMovement.finished_good_id == finished_good_id).first()
        if in_use:
            raise InvalidArgument("Cannot delete finished good that has stock movements")
        
        AuditService.log(db, "finished_good", good.id, "DELETE", user_id, before=snapshot(good, AUDIT_FIELDS))
        db.delete(good)
        db.commit()
        logger.info(f"Deleted finished good {good.name}")
