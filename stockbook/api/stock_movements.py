"""
Stock Movements API
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List, Optional
from uuid import UUID
from datetime import date

from stockbook.core import get_db
from stockbook.core.rbac import Capability
from stockbook.models import AppUser
from stockbook.schemas.stock import ItemType, StockMovementCreate, StockMovementResponse, StockMovementUpdate
from stockbook.services import StockService
from stockbook.services.ledger import LedgerResult
from .auth import get_current_active_user, require_capability

router = APIRouter(prefix="/stock-movements", tags=["stock-movements"])


def movement_history(result: LedgerResult, pagination: Optional[dict]) -> dict:
    """Shape a reconstructed ledger for MovementHistory"""
    movements = [
        {**entry.movement, "balance_after": entry.balance_after}
        for entry in result.entries
    ]
    return {
        "item": {**result.item, "current_stock": result.current_stock},
        "location_id": result.location_id,
        "limit": result.limit,
        "movements": movements,
        "pagination": pagination,
    }


@router.get("", response_model=List[StockMovementResponse])
def list_movements_by_date(
    item_type: ItemType = Query(...),
    item_id: UUID = Query(...),
    on_date: date = Query(..., alias="date"),
    db: Session = Depends(get_db),
    current_user: AppUser = Depends(get_current_active_user)
):
    """Movements of one item on one day"""
    return StockService.list_movements_by_date(db, item_type, item_id, on_date)


@router.post("", response_model=StockMovementResponse, status_code=201)
def create_movement(
    data: StockMovementCreate,
    db: Session = Depends(get_db),
    current_user: AppUser = Depends(require_capability(Capability.CREATE_STOCK_MOVEMENTS, "create stock movements"))
):
    return StockService.create_movement(db, data, current_user.id)


@router.get("/{movement_id}", response_model=StockMovementResponse)
def get_movement(
    movement_id: UUID,
    db: Session = Depends(get_db),
    current_user: AppUser = Depends(get_current_active_user)
):
    return StockService.get_movement(db, movement_id)


@router.put("/{movement_id}", response_model=StockMovementResponse)
def update_movement(
    movement_id: UUID,
    data: StockMovementUpdate,
    db: Session = Depends(get_db),
    current_user: AppUser = Depends(require_capability(Capability.EDIT_STOCK_MOVEMENTS, "edit stock movements"))
):
    return StockService.update_movement(db, movement_id, data, current_user.id)


@router.delete("/{movement_id}")
def delete_movement(
    movement_id: UUID,
    db: Session = Depends(get_db),
    current_user: AppUser = Depends(require_capability(Capability.DELETE_STOCK_MOVEMENTS, "delete stock movements"))
):
    StockService.delete_movement(db, movement_id, current_user.id)
    return {"success": True, "message": "Stock movement deleted"}
