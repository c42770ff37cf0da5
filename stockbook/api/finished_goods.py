"""
Finished Goods API
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import Optional
from uuid import UUID

from stockbook.core import get_db, settings
from stockbook.core.rbac import Capability
from stockbook.models import AppUser
from stockbook.schemas.item import FinishedGoodCreate, FinishedGoodResponse
from stockbook.schemas.stock import MovementHistory
from stockbook.services import FINISHED_GOOD, FinishedGoodService, StockService
from .auth import get_current_active_user, require_capability
from .stock_movements import movement_history

router = APIRouter(prefix="/finished-goods", tags=["finished-goods"])


def _stock_rows(good):
    return [
        {"location_id": str(s.location_id), "location_name": s.location.name, "quantity": str(s.quantity)}
        for s in good.stocks
    ]


@router.get("")
def list_finished_goods(
    location_id: Optional[UUID] = Query(None),
    page: Optional[int] = Query(None, ge=1),
    per_page: Optional[int] = Query(None, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: AppUser = Depends(get_current_active_user)
):
    """Finished goods; with location_id, current_stock is that location's quantity"""
    goods, total = FinishedGoodService.get_finished_goods(db, location_id, page, per_page)
    return {
        "data": [
            {
                "id": str(g["id"]),
                "name": g["name"],
                "current_stock": str(g["current_stock"]),
                "created_at": g["created_at"].isoformat() if g["created_at"] else None,
                "stocks": [
                    {**s, "location_id": str(s["location_id"]), "quantity": str(s["quantity"])}
                    for s in g["stocks"]
                ],
            }
            for g in goods
        ],
        "total": total,
        "page": page,
        "per_page": per_page,
    }


@router.post("", response_model=FinishedGoodResponse, status_code=201)
def create_finished_good(
    data: FinishedGoodCreate,
    db: Session = Depends(get_db),
    current_user: AppUser = Depends(require_capability(Capability.MANAGE_FINISHED_GOODS, "create finished goods"))
):
    return FinishedGoodService.create_finished_good(db, data, current_user.id)


@router.get("/{finished_good_id}")
def get_finished_good(
    finished_good_id: UUID,
    db: Session = Depends(get_db),
    current_user: AppUser = Depends(get_current_active_user)
):
    good = FinishedGoodService.get_finished_good(db, finished_good_id)
    data = FinishedGoodResponse.model_validate(good).model_dump(mode="json")
    data["stocks"] = _stock_rows(good)
    return data


@router.put("/{finished_good_id}", response_model=FinishedGoodResponse)
def update_finished_good(
    finished_good_id: UUID,
    data: FinishedGoodCreate,
    db: Session = Depends(get_db),
    current_user: AppUser = Depends(require_capability(Capability.MANAGE_FINISHED_GOODS, "edit finished goods"))
):
    return FinishedGoodService.update_finished_good(db, finished_good_id, data, current_user.id)


@router.delete("/{finished_good_id}")
def delete_finished_good(
    finished_good_id: UUID,
    db: Session = Depends(get_db),
    current_user: AppUser = Depends(require_capability(Capability.DELETE_FINISHED_GOODS, "delete finished goods"))
):
    FinishedGoodService.delete_finished_good(db, finished_good_id, current_user.id)
    return {"success": True, "message": "Finished good deleted"}


@router.get("/{finished_good_id}/movements", response_model=MovementHistory)
def get_finished_good_movements(
    finished_good_id: UUID,
    location_id: Optional[UUID] = Query(None),
    limit: int = Query(settings.MOVEMENT_HISTORY_DEFAULT_LIMIT),
    page: Optional[int] = Query(None),
    db: Session = Depends(get_db),
    current_user: AppUser = Depends(get_current_active_user)
):
    """Movement history, newest first, optionally for one location"""
    result, pagination = StockService.get_item_movements(db, FINISHED_GOOD, finished_good_id, location_id, limit, page)
    return movement_history(result, pagination)
