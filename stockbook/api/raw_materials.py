"""
Raw Materials API
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import Optional
from uuid import UUID

from stockbook.core import get_db, settings
from stockbook.core.rbac import Capability
from stockbook.models import AppUser
from stockbook.schemas.item import RawMaterialCreate, RawMaterialResponse
from stockbook.schemas.stock import MovementHistory
from stockbook.services import RAW_MATERIAL, RawMaterialService, StockService
from .auth import get_current_active_user, require_capability
from .stock_movements import movement_history

router = APIRouter(prefix="/raw-materials", tags=["raw-materials"])


@router.get("")
def list_raw_materials(
    page: Optional[int] = Query(None, ge=1),
    per_page: Optional[int] = Query(None, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: AppUser = Depends(get_current_active_user)
):
    materials, total = RawMaterialService.get_raw_materials(db, page, per_page)
    return {
        "data": [RawMaterialResponse.model_validate(m) for m in materials],
        "total": total,
        "page": page,
        "per_page": per_page,
    }


@router.post("", response_model=RawMaterialResponse, status_code=201)
def create_raw_material(
    data: RawMaterialCreate,
    db: Session = Depends(get_db),
    current_user: AppUser = Depends(require_capability(Capability.MANAGE_MATERIALS, "create raw materials"))
):
    return RawMaterialService.create_raw_material(db, data, current_user.id)


@router.get("/{material_id}", response_model=RawMaterialResponse)
def get_raw_material(
    material_id: UUID,
    db: Session = Depends(get_db),
    current_user: AppUser = Depends(get_current_active_user)
):
    return RawMaterialService.get_raw_material(db, material_id)


@router.put("/{material_id}", response_model=RawMaterialResponse)
def update_raw_material(
    material_id: UUID,
    data: RawMaterialCreate,
    db: Session = Depends(get_db),
    current_user: AppUser = Depends(require_capability(Capability.MANAGE_MATERIALS, "edit raw materials"))
):
    return RawMaterialService.update_raw_material(db, material_id, data, current_user.id)


@router.delete("/{material_id}")
def delete_raw_material(
    material_id: UUID,
    db: Session = Depends(get_db),
    current_user: AppUser = Depends(require_capability(Capability.DELETE_MATERIALS, "delete raw materials"))
):
    RawMaterialService.delete_raw_material(db, material_id, current_user.id)
    return {"success": True, "message": "Raw material deleted"}


@router.get("/{material_id}/movements", response_model=MovementHistory)
def get_raw_material_movements(
    material_id: UUID,
    limit: int = Query(settings.MOVEMENT_HISTORY_DEFAULT_LIMIT),
    page: Optional[int] = Query(None),
    db: Session = Depends(get_db),
    current_user: AppUser = Depends(get_current_active_user)
):
    """Movement history, newest first, with the balance after each movement"""
    result, pagination = StockService.get_item_movements(db, RAW_MATERIAL, material_id, None, limit, page)
    return movement_history(result, pagination)
