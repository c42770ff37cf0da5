"""
Production Batches API
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import Optional
from uuid import UUID

from stockbook.core import get_db
from stockbook.core.rbac import Capability
from stockbook.models import AppUser
from stockbook.schemas.batch import BatchCreate, BatchResponse, BatchUpdate
from stockbook.services import BatchService
from .auth import get_current_active_user, require_capability

router = APIRouter(prefix="/batches", tags=["batches"])


@router.get("")
def list_batches(
    page: Optional[int] = Query(None, ge=1),
    per_page: Optional[int] = Query(None, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: AppUser = Depends(get_current_active_user)
):
    batches, total = BatchService.get_batches(db, page, per_page)
    return {
        "data": [BatchResponse.model_validate(b) for b in batches],
        "total": total,
        "page": page,
        "per_page": per_page,
    }


@router.post("", response_model=BatchResponse, status_code=201)
def create_batch(
    data: BatchCreate,
    db: Session = Depends(get_db),
    current_user: AppUser = Depends(require_capability(Capability.CREATE_BATCHES, "create batches"))
):
    """Create a batch; consumed materials are booked out on the batch date"""
    return BatchService.create_batch(db, data, current_user.id)


@router.get("/{batch_id}", response_model=BatchResponse)
def get_batch(
    batch_id: UUID,
    db: Session = Depends(get_db),
    current_user: AppUser = Depends(get_current_active_user)
):
    return BatchService.get_batch(db, batch_id)


@router.put("/{batch_id}", response_model=BatchResponse)
def update_batch(
    batch_id: UUID,
    data: BatchUpdate,
    db: Session = Depends(get_db),
    current_user: AppUser = Depends(require_capability(Capability.EDIT_BATCHES, "edit batches"))
):
    return BatchService.update_batch(db, batch_id, data, current_user.id)


@router.delete("/{batch_id}")
def delete_batch(
    batch_id: UUID,
    db: Session = Depends(get_db),
    current_user: AppUser = Depends(require_capability(Capability.DELETE_BATCHES, "delete batches"))
):
    BatchService.delete_batch(db, batch_id, current_user.id)
    return {"success": True, "message": "Batch deleted"}
