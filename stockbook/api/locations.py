"""
Locations API
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List
from uuid import UUID

from stockbook.core import get_db
from stockbook.core.rbac import Capability
from stockbook.models import AppUser
from stockbook.schemas.item import LocationCreate, LocationResponse, LocationUpdate
from stockbook.services import LocationService
from .auth import get_current_active_user, require_capability

router = APIRouter(prefix="/locations", tags=["locations"])


@router.get("", response_model=List[LocationResponse])
def list_locations(
    db: Session = Depends(get_db),
    current_user: AppUser = Depends(get_current_active_user)
):
    return LocationService.get_locations(db)


@router.post("", response_model=LocationResponse, status_code=201)
def create_location(
    data: LocationCreate,
    db: Session = Depends(get_db),
    current_user: AppUser = Depends(require_capability(Capability.MANAGE_LOCATIONS, "create locations"))
):
    return LocationService.create_location(db, data, current_user.id)


@router.put("/{location_id}", response_model=LocationResponse)
def update_location(
    location_id: UUID,
    data: LocationUpdate,
    db: Session = Depends(get_db),
    current_user: AppUser = Depends(require_capability(Capability.MANAGE_LOCATIONS, "edit locations"))
):
    return LocationService.update_location(db, location_id, data, current_user.id)


@router.delete("/{location_id}")
def delete_location(
    location_id: UUID,
    db: Session = Depends(get_db),
    current_user: AppUser = Depends(require_capability(Capability.DELETE_LOCATIONS, "delete locations"))
):
    LocationService.delete_location(db, location_id, current_user.id)
    return {"success": True, "message": "Location deleted"}
