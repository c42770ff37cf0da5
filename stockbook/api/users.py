"""
Users API
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List
from uuid import UUID

from stockbook.core import get_db
from stockbook.core.rbac import Capability
from stockbook.models import AppUser
from stockbook.schemas.user import UserCreate, UserResponse, UserUpdate
from stockbook.services import UserService
from .auth import require_capability

router = APIRouter(prefix="/users", tags=["users"])

manage_users = require_capability(Capability.MANAGE_USERS, "manage users")


@router.get("", response_model=List[UserResponse])
def list_users(
    db: Session = Depends(get_db),
    current_user: AppUser = Depends(manage_users)
):
    return UserService.get_users(db)


@router.post("", response_model=UserResponse, status_code=201)
def create_user(
    data: UserCreate,
    db: Session = Depends(get_db),
    current_user: AppUser = Depends(manage_users)
):
    return UserService.create_user(db, data, current_user.id)


@router.get("/{user_id}", response_model=UserResponse)
def get_user(
    user_id: UUID,
    db: Session = Depends(get_db),
    current_user: AppUser = Depends(manage_users)
):
    return UserService.get_user(db, user_id)


@router.put("/{user_id}", response_model=UserResponse)
def update_user(
    user_id: UUID,
    data: UserUpdate,
    db: Session = Depends(get_db),
    current_user: AppUser = Depends(manage_users)
):
    return UserService.update_user(db, user_id, data, current_user.id)


@router.delete("/{user_id}")
def delete_user(
    user_id: UUID,
    db: Session = Depends(get_db),
    current_user: AppUser = Depends(manage_users)
):
    UserService.delete_user(db, user_id, current_user.id)
    return {"success": True, "message": "User deleted"}
