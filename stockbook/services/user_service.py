"""
User Service - Account management
"""
import logging
from sqlalchemy import or_
from sqlalchemy.orm import Session
from typing import List, Optional
from uuid import UUID

from stockbook.core.errors import Conflict, InvalidArgument, NotFound
from stockbook.core.rbac import Role
from stockbook.core.security import get_password_hash, verify_password
from stockbook.models import AppUser
from stockbook.schemas.user import UserCreate, UserUpdate
from .audit_service import AuditService, snapshot

logger = logging.getLogger(__name__)

AUDIT_FIELDS = ("username", "email", "name", "role", "is_active")


class UserService:
    """User business logic"""

    @staticmethod
    def get_users(db: Session) -> List[AppUser]:
        return db.query(AppUser).order_by(AppUser.created_at.desc()).all()

    @staticmethod
    def get_user(db: Session, user_id: UUID) -> AppUser:
        user = db.query(AppUser).filter(AppUser.id == user_id).first()
        if not user:
            raise NotFound("User not found")
        return user

    @staticmethod
    def find_by_login(db: Session, login: str) -> Optional[AppUser]:
        """Look a user up by username or email"""
        return db.query(AppUser).filter(
            or_(AppUser.username == login, AppUser.email == login)
        ).first()

    @staticmethod
    def authenticate(db: Session, login: str, password: str) -> Optional[AppUser]:
        user = UserService.find_by_login(db, login)
        if not user or not verify_password(password, user.hashed_password):
            return None
        return user

    @staticmethod
    def _check_unique(db: Session, username: Optional[str], email: Optional[str], user_id: Optional[UUID] = None) -> None:
        if username:
            query = db.query(AppUser.id).filter(AppUser.username == username)
            if user_id:
                query = query.filter(AppUser.id != user_id)
            if query.first():
                raise Conflict(f'Username "{username}" is already taken', field="username")
        if email:
            query = db.query(AppUser.id).filter(AppUser.email == email)
            if user_id:
                query = query.filter(AppUser.id != user_id)
            if query.first():
                raise Conflict(f'Email "{email}" is already registered', field="email")

    @staticmethod
    def _other_active_admins(db: Session, user_id: UUID) -> int:
        return db.query(AppUser).filter(
            AppUser.role == Role.ADMIN.value,
            AppUser.is_active == True,
            AppUser.id != user_id
        ).count()

    @staticmethod
    def create_user(db: Session, data: UserCreate, created_by: Optional[UUID] = None) -> AppUser:
        UserService._check_unique(db, data.username, data.email)

        user = AppUser(
            username=data.username,
            email=data.email,
            name=data.name,
            hashed_password=get_password_hash(data.password),
            role=data.role.value,
            is_active=True,
        )
        db.add(user)
        db.flush()
        AuditService.log(db, "app_user", user.id, "INSERT", created_by, after=snapshot(user, AUDIT_FIELDS))
        db.commit()
        db.refresh(user)

        logger.info(f"Created user {user.username} with role {user.role}")
        return user

    @staticmethod
    def update_user(db: Session, user_id: UUID, data: UserUpdate, updated_by: Optional[UUID] = None) -> AppUser:
        user = UserService.get_user(db, user_id)
        changes = data.model_dump(exclude_unset=True)
        UserService._check_unique(db, changes.get("username"), changes.get("email"), user_id)

        was_admin = user.role == Role.ADMIN.value and user.is_active
        loses_admin = (
            (changes.get("role") not in (None, Role.ADMIN))
            or changes.get("is_active") is False
        )
        if was_admin and loses_admin and UserService._other_active_admins(db, user_id) == 0:
            raise InvalidArgument("Cannot remove the last active admin", field="role")

        before = snapshot(user, AUDIT_FIELDS)
        for field, value in changes.items():
            if field == "password":
                if value:
                    user.hashed_password = get_password_hash(value)
            elif field == "role":
                if value is not None:
                    user.role = value.value
            elif field in ("username", "name", "is_active"):
                if value is not None:
                    setattr(user, field, value)
            else:
                setattr(user, field, value)

        AuditService.log(db, "app_user", user.id, "UPDATE", updated_by, before=before, after=snapshot(user, AUDIT_FIELDS))
        db.commit()
        db.refresh(user)

        logger.info(f"Updated user {user.username}")
        return user

    @staticmethod
    def change_password(db: Session, user: AppUser, current_password: str, new_password: str) -> None:
        if not verify_password(current_password, user.hashed_password):
            raise InvalidArgument("Current password is incorrect", field="current_password")
        user.hashed_password = get_password_hash(new_password)
        AuditService.log(db, "app_user", user.id, "PASSWORD_CHANGE", user.id)
        db.commit()
        logger.info(f"User {user.username} changed password")

    @staticmethod
    def delete_user(db: Session, user_id: UUID, current_user_id: UUID) -> None:
        user = UserService.get_user(db, user_id)
        if user.id == current_user_id:
            raise InvalidArgument("You cannot delete your own account")
        if user.role == Role.ADMIN.value and user.is_active and UserService._other_active_admins(db, user_id) == 0:
            raise InvalidArgument("Cannot delete the last active admin")

        AuditService.log(db, "app_user", user.id, "DELETE", current_user_id, before=snapshot(user, AUDIT_FIELDS))
        db.delete(user)
        db.commit()
        logger.info(f"Deleted user {user.username}")
