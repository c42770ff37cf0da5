"""
Authentication API - Login, JWT Token, Password Management, Permissions
"""
import logging
from fastapi import APIRouter, Depends
from fastapi.security import OAuth2PasswordBearer, OAuth2PasswordRequestForm
from sqlalchemy.orm import Session
from pydantic import BaseModel
from typing import Dict, List, Optional
from uuid import UUID

from stockbook.core import get_db
from stockbook.core.errors import Forbidden, Unauthenticated
from stockbook.core.rbac import (
    Capability, capabilities_for, evaluate_permission,
    permission_denial_message, permission_matrix
)
from stockbook.core.security import create_access_token, decode_access_token
from stockbook.models import AppUser
from stockbook.schemas.user import Password, UserResponse
from stockbook.services import UserService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])

# OAuth2 scheme
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)


# ============== Schemas ==============

class Token(BaseModel):
    access_token: str
    token_type: str
    user: UserResponse


class PasswordChange(BaseModel):
    current_password: str
    new_password: Password


class UserInfo(UserResponse):
    capabilities: List[str]


class PermissionsInfo(BaseModel):
    role: str
    capabilities: List[str]
    matrix: Dict[str, List[str]]


# ============== Dependencies ==============

def get_current_user(
    token: Optional[str] = Depends(oauth2_scheme),
    db: Session = Depends(get_db)
) -> Optional[AppUser]:
    """Get current user from JWT token, None when unauthenticated"""
    if not token:
        return None

    payload = decode_access_token(token)
    if not payload or not payload.get("sub"):
        return None

    try:
        user_id = UUID(str(payload["sub"]))
    except ValueError:
        return None

    # None when the user was deleted after the token was issued
    return db.query(AppUser).filter(AppUser.id == user_id).first()


def get_current_active_user(
    current_user: Optional[AppUser] = Depends(get_current_user)
) -> AppUser:
    """Require authenticated and active user"""
    if not current_user:
        raise Unauthenticated("Not authenticated")
    if not current_user.is_active:
        raise Forbidden("User is inactive")
    return current_user


def require_capability(capability: Capability, action: str):
    """Dependency factory: the current user's role must grant capability"""

    def checker(current_user: AppUser = Depends(get_current_active_user)) -> AppUser:
        if not evaluate_permission(current_user.role, capability):
            logger.warning(f"User {current_user.username} ({current_user.role}) denied {capability.value}")
            raise Forbidden(permission_denial_message(action, current_user.role))
        return current_user

    return checker


# ============== API Endpoints ==============

@router.post("/login", response_model=Token)
def login(
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: Session = Depends(get_db)
):
    """
    Login with username (or email) and password, returns JWT token
    """
    user = UserService.authenticate(db, form_data.username, form_data.password)
    if not user:
        logger.warning(f"Failed login for {form_data.username}")
        raise Unauthenticated("Invalid username or password")

    if not user.is_active:
        raise Forbidden("Account is disabled")

    access_token = create_access_token(
        data={
            "sub": str(user.id),
            "username": user.username,
            "role": user.role,
        }
    )
    logger.info(f"User {user.username} logged in")
    return {
        "access_token": access_token,
        "token_type": "bearer",
        "user": user,
    }


@router.get("/me", response_model=UserInfo)
def get_me(current_user: AppUser = Depends(get_current_active_user)):
    """Get current authenticated user info"""
    info = UserResponse.model_validate(current_user).model_dump()
    info["capabilities"] = sorted(c.value for c in capabilities_for(current_user.role))
    return info


@router.post("/password")
def change_password(
    password_data: PasswordChange,
    current_user: AppUser = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    """Change password for current user"""
    UserService.change_password(db, current_user, password_data.current_password, password_data.new_password)
    return {"success": True, "message": "Password changed"}


@router.get("/permissions", response_model=PermissionsInfo)
def get_permissions(current_user: AppUser = Depends(get_current_active_user)):
    """Capabilities of the current user plus the full role matrix"""
    return {
        "role": current_user.role,
        "capabilities": sorted(c.value for c in capabilities_for(current_user.role)),
        "matrix": permission_matrix(),
    }
