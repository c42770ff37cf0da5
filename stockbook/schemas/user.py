"""
User Schemas
"""
import re
from pydantic import AfterValidator, BaseModel, Field
from typing import Annotated, Optional
from uuid import UUID
from datetime import datetime

from stockbook.core.rbac import Role

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

def check_password_strength(password: str) -> str:
    if len(password) < 8:
        raise ValueError("Password must be at least 8 characters")
    if not re.search(r"[A-Z]", password):
        raise ValueError("Password must contain at least one uppercase letter")
    if not re.search(r"[a-z]", password):
        raise ValueError("Password must contain at least one lowercase letter")
    if not re.search(r"[0-9]", password):
        raise ValueError("Password must contain at least one number")
    return password

def check_email(email: Optional[str]) -> Optional[str]:
    if email is not None and not EMAIL_PATTERN.match(email):
        raise ValueError("Invalid email")
    return email

Password = Annotated[str, AfterValidator(check_password_strength)]
Email = Annotated[Optional[str], AfterValidator(check_email)]

class UserCreate(BaseModel):
    username: str = Field(..., min_length=3, max_length=100)
    password: Password
    name: str = Field(..., min_length=1, max_length=200)
    email: Email = None
    role: Role

class UserUpdate(BaseModel):
    username: Optional[str] = Field(None, min_length=3, max_length=100)
    password: Optional[Password] = None
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    email: Email = None
    role: Optional[Role] = None
    is_active: Optional[bool] = None

class UserResponse(BaseModel):
    id: UUID
    username: str
    email: Optional[str]
    name: str
    role: str
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True
