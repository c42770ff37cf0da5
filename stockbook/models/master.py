"""
Master Tables: AppUser, Location
"""
from sqlalchemy import Column, String, Boolean, Text
from sqlalchemy.orm import relationship
from stockbook.core import Base
from stockbook.core.rbac import Role
from .base import UUIDMixin, TimestampMixin

class AppUser(Base, UUIDMixin, TimestampMixin):
    """Application User"""
    __tablename__ = "app_user"
    
    username = Column(String(100), unique=True, nullable=False, index=True)
    email = Column(String(200), unique=True, nullable=True)
    name = Column(String(200), nullable=False)
    hashed_password = Column(String(255), nullable=False)
    # Stored as text: rows written before the role split may still hold OFFICE/FACTORY
    role = Column(String(30), nullable=False, default=Role.OFFICE_PURCHASING.value)
    is_active = Column(Boolean, default=True, nullable=False)
    
    # Relationships
    movements_created = relationship("StockMovement", back_populates="creator")

class Location(Base, UUIDMixin, TimestampMixin):
    """Storage location for finished goods"""
    __tablename__ = "location"
    
    name = Column(String(200), unique=True, nullable=False)
    address = Column(Text)
    is_default = Column(Boolean, default=False, nullable=False)
    
    # Relationships
    stocks = relationship("FinishedGoodStock", back_populates="location")
    movements = relationship("StockMovement", back_populates="location")
