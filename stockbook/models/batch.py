"""
Production Batch Models
"""
from sqlalchemy import Column, String, Date, ForeignKey, Text, Uuid
from sqlalchemy.orm import relationship
from stockbook.core import Base
from .base import UUIDMixin, TimestampMixin
from .item import QUANTITY

class Batch(Base, UUIDMixin, TimestampMixin):
    """Production batch consuming raw materials"""
    __tablename__ = "batch"
    
    code = Column(String(50), unique=True, nullable=False, index=True)
    batch_date = Column(Date, nullable=False)
    description = Column(Text)
    status = Column(String(20), nullable=False, default="IN_PROGRESS")  # IN_PROGRESS, COMPLETED, CANCELLED
    created_by = Column(Uuid(as_uuid=True), ForeignKey("app_user.id", ondelete="SET NULL"))
    
    # Relationships
    usages = relationship("BatchUsage", back_populates="batch", cascade="all, delete-orphan")
    stock_movements = relationship("StockMovement", back_populates="batch")

class BatchUsage(Base, UUIDMixin):
    """Raw material consumed by a batch"""
    __tablename__ = "batch_usage"
    
    batch_id = Column(Uuid(as_uuid=True), ForeignKey("batch.id"), nullable=False, index=True)
    raw_material_id = Column(Uuid(as_uuid=True), ForeignKey("raw_material.id"), nullable=False)
    quantity = Column(QUANTITY, nullable=False)
    
    # Relationships
    batch = relationship("Batch", back_populates="usages")
    raw_material = relationship("RawMaterial", back_populates="batch_usages")
