"""
Stock Movement Model
"""
from sqlalchemy import Column, String, Date, DateTime, ForeignKey, Text, Uuid, Index, CheckConstraint
from sqlalchemy.orm import relationship
from stockbook.core import Base
from .base import UUIDMixin, utcnow
from .item import QUANTITY

class StockMovement(Base, UUIDMixin):
    """One change to an item's quantity on hand"""
    __tablename__ = "stock_movement"
    __table_args__ = (
        CheckConstraint(
            "(raw_material_id IS NULL) <> (finished_good_id IS NULL)",
            name="ck_stock_movement_one_item",
        ),
        Index("ix_stock_movement_rm_date", "raw_material_id", "movement_date", "created_at"),
        Index("ix_stock_movement_fg_date", "finished_good_id", "movement_date", "created_at"),
    )
    
    # Movement info
    movement_type = Column(String(20), nullable=False)  # IN, OUT, ADJUSTMENT
    quantity = Column(QUANTITY, nullable=False)  # Positive for IN/OUT, signed for ADJUSTMENT
    movement_date = Column(Date, nullable=False, index=True)
    description = Column(Text)
    
    # Item (exactly one)
    raw_material_id = Column(Uuid(as_uuid=True), ForeignKey("raw_material.id"), nullable=True)
    finished_good_id = Column(Uuid(as_uuid=True), ForeignKey("finished_good.id"), nullable=True)
    
    # Context
    location_id = Column(Uuid(as_uuid=True), ForeignKey("location.id"), nullable=True, index=True)
    batch_id = Column(Uuid(as_uuid=True), ForeignKey("batch.id"), nullable=True, index=True)
    
    # Metadata
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)  # Same-day tie breaker
    created_by = Column(Uuid(as_uuid=True), ForeignKey("app_user.id", ondelete="SET NULL"))
    
    # Relationships
    raw_material = relationship("RawMaterial", back_populates="stock_movements")
    finished_good = relationship("FinishedGood", back_populates="stock_movements")
    location = relationship("Location", back_populates="movements")
    batch = relationship("Batch", back_populates="stock_movements")
    creator = relationship("AppUser", back_populates="movements_created")
