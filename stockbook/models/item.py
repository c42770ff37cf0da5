"""
Item Models: RawMaterial, FinishedGood and per-location finished good stock
"""
from sqlalchemy import Column, String, Numeric, ForeignKey, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship
from stockbook.core import Base
from .base import UUIDMixin, TimestampMixin

# Precision shared by every quantity column
QUANTITY = Numeric(12, 2)

class RawMaterial(Base, UUIDMixin, TimestampMixin):
    """Raw Material Master"""
    __tablename__ = "raw_material"
    
    kode = Column(String(50), unique=True, nullable=False, index=True)
    name = Column(String(300), nullable=False)
    moq = Column(QUANTITY, nullable=False, default=1)  # Minimum order quantity
    current_stock = Column(QUANTITY, nullable=False, default=0)
    
    # Relationships
    stock_movements = relationship("StockMovement", back_populates="raw_material")
    batch_usages = relationship("BatchUsage", back_populates="raw_material")

class FinishedGood(Base, UUIDMixin, TimestampMixin):
    """Finished Good Master"""
    __tablename__ = "finished_good"
    
    name = Column(String(300), unique=True, nullable=False, index=True)
    current_stock = Column(QUANTITY, nullable=False, default=0)  # Sum over all locations
    
    # Relationships
    stocks = relationship("FinishedGoodStock", back_populates="finished_good", cascade="all, delete-orphan")
    stock_movements = relationship("StockMovement", back_populates="finished_good")

class FinishedGoodStock(Base, UUIDMixin, TimestampMixin):
    """Finished good quantity held at one location"""
    __tablename__ = "finished_good_stock"
    __table_args__ = (
        UniqueConstraint("finished_good_id", "location_id", name="uq_finished_good_location"),
    )
    
    finished_good_id = Column(Uuid(as_uuid=True), ForeignKey("finished_good.id"), nullable=False, index=True)
    location_id = Column(Uuid(as_uuid=True), ForeignKey("location.id"), nullable=False, index=True)
    quantity = Column(QUANTITY, nullable=False, default=0)
    
    # Relationships
    finished_good = relationship("FinishedGood", back_populates="stocks")
    location = relationship("Location", back_populates="stocks")
