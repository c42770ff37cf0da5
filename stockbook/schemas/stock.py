"""
Stock Movement Schemas
"""
from pydantic import BaseModel, Field, ValidationInfo, field_validator, model_validator
from typing import List, Literal, Optional
from uuid import UUID
from decimal import Decimal
from datetime import date, datetime

MovementType = Literal["IN", "OUT", "ADJUSTMENT"]
ItemType = Literal["raw-material", "finished-good"]

class StockMovementCreate(BaseModel):
    movement_type: MovementType
    quantity: Decimal = Field(..., decimal_places=2)
    movement_date: date
    description: Optional[str] = None
    raw_material_id: Optional[UUID] = None
    finished_good_id: Optional[UUID] = None
    location_id: Optional[UUID] = None

    @field_validator("quantity")
    @classmethod
    def check_quantity(cls, v: Decimal, info: ValidationInfo) -> Decimal:
        if v == 0:
            raise ValueError("Quantity cannot be zero")
        # IN and OUT are unsigned, ADJUSTMENT carries its own sign
        if info.data.get("movement_type") in ("IN", "OUT") and v < 0:
            raise ValueError("Quantity must be positive for IN and OUT movements")
        return v

    @model_validator(mode="after")
    def check_item(self):
        if bool(self.raw_material_id) == bool(self.finished_good_id):
            raise ValueError("Exactly one of raw_material_id or finished_good_id must be provided")
        return self

class StockMovementUpdate(BaseModel):
    quantity: Optional[Decimal] = Field(None, decimal_places=2)
    movement_date: Optional[date] = None
    description: Optional[str] = None

    @field_validator("quantity")
    @classmethod
    def check_quantity(cls, v: Optional[Decimal]) -> Optional[Decimal]:
        if v is not None and v == 0:
            raise ValueError("Quantity cannot be zero")
        return v

class NamedRef(BaseModel):
    id: UUID
    name: str

    class Config:
        from_attributes = True

class BatchRef(BaseModel):
    id: UUID
    code: str

    class Config:
        from_attributes = True

class StockMovementResponse(BaseModel):
    id: UUID
    movement_type: str
    quantity: Decimal
    movement_date: date
    description: Optional[str]
    raw_material_id: Optional[UUID]
    finished_good_id: Optional[UUID]
    location_id: Optional[UUID]
    batch_id: Optional[UUID]
    created_at: datetime
    created_by: Optional[UUID]

    class Config:
        from_attributes = True

class LedgerMovement(BaseModel):
    """A movement with the stock level right after it"""
    id: UUID
    movement_type: str
    quantity: Decimal
    movement_date: date
    description: Optional[str]
    batch: Optional[BatchRef] = None
    location: Optional[NamedRef] = None
    created_at: datetime
    balance_after: Decimal

class LedgerItem(BaseModel):
    id: UUID
    name: str
    kode: Optional[str] = None
    current_stock: Decimal

class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int
    has_more: bool

class MovementHistory(BaseModel):
    item: LedgerItem
    location_id: Optional[UUID]
    limit: int
    movements: List[LedgerMovement]
    pagination: Optional[Pagination] = None
