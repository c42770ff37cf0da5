"""
Item Schemas: raw materials, finished goods, locations
"""
from pydantic import BaseModel, Field
from typing import Optional
from uuid import UUID
from decimal import Decimal
from datetime import datetime

class RawMaterialCreate(BaseModel):
    kode: str = Field(..., min_length=1, max_length=50)
    name: str = Field(..., min_length=1, max_length=300)
    moq: Decimal = Field(Decimal("1"), ge=1, decimal_places=2)

class RawMaterialResponse(BaseModel):
    id: UUID
    kode: str
    name: str
    moq: Decimal
    current_stock: Decimal
    created_at: datetime

    class Config:
        from_attributes = True

class FinishedGoodCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=300)

class FinishedGoodResponse(BaseModel):
    id: UUID
    name: str
    current_stock: Decimal
    created_at: datetime

    class Config:
        from_attributes = True

class LocationCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    address: Optional[str] = None
    is_default: bool = False

class LocationUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    address: Optional[str] = None
    is_default: Optional[bool] = None

class LocationResponse(BaseModel):
    id: UUID
    name: str
    address: Optional[str]
    is_default: bool

    class Config:
        from_attributes = True
