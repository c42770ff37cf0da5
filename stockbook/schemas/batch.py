"""
Batch Schemas
"""
from pydantic import BaseModel, Field, field_validator
from typing import List, Literal, Optional
from uuid import UUID
from decimal import Decimal
from datetime import date, datetime

BatchStatus = Literal["IN_PROGRESS", "COMPLETED", "CANCELLED"]

class BatchMaterial(BaseModel):
    raw_material_id: UUID
    quantity: Decimal = Field(..., gt=0, decimal_places=2)

def _unique_materials(v: Optional[List[BatchMaterial]]) -> Optional[List[BatchMaterial]]:
    if v is None:
        return v
    ids = [m.raw_material_id for m in v]
    if len(ids) != len(set(ids)):
        raise ValueError("Cannot select the same raw material multiple times")
    return v

class BatchCreate(BaseModel):
    code: str = Field(..., min_length=1, max_length=50)
    batch_date: date
    description: Optional[str] = None
    status: BatchStatus = "IN_PROGRESS"
    materials: List[BatchMaterial] = Field(..., min_length=1)

    @field_validator("materials")
    @classmethod
    def check_unique_materials(cls, v: List[BatchMaterial]) -> List[BatchMaterial]:
        return _unique_materials(v)

class BatchUpdate(BaseModel):
    """Partial update; materials, when given, replace the batch's usages"""
    code: Optional[str] = Field(None, min_length=1, max_length=50)
    batch_date: Optional[date] = None
    description: Optional[str] = None
    status: Optional[BatchStatus] = None
    materials: Optional[List[BatchMaterial]] = Field(None, min_length=1)

    @field_validator("materials")
    @classmethod
    def check_unique_materials(cls, v: Optional[List[BatchMaterial]]) -> Optional[List[BatchMaterial]]:
        return _unique_materials(v)

class BatchUsageResponse(BaseModel):
    raw_material_id: UUID
    quantity: Decimal

    class Config:
        from_attributes = True

class BatchResponse(BaseModel):
    id: UUID
    code: str
    batch_date: date
    description: Optional[str]
    status: str
    created_at: datetime
    usages: List[BatchUsageResponse] = []

    class Config:
        from_attributes = True
