# Pydantic Schemas Package
from .item import (
    RawMaterialCreate, RawMaterialResponse,
    FinishedGoodCreate, FinishedGoodResponse,
    LocationCreate, LocationUpdate, LocationResponse,
)
from .stock import StockMovementCreate, StockMovementUpdate, StockMovementResponse, MovementHistory
from .batch import BatchCreate, BatchUpdate, BatchResponse
from .user import UserCreate, UserUpdate, UserResponse

__all__ = [
    "RawMaterialCreate", "RawMaterialResponse",
    "FinishedGoodCreate", "FinishedGoodResponse",
    "LocationCreate", "LocationUpdate", "LocationResponse",
    "StockMovementCreate", "StockMovementUpdate", "StockMovementResponse", "MovementHistory",
    "BatchCreate", "BatchUpdate", "BatchResponse",
    "UserCreate", "UserUpdate", "UserResponse",
]
