"""
Location Service
"""
import logging
from sqlalchemy.orm import Session
from typing import List, Optional
from uuid import UUID

from stockbook.core.errors import Conflict, InvalidArgument, NotFound
from stockbook.models import Location, FinishedGoodStock, StockMovement
from stockbook.schemas.item import LocationCreate, LocationUpdate
from .audit_service import AuditService, snapshot

logger = logging.getLogger(__name__)

AUDIT_FIELDS = ("name", "address", "is_default")

class LocationService:

    @staticmethod
    def get_locations(db: Session) -> List[Location]:
        """Default location first, then by name"""
        return db.query(Location).order_by(Location.is_default.desc(), Location.name).all()

    @staticmethod
    def get_location(db: Session, location_id: UUID) -> Location:
        location = db.query(Location).filter(Location.id == location_id).first()
        if not location:
            raise NotFound("Location not found")
        return location

    @staticmethod
    def get_default_location(db: Session) -> Optional[Location]:
        return db.query(Location).filter(Location.is_default == True).first()

    @staticmethod
    def _clear_default(db: Session, keep_id: Optional[UUID] = None) -> None:
        query = db.query(Location).filter(Location.is_default == True)
        if keep_id:
            query = query.filter(Location.id != keep_id)
        query.update({Location.is_default: False}, synchronize_session="fetch")

    @staticmethod
    def create_location(db: Session, data: LocationCreate, user_id: Optional[UUID] = None) -> Location:
        if db.query(Location).filter(Location.name == data.name).first():
            raise Conflict(f'Location with name "{data.name}" already exists', field="name")

        if data.is_default:
            LocationService._clear_default(db)

        location = Location(name=data.name, address=data.address, is_default=data.is_default)
        db.add(location)
        db.flush()
        AuditService.log(db, "location", location.id, "INSERT", user_id, after=snapshot(location, AUDIT_FIELDS))
        db.commit()
        db.refresh(location)
        logger.info(f"Created location {location.name}")
        return location

    @staticmethod
    def update_location(db: Session, location_id: UUID, data: LocationUpdate, user_id: Optional[UUID] = None) -> Location:
        location = LocationService.get_location(db, location_id)

        if data.name:
            existing = db.query(Location).filter(Location.name == data.name).first()
            if existing and existing.id != location_id:
                raise Conflict(f'Location with name "{data.name}" already exists', field="name")

        # Only one default at a time; cleared in the same transaction
        if data.is_default:
            LocationService._clear_default(db, keep_id=location_id)

        before = snapshot(location, AUDIT_FIELDS)
        for field, value in data.model_dump(exclude_unset=True).items():
            if field in ("name", "is_default") and value is None:
                continue
            setattr(location, field, value)

        AuditService.log(db, "location", location.id, "UPDATE", user_id, before=before, after=snapshot(location, AUDIT_FIELDS))
        db.commit()
        db.refresh(location)
        logger.info(f"Updated location {location.name}")
        return location

    @staticmethod
    def delete_location(db: Session, location_id: UUID, user_id: Optional[UUID] = None) -> None:
        location = LocationService.get_location(db, location_id)

        stock_count = db.query(FinishedGoodStock).filter(
            FinishedGoodStock.location_id == location_id,
            FinishedGoodStock.quantity > 0
        ).count()
        if stock_count > 0:
            raise InvalidArgument("Cannot delete location with active stock.")

        if db.query(StockMovement.id).filter(StockMovement.location_id == location_id).first():
            raise InvalidArgument("Cannot delete location with associated movement history.")

        db.query(FinishedGoodStock).filter(FinishedGoodStock.location_id == location_id).delete(synchronize_session=False)
        AuditService.log(db, "location", location.id, "DELETE", user_id, before=snapshot(location, AUDIT_FIELDS))
        db.delete(location)
        db.commit()
        logger.info(f"Deleted location {location.name}")
