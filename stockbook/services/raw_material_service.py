"""
Raw Material Service - Business Logic for Raw Materials
"""
import logging
from sqlalchemy.orm import Session
from typing import List, Optional, Tuple
from uuid import UUID

from stockbook.core.errors import Conflict, InvalidArgument, NotFound
from stockbook.models import RawMaterial, StockMovement
from stockbook.schemas.item import RawMaterialCreate
from .audit_service import AuditService, snapshot

logger = logging.getLogger(__name__)

AUDIT_FIELDS = ("kode", "name", "moq", "current_stock")

class RawMaterialService:
    """Raw material business logic"""
    
    @staticmethod
    def get_raw_materials(
        db: Session,
        page: Optional[int] = None,
        per_page: Optional[int] = None
    ) -> Tuple[List[RawMaterial], int]:
        """All materials newest first; paginated when page or per_page is given"""
        query = db.query(RawMaterial).order_by(RawMaterial.created_at.desc())
        total = query.count()
        if page is None and per_page is None:
            return query.all(), total
        
        page = max(1, page or 1)
        per_page = min(100, max(1, per_page or 50))
        materials = query.offset((page - 1) * per_page).limit(per_page).all()
        return materials, total
    
    @staticmethod
    def get_raw_material(db: Session, material_id: UUID) -> RawMaterial:
        material = db.query(RawMaterial).filter(RawMaterial.id == material_id).first()
        if not material:
            raise NotFound("Raw material not found")
        return material
    
    @staticmethod
    def create_raw_material(db: Session, data: RawMaterialCreate, user_id: Optional[UUID] = None) -> RawMaterial:
        """Create material; stock always starts at zero"""
        existing = db.query(RawMaterial).filter(RawMaterial.kode == data.kode).first()
        if existing:
            raise Conflict(f'Material code "{data.kode}" already exists', field="kode")
        
        material = RawMaterial(kode=data.kode, name=data.name, moq=data.moq, current_stock=0)
        db.add(material)
        db.flush()
        AuditService.log(db, "raw_material", material.id, "INSERT", user_id, after=snapshot(material, AUDIT_FIELDS))
        db.commit()
        db.refresh(material)
        
        logger.info(f"Created raw material {material.kode}")
        return material
    
    @staticmethod
    def update_raw_material(db: Session, material_id: UUID, data: RawMaterialCreate, user_id: Optional[UUID] = None) -> RawMaterial:
        """Update master data; current_stock only changes through movements"""
        material = RawMaterialService.get_raw_material(db, material_id)
        
        duplicate = db.query(RawMaterial).filter(
            RawMaterial.kode == data.kode,
            RawMaterial.id != material_id
        ).first()
        if duplicate:
            raise Conflict(f'Material code "{data.kode}" already exists', field="kode")
        
        before = snapshot(material, AUDIT_FIELDS)
        material.kode = data.kode
        material.name = data.name
        material.moq = data.moq
        AuditService.log(db, "raw_material", material.id, "UPDATE", user_id, before=before, after=snapshot(material, AUDIT_FIELDS))
        db.commit()
        db.refresh(material)
        
        logger.info(f"Updated raw material {material.kode}")
        return material
    
    @staticmethod
    def delete_raw_material(db: Session, material_id: UUID, user_id: Optional[UUID] = None) -> None:
        material = RawMaterialService.get_raw_material(db, material_id)
        
        in_use = db.query(StockMovement.id).filter(StockMovement.raw_material_id == material_id).first()
        if in_use or material.batch_usages:
            raise InvalidArgument("Cannot delete raw material that has stock movements")
        
        AuditService.log(db, "raw_material", material.id, "DELETE", user_id, before=snapshot(material, AUDIT_FIELDS))
        db.delete(material)
        db.commit()
        logger.info(f"Deleted raw material {material.kode}")
