"""
Reports API
"""
import io
from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session
from typing import Optional
from uuid import UUID

from stockbook.core import get_db
from stockbook.core.rbac import Capability
from stockbook.models import AppUser
from stockbook.schemas.stock import ItemType
from stockbook.services import ExcelExportService, ReportService
from stockbook.services.export_service import XLSX_MEDIA_TYPE
from .auth import require_capability

router = APIRouter(prefix="/reports", tags=["reports"])

view_reports = require_capability(Capability.VIEW_REPORTS, "view reports")
export_reports = require_capability(Capability.EXPORT_REPORTS, "export reports")


@router.get("/stock")
def stock_report(
    year: int = Query(...),
    month: int = Query(...),
    item_type: ItemType = Query(...),
    data_type: str = Query("closing"),
    location_id: Optional[UUID] = Query(None),
    db: Session = Depends(get_db),
    current_user: AppUser = Depends(view_reports)
):
    """Daily opening / in / out / closing stock per item for a month"""
    return ReportService.get_stock_report(db, year, month, item_type, data_type, location_id)


@router.get("/export")
def export_stock_report(
    year: int = Query(...),
    month: int = Query(...),
    item_type: ItemType = Query(...),
    location_id: Optional[UUID] = Query(None),
    db: Session = Depends(get_db),
    current_user: AppUser = Depends(export_reports)
):
    """Monthly stock report as an .xlsx download, one sheet per figure"""
    content, filename = ExcelExportService.export_stock_report(db, year, month, item_type, location_id)
    return StreamingResponse(
        io.BytesIO(content),
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'}
    )


@router.get("/available-years")
def available_years(
    db: Session = Depends(get_db),
    current_user: AppUser = Depends(view_reports)
):
    return {"years": ReportService.get_available_years(db)}


@router.get("/available-dates")
def available_dates(
    db: Session = Depends(get_db),
    current_user: AppUser = Depends(view_reports)
):
    """Year/month combinations that have stock movements"""
    return {"dates": ReportService.get_available_dates(db)}
