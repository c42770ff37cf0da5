"""
Report Service - Monthly stock reports
"""
import calendar
import logging
from collections import defaultdict
from sqlalchemy import func
from sqlalchemy.orm import Session
from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional
from uuid import UUID

from stockbook.core.errors import InvalidArgument
from stockbook.models import StockMovement
from .ledger import signed_delta, to_quantity
from .stock_service import ITEM_MODELS, RAW_MATERIAL, _item_column

logger = logging.getLogger(__name__)

DATA_TYPES = ("opening", "in", "out", "closing")
MIN_YEAR = 2000
MAX_YEAR = 2100


def _split(movement_type: str, quantity: Any):
    """(in, out) contribution of one movement; adjustments count by sign"""
    delta = signed_delta(movement_type, quantity)
    if delta >= 0:
        return delta, Decimal("0.00")
    return Decimal("0.00"), -delta


class ReportService:
    """Stock report business logic"""

    @staticmethod
    def get_stock_report(
        db: Session,
        year: int,
        month: int,
        item_type: str,
        data_type: str,
        location_id: Optional[UUID] = None,
        today: Optional[date] = None
    ) -> Dict[str, Any]:
        """
        Per-item, per-day stock figures for one month.

        data_type selects the figure: opening (stock at start of day),
        in, out, or closing (stock at end of day). Days after today are
        left out. Items with no movements in the month and no positive
        opening stock are omitted.
        """
        if not MIN_YEAR <= year <= MAX_YEAR:
            raise InvalidArgument(f"Year must be between {MIN_YEAR} and {MAX_YEAR}", field="year")
        if not 1 <= month <= 12:
            raise InvalidArgument("Month must be between 1 and 12", field="month")
        if data_type not in DATA_TYPES:
            raise InvalidArgument(f"data_type must be one of {', '.join(DATA_TYPES)}", field="data_type")
        column = _item_column(item_type)
        if location_id and item_type == RAW_MATERIAL:
            raise InvalidArgument("Raw material movements are not tracked by location", field="location_id")

        today = today or date.today()
        days_in_month = calendar.monthrange(year, month)[1]
        start = date(year, month, 1)
        end = date(year, month, days_in_month)
        if (year, month) > (today.year, today.month):
            last_day = 0
        elif (year, month) == (today.year, today.month):
            last_day = today.day
        else:
            last_day = days_in_month

        model = ITEM_MODELS[item_type]
        items = db.query(model).order_by(model.name).all()

        query = db.query(
            column, StockMovement.movement_type, StockMovement.quantity, StockMovement.movement_date
        ).filter(column.isnot(None), StockMovement.movement_date <= end)
        if location_id:
            query = query.filter(StockMovement.location_id == location_id)

        opening = defaultdict(lambda: Decimal("0.00"))
        daily_in = defaultdict(lambda: defaultdict(lambda: Decimal("0.00")))
        daily_out = defaultdict(lambda: defaultdict(lambda: Decimal("0.00")))
        active = set()
        for item_id, movement_type, quantity, movement_date in query.all():
            if movement_date < start:
                opening[item_id] += signed_delta(movement_type, quantity)
                continue
            qty_in, qty_out = _split(movement_type, quantity)
            daily_in[item_id][movement_date.day] += qty_in
            daily_out[item_id][movement_date.day] += qty_out
            active.add(item_id)

        rows: List[Dict[str, Any]] = []
        for item in items:
            if item.id not in active and opening[item.id] <= 0:
                continue

            row = {
                "id": str(item.id),
                "name": item.name,
                "code": item.kode if item_type == RAW_MATERIAL else None,
            }
            running = to_quantity(opening[item.id])
            for day in range(1, last_day + 1):
                day_in = daily_in[item.id][day]
                day_out = daily_out[item.id][day]
                closing = running + day_in - day_out
                value = {
                    "opening": running,
                    "in": day_in,
                    "out": day_out,
                    "closing": closing,
                }[data_type]
                row[str(day)] = str(to_quantity(value))
                running = closing
            rows.append(row)

        logger.info(f"Stock report {item_type} {year}-{month:02d} {data_type}: {len(rows)} items")
        return {
            "data": rows,
            "meta": {
                "year": year,
                "month": month,
                "item_type": item_type,
                "data_type": data_type,
                "location_id": str(location_id) if location_id else None,
                "days_in_month": days_in_month,
                "current_day": last_day,
            },
        }

    @staticmethod
    def get_available_years(db: Session, today: Optional[date] = None) -> List[int]:
        """Years from the oldest movement up to the current year, newest first"""
        today = today or date.today()
        oldest = db.query(func.min(StockMovement.movement_date)).scalar()
        first_year = oldest.year if oldest else today.year
        return list(range(today.year, first_year - 1, -1))

    @staticmethod
    def get_available_dates(db: Session, today: Optional[date] = None) -> List[Dict[str, Any]]:
        """Year/month pairs that have movements, oldest first; the current month when there are none"""
        months = defaultdict(set)
        for (movement_date,) in db.query(StockMovement.movement_date).distinct().all():
            months[movement_date.year].add(movement_date.month)

        if not months:
            today = today or date.today()
            return [{"year": today.year, "months": [today.month]}]
        return [{"year": year, "months": sorted(months[year])} for year in sorted(months)]
