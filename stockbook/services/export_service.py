"""
Export Service - Monthly stock report as an Excel workbook
"""
import calendar
import io
import logging
from datetime import date
from decimal import Decimal
from sqlalchemy.orm import Session
from typing import Optional, Tuple
from uuid import UUID

import openpyxl
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter

from .report_service import ReportService
from .stock_service import RAW_MATERIAL

logger = logging.getLogger(__name__)

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

# One sheet per report figure
SHEETS = (
    ("opening", "Opening Stock"),
    ("in", "Stock In"),
    ("out", "Stock Out"),
    ("closing", "Closing Stock"),
)
# Zero is meaningful for stock levels; for in/out it just means no activity
SHOW_ZEROS = ("opening", "closing")


class ExcelExportService:
    """Builds .xlsx files from the stock report"""

    @staticmethod
    def style_header_row(worksheet, row_num: int = 1):
        header_fill = PatternFill(start_color="E0E0E0", end_color="E0E0E0", fill_type="solid")
        for cell in worksheet[row_num]:
            cell.font = Font(bold=True)
            cell.fill = header_fill
            cell.alignment = Alignment(horizontal="center", vertical="center")

    @staticmethod
    def filename(year: int, month: int, item_type: str) -> str:
        label = "Raw_Materials" if item_type == RAW_MATERIAL else "Finished_Goods"
        return f"Stock_Report_{label}_{calendar.month_name[month]}_{year}.xlsx"

    @staticmethod
    def _message_workbook(title: str, *lines: str):
        wb = openpyxl.Workbook()
        ws = wb.active
        ws.title = title
        for line in lines:
            ws.append([line])
        return wb

    @staticmethod
    def export_stock_report(
        db: Session,
        year: int,
        month: int,
        item_type: str,
        location_id: Optional[UUID] = None,
        today: Optional[date] = None
    ) -> Tuple[bytes, str]:
        """
        Workbook with opening, in, out and closing stock sheets for a month.

        Rows are items, columns are days up to today. Returns the file
        content and its download name.
        """
        reports = {
            data_type: ReportService.get_stock_report(db, year, month, item_type, data_type, location_id, today)
            for data_type, _ in SHEETS
        }
        last_day = reports["closing"]["meta"]["current_day"]

        if last_day == 0:
            wb = ExcelExportService._message_workbook(
                "No Data",
                "No data available for future months",
                "Please select the current or a past month",
            )
        elif not reports["closing"]["data"]:
            wb = ExcelExportService._message_workbook(
                "No Items",
                "No items with stock in this month",
            )
        else:
            wb = openpyxl.Workbook()
            wb.remove(wb.active)
            thin = Side(style="thin")
            border = Border(top=thin, left=thin, bottom=thin, right=thin)

            for data_type, title in SHEETS:
                ws = wb.create_sheet(title)
                ws.append(["Code", "Name"] + [day for day in range(1, last_day + 1)])
                ExcelExportService.style_header_row(ws)

                for row in reports[data_type]["data"]:
                    values = [row["code"] or "", row["name"]]
                    for day in range(1, last_day + 1):
                        value = Decimal(row[str(day)])
                        if value == 0 and data_type not in SHOW_ZEROS:
                            values.append(None)
                        else:
                            values.append(float(value))
                    ws.append(values)

                ws.column_dimensions["A"].width = 15
                ws.column_dimensions["B"].width = 30
                for day in range(1, last_day + 1):
                    ws.column_dimensions[get_column_letter(day + 2)].width = 10
                ws.freeze_panes = "C2"
                for cells in ws.iter_rows():
                    for cell in cells:
                        cell.border = border

        output = io.BytesIO()
        wb.save(output)
        logger.info(f"Exported stock report {item_type} {year}-{month:02d}")
        return output.getvalue(), ExcelExportService.filename(year, month, item_type)
