import io
from datetime import date
from decimal import Decimal

import openpyxl
import pytest

from stockbook.core.errors import InvalidArgument
from stockbook.models import RawMaterial
from stockbook.services import FINISHED_GOOD, RAW_MATERIAL, ExcelExportService, ReportService


@pytest.fixture
def history(db, material, move):
    move(material, "IN", "100", date(2024, 1, 5))
    move(material, "OUT", "30", date(2024, 2, 3))
    move(material, "ADJUSTMENT", "-5", date(2024, 2, 3))
    idle = RawMaterial(kode="RM-IDLE", name="Idle", moq=Decimal("1"), current_stock=Decimal("0"))
    db.add(idle)
    db.commit()
    return material


def test_closing_stock_per_day(db, history):
    report = ReportService.get_stock_report(db, 2024, 2, RAW_MATERIAL, "closing", today=date(2024, 2, 10))
    assert len(report["data"]) == 1
    row = report["data"][0]
    assert row["code"] == "RM-001"
    assert row["1"] == "100.00"
    assert row["3"] == "65.00"
    assert row["10"] == "65.00"
    assert "11" not in row
    assert report["meta"]["current_day"] == 10
    assert report["meta"]["days_in_month"] == 29


def test_in_and_out_figures(db, history):
    ins = ReportService.get_stock_report(db, 2024, 1, RAW_MATERIAL, "in", today=date(2024, 6, 1))
    assert ins["data"][0]["5"] == "100.00"
    assert ins["data"][0]["6"] == "0.00"
    assert ins["meta"]["current_day"] == 31

    outs = ReportService.get_stock_report(db, 2024, 2, RAW_MATERIAL, "out", today=date(2024, 6, 1))
    assert outs["data"][0]["3"] == "35.00"


def test_opening_stock(db, history):
    report = ReportService.get_stock_report(db, 2024, 2, RAW_MATERIAL, "opening", today=date(2024, 6, 1))
    row = report["data"][0]
    assert row["3"] == "100.00"
    assert row["4"] == "65.00"


def test_future_month_has_no_days(db, history):
    report = ReportService.get_stock_report(db, 2024, 7, RAW_MATERIAL, "closing", today=date(2024, 6, 1))
    assert report["meta"]["current_day"] == 0
    assert set(report["data"][0]) == {"id", "name", "code"}


@pytest.mark.parametrize("kwargs", [
    {"year": 1999},
    {"month": 13},
    {"data_type": "average"},
    {"item_type": "gadget"},
])
def test_invalid_parameters(db, kwargs):
    params = {"year": 2024, "month": 1, "item_type": FINISHED_GOOD, "data_type": "closing"}
    params.update(kwargs)
    with pytest.raises(InvalidArgument):
        ReportService.get_stock_report(db, **params)


def test_available_years(db, history):
    assert ReportService.get_available_years(db, today=date(2025, 6, 1)) == [2025, 2024]


def test_available_years_without_movements(db):
    assert ReportService.get_available_years(db, today=date(2025, 6, 1)) == [2025]


def test_available_dates(db, history, move):
    move(history, "IN", "1", date(2023, 11, 20))
    assert ReportService.get_available_dates(db) == [
        {"year": 2023, "months": [11]},
        {"year": 2024, "months": [1, 2]},
    ]


def test_available_dates_without_movements(db):
    assert ReportService.get_available_dates(db, today=date(2025, 6, 1)) == [{"year": 2025, "months": [6]}]


def test_export_workbook_sheets(db, history):
    content, filename = ExcelExportService.export_stock_report(db, 2024, 2, RAW_MATERIAL, today=date(2024, 2, 10))
    assert filename == "Stock_Report_Raw_Materials_February_2024.xlsx"

    wb = openpyxl.load_workbook(io.BytesIO(content))
    assert wb.sheetnames == ["Opening Stock", "Stock In", "Stock Out", "Closing Stock"]

    closing = wb["Closing Stock"]
    assert [c.value for c in closing[1]][:3] == ["Code", "Name", 1]
    assert closing.max_column == 12
    assert closing.cell(row=2, column=1).value == "RM-001"
    assert closing.cell(row=2, column=3).value == 100
    assert closing.cell(row=2, column=5).value == 65

    outs = wb["Stock Out"]
    assert outs.cell(row=2, column=3).value is None
    assert outs.cell(row=2, column=5).value == 35


def test_export_future_month(db, history):
    content, _ = ExcelExportService.export_stock_report(db, 2024, 7, RAW_MATERIAL, today=date(2024, 6, 1))
    wb = openpyxl.load_workbook(io.BytesIO(content))
    assert wb.sheetnames == ["No Data"]


def test_export_without_items(db):
    content, filename = ExcelExportService.export_stock_report(db, 2024, 1, FINISHED_GOOD, today=date(2024, 6, 1))
    assert filename == "Stock_Report_Finished_Goods_January_2024.xlsx"
    assert openpyxl.load_workbook(io.BytesIO(content)).sheetnames == ["No Items"]
