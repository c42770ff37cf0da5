from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from stockbook.core.errors import InvalidArgument, NotFound
from stockbook.models import AuditLog, FinishedGoodStock, Location
from stockbook.schemas.stock import StockMovementCreate, StockMovementUpdate
from stockbook.services import FINISHED_GOOD, RAW_MATERIAL, StockService


def test_in_and_out_update_stock(db, material, move):
    move(material, "IN", "100", date(2024, 1, 1))
    move(material, "OUT", "30.50", date(2024, 1, 2))
    db.refresh(material)
    assert material.current_stock == Decimal("69.50")


def test_out_beyond_stock_is_rejected(db, material, move):
    move(material, "IN", "10", date(2024, 1, 1))
    with pytest.raises(InvalidArgument) as exc:
        move(material, "OUT", "11", date(2024, 1, 2))
    assert "Insufficient stock" in exc.value.message
    db.refresh(material)
    assert material.current_stock == Decimal("10.00")


def test_backdated_out_checks_stock_on_that_date(db, material, move):
    move(material, "IN", "10", date(2024, 3, 1))
    with pytest.raises(InvalidArgument):
        move(material, "OUT", "5", date(2024, 2, 1))


def test_backdated_out_cannot_starve_a_later_outflow(db, material, move):
    move(material, "IN", "10", date(2024, 1, 5))
    move(material, "OUT", "10", date(2024, 1, 7))
    move(material, "IN", "5", date(2024, 1, 9))
    with pytest.raises(InvalidArgument):
        move(material, "OUT", "5", date(2024, 1, 6))
    move(material, "OUT", "5", date(2024, 1, 9))


def test_lowest_stock_since(db, material, move):
    move(material, "IN", "10", date(2024, 1, 5))
    move(material, "OUT", "10", date(2024, 1, 7))
    move(material, "IN", "5", date(2024, 1, 9))
    assert StockService.lowest_stock_since(db, RAW_MATERIAL, material.id, date(2024, 1, 6)) == Decimal("0.00")
    assert StockService.lowest_stock_since(db, RAW_MATERIAL, material.id, date(2024, 1, 8)) == Decimal("0.00")
    assert StockService.lowest_stock_since(
        db, RAW_MATERIAL, material.id, date(2024, 1, 6), pending=[(date(2024, 1, 6), Decimal("-3"))]
    ) == Decimal("-3.00")


def test_negative_adjustment_is_an_outflow(db, material, move):
    move(material, "IN", "5", date(2024, 1, 1))
    move(material, "ADJUSTMENT", "-2", date(2024, 1, 2))
    with pytest.raises(InvalidArgument):
        move(material, "ADJUSTMENT", "-4", date(2024, 1, 3))
    db.refresh(material)
    assert material.current_stock == Decimal("3.00")


def test_finished_good_uses_default_location(db, product, location, move):
    movement = move(product, "IN", "8", date(2024, 1, 1))
    assert movement.location_id == location.id
    row = db.query(FinishedGoodStock).filter_by(finished_good_id=product.id).one()
    assert row.quantity == Decimal("8.00")


def test_finished_good_without_any_location(db, product, move):
    with pytest.raises(InvalidArgument) as exc:
        move(product, "IN", "8", date(2024, 1, 1))
    assert exc.value.field == "location_id"


def test_finished_good_stock_is_per_location(db, product, location, move):
    other = Location(name="Store", is_default=False)
    db.add(other)
    db.commit()
    move(product, "IN", "10", date(2024, 1, 1), location_id=location.id)
    move(product, "IN", "3", date(2024, 1, 1), location_id=other.id)
    with pytest.raises(InvalidArgument):
        move(product, "OUT", "4", date(2024, 1, 2), location_id=other.id)
    db.refresh(product)
    assert product.current_stock == Decimal("13.00")


def test_unknown_item(db):
    data = StockMovementCreate(
        movement_type="IN", quantity=Decimal("1"), movement_date=date(2024, 1, 1), raw_material_id=uuid4()
    )
    with pytest.raises(NotFound):
        StockService.create_movement(db, data)


def test_movements_write_audit_rows(db, material, move):
    movement = move(material, "IN", "1", date(2024, 1, 1))
    entry = db.query(AuditLog).filter_by(table_name="stock_movement", record_id=str(movement.id)).one()
    assert entry.action == "INSERT"
    assert entry.after_data["quantity"] == "1.00"


def test_update_movement_adjusts_stock(db, material, move):
    movement = move(material, "IN", "10", date(2024, 1, 1))
    StockService.update_movement(db, movement.id, StockMovementUpdate(quantity=Decimal("15")))
    db.refresh(material)
    assert material.current_stock == Decimal("15.00")


def test_update_movement_cannot_go_negative(db, material, move):
    first = move(material, "IN", "10", date(2024, 1, 1))
    move(material, "OUT", "8", date(2024, 1, 2))
    with pytest.raises(InvalidArgument):
        StockService.update_movement(db, first.id, StockMovementUpdate(quantity=Decimal("5")))
    db.refresh(material)
    assert material.current_stock == Decimal("2.00")


def test_moving_inflow_after_its_consumption_is_rejected(db, material, move):
    first = move(material, "IN", "10", date(2024, 1, 1))
    move(material, "OUT", "8", date(2024, 1, 2))
    with pytest.raises(InvalidArgument):
        StockService.update_movement(db, first.id, StockMovementUpdate(movement_date=date(2024, 1, 3)))
    assert StockService.get_movement(db, first.id).movement_date == date(2024, 1, 1)


def test_delete_inflow_needed_by_history_is_rejected(db, material, move):
    first = move(material, "IN", "10", date(2024, 1, 1))
    move(material, "OUT", "10", date(2024, 1, 2))
    move(material, "IN", "10", date(2024, 1, 3))
    with pytest.raises(InvalidArgument):
        StockService.delete_movement(db, first.id)


def test_delete_movement_reverses_effect(db, material, move):
    move(material, "IN", "10", date(2024, 1, 1))
    out = move(material, "OUT", "4", date(2024, 1, 2))
    StockService.delete_movement(db, out.id)
    db.refresh(material)
    assert material.current_stock == Decimal("10.00")
    with pytest.raises(NotFound):
        StockService.get_movement(db, out.id)


def test_delete_inflow_that_was_consumed_is_rejected(db, material, move):
    first = move(material, "IN", "10", date(2024, 1, 1))
    move(material, "OUT", "8", date(2024, 1, 2))
    with pytest.raises(InvalidArgument):
        StockService.delete_movement(db, first.id)


def test_list_movements_by_date(db, material, move):
    move(material, "IN", "10", date(2024, 1, 1))
    move(material, "OUT", "1", date(2024, 1, 2))
    move(material, "OUT", "2", date(2024, 1, 2))
    rows = StockService.list_movements_by_date(db, RAW_MATERIAL, material.id, date(2024, 1, 2))
    assert [r.quantity for r in rows] == [Decimal("1.00"), Decimal("2.00")]


def test_item_history_balances(db, material, move):
    move(material, "IN", "100", date(2024, 1, 1))
    move(material, "OUT", "10", date(2024, 1, 2))
    move(material, "IN", "5", date(2024, 1, 3))

    result, pagination = StockService.get_item_movements(db, RAW_MATERIAL, material.id)
    assert pagination is None
    assert result.current_stock == Decimal("95.00")
    assert result.balances == [Decimal("95.00"), Decimal("90.00"), Decimal("100.00")]
    newest = result.entries[0].movement
    assert newest["quantity"] == Decimal("5.00")
    assert newest["movement_date"] == date(2024, 1, 3)
    assert result.item["kode"] == "RM-001"


def test_item_history_pages_continue_balances(db, material, move):
    for day, (kind, qty) in enumerate([("IN", "50"), ("OUT", "5"), ("IN", "7"), ("OUT", "2")], start=1):
        move(material, kind, qty, date(2024, 1, day))

    first, meta = StockService.get_item_movements(db, RAW_MATERIAL, material.id, limit=2, page=1)
    second, meta2 = StockService.get_item_movements(db, RAW_MATERIAL, material.id, limit=2, page=2)
    assert first.balances == [Decimal("50.00"), Decimal("52.00")]
    assert second.balances == [Decimal("45.00"), Decimal("50.00")]
    assert meta == {"page": 1, "limit": 2, "total": 4, "total_pages": 2, "has_more": True}
    assert meta2["has_more"] is False


def test_item_history_for_one_location(db, product, location, move):
    other = Location(name="Store", is_default=False)
    db.add(other)
    db.commit()
    move(product, "IN", "10", date(2024, 1, 1), location_id=location.id)
    move(product, "IN", "4", date(2024, 1, 2), location_id=other.id)
    move(product, "OUT", "3", date(2024, 1, 3), location_id=location.id)

    result, _ = StockService.get_item_movements(db, FINISHED_GOOD, product.id, location_id=location.id)
    assert result.current_stock == Decimal("7.00")
    assert result.balances == [Decimal("7.00"), Decimal("10.00")]


def test_item_history_validation(db, material):
    with pytest.raises(InvalidArgument):
        StockService.get_item_movements(db, RAW_MATERIAL, material.id, limit=0)
    with pytest.raises(InvalidArgument):
        StockService.get_item_movements(db, RAW_MATERIAL, material.id, limit=5001)
    result, _ = StockService.get_item_movements(db, RAW_MATERIAL, material.id, limit=5000)
    assert result.entries == []


def test_item_history_missing_item(db, material):
    with pytest.raises(NotFound):
        StockService.get_item_movements(db, FINISHED_GOOD, material.id)
