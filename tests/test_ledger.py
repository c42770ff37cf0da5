from decimal import Decimal
from types import SimpleNamespace

import pytest

from stockbook.core.errors import InvalidArgument, NotFound
from stockbook.services.ledger import (
    reconstruct_ledger, signed_delta, stock_before, to_quantity, validate_limit
)

ITEM = SimpleNamespace(id="item-1", name="Sugar")


def mv(movement_type, quantity, location_id=None):
    return {"movement_type": movement_type, "quantity": Decimal(quantity), "location_id": location_id}


def test_balances_walk_back_from_current_stock():
    # Oldest first: IN 95 -> 95, OUT 5 -> 90, IN 10 -> 100
    movements = [mv("IN", "10"), mv("OUT", "5"), mv("IN", "95")]
    result = reconstruct_ledger(ITEM, Decimal("100"), movements)
    assert result.balances == [Decimal("100"), Decimal("90"), Decimal("95")]


def test_empty_history():
    result = reconstruct_ledger(ITEM, Decimal("12.50"), [])
    assert result.entries == []
    assert result.current_stock == Decimal("12.50")


def test_missing_item():
    with pytest.raises(NotFound):
        reconstruct_ledger(None, 0, [])


@pytest.mark.parametrize("limit", [0, -1, 5001, "10", 2.5, True])
def test_limit_out_of_range(limit):
    with pytest.raises(InvalidArgument) as exc:
        reconstruct_ledger(ITEM, 0, [], limit=limit)
    assert exc.value.field == "limit"


@pytest.mark.parametrize("limit", [1, 500, 5000])
def test_limit_bounds_accepted(limit):
    assert validate_limit(limit) == limit


def test_limit_truncates_to_newest():
    movements = [mv("IN", "1") for _ in range(10)]
    result = reconstruct_ledger(ITEM, Decimal("10"), movements, limit=3)
    assert result.balances == [Decimal("10"), Decimal("9"), Decimal("8")]
    assert result.limit == 3


def test_adjustment_is_signed():
    movements = [mv("ADJUSTMENT", "-2.25"), mv("ADJUSTMENT", "1.25")]
    result = reconstruct_ledger(ITEM, Decimal("10"), movements)
    assert result.balances == [Decimal("10.00"), Decimal("12.25")]


def test_location_filter():
    movements = [
        mv("IN", "5", location_id="a"),
        mv("IN", "7", location_id="b"),
        mv("OUT", "2", location_id="a"),
    ]
    result = reconstruct_ledger(ITEM, Decimal("20"), movements, location_id="a")
    assert [e.movement["quantity"] for e in result.entries] == [Decimal("5"), Decimal("2")]
    assert result.balances == [Decimal("20"), Decimal("15")]
    assert result.location_id == "a"


def test_anchor_continues_an_older_page():
    movements = [mv("IN", "5"), mv("OUT", "3"), mv("IN", "10")]
    newest, older = movements[:1], movements[1:]
    anchor = stock_before(Decimal("12"), newest)
    result = reconstruct_ledger(ITEM, Decimal("12"), older, anchor=anchor)
    assert result.balances == [Decimal("7"), Decimal("10")]


def test_decimal_precision_is_exact():
    movements = [mv("IN", "0.10") for _ in range(3)]
    result = reconstruct_ledger(ITEM, Decimal("0.30"), movements)
    assert result.balances == [Decimal("0.30"), Decimal("0.20"), Decimal("0.10")]


def test_objects_and_dicts_both_work():
    movement = SimpleNamespace(movement_type="OUT", quantity=Decimal("4"), location_id=None)
    result = reconstruct_ledger(ITEM, Decimal("6"), [movement])
    assert result.entries[0].movement is movement
    assert result.balances == [Decimal("6")]


def test_signed_delta():
    assert signed_delta("IN", "3") == Decimal("3.00")
    assert signed_delta("OUT", "3") == Decimal("-3.00")
    assert signed_delta("ADJUSTMENT", "-3") == Decimal("-3.00")
    with pytest.raises(InvalidArgument):
        signed_delta("TRANSFER", "3")


def test_to_quantity_rounds_to_cents():
    assert to_quantity("1.005") in (Decimal("1.00"), Decimal("1.01"))
    assert to_quantity(None) == Decimal("0.00")
    with pytest.raises(InvalidArgument):
        to_quantity("lots")
