from decimal import Decimal
from types import SimpleNamespace

import pytest

from api.app.domain import ValidationError
from api.app.models import CustomizationAction
from api.app.pricing import line_subtotal, money_str, order_total, price_line, quantize


def test_line_subtotal_adds_deltas_before_multiplying():
    assert line_subtotal(Decimal("10.00"), 2, [Decimal("1.50")]) == Decimal("23.00")


def test_line_subtotal_without_customizations():
    assert line_subtotal("4.00", 3) == Decimal("12.00")


@pytest.mark.parametrize("quantity", [0, -1, 1.5, True, "2"])
def test_line_subtotal_rejects_bad_quantity(quantity):
    with pytest.raises(ValidationError):
        line_subtotal(Decimal("1.00"), quantity)


def test_order_total_sums_lines_exactly():
    total = order_total([Decimal("0.10")] * 3)
    assert total == Decimal("0.30")
    assert money_str(total) == "0.30"


def test_order_total_of_nothing_is_zero():
    assert order_total([]) == Decimal("0")


def test_quantize_rounds_half_up():
    assert quantize(Decimal("2.345")) == Decimal("2.35")
    assert quantize(Decimal("2.344")) == Decimal("2.34")


def test_money_str_accepts_floats_without_artefacts():
    assert money_str(0.1 + 0.2) == "0.30"


def test_price_line_uses_stored_prices():
    cheese = SimpleNamespace(id="c1", name="Cheese", price=Decimal("1.50"), action=CustomizationAction.ADD)
    item = SimpleNamespace(id="i1", name="Burger", price=Decimal("10.00"), customizations=[cheese])

    line = price_line(item, 2, [{"id": "c1"}])

    assert line.subtotal == Decimal("23.00")
    assert line.unit_price == Decimal("10.00")
    assert line.customization_snapshots() == [
        {"id": "c1", "name": "Cheese", "price": "1.50", "action": "ADD"}
    ]
