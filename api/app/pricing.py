"""Order line and order total pricing.

All arithmetic uses :class:`~decimal.Decimal`; values are only quantized to
the currency minor unit when they are stored or rendered.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Iterable, Mapping, Sequence

from .domain import ValidationError
from .menu.modifiers import SelectedCustomization, resolve_customizations

CENT = Decimal("0.01")
ZERO = Decimal("0")


def to_money(value: Any) -> Decimal:
    """Return ``value`` as a ``Decimal`` without float rounding artefacts."""

    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def quantize(value: Decimal) -> Decimal:
    """Round ``value`` to cents."""

    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def money_str(value: Any) -> str:
    """Render a money value with exactly two decimals."""

    return str(quantize(to_money(value)))


def line_subtotal(unit_price: Any, quantity: int, deltas: Iterable[Any] = ()) -> Decimal:
    """Return ``(unit_price + sum(deltas)) * quantity``."""

    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        raise ValidationError("Quantity must be a positive integer", {"quantity": quantity})
    unit = to_money(unit_price) + sum((to_money(d) for d in deltas), ZERO)
    return unit * quantity


def order_total(subtotals: Iterable[Any]) -> Decimal:
    """Return the sum of line ``subtotals``."""

    return sum((to_money(s) for s in subtotals), ZERO)


@dataclass
class PricedLine:
    """Line of a cart priced against the live menu snapshot."""

    item_id: str
    item_name: str
    unit_price: Decimal
    quantity: int
    customizations: list[SelectedCustomization] = field(default_factory=list)
    subtotal: Decimal = ZERO

    def customization_snapshots(self) -> list[dict[str, Any]]:
        return [c.snapshot() for c in self.customizations]


def price_line(
    item: Any, quantity: int, selections: Sequence[Mapping[str, Any]] = ()
) -> PricedLine:
    """Price ``quantity`` units of menu ``item`` with client ``selections``."""

    chosen = resolve_customizations(item.name, item.customizations or [], selections)
    unit_price = to_money(item.price)
    subtotal = line_subtotal(unit_price, quantity, (c.price for c in chosen))
    return PricedLine(
        item_id=str(item.id),
        item_name=item.name,
        unit_price=unit_price,
        quantity=quantity,
        customizations=chosen,
        subtotal=subtotal,
    )


__all__ = [
    "CENT",
    "PricedLine",
    "line_subtotal",
    "money_str",
    "order_total",
    "price_line",
    "quantize",
    "to_money",
]
