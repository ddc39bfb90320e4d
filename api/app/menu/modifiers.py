"""Server-side resolution of selected item customizations.

Clients send the ids of the options they picked and may echo the price and
action they were shown. The authoritative price and action always come from
the stored definition; an echoed value that disagrees is rejected rather
than corrected.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, Mapping, Sequence

from ..domain import ValidationError
from ..models import CustomizationAction

SINGLE_SELECT = (CustomizationAction.CHANGE, CustomizationAction.CHOOSE)


@dataclass(frozen=True)
class SelectedCustomization:
    """Customization chosen for an order line, priced from the stored option."""

    id: str
    name: str
    price: Decimal
    action: CustomizationAction

    def snapshot(self) -> dict[str, Any]:
        """Return the JSON-safe value copy stored on the order line."""

        return {
            "id": self.id,
            "name": self.name,
            "price": str(self.price),
            "action": self.action.value,
        }


def _as_decimal(value: Any) -> Decimal:
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError) as exc:
        raise ValidationError(f"Invalid customization price {value!r}") from exc


def resolve_customizations(
    item_name: str,
    available: Sequence[Any],
    requested: Iterable[Mapping[str, Any]],
) -> list[SelectedCustomization]:
    """Return the stored options matching ``requested`` for one order line.

    Parameters
    ----------
    item_name:
        Name of the menu item, used in error messages.
    available:
        Stored customization definitions of the item; each exposes ``id``,
        ``name``, ``price`` and ``action``.
    requested:
        Client selections. Each mapping carries ``id`` and optionally the
        ``price`` and ``action`` the client displayed.

    Raises
    ------
    ValidationError
        On unknown or repeated ids, echoed price/action mismatches, more than
        one CHANGE or CHOOSE selection, or a missing CHANGE selection when the
        item offers CHANGE options.
    """

    by_id = {str(opt.id): opt for opt in available}
    chosen: list[SelectedCustomization] = []
    seen: set[str] = set()

    for entry in requested:
        cid = str(entry.get("id") or "")
        option = by_id.get(cid)
        if option is None:
            raise ValidationError(
                f"Unknown customization for {item_name}",
                {"customization_id": cid},
            )
        if cid in seen:
            raise ValidationError(
                f"Customization {option.name} selected twice for {item_name}",
                {"customization_id": cid},
            )
        seen.add(cid)

        stored_price = Decimal(str(option.price))
        stored_action = CustomizationAction(option.action)
        if entry.get("price") is not None and _as_decimal(entry["price"]) != stored_price:
            raise ValidationError(
                f"Price of {option.name} changed, refresh the menu",
                {"customization_id": cid, "price": str(stored_price)},
            )
        if entry.get("action") is not None and str(entry["action"]) != stored_action.value:
            raise ValidationError(
                f"Action of {option.name} does not match the menu",
                {"customization_id": cid, "action": stored_action.value},
            )
        chosen.append(
            SelectedCustomization(
                id=cid, name=option.name, price=stored_price, action=stored_action
            )
        )

    for action in SINGLE_SELECT:
        if sum(1 for c in chosen if c.action is action) > 1:
            raise ValidationError(
                f"Only one {action.value} option may be selected for {item_name}"
            )

    offers_change = any(
        CustomizationAction(opt.action) is CustomizationAction.CHANGE for opt in available
    )
    if offers_change and not any(c.action is CustomizationAction.CHANGE for c in chosen):
        raise ValidationError(
            f"A CHANGE option must be selected for {item_name}",
            {"required": CustomizationAction.CHANGE.value},
        )
    return chosen
