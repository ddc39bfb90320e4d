from decimal import Decimal
from types import SimpleNamespace

import pytest

from api.app.domain import ValidationError
from api.app.menu import resolve_customizations
from api.app.models import CustomizationAction


def _opt(id, name, price, action):
    return SimpleNamespace(id=id, name=name, price=Decimal(price), action=action)


BURGER = [
    _opt("add-cheese", "Cheese", "1.50", CustomizationAction.ADD),
    _opt("no-onion", "No onion", "0.00", CustomizationAction.REMOVE),
]
FRIES = [
    _opt("sweet", "Sweet potato", "1.00", CustomizationAction.CHANGE),
    _opt("regular", "Regular", "0.00", CustomizationAction.CHANGE),
]


def test_no_selection_is_allowed_without_change_options():
    assert resolve_customizations("Burger", BURGER, []) == []


def test_add_and_remove_can_be_combined():
    chosen = resolve_customizations("Burger", BURGER, [{"id": "add-cheese"}, {"id": "no-onion"}])
    assert [c.name for c in chosen] == ["Cheese", "No onion"]
    assert sum(c.price for c in chosen) == Decimal("1.50")


def test_unknown_option_rejected():
    with pytest.raises(ValidationError) as exc:
        resolve_customizations("Burger", BURGER, [{"id": "sweet"}])
    assert exc.value.details["customization_id"] == "sweet"


def test_repeated_option_rejected():
    with pytest.raises(ValidationError):
        resolve_customizations("Burger", BURGER, [{"id": "add-cheese"}, {"id": "add-cheese"}])


def test_echoed_price_must_match():
    with pytest.raises(ValidationError) as exc:
        resolve_customizations("Burger", BURGER, [{"id": "add-cheese", "price": "0.50"}])
    assert exc.value.details["price"] == "1.50"


def test_matching_echoed_price_and_action_accepted():
    chosen = resolve_customizations(
        "Burger", BURGER, [{"id": "add-cheese", "price": 1.5, "action": "ADD"}]
    )
    assert chosen[0].price == Decimal("1.50")


def test_echoed_action_must_match():
    with pytest.raises(ValidationError):
        resolve_customizations("Burger", BURGER, [{"id": "no-onion", "action": "ADD"}])


def test_change_option_required_when_offered():
    with pytest.raises(ValidationError) as exc:
        resolve_customizations("Fries", FRIES, [])
    assert exc.value.details == {"required": "CHANGE"}


def test_only_one_change_option():
    with pytest.raises(ValidationError):
        resolve_customizations("Fries", FRIES, [{"id": "sweet"}, {"id": "regular"}])


def test_single_change_option_resolved():
    chosen = resolve_customizations("Fries", FRIES, [{"id": "sweet"}])
    assert chosen[0].action is CustomizationAction.CHANGE
    assert chosen[0].snapshot()["price"] == "1.00"
