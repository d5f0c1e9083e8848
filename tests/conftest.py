"""Pytest configuration and fixtures for pizzeria tests."""

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from pizzeria.cart import CartStore
from pizzeria.catalog import Pizza
from pizzeria.tools import PizzeriaTools
from pizzeria.web import create_web_app


SAMPLE_JSON_CATALOG = """
[
  {"name": "Margherita", "price": 8, "ingredients": ["tomato", "mozzarella", "basil"],
   "allergens": ["gluten", "lactose"]},
  {"name": "  BBQ Chicken ", "price": 12.0, "ingredients": ["BBQ sauce", "chicken"],
   "allergens": ["gluten", "mustard"]},
  {"name": "Marinara", "price": "7.50", "ingredients": ["tomato", "garlic"]}
]
"""

SAMPLE_TEXT_CATALOG = """\
# name | price | ingredients | allergens
Margherita | 8 | tomato, mozzarella, basil | gluten, lactose

  BBQ Chicken | 12 | BBQ sauce , chicken | gluten,mustard
Marinara | 7,50 | tomato, garlic |
"""


@pytest.fixture
def pizzas() -> list[Pizza]:
    """Create a small catalog."""
    return [
        Pizza(
            name="Margherita",
            price=Decimal("8"),
            ingredients=("tomato", "mozzarella", "basil"),
            allergens=("gluten", "lactose"),
        ),
        Pizza(
            name="BBQ Chicken",
            price=Decimal("12"),
            ingredients=("BBQ sauce", "chicken", "mozzarella"),
            allergens=("gluten", "lactose", "mustard"),
        ),
        Pizza(
            name="Marinara",
            price=Decimal("7.5"),
            ingredients=("tomato", "garlic", "oregano"),
            allergens=("gluten",),
        ),
    ]


@pytest.fixture
def store(pizzas: list[Pizza]) -> CartStore:
    """Create an empty cart store over the sample catalog."""
    return CartStore(pizzas)


@pytest.fixture
def pizzeria_tools(store: CartStore) -> PizzeriaTools:
    """Create PizzeriaTools instance over the sample store."""
    return PizzeriaTools(store)


@pytest.fixture
def client(store: CartStore):
    """Create test client for the HTTP cart page."""
    with TestClient(create_web_app(store)) as client:
        yield client
