"""MCP tools for the pizzeria.

Defines the 4 MCP tools as thin adapters over the cart store:
1. list_pizzas - Browse the catalog with optional filters
2. add_to_cart - Add a pizza to the cart
3. remove_from_cart - Remove a pizza from the cart
4. get_cart - Show cart contents and subtotal

Each method returns a plain dict with a ``success`` flag. Cart errors are
reported in the dict rather than raised, so the agent can retry.
"""

from typing import Any

import structlog

from pizzeria.cart import CartChange, CartStore
from pizzeria.catalog import filter_pizzas
from pizzeria.exceptions import CartError

logger = structlog.get_logger()


def format_price(amount: float, currency: str = "EUR") -> str:
    """Format a price for human-readable messages."""
    return f"{amount:.2f} {currency}"


def format_error(error: CartError) -> dict[str, Any]:
    """Format a cart error for MCP output."""
    return {
        "success": False,
        "error": error.message,
        "details": error.details,
    }


class PizzeriaTools:
    """MCP tools for the pizzeria.

    Provides methods for each MCP tool that wrap the cart store.
    """

    def __init__(self, store: CartStore) -> None:
        """Initialize pizzeria tools.

        Args:
            store: The cart store shared with the HTTP cart page.
        """
        self.store = store

    def _change_result(self, verb: str, change: CartChange) -> dict[str, Any]:
        snapshot = self.store.snapshot()
        return {
            "success": True,
            "message": f"{verb}: {abs(change.delta)} × {change.name}",
            "line": change.line.to_wire() if change.line else None,
            "removed": change.removed,
            "cart": snapshot.to_wire(),
        }

    # =========================================================================
    # Tool 1: list_pizzas
    # =========================================================================

    async def list_pizzas(
        self,
        max_price: float | None = None,
        exclude_allergens: list[str] | None = None,
        include_ingredients: list[str] | None = None,
    ) -> dict[str, Any]:
        """List available pizzas with ingredients, allergens and price.

        Args:
            max_price: Only pizzas at or below this price.
            exclude_allergens: Drop pizzas containing any of these allergens.
            include_ingredients: Only pizzas containing all of these ingredients.

        Returns:
            Matching pizzas. An empty list is a valid answer.
        """
        logger.info(
            "Listing pizzas",
            max_price=max_price,
            exclude_allergens=exclude_allergens,
            include_ingredients=include_ingredients,
        )

        pizzas = filter_pizzas(
            self.store.pizzas,
            max_price=max_price,
            exclude_allergens=exclude_allergens,
            include_ingredients=include_ingredients,
        )
        return {
            "success": True,
            "pizzas": [p.to_dict() for p in pizzas],
            "count": len(pizzas),
        }

    # =========================================================================
    # Tool 2: add_to_cart
    # =========================================================================

    async def add_to_cart(self, name: str, quantity: int = 1) -> dict[str, Any]:
        """Add a pizza to the cart by name.

        Args:
            name: Pizza name (case-insensitive).
            quantity: How many to add.

        Returns:
            Confirmation, the updated line and the updated cart.
        """
        logger.info("Adding to cart", name=name, quantity=quantity)

        try:
            change = self.store.add_to_cart(name, quantity)
        except CartError as e:
            logger.warning("Add to cart failed", name=name, error=e.message)
            return format_error(e)

        return self._change_result("Added", change)

    # =========================================================================
    # Tool 3: remove_from_cart
    # =========================================================================

    async def remove_from_cart(self, name: str, quantity: int = 1) -> dict[str, Any]:
        """Remove a quantity of a pizza from the cart.

        The line is deleted when its quantity reaches 0.

        Args:
            name: Pizza name (case-insensitive).
            quantity: How many to remove.

        Returns:
            Confirmation, the updated line (None if deleted) and the updated cart.
        """
        logger.info("Removing from cart", name=name, quantity=quantity)

        try:
            change = self.store.remove_from_cart(name, quantity)
        except CartError as e:
            logger.warning("Remove from cart failed", name=name, error=e.message)
            return format_error(e)

        return self._change_result("Removed", change)

    # =========================================================================
    # Tool 4: get_cart
    # =========================================================================

    async def get_cart(self) -> dict[str, Any]:
        """Return the cart contents and subtotal."""
        snapshot = self.store.snapshot()
        return {
            "success": True,
            "cart": snapshot.to_wire(),
            "message": (
                "The cart is empty."
                if not snapshot.items
                else f"{len(snapshot.items)} line(s), subtotal "
                f"{format_price(snapshot.subtotal, snapshot.currency)}"
            ),
        }
