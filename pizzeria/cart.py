"""In-memory cart store.

The store owns the single cart of the process. Both the MCP tools and the
HTTP cart page go through its methods; the underlying mapping is never
handed out.

All methods are synchronous and never await, so when every caller runs on
the same event loop no caller can observe a half-applied mutation. A host
that calls the store from several threads must serialize the mutators.
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Context, Decimal
from typing import Iterable

import structlog

from pizzeria.catalog import Pizza, normalize_name
from pizzeria.exceptions import LineNotFoundError, PizzaNotFoundError
from pizzeria.schemas import CartLineView, CartSnapshot

logger = structlog.get_logger()

CENT = Decimal("0.01")
DEFAULT_CURRENCY = "EUR"


def round2(amount: Decimal) -> Decimal:
    """Round a money amount to 2 decimals, half up, whatever its magnitude."""
    context = Context(prec=max(28, amount.adjusted() + 4))
    return amount.quantize(CENT, rounding=ROUND_HALF_UP, context=context)


@dataclass
class CartLine:
    """Internal cart line. ``unit_price`` is frozen at first add."""

    name: str
    unit_price: Decimal
    quantity: int

    @property
    def line_total(self) -> Decimal:
        """Unrounded line total."""
        return self.unit_price * self.quantity

    def to_view(self) -> CartLineView:
        """Convert to the read-only view."""
        return CartLineView(
            name=self.name,
            unit_price=float(self.unit_price),
            quantity=self.quantity,
            line_total=float(round2(self.line_total)),
        )


@dataclass(frozen=True)
class CartChange:
    """Outcome of a cart mutation.

    ``delta`` is the quantity actually applied (negative for removals).
    ``line`` is the new state of the line, or None once it was deleted.
    """

    name: str
    delta: int
    line: CartLineView | None

    @property
    def removed(self) -> bool:
        """Whether the mutation deleted the line."""
        return self.line is None


def _normalize_quantity(quantity: int | None) -> int:
    if quantity is None or quantity < 1:
        return 1
    return int(quantity)


class CartStore:
    """Owner of the catalog reference and the single mutable cart."""

    def __init__(
        self,
        pizzas: Iterable[Pizza],
        currency: str = DEFAULT_CURRENCY,
    ) -> None:
        """Initialize cart store.

        Args:
            pizzas: The loaded catalog.
            currency: Currency code reported in snapshots.
        """
        self._pizzas: tuple[Pizza, ...] = tuple(pizzas)
        self._by_key: dict[str, Pizza] = {p.key: p for p in self._pizzas}
        self._lines: dict[str, CartLine] = {}
        self.currency = currency

    @property
    def pizzas(self) -> tuple[Pizza, ...]:
        """The immutable catalog, in source order."""
        return self._pizzas

    def __len__(self) -> int:
        return len(self._lines)

    @property
    def is_empty(self) -> bool:
        return not self._lines

    def find_pizza(self, name: str) -> Pizza | None:
        """Find a catalog pizza by exact, case-insensitive name.

        Args:
            name: Pizza name. Surrounding whitespace is ignored.

        Returns:
            The pizza or None if not found.
        """
        return self._by_key.get(normalize_name(name))

    def add_to_cart(self, name: str, quantity: int | None = 1) -> CartChange:
        """Add a pizza to the cart.

        A missing or non-positive quantity counts as 1. A new line takes the
        current catalog price; an existing line keeps its original price.

        Args:
            name: Pizza name (case-insensitive).
            quantity: How many to add.

        Returns:
            The applied change.

        Raises:
            PizzaNotFoundError: If the pizza is not in the catalog.
        """
        pizza = self.find_pizza(name)
        if pizza is None:
            raise PizzaNotFoundError(name)

        quantity = _normalize_quantity(quantity)
        line = self._lines.get(pizza.key)
        if line is None:
            updated = CartLine(name=pizza.name, unit_price=pizza.price, quantity=quantity)
        else:
            updated = CartLine(
                name=line.name,
                unit_price=line.unit_price,
                quantity=line.quantity + quantity,
            )
        view = updated.to_view()
        self._lines[pizza.key] = updated

        logger.debug(
            "Cart line added",
            pizza=pizza.name,
            delta=quantity,
            quantity=updated.quantity,
        )
        return CartChange(name=pizza.name, delta=quantity, line=view)

    def remove_from_cart(self, name: str, quantity: int | None = 1) -> CartChange:
        """Remove a quantity of a pizza from the cart.

        A missing or non-positive quantity counts as 1. The line is deleted
        when its quantity drops to zero or below.

        Args:
            name: Pizza name (case-insensitive).
            quantity: How many to remove.

        Returns:
            The applied change; ``line`` is None when the line was deleted.

        Raises:
            LineNotFoundError: If the pizza is not in the cart.
        """
        key = normalize_name(name)
        line = self._lines.get(key)
        if line is None:
            raise LineNotFoundError(name)

        quantity = _normalize_quantity(quantity)
        applied = min(quantity, line.quantity)
        remaining = line.quantity - applied
        if remaining > 0:
            updated = CartLine(name=line.name, unit_price=line.unit_price, quantity=remaining)
            view = updated.to_view()
            self._lines[key] = updated
        else:
            view = None
            del self._lines[key]

        logger.debug(
            "Cart line removed",
            pizza=line.name,
            delta=-applied,
            deleted=view is None,
        )
        return CartChange(name=line.name, delta=-applied, line=view)

    def subtotal(self) -> Decimal:
        """Unrounded sum of all line totals."""
        return sum((line.line_total for line in self._lines.values()), Decimal("0"))

    def snapshot(self) -> CartSnapshot:
        """Compute a fresh read-only view of the cart.

        Line totals are rounded individually for display; the subtotal is
        the rounded sum of the unrounded line totals.
        """
        return CartSnapshot(
            items=[line.to_view() for line in self._lines.values()],
            subtotal=float(round2(self.subtotal())),
            currency=self.currency,
        )
