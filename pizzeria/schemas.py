"""Pydantic schemas for the pizzeria.

Defines the tool input contracts and the read-only cart views shared by
the MCP tools and the HTTP cart page. Field names are camelCase on the
wire and snake_case in Python.
"""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

# Upper bound for a single add or remove through the tools.
MAX_QUANTITY = 1000


class CamelModel(BaseModel):
    """Base model with camelCase aliases."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    def to_wire(self) -> dict:
        """Dump to a JSON-compatible dict using the wire field names."""
        return self.model_dump(mode="json", by_alias=True)


# ============================================================================
# Cart Views
# ============================================================================


class CartLineView(CamelModel):
    """One cart line as seen from outside the store."""

    name: str = Field(..., description="Pizza name as spelled in the catalog")
    unit_price: float = Field(..., description="Unit price frozen at first add")
    quantity: int = Field(..., ge=1, description="Quantity in the cart")
    line_total: float = Field(..., description="unit price x quantity, rounded to 2 decimals")


class CartSnapshot(CamelModel):
    """Freshly computed view of the cart."""

    items: list[CartLineView] = Field(default_factory=list)
    subtotal: float = Field(default=0.0, description="Rounded to 2 decimals")
    currency: str = Field(default="EUR")


# ============================================================================
# Tool Input Schemas
# ============================================================================


class ListPizzasInput(CamelModel):
    """Input schema for list_pizzas tool."""

    max_price: float | None = Field(
        None,
        description="Only return pizzas whose price is less than or equal to this.",
    )
    exclude_allergens: list[str] | None = Field(
        None,
        description="Drop pizzas containing any of these allergens (case-insensitive).",
    )
    include_ingredients: list[str] | None = Field(
        None,
        description="Only return pizzas containing all of these ingredients "
        "(case-insensitive).",
    )


class AddToCartInput(CamelModel):
    """Input schema for add_to_cart tool."""

    name: str = Field(
        ...,
        description="Pizza name as returned by list_pizzas (case-insensitive).",
    )
    quantity: int = Field(
        default=1,
        ge=1,
        le=MAX_QUANTITY,
        description="How many to add.",
    )


class RemoveFromCartInput(CamelModel):
    """Input schema for remove_from_cart tool."""

    name: str = Field(
        ...,
        description="Pizza name as shown in the cart (case-insensitive).",
    )
    quantity: int = Field(
        default=1,
        ge=1,
        le=MAX_QUANTITY,
        description="How many to remove. The line is deleted when it reaches 0.",
    )


class GetCartInput(CamelModel):
    """Input schema for get_cart tool (no arguments)."""

    pass
