"""Pizza catalog loading.

Two source formats are supported:

- JSON (``.json``): an array of objects
  ``{"name", "price", "ingredients": [...], "allergens": [...]}``.
- Text (any other extension): one pizza per line,
  ``name | price | ingredient1, ingredient2 | allergen1, allergen2``.
  Blank lines and lines starting with ``#`` are skipped, and a decimal
  comma is accepted in prices (``9,50``).

The catalog is read once at startup and never changes afterwards.
"""

import json
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Iterable, Literal

import structlog

from pizzeria.exceptions import CatalogFormatError, CatalogReadError

logger = structlog.get_logger()

CatalogFormat = Literal["json", "text"]

TEXT_FIELDS = "name | price | ingredients | allergens"


@dataclass(frozen=True)
class Pizza:
    """A catalog entry. Immutable once loaded."""

    name: str
    price: Decimal
    ingredients: tuple[str, ...] = field(default_factory=tuple)
    allergens: tuple[str, ...] = field(default_factory=tuple)

    @property
    def key(self) -> str:
        """Normalized lookup key."""
        return normalize_name(self.name)

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-friendly dictionary."""
        return {
            "name": self.name,
            "price": float(self.price),
            "ingredients": list(self.ingredients),
            "allergens": list(self.allergens),
        }


def normalize_name(name: str) -> str:
    """Normalize a pizza name for case-insensitive lookups."""
    return name.strip().lower()


def detect_format(path: str | Path) -> CatalogFormat:
    """Pick the catalog format from the file extension."""
    return "json" if Path(path).suffix.lower() == ".json" else "text"


# ============================================================================
# Parsing helpers
# ============================================================================


def _parse_price(raw: Any) -> Decimal:
    """Coerce a raw price into a non-negative Decimal.

    Raises:
        ValueError: If the value is not a finite, non-negative number.
    """
    if isinstance(raw, bool) or raw is None:
        raise ValueError(f'invalid price "{raw}"')
    text = str(raw).strip().replace(",", ".", 1)
    try:
        price = Decimal(text)
    except InvalidOperation:
        raise ValueError(f'invalid price "{raw}"') from None
    if not price.is_finite():
        raise ValueError(f'invalid price "{raw}"')
    if price < 0:
        raise ValueError(f'negative price "{raw}"')
    return price


def _split_list(raw: str) -> tuple[str, ...]:
    return tuple(item.strip() for item in raw.split(",") if item.strip())


def _coerce_list(raw: Any) -> tuple[str, ...]:
    if not isinstance(raw, list):
        return ()
    return tuple(str(item) for item in raw)


def _check_unique(pizzas: list[Pizza], locations: list[dict[str, int]]) -> None:
    seen: set[str] = set()
    for pizza, location in zip(pizzas, locations):
        if pizza.key in seen:
            raise CatalogFormatError(f'duplicate pizza name "{pizza.name}"', **location)
        seen.add(pizza.key)


# ============================================================================
# Parsers
# ============================================================================


def parse_json_catalog(text: str) -> list[Pizza]:
    """Parse a JSON catalog document.

    Args:
        text: The JSON document.

    Returns:
        Pizzas in document order.

    Raises:
        CatalogFormatError: If the document or one of its records is malformed.
    """
    try:
        data = json.loads(text, parse_float=Decimal)
    except json.JSONDecodeError as e:
        raise CatalogFormatError(f"invalid JSON: {e.msg}", line=e.lineno) from e

    if not isinstance(data, list):
        raise CatalogFormatError("the JSON catalog must be an array of pizzas")

    pizzas = []
    for index, record in enumerate(data):
        if not isinstance(record, dict):
            raise CatalogFormatError("each pizza must be an object", record=index)
        name = str(record.get("name") or "").strip()
        if not name:
            raise CatalogFormatError("missing pizza name", record=index)
        try:
            price = _parse_price(record.get("price"))
        except ValueError as e:
            raise CatalogFormatError(str(e), record=index) from None
        pizzas.append(
            Pizza(
                name=name,
                price=price,
                ingredients=_coerce_list(record.get("ingredients")),
                allergens=_coerce_list(record.get("allergens")),
            )
        )

    _check_unique(pizzas, [{"record": i} for i in range(len(pizzas))])
    return pizzas


def parse_text_catalog(text: str) -> list[Pizza]:
    """Parse a line-oriented catalog.

    Line numbers reported in errors are 1-based positions in ``text``,
    counting blank and comment lines.

    Raises:
        CatalogFormatError: If a line has too few fields or a bad price.
    """
    pizzas = []
    locations = []
    for lineno, raw_line in enumerate(text.splitlines(), start=1):
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue

        parts = [part.strip() for part in line.split("|")]
        if len(parts) < 4:
            raise CatalogFormatError(f'expected "{TEXT_FIELDS}"', line=lineno)

        name, price_text, ingredients, allergens = parts[:4]
        if not name:
            raise CatalogFormatError("missing pizza name", line=lineno)
        try:
            price = _parse_price(price_text)
        except ValueError as e:
            raise CatalogFormatError(str(e), line=lineno) from None

        pizzas.append(
            Pizza(
                name=name,
                price=price,
                ingredients=_split_list(ingredients),
                allergens=_split_list(allergens),
            )
        )
        locations.append({"line": lineno})

    _check_unique(pizzas, locations)
    return pizzas


# ============================================================================
# Filtering
# ============================================================================


def filter_pizzas(
    pizzas: Iterable[Pizza],
    max_price: float | Decimal | None = None,
    exclude_allergens: Iterable[str] | None = None,
    include_ingredients: Iterable[str] | None = None,
) -> list[Pizza]:
    """Filter the catalog.

    Args:
        pizzas: Catalog to filter.
        max_price: Keep pizzas priced at or below this.
        exclude_allergens: Drop pizzas with any of these allergens.
        include_ingredients: Keep pizzas having all of these ingredients.

    Allergen and ingredient names are compared case-insensitively.
    """
    filtered = list(pizzas)

    if max_price is not None:
        limit = Decimal(str(max_price))
        filtered = [p for p in filtered if p.price <= limit]

    excluded = {a.strip().lower() for a in exclude_allergens or []}
    if excluded:
        filtered = [
            p for p in filtered if not any(a.lower() in excluded for a in p.allergens)
        ]

    needed = [i.strip().lower() for i in include_ingredients or []]
    if needed:
        filtered = [
            p
            for p in filtered
            if all(n in {i.lower() for i in p.ingredients} for n in needed)
        ]

    return filtered


# ============================================================================
# Loader
# ============================================================================


def load_pizzas(path: str | Path, fmt: CatalogFormat | None = None) -> list[Pizza]:
    """Load the pizza catalog from a file.

    Args:
        path: Catalog file path.
        fmt: Source format. Detected from the extension when omitted.

    Returns:
        Normalized pizzas in source order.

    Raises:
        CatalogReadError: If the file cannot be read.
        CatalogFormatError: If the file is malformed.
    """
    path = Path(path)
    fmt = fmt or detect_format(path)

    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        reason = e.strerror if isinstance(e, OSError) and e.strerror else str(e)
        raise CatalogReadError(path, reason) from e

    try:
        if fmt == "json":
            pizzas = parse_json_catalog(text)
        else:
            pizzas = parse_text_catalog(text)
    except CatalogFormatError as e:
        raise e.with_path(path) from e

    logger.info("Catalog loaded", path=str(path), format=fmt, pizza_count=len(pizzas))
    return pizzas
