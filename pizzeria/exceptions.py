"""Pizzeria exceptions.

Catalog errors are raised while loading the pizza catalog at startup and
are fatal. Cart errors are raised by the cart store on bad user input and
are recoverable: the tool layer turns them into error-flagged results.
"""

from pathlib import Path
from typing import Any


class PizzeriaError(Exception):
    """Base class for all pizzeria errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """Initialize pizzeria error.

        Args:
            message: Human-readable error message.
            details: Optional dictionary with additional error context.
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}


# ============================================================================
# Catalog Errors
# ============================================================================


class CatalogError(PizzeriaError):
    """Base class for catalog loading errors."""

    pass


class CatalogReadError(CatalogError):
    """Raised when the catalog source cannot be read."""

    def __init__(self, path: str | Path, reason: str) -> None:
        """Initialize catalog read error.

        Args:
            path: Path of the catalog source.
            reason: Why reading failed.
        """
        super().__init__(
            f"Cannot read pizza catalog {path}: {reason}",
            details={"path": str(path), "reason": reason},
        )
        self.path = str(path)


class CatalogFormatError(CatalogError):
    """Raised when the catalog source is malformed.

    For line-oriented catalogs ``line`` is the 1-based line number in the
    file; for JSON catalogs ``record`` is the 0-based index in the array.
    """

    def __init__(
        self,
        message: str,
        path: str | Path | None = None,
        line: int | None = None,
        record: int | None = None,
    ) -> None:
        location = []
        if path is not None:
            location.append(str(path))
        if line is not None:
            location.append(f"line {line}")
        if record is not None:
            location.append(f"record {record}")
        prefix = f"{', '.join(location)}: " if location else ""
        super().__init__(
            f"{prefix}{message}",
            details={
                "path": str(path) if path is not None else None,
                "line": line,
                "record": record,
            },
        )
        self.reason = message
        self.path = str(path) if path is not None else None
        self.line = line
        self.record = record

    def with_path(self, path: str | Path) -> "CatalogFormatError":
        """Return a copy of this error that also names the source path."""
        return CatalogFormatError(
            self.reason, path=path, line=self.line, record=self.record
        )


# ============================================================================
# Cart Errors
# ============================================================================


class CartError(PizzeriaError):
    """Base class for cart-related errors."""

    pass


class PizzaNotFoundError(CartError):
    """Raised when a pizza name does not match any catalog entry."""

    def __init__(self, name: str) -> None:
        """Initialize pizza not found error.

        Args:
            name: The name that was looked up.
        """
        super().__init__(
            f"Pizza not found: \"{name}\". Use 'list_pizzas' to see the available names.",
            details={"name": name},
        )
        self.name = name


class LineNotFoundError(CartError):
    """Raised when removing a pizza that is not in the cart."""

    def __init__(self, name: str) -> None:
        """Initialize line not found error.

        Args:
            name: The name that was looked up.
        """
        super().__init__(
            f"This pizza is not in the cart: \"{name}\"",
            details={"name": name},
        )
        self.name = name
