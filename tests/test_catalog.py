"""Tests for pizza catalog loading."""

from decimal import Decimal
from pathlib import Path

import pytest

from pizzeria.catalog import (
    Pizza,
    detect_format,
    filter_pizzas,
    load_pizzas,
    parse_json_catalog,
    parse_text_catalog,
)
from pizzeria.exceptions import CatalogFormatError, CatalogReadError
from tests.conftest import SAMPLE_JSON_CATALOG, SAMPLE_TEXT_CATALOG


class TestJsonCatalog:
    """Tests for the JSON catalog format."""

    def test_parse_json_catalog(self):
        """Test parsing a valid JSON catalog."""
        pizzas = parse_json_catalog(SAMPLE_JSON_CATALOG)

        assert [p.name for p in pizzas] == ["Margherita", "BBQ Chicken", "Marinara"]
        assert pizzas[0].price == Decimal("8")
        assert pizzas[0].ingredients == ("tomato", "mozzarella", "basil")
        assert pizzas[0].allergens == ("gluten", "lactose")

    def test_name_is_trimmed(self):
        """Test surrounding whitespace is removed from names."""
        pizzas = parse_json_catalog(SAMPLE_JSON_CATALOG)
        assert pizzas[1].name == "BBQ Chicken"

    def test_missing_lists_default_to_empty(self):
        """Test missing ingredients/allergens become empty lists."""
        pizzas = parse_json_catalog(SAMPLE_JSON_CATALOG)
        assert pizzas[2].allergens == ()

    def test_price_is_coerced(self):
        """Test string prices are coerced to numbers."""
        pizzas = parse_json_catalog(SAMPLE_JSON_CATALOG)
        assert pizzas[2].price == Decimal("7.50")

    def test_list_members_coerced_to_strings(self):
        """Test non-string list members become strings."""
        pizzas = parse_json_catalog(
            '[{"name": "Odd", "price": 5, "ingredients": [1, "egg"], "allergens": "egg"}]'
        )
        assert pizzas[0].ingredients == ("1", "egg")
        assert pizzas[0].allergens == ()

    def test_not_an_array(self):
        """Test a JSON object document is rejected."""
        with pytest.raises(CatalogFormatError, match="array"):
            parse_json_catalog('{"name": "Margherita"}')

    def test_invalid_json(self):
        """Test broken JSON is rejected."""
        with pytest.raises(CatalogFormatError, match="invalid JSON"):
            parse_json_catalog('[{"name": ')

    def test_non_numeric_price(self):
        """Test a non-numeric price names the record."""
        with pytest.raises(CatalogFormatError) as exc_info:
            parse_json_catalog('[{"name": "A", "price": 1}, {"name": "B", "price": "cheap"}]')

        assert exc_info.value.record == 1
        assert "record 1" in str(exc_info.value)

    def test_negative_price(self):
        """Test a negative price is rejected."""
        with pytest.raises(CatalogFormatError, match="negative"):
            parse_json_catalog('[{"name": "A", "price": -1}]')

    def test_missing_name(self):
        """Test a record without a name is rejected."""
        with pytest.raises(CatalogFormatError, match="missing pizza name"):
            parse_json_catalog('[{"price": 8}]')


class TestTextCatalog:
    """Tests for the line-oriented catalog format."""

    def test_parse_text_catalog(self):
        """Test parsing a valid text catalog."""
        pizzas = parse_text_catalog(SAMPLE_TEXT_CATALOG)

        assert [p.name for p in pizzas] == ["Margherita", "BBQ Chicken", "Marinara"]
        assert pizzas[1].ingredients == ("BBQ sauce", "chicken")
        assert pizzas[1].allergens == ("gluten", "mustard")

    def test_decimal_comma(self):
        """Test a decimal comma is accepted in prices."""
        pizzas = parse_text_catalog(SAMPLE_TEXT_CATALOG)
        assert pizzas[2].price == Decimal("7.50")

    def test_empty_allergen_list(self):
        """Test an empty trailing field gives an empty list."""
        pizzas = parse_text_catalog(SAMPLE_TEXT_CATALOG)
        assert pizzas[2].allergens == ()

    def test_matches_json_catalog(self):
        """Test both formats describe the same catalog."""
        from_text = parse_text_catalog(SAMPLE_TEXT_CATALOG)
        from_json = parse_json_catalog(SAMPLE_JSON_CATALOG)

        assert [(p.name, p.price) for p in from_text] == [
            (p.name, p.price) for p in from_json
        ]

    def test_too_few_fields(self):
        """Test a short line fails with its line number."""
        text = "# header\nMargherita | 8 | tomato | gluten\nBroken | 9\n"

        with pytest.raises(CatalogFormatError) as exc_info:
            parse_text_catalog(text)

        assert exc_info.value.line == 3
        assert "line 3" in str(exc_info.value)

    def test_non_numeric_price(self):
        """Test a bad price fails with its line number."""
        with pytest.raises(CatalogFormatError) as exc_info:
            parse_text_catalog("Margherita | eight | tomato | gluten\n")

        assert exc_info.value.line == 1
        assert "eight" in str(exc_info.value)

    def test_duplicate_names(self):
        """Test duplicate names are rejected case-insensitively."""
        text = "Margherita | 8 | tomato | gluten\nMARGHERITA | 9 | tomato | gluten\n"

        with pytest.raises(CatalogFormatError, match="duplicate") as exc_info:
            parse_text_catalog(text)

        assert exc_info.value.line == 2

    def test_comments_and_blank_lines_only(self):
        """Test a catalog with no pizza lines is empty."""
        assert parse_text_catalog("# nothing here\n\n   \n") == []


class TestLoadPizzas:
    """Tests for loading catalogs from files."""

    def test_detect_format(self):
        """Test the format is picked from the extension."""
        assert detect_format("pizzas.json") == "json"
        assert detect_format("PIZZAS.JSON") == "json"
        assert detect_format("pizzas.txt") == "text"
        assert detect_format("pizzas") == "text"

    def test_load_json_file(self, tmp_path: Path):
        """Test loading a .json file."""
        path = tmp_path / "pizzas.json"
        path.write_text(SAMPLE_JSON_CATALOG, encoding="utf-8")

        pizzas = load_pizzas(path)
        assert len(pizzas) == 3

    def test_load_text_file(self, tmp_path: Path):
        """Test loading a text file."""
        path = tmp_path / "pizzas.txt"
        path.write_text(SAMPLE_TEXT_CATALOG, encoding="utf-8")

        pizzas = load_pizzas(path)
        assert len(pizzas) == 3

    def test_explicit_format_overrides_extension(self, tmp_path: Path):
        """Test the format hint wins over the extension."""
        path = tmp_path / "catalog.data"
        path.write_text(SAMPLE_JSON_CATALOG, encoding="utf-8")

        pizzas = load_pizzas(path, fmt="json")
        assert pizzas[0].name == "Margherita"

    def test_missing_file(self, tmp_path: Path):
        """Test an unreadable source raises CatalogReadError."""
        path = tmp_path / "missing.json"

        with pytest.raises(CatalogReadError) as exc_info:
            load_pizzas(path)

        assert exc_info.value.path == str(path)
        assert str(path) in str(exc_info.value)

    def test_format_error_names_path_and_line(self, tmp_path: Path):
        """Test format errors from a file carry the path and line."""
        path = tmp_path / "pizzas.txt"
        path.write_text("Margherita | 8 | tomato | gluten\nBroken\n", encoding="utf-8")

        with pytest.raises(CatalogFormatError) as exc_info:
            load_pizzas(path)

        error = exc_info.value
        assert error.path == str(path)
        assert error.line == 2
        assert str(error).startswith(f"{path}, line 2: ")

    def test_shipped_examples_load(self):
        """Test the example catalogs shipped with the project are valid."""
        root = Path(__file__).resolve().parents[1] / "examples"

        from_json = load_pizzas(root / "pizzas.json")
        from_text = load_pizzas(root / "pizzas.txt")

        assert [p.to_dict() for p in from_json] == [p.to_dict() for p in from_text]


class TestFilterPizzas:
    """Tests for catalog filtering."""

    def test_no_filters(self, pizzas: list[Pizza]):
        """Test no filters returns the whole catalog."""
        assert filter_pizzas(pizzas) == pizzas

    def test_max_price(self, pizzas: list[Pizza]):
        """Test filtering by maximum price is inclusive."""
        names = [p.name for p in filter_pizzas(pizzas, max_price=8)]
        assert names == ["Margherita", "Marinara"]

    def test_max_price_excludes_expensive(self, pizzas: list[Pizza]):
        """Test BBQ Chicken at 12 is excluded below 10."""
        names = [p.name for p in filter_pizzas(pizzas[:2], max_price=10)]
        assert names == ["Margherita"]

    def test_exclude_allergens_case_insensitive(self, pizzas: list[Pizza]):
        """Test allergen exclusion ignores case."""
        names = [p.name for p in filter_pizzas(pizzas, exclude_allergens=["LACTOSE"])]
        assert names == ["Marinara"]

    def test_include_ingredients_requires_all(self, pizzas: list[Pizza]):
        """Test every requested ingredient must be present."""
        names = [
            p.name
            for p in filter_pizzas(pizzas, include_ingredients=["Tomato", "basil"])
        ]
        assert names == ["Margherita"]

    def test_empty_result(self, pizzas: list[Pizza]):
        """Test filters can match nothing."""
        assert filter_pizzas(pizzas, max_price=1) == []
