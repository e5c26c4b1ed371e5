"""Unit tests for the candidate fetchers."""

import json
from decimal import Decimal
from unittest.mock import patch

import psycopg2
import pytest
from catalog_search.core.exceptions import FetchFailure
from catalog_search.fetchers.memory import InMemoryCatalog
from catalog_search.fetchers.postgres import PostgresCatalog
from catalog_search.fetchers.retry import RetryingFetcher
from catalog_search.main import DEFAULT_CATALOG_FILE
from catalog_search.models.catalog import CatalogQuery, CatalogRecord, CategoryInfo, SortOrder


def names(records):
    return [r.name for r in records]


class TestInMemoryCatalog:
    """Test cases for the InMemoryCatalog class."""

    @pytest.fixture
    def catalog(self):
        """The bundled sample catalog."""
        return InMemoryCatalog.from_json_file(DEFAULT_CATALOG_FILE)

    def test_sample_catalog_loads(self, catalog):
        """Test the bundled catalog loads every product."""
        assert len(catalog) == 42

    def test_name_filter_is_accent_insensitive(self, catalog):
        """Test the coarse filter matches normalized substrings."""
        records = catalog.fetch(CatalogQuery(name_filter="azucar"))

        assert names(records) == ["Azúcar blanco", "Azúcar moreno"]

    def test_no_name_filter_returns_all(self, catalog):
        """Test an unfiltered fetch lists the whole catalog."""
        assert len(catalog.fetch(CatalogQuery())) == 42

    def test_category_filter(self, catalog):
        """Test filtering by category and subcategory."""
        dairy = catalog.fetch(CatalogQuery(category="Lácteos y huevos"))
        milk = catalog.fetch(CatalogQuery(category="Lácteos y huevos", subcategory="Leche"))

        assert len(dairy) == 7
        assert names(milk) == ["Leche entera", "Leche semidesnatada", "Leche sin lactosa"]

    def test_price_bounds(self, catalog):
        """Test inclusive price bounds."""
        records = catalog.fetch(CatalogQuery(price_min=0.0, price_max=0.45))

        assert names(records) == ["Agua mineral", "Huevos camperos", "Sal fina"]

    def test_price_ordering(self, catalog):
        """Test price orderings."""
        ascending = catalog.fetch(CatalogQuery(order=SortOrder.PRICE_ASC))
        descending = catalog.fetch(CatalogQuery(order=SortOrder.PRICE_DESC))

        assert ascending[0].name == "Agua mineral"
        assert descending[0].name == "Jamón serrano"

    def test_unpriced_records_sort_last(self):
        """Test products without a price come last in price orderings."""
        catalog = InMemoryCatalog.from_dicts([
            {"id": 1, "name": "Sin precio"},
            {"id": 2, "name": "Caro", "price": 9.0},
            {"id": 3, "name": "Barato", "price": 1.0},
        ])

        ascending = catalog.fetch(CatalogQuery(order=SortOrder.PRICE_ASC))
        descending = catalog.fetch(CatalogQuery(order=SortOrder.PRICE_DESC))

        assert names(ascending) == ["Barato", "Caro", "Sin precio"]
        assert names(descending) == ["Caro", "Barato", "Sin precio"]

    def test_name_ordering_ignores_accents(self):
        """Test name orderings compare normalized names."""
        catalog = InMemoryCatalog.from_dicts([
            {"id": 1, "name": "Batido"},
            {"id": 2, "name": "Ázucar"},
            {"id": 3, "name": "aceite"},
        ])

        assert names(catalog.fetch(CatalogQuery())) == ["aceite", "Ázucar", "Batido"]
        assert names(catalog.fetch(CatalogQuery(order=SortOrder.NAME_DESC))) == [
            "Batido", "Ázucar", "aceite"
        ]

    def test_limit(self, catalog):
        """Test the record limit."""
        assert len(catalog.fetch(CatalogQuery(limit=5))) == 5

    def test_list_categories(self, catalog):
        """Test categories are listed alphabetically with their subcategories."""
        categories = catalog.list_categories()

        assert len(categories) == 9
        assert categories[0].name == "Bebidas"
        pantry = next(c for c in categories if c.name == "Despensa")
        assert pantry.subcategories == sorted(pantry.subcategories)
        assert "Legumbres" in pantry.subcategories

    def test_list_file_format(self, tmp_path):
        """Test loading a plain list of products."""
        path = tmp_path / "catalog.json"
        path.write_text(json.dumps([{"id": "a", "name": "Pan"}]), encoding="utf-8")

        catalog = InMemoryCatalog.from_json_file(path)

        assert names(catalog.fetch(CatalogQuery())) == ["Pan"]

    def test_missing_file(self, tmp_path):
        """Test a missing file raises FetchFailure."""
        with pytest.raises(FetchFailure) as exc_info:
            InMemoryCatalog.from_json_file(tmp_path / "missing.json")

        assert exc_info.value.backend == "memory"

    def test_malformed_file(self, tmp_path):
        """Test malformed JSON raises FetchFailure."""
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")

        with pytest.raises(FetchFailure):
            InMemoryCatalog.from_json_file(path)


class TestPostgresCatalog:
    """Test cases for the PostgresCatalog class."""

    @pytest.fixture
    def catalog(self):
        """Catalog with a dummy connection configuration."""
        return PostgresCatalog({"host": "localhost", "dbname": "catalog"})

    def test_default_query(self, catalog):
        """Test an unfiltered query selects active products by name."""
        sql, params = catalog.build_query(CatalogQuery())

        assert "p.active = TRUE" in sql
        assert "ILIKE" not in sql
        assert "ORDER BY p.name ASC" in sql
        assert sql.rstrip().endswith("LIMIT %s")
        assert params == [1000]

    def test_name_filter_uses_unaccent(self, catalog):
        """Test the name filter is an accent-insensitive ILIKE."""
        sql, params = catalog.build_query(CatalogQuery(name_filter="oliva", limit=50))

        assert "unaccent(p.name) ILIKE unaccent(%s)" in sql
        assert params == ["%oliva%", 50]

    def test_name_filter_without_unaccent(self):
        """Test plain ILIKE when the extension is disabled."""
        catalog = PostgresCatalog({}, use_unaccent=False)

        sql, _ = catalog.build_query(CatalogQuery(name_filter="oliva"))

        assert "p.name ILIKE %s" in sql
        assert "unaccent" not in sql

    def test_like_wildcards_are_escaped(self, catalog):
        """Test LIKE metacharacters in the token are matched literally."""
        _, params = catalog.build_query(CatalogQuery(name_filter="50%_x"))

        assert params[0] == "%50\\%\\_x%"

    def test_bounds_and_order(self, catalog):
        """Test category, price and ordering clauses."""
        query = CatalogQuery(
            category="Despensa",
            subcategory="Aceites",
            price_min=1.0,
            price_max=5.0,
            order=SortOrder.PRICE_DESC
        )

        sql, params = catalog.build_query(query)

        assert "c.name = %s" in sql
        assert "s.name = %s" in sql
        assert "p.price_per_unit >= %s" in sql
        assert "p.price_per_unit <= %s" in sql
        assert "ORDER BY p.price_per_unit DESC NULLS LAST" in sql
        assert params == ["Despensa", "Aceites", 1.0, 5.0, 1000]

    @patch("catalog_search.fetchers.postgres.psycopg2.connect")
    def test_fetch_maps_rows(self, mock_connect, catalog):
        """Test rows are converted to catalog records."""
        cursor = mock_connect.return_value.cursor.return_value.__enter__.return_value
        cursor.fetchall.return_value = [{
            "id": 7,
            "name": "Azúcar blanco",
            "category": "Despensa",
            "subcategory": "Azúcar y edulcorantes",
            "price_per_unit": Decimal("1.15"),
            "unit": "kg",
            "sale_format": "Paquete 1 kg",
            "sale_price": None,
            "image_url": None,
            "url": None,
        }]

        records = catalog.fetch(CatalogQuery(name_filter="azucar"))

        assert records == [CatalogRecord(
            id=7,
            name="Azúcar blanco",
            category="Despensa",
            subcategory="Azúcar y edulcorantes",
            price=1.15,
            unit="kg",
            sale_format="Paquete 1 kg"
        )]
        mock_connect.assert_called_once_with(host="localhost", dbname="catalog")
        mock_connect.return_value.close.assert_called_once()

    @patch("catalog_search.fetchers.postgres.psycopg2.connect")
    def test_connection_error(self, mock_connect, catalog):
        """Test connection errors surface as FetchFailure."""
        mock_connect.side_effect = psycopg2.OperationalError("could not connect")

        with pytest.raises(FetchFailure) as exc_info:
            catalog.fetch(CatalogQuery())

        assert exc_info.value.backend == "postgres"
        assert isinstance(exc_info.value.__cause__, psycopg2.OperationalError)

    @patch("catalog_search.fetchers.postgres.psycopg2.connect")
    def test_query_error_closes_connection(self, mock_connect, catalog):
        """Test the connection is closed when a query fails."""
        cursor = mock_connect.return_value.cursor.return_value.__enter__.return_value
        cursor.execute.side_effect = psycopg2.ProgrammingError("relation does not exist")

        with pytest.raises(FetchFailure):
            catalog.fetch(CatalogQuery())

        mock_connect.return_value.close.assert_called_once()

    @patch("catalog_search.fetchers.postgres.psycopg2.connect")
    def test_list_categories(self, mock_connect, catalog):
        """Test category rows are grouped by category."""
        cursor = mock_connect.return_value.cursor.return_value.__enter__.return_value
        cursor.fetchall.return_value = [
            ("Bebidas", "Agua"),
            ("Despensa", "Aceites"),
            ("Despensa", "Legumbres"),
            ("Vacía", None),
        ]

        categories = catalog.list_categories()

        assert categories == [
            CategoryInfo(name="Bebidas", subcategories=["Agua"]),
            CategoryInfo(name="Despensa", subcategories=["Aceites", "Legumbres"]),
            CategoryInfo(name="Vacía", subcategories=[]),
        ]


class FlakyFetcher:
    """Fails a fixed number of times before answering."""

    def __init__(self, failures, error=None):
        self.failures = failures
        self.error = error or FetchFailure("temporarily unavailable")
        self.calls = 0

    def fetch(self, query):
        self.calls += 1
        if self.calls <= self.failures:
            raise self.error
        return [CatalogRecord(id=1, name="Leche")]


class TestRetryingFetcher:
    """Test cases for the RetryingFetcher class."""

    def test_recovers_from_transient_failures(self):
        """Test a fetch succeeds once the store recovers."""
        inner = FlakyFetcher(failures=2)
        fetcher = RetryingFetcher(inner, max_attempts=3, backoff=0)

        records = fetcher.fetch(CatalogQuery())

        assert names(records) == ["Leche"]
        assert inner.calls == 3

    def test_gives_up_after_max_attempts(self):
        """Test the last failure is raised when every attempt fails."""
        inner = FlakyFetcher(failures=10)
        fetcher = RetryingFetcher(inner, max_attempts=3, backoff=0)

        with pytest.raises(FetchFailure):
            fetcher.fetch(CatalogQuery())

        assert inner.calls == 3

    def test_other_errors_are_not_retried(self):
        """Test only FetchFailure triggers a retry."""
        inner = FlakyFetcher(failures=10, error=ValueError("bad row"))
        fetcher = RetryingFetcher(inner, max_attempts=3, backoff=0)

        with pytest.raises(ValueError):
            fetcher.fetch(CatalogQuery())

        assert inner.calls == 1

    def test_list_categories_delegates(self):
        """Test category listing passes through to capable stores."""
        catalog = InMemoryCatalog.from_dicts([{"id": 1, "name": "Agua", "category": "Bebidas"}])

        assert [c.name for c in RetryingFetcher(catalog).list_categories()] == ["Bebidas"]
        assert RetryingFetcher(FlakyFetcher(failures=0)).list_categories() == []
