"""Integration tests for the API endpoints."""

import pytest
from fastapi.testclient import TestClient
from catalog_search.core.exceptions import FetchFailure
from catalog_search.fetchers.memory import InMemoryCatalog
from catalog_search.fetchers.retry import RetryingFetcher
from catalog_search.main import DEFAULT_CATALOG_FILE, create_app


class BrokenFetcher:
    """A catalog store that is always down."""

    def fetch(self, query):
        raise FetchFailure("connection refused", backend="postgres")


class CountingBrokenFetcher:
    """A failing store that counts how often it is called."""

    def __init__(self):
        self.calls = 0

    def fetch(self, query):
        self.calls += 1
        raise FetchFailure("connection refused", backend="postgres")


class TestAPI:
    """Integration tests for API endpoints."""

    @pytest.fixture
    def client(self):
        """Create a test client over the bundled sample catalog."""
        catalog = InMemoryCatalog.from_json_file(DEFAULT_CATALOG_FILE)
        with TestClient(create_app(fetcher=catalog)) as client:
            yield client

    @pytest.fixture
    def broken_client(self):
        """Create a test client whose catalog always fails."""
        with TestClient(create_app(fetcher=BrokenFetcher())) as client:
            yield client

    def test_root_endpoint(self, client):
        """Test the root endpoint."""
        response = client.get("/")
        assert response.status_code == 200

        data = response.json()
        assert data["name"] == "Catalog Search"
        assert data["version"] == "1.0.0"
        assert data["status"] == "running"

    def test_api_info_endpoint(self, client):
        """Test the API info endpoint."""
        response = client.get("/api")
        assert response.status_code == 200

        data = response.json()
        assert "endpoints" in data
        assert "features" in data
        assert data["search"]["page_size"] == 24

    def test_search_single_token(self, client):
        """Test a single-word search ranks starts-with matches alphabetically."""
        response = client.get("/api/v1/search", params={"q": "leche"})
        assert response.status_code == 200

        data = response.json()
        assert data["total_results"] == 3
        assert [r["product"]["name"] for r in data["results"]] == [
            "Leche entera", "Leche semidesnatada", "Leche sin lactosa"
        ]
        assert all(r["match_kind"] == "starts-with" for r in data["results"])
        assert data["typo_detected"] is False
        assert data["suggestions"] is None

    def test_search_multi_token(self, client):
        """Test a multi-word query requires every word."""
        response = client.get("/api/v1/search", params={"q": "aceite oliva"})
        assert response.status_code == 200

        data = response.json()
        assert data["tokens"] == ["aceite", "oliva"]
        assert [r["product"]["id"] for r in data["results"]] == [2, 1, 15]

    def test_search_accents_and_case(self, client):
        """Test accent and case insensitive search."""
        response = client.get("/api/v1/search", params={"q": "  AZUCAR  "})
        assert response.status_code == 200

        data = response.json()
        assert data["normalized_query"] == "azucar"
        assert [r["product"]["id"] for r in data["results"]] == [7, 8]

    def test_search_with_typo(self, client):
        """Test a misspelled query returns fuzzy results and suggestions."""
        response = client.get("/api/v1/search", params={"q": "tomatez"})
        assert response.status_code == 200

        data = response.json()
        names = [r["product"]["name"] for r in data["results"]]
        assert data["typo_detected"] is True
        assert data["fuzzy_applied"] is True
        assert "Tomates" in names
        assert "Tomate frito" in names
        assert data["suggestions"] == ["tomates"]

    def test_search_without_suggestions(self, client):
        """Test suggestions can be turned off."""
        response = client.get(
            "/api/v1/search", params={"q": "tomatez", "include_suggestions": "false"}
        )
        assert response.status_code == 200
        assert response.json()["suggestions"] is None

    def test_search_no_results(self, client):
        """Test a query matching nothing."""
        response = client.get("/api/v1/search", params={"q": "qwxzv"})
        assert response.status_code == 200

        data = response.json()
        assert data["results"] == []
        assert data["total_results"] == 0
        assert data["page"] == 1

    def test_empty_query_lists_catalog(self, client):
        """Test an empty query pages through the whole catalog."""
        first = client.get("/api/v1/search").json()
        second = client.get("/api/v1/search", params={"page": 2}).json()

        assert first["total_results"] == 42
        assert first["total_pages"] == 2
        assert len(first["results"]) == 24
        assert first["results"][0]["product"]["id"] == 3
        assert first["has_next"] is True
        assert len(second["results"]) == 18
        assert second["has_next"] is False

        first_ids = {r["product"]["id"] for r in first["results"]}
        second_ids = {r["product"]["id"] for r in second["results"]}
        assert not first_ids & second_ids
        assert len(first_ids | second_ids) == 42

    def test_out_of_range_page_is_clamped(self, client):
        """Test requesting past the last page returns the last page."""
        response = client.get("/api/v1/search", params={"page": 5})
        assert response.status_code == 200
        assert response.json()["page"] == 2

    def test_price_ordering(self, client):
        """Test listing by ascending price."""
        response = client.get("/api/v1/search", params={"order": "price_asc"})
        assert response.status_code == 200
        assert response.json()["results"][0]["product"]["name"] == "Agua mineral"

    def test_category_filter(self, client):
        """Test filtering a listing by category."""
        response = client.get("/api/v1/search", params={"category": "Pescado"})
        assert response.status_code == 200

        data = response.json()
        assert data["total_results"] == 2
        assert {r["product"]["category"] for r in data["results"]} == {"Pescado"}

    def test_invalid_price_range(self, client):
        """Test price_min above price_max is rejected."""
        response = client.get("/api/v1/search", params={"price_min": 5, "price_max": 1})
        assert response.status_code == 422

    def test_query_too_long(self, client):
        """Test queries over max_query_length are rejected on every search route."""
        long_query = "a" * 101

        assert client.get("/api/v1/search", params={"q": long_query}).status_code == 400
        assert client.post("/api/v1/search", json={"query": long_query}).status_code == 400
        assert client.get(f"/api/v1/suggestions/{long_query}").status_code == 400

    def test_query_at_max_length(self, client):
        """Test a query of exactly max_query_length is accepted."""
        response = client.get("/api/v1/search", params={"q": "a" * 100})
        assert response.status_code == 200
        assert response.json()["total_results"] == 0

    def test_invalid_order(self, client):
        """Test unknown orderings are rejected."""
        response = client.get("/api/v1/search", params={"order": "random"})
        assert response.status_code == 422

    def test_sequence_is_echoed(self, client):
        """Test the caller's sequence number is returned."""
        response = client.get("/api/v1/search", params={"q": "leche", "seq": 7})
        assert response.status_code == 200
        assert response.json()["sequence"] == 7

    def test_post_search(self, client):
        """Test search with a request body."""
        response = client.post("/api/v1/search", json={"query": "leche", "page": 1})
        assert response.status_code == 200

        data = response.json()
        assert data["query"] == "leche"
        assert data["total_results"] == 3

    def test_suggestions_endpoint(self, client):
        """Test the suggestions endpoint."""
        response = client.get("/api/v1/suggestions/tomatez")
        assert response.status_code == 200
        assert response.json() == ["tomates"]

    def test_suggestions_limit_validation(self, client):
        """Test max_suggestions bounds."""
        response = client.get("/api/v1/suggestions/tomatez", params={"max_suggestions": 0})
        assert response.status_code == 422

    def test_categories(self, client):
        """Test listing categories."""
        response = client.get("/api/v1/categories")
        assert response.status_code == 200

        data = response.json()
        assert data["total"] == 9
        assert data["categories"][0]["name"] == "Bebidas"

    def test_health_check(self, client):
        """Test health check endpoint."""
        response = client.get("/api/v1/health")
        assert response.status_code == 200

        data = response.json()
        assert data["status"] == "healthy"
        assert data["dependencies"]["catalog"] == "healthy"

    def test_readiness_and_liveness(self, client):
        """Test readiness and liveness probes."""
        assert client.get("/api/v1/health/ready").status_code == 200
        assert client.get("/api/v1/health/live").json()["status"] == "alive"

    def test_status_endpoint(self, client):
        """Test service status endpoint."""
        response = client.get("/api/v1/status")
        assert response.status_code == 200

        data = response.json()
        assert data["configuration"]["page_size"] == 24
        assert "statistics" in data

    def test_metrics(self, client):
        """Test metrics reflect served queries."""
        client.get("/api/v1/search", params={"q": "leche"})
        client.get("/api/v1/search", params={"q": "tomatez"})

        response = client.get("/api/v1/metrics")
        assert response.status_code == 200

        data = response.json()
        assert data["total_queries"] == 2
        assert data["fuzzy_fallback_rate"] == 0.5
        assert data["error_rate"] == 0.0
        assert data["memory_usage_mb"] > 0

    def test_detailed_metrics(self, client):
        """Test detailed metrics endpoint."""
        response = client.get("/api/v1/metrics/detailed")
        assert response.status_code == 200

        data = response.json()
        assert "search" in data
        assert "system" in data

    def test_catalog_failure(self, broken_client):
        """Test a failing catalog yields 502 and no partial results."""
        response = broken_client.get("/api/v1/search", params={"q": "leche"})
        assert response.status_code == 502

        data = response.json()
        assert data["error"] == "Catalog Unavailable"
        assert "results" not in data

        metrics = broken_client.get("/api/v1/metrics").json()
        assert metrics["error_rate"] == 1.0

    def test_health_with_failing_catalog(self, broken_client):
        """Test health reports degraded when the catalog is down."""
        health = broken_client.get("/api/v1/health")
        ready = broken_client.get("/api/v1/health/ready")

        assert health.status_code == 200
        assert health.json()["status"] == "degraded"
        assert ready.status_code == 503

    def test_categories_unsupported(self, broken_client):
        """Test stores without category listing return none."""
        response = broken_client.get("/api/v1/categories")
        assert response.status_code == 200
        assert response.json() == {"categories": [], "total": 0}

    def test_health_check_skips_retry_backoff(self):
        """Test health probes hit the store once instead of waiting out retries."""
        store = CountingBrokenFetcher()
        fetcher = RetryingFetcher(store, max_attempts=3, backoff=10.0)

        with TestClient(create_app(fetcher=fetcher)) as client:
            health = client.get("/api/v1/health")
            ready = client.get("/api/v1/health/ready")

        assert health.json()["dependencies"]["catalog"] == "unhealthy"
        assert ready.status_code == 503
        assert store.calls == 2
