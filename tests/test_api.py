"""
Tests for FastAPI backend.

Run with: pytest tests/test_api.py -v
"""

import pytest
import sys
import os

# Add paths for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'web', 'backend'))
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

pytest.importorskip("fastapi")


SCENARIO = {
    "airCooling": {"rackCount": 100, "powerPerRackKw": 12},
    "immersionCooling": {"targetPowerKw": 1200, "coolantType": "synthetic"},
    "financial": {"analysisYears": 5, "discountRate": 0.08, "currency": "USD", "region": "US"},
}


@pytest.fixture
def client():
    from fastapi.testclient import TestClient
    import main

    main.results.clear()
    return TestClient(main.app)


class TestAPIModels:
    """Test Pydantic models for API."""

    def test_optimize_request_bounds(self):
        from main import OptimizeRequest
        from pydantic import ValidationError

        assert OptimizeRequest(target_power_kw=1200).target_power_kw == 1200
        with pytest.raises(ValidationError):
            OptimizeRequest(target_power_kw=0)
        with pytest.raises(ValidationError):
            OptimizeRequest(target_power_kw=60_000)


class TestHealth:
    """Test service endpoints."""

    def test_root(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert "/api/calculate" in response.text

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200

        data = response.json()
        assert data["status"] == "healthy"
        assert data["cached_results"] == 0
        assert "version" in data


class TestCalculateEndpoint:
    """Test POST /api/calculate."""

    def test_calculate(self, client):
        response = client.post("/api/calculate", json=SCENARIO)
        assert response.status_code == 200

        data = response.json()
        assert data["summary"]["total_capex_savings"] > 0
        assert len(data["breakdown"]["opex_annual"]) == 5
        assert data["metadata"]["currency"] == "USD"

    def test_result_is_cached(self, client):
        first = client.post("/api/calculate", json=SCENARIO).json()
        second = client.post("/api/calculate", json=SCENARIO).json()

        assert first == second
        assert client.get("/health").json()["cached_results"] == 1

    def test_cache_evicts_least_recently_used(self, client, monkeypatch):
        import main

        monkeypatch.setattr(main, "MAX_CACHED_RESULTS", 2)

        def post(rack_count):
            raw = {**SCENARIO, "airCooling": {"rackCount": rack_count, "powerPerRackKw": 12}}
            return client.post("/api/calculate", json=raw).json()["metadata"]["configuration_hash"]

        first = post(100)
        second = post(101)
        post(100)  # touch first
        third = post(102)

        assert list(main.results) == [first, third]
        assert second not in main.results
        assert client.get(f"/api/report/html/{second}").status_code == 404
        assert client.get("/health").json()["cached_results"] == 2

    def test_validation_errors_are_structured(self, client):
        bad = {**SCENARIO, "airCooling": {"rackCount": 0, "powerPerRackKw": 12}}
        response = client.post("/api/calculate", json=bad)
        assert response.status_code == 422

        detail = response.json()["detail"]
        assert detail["catalog_errors"] == []
        assert detail["validation_errors"][0]["field"] == "air_cooling.rack_count"
        assert detail["validation_errors"][0]["code"] == "range"

    def test_catalog_errors_are_structured(self, client):
        bad = {**SCENARIO, "immersionCooling": {
            "tankConfigurations": [{"size": "7U", "quantity": 1, "powerDensityKwPerU": 2.0}],
        }}
        response = client.post("/api/calculate", json=bad)
        assert response.status_code == 422

        detail = response.json()["detail"]
        assert detail["validation_errors"] == []
        assert detail["catalog_errors"][0]["kind"] == "tank_size"
        assert detail["catalog_errors"][0]["key"] == "7U"


class TestValidateEndpoint:
    """Test POST /api/validate."""

    def test_valid(self, client):
        data = client.post("/api/validate", json=SCENARIO).json()

        assert data["valid"] is True
        assert data["errors"] == []
        assert data["catalog_errors"] == []

    def test_invalid(self, client):
        bad = {**SCENARIO, "financial": {"analysisYears": 11}}
        data = client.post("/api/validate", json=bad).json()

        assert data["valid"] is False
        assert data["errors"][0]["field"] == "financial.analysis_years"


class TestOptimizeEndpoint:
    """Test POST /api/optimize."""

    def test_optimize(self, client):
        response = client.post("/api/optimize", json={"target_power_kw": 1200})
        assert response.status_code == 200

        data = response.json()
        assert data["total_tanks"] == 27
        assert data["total_power_kw"] >= 1200
        assert [a["size"] for a in data["allocations"]] == ["23U", "2U"]

    def test_optimize_out_of_range(self, client):
        response = client.post("/api/optimize", json={"target_power_kw": -1})
        assert response.status_code == 422


class TestCatalogEndpoint:
    """Test GET /api/catalog."""

    def test_catalog(self, client):
        data = client.get("/api/catalog").json()

        assert "23U" in data["tanks"]
        assert data["price_lists"]["USD"]["coolant_per_liter"] == 25.0


class TestReportEndpoint:
    """Test GET /api/report/html/{config_hash}."""

    def test_report_not_found(self, client):
        response = client.get("/api/report/html/unknown")
        assert response.status_code == 404

    def test_report_for_cached_result(self, client):
        data = client.post("/api/calculate", json=SCENARIO).json()
        config_hash = data["metadata"]["configuration_hash"]

        response = client.get(f"/api/report/html/{config_hash}")
        assert response.status_code == 200
        assert "Executive Summary" in response.text
