import pytest
from fastapi.testclient import TestClient

from app.core.config import get_settings
from app.main import app

client = TestClient(app)


@pytest.fixture(autouse=True)
def use_memory_store(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DATA_STORE", "memory")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def test_health_endpoint_returns_expected_shape() -> None:
    response = client.get("/api/health")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert data["service"] == "Sales Call Analytics API"
    assert data["data_store"] == "memory"
    assert "version" in data
    assert "timestamp" in data


def test_health_endpoint_is_not_versioned() -> None:
    response = client.get("/api/v1/health")

    assert response.status_code == 404
