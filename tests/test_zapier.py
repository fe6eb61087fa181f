from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from app.core.config import get_settings
from app.main import app
from app.services.analytics_store import clear_analytics_store_cache
from app.services.notification_store import (
    clear_notification_store_cache,
    create_notification_store,
)
from app.services.organization_store import clear_organization_store_cache
from app.services.sales_call_store import clear_sales_call_store_cache, create_sales_call_store

client = TestClient(app)


def _clear_caches() -> None:
    get_settings.cache_clear()
    clear_sales_call_store_cache()
    clear_analytics_store_cache()
    clear_organization_store_cache()
    clear_notification_store_cache()


@pytest.fixture(autouse=True)
def reset_stores(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DATA_STORE", "memory")
    monkeypatch.delenv("ZAPIER_WEBHOOK_SECRET", raising=False)
    _clear_caches()
    yield
    _clear_caches()


def _seed_sales_call(**overrides: object) -> str:
    record = {
        "organization_id": None,
        "customer_name": "Unknown Customer",
        "status": "completed",
    }
    record.update(overrides)
    created = create_sales_call_store(get_settings()).create(record)
    return created["_id"]


def test_connection_test_describes_ingestion_endpoint() -> None:
    response = client.get("/api/zapier/test/external-analysis")

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["endpoint"] == "/api/webhooks/external-analysis"
    assert body["method"] == "POST"
    assert "sentiment_analysis" in body["expectedData"]
    assert "salesCallId" in body["expectedData"]
    assert "timestamp" in body


def test_sales_call_trigger_defaults_to_completed_calls() -> None:
    completed_id = _seed_sales_call()
    _seed_sales_call(status="scheduled")

    response = client.get("/api/zapier/triggers/sales-calls")

    assert response.status_code == 200
    assert [item["id"] for item in response.json()["items"]] == [completed_id]


def test_sales_call_trigger_filters_by_organization_and_status() -> None:
    organization_id = str(uuid4())
    scheduled_id = _seed_sales_call(organization_id=organization_id, status="scheduled")
    _seed_sales_call(organization_id=organization_id)
    _seed_sales_call(status="scheduled")

    response = client.get(
        "/api/zapier/triggers/sales-calls",
        params={"organizationId": organization_id, "status": "scheduled"},
    )

    assert response.status_code == 200
    assert [item["id"] for item in response.json()["items"]] == [scheduled_id]


def test_sales_call_trigger_respects_limit() -> None:
    for _ in range(3):
        _seed_sales_call()

    response = client.get("/api/zapier/triggers/sales-calls", params={"limit": 2})

    assert response.status_code == 200
    assert len(response.json()["items"]) == 2


def test_sales_call_trigger_rejects_unknown_status() -> None:
    response = client.get("/api/zapier/triggers/sales-calls", params={"status": "archived"})

    assert response.status_code == 422


def test_send_notification_persists_record() -> None:
    user_id = str(uuid4())

    response = client.post(
        "/api/zapier/actions/send-notification",
        json={
            "userId": user_id,
            "title": "  Follow up with Acme  ",
            "message": "Customer asked for a revised quote.",
            "priority": "high",
            "type": "reminder",
        },
    )

    assert response.status_code == 201
    body = response.json()
    assert body["title"] == "Follow up with Acme"
    assert body["priority"] == "high"
    assert body["type"] == "reminder"
    assert body["user_id"] == user_id
    assert body["is_read"] is False

    stored = create_notification_store(get_settings()).list_recent(limit=10, user_id=user_id)
    assert [item["_id"] for item in stored] == [body["id"]]


def test_send_notification_defaults_to_system_alert() -> None:
    response = client.post(
        "/api/zapier/actions/send-notification",
        json={"title": "Zap check", "message": "Connection verified."},
    )

    assert response.status_code == 201
    assert response.json()["type"] == "system_alert"
    assert response.json()["priority"] == "normal"


def test_send_notification_requires_title() -> None:
    response = client.post(
        "/api/zapier/actions/send-notification",
        json={"message": "No title here."},
    )

    assert response.status_code == 422


def test_create_sales_call_action_schedules_call() -> None:
    organization_id = str(uuid4())
    representative_id = str(uuid4())

    response = client.post(
        "/api/zapier/actions/create-sales-call",
        json={
            "customerName": "  Dana Ortiz ",
            "customerEmail": "Dana@Example.com",
            "customerPhone": "+1 555 0100",
            "appointmentDate": "2026-03-02T15:30:00",
            "salesRepresentativeId": representative_id,
            "organizationId": organization_id,
            "notes": "Interested in annual plan.",
        },
    )

    assert response.status_code == 201
    body = response.json()
    assert body["status"] == "scheduled"
    assert body["customer_name"] == "Dana Ortiz"
    assert body["customer_email"] == "dana@example.com"
    assert body["customer_phone"] == "+1 555 0100"
    assert body["notes"] == "Interested in annual plan."
    assert body["organization_id"] == organization_id
    assert body["sales_representative_id"] == representative_id
    assert body["appointment_date"].startswith("2026-03-02T15:30:00")

    stored = create_sales_call_store(get_settings()).get_by_id(body["id"])
    assert stored["status"] == "scheduled"

    triggered = client.get(
        "/api/zapier/triggers/sales-calls",
        params={"organizationId": organization_id, "status": "scheduled"},
    )
    assert [item["id"] for item in triggered.json()["items"]] == [body["id"]]


def test_create_sales_call_action_requires_customer_and_appointment() -> None:
    missing_appointment = client.post(
        "/api/zapier/actions/create-sales-call",
        json={"customerName": "Dana Ortiz"},
    )
    missing_customer = client.post(
        "/api/zapier/actions/create-sales-call",
        json={"appointmentDate": "2026-03-02T15:30:00Z"},
    )

    assert missing_appointment.status_code == 422
    assert missing_customer.status_code == 422


def test_sales_call_event_webhook_acknowledges_event() -> None:
    sales_call_id = str(uuid4())

    response = client.post(
        "/api/zapier/webhook/sales-call-completed",
        json={
            "salesCallId": sales_call_id,
            "organizationId": str(uuid4()),
            "eventType": "analyzed",
            "data": {"source": "crm"},
        },
    )

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["message"] == "Webhook processed successfully"
    assert body["data"]["salesCallId"] == sales_call_id
    assert body["data"]["eventType"] == "analyzed"
    assert "processedAt" in body["data"]


@pytest.mark.parametrize(
    "payload",
    [
        {"salesCallId": str(uuid4()), "organizationId": str(uuid4()), "eventType": "archived"},
        {"salesCallId": "call-1", "organizationId": str(uuid4()), "eventType": "completed"},
        {
            "salesCallId": str(uuid4()),
            "organizationId": str(uuid4()),
            "eventType": "completed",
            "data": "not-an-object",
        },
    ],
)
def test_sales_call_event_webhook_rejects_invalid_events(payload: dict[str, object]) -> None:
    response = client.post("/api/zapier/webhook/sales-call-completed", json=payload)

    assert response.status_code == 422


def _post_performance_alert(**overrides: object):
    payload: dict[str, object] = {
        "userId": str(uuid4()),
        "organizationId": str(uuid4()),
        "alertType": "low_performance",
        "metrics": {"talk_ratio": 0.82},
        "threshold": "0.7",
    }
    payload.update(overrides)
    return client.post("/api/zapier/webhook/performance-alert", json=payload)


def test_performance_alert_webhook_creates_high_priority_notification() -> None:
    user_id = str(uuid4())

    response = _post_performance_alert(userId=user_id)

    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "Performance alert processed successfully"
    assert body["data"]["userId"] == user_id
    assert body["data"]["alertType"] == "low_performance"

    stored = create_notification_store(get_settings()).list_recent(limit=10, user_id=user_id)
    assert len(stored) == 1
    assert stored[0]["_id"] == body["data"]["notificationId"]
    assert stored[0]["type"] == "performance_alert"
    assert stored[0]["priority"] == "high"
    assert stored[0]["title"] == "Performance Alert: LOW PERFORMANCE"
    assert stored[0]["data"]["metrics"] == {"talk_ratio": 0.82}
    assert stored[0]["data"]["threshold"] == 0.7


@pytest.mark.parametrize(
    "overrides",
    [
        {"alertType": "late_arrival"},
        {"metrics": "not-an-object"},
        {"metrics": None},
        {"userId": "rep-7"},
        {"threshold": "high"},
    ],
)
def test_performance_alert_webhook_rejects_invalid_alerts(overrides: dict[str, object]) -> None:
    response = _post_performance_alert(**overrides)

    assert response.status_code == 422


def test_performance_alert_trigger_lists_unread_alerts_newest_first() -> None:
    organization_id = str(uuid4())
    first = _post_performance_alert(organizationId=organization_id).json()["data"]
    second = _post_performance_alert(
        organizationId=organization_id,
        alertType="script_violation",
    ).json()["data"]
    _post_performance_alert()
    client.post(
        "/api/zapier/actions/send-notification",
        json={"organizationId": organization_id, "title": "Zap check", "message": "Not an alert."},
    )

    response = client.get(
        "/api/zapier/triggers/performance-alerts",
        params={"organizationId": organization_id},
    )

    assert response.status_code == 200
    items = response.json()["items"]
    assert [item["id"] for item in items] == [second["notificationId"], first["notificationId"]]
    assert items[0]["alert_type"] == "script_violation"
    assert items[1]["metrics"] == {"talk_ratio": 0.82}
    assert items[1]["threshold"] == 0.7
    assert items[1]["priority"] == "high"


def test_performance_alert_trigger_filters_by_alert_type_and_limit() -> None:
    organization_id = str(uuid4())
    for _ in range(3):
        _post_performance_alert(organizationId=organization_id)
    _post_performance_alert(organizationId=organization_id, alertType="high_performance")

    filtered = client.get(
        "/api/zapier/triggers/performance-alerts",
        params={"organizationId": organization_id, "alertType": "high_performance"},
    )
    limited = client.get(
        "/api/zapier/triggers/performance-alerts",
        params={"organizationId": organization_id, "limit": 2},
    )

    assert [item["alert_type"] for item in filtered.json()["items"]] == ["high_performance"]
    assert len(limited.json()["items"]) == 2


def test_performance_alert_trigger_skips_read_alerts() -> None:
    store = create_notification_store(get_settings())
    store.create(
        {
            "organization_id": None,
            "user_id": None,
            "type": "performance_alert",
            "title": "Performance Alert: LOW PERFORMANCE",
            "message": "Already handled.",
            "priority": "high",
            "data": {"alert_type": "low_performance"},
            "is_read": True,
        },
    )

    response = client.get("/api/zapier/triggers/performance-alerts")

    assert response.status_code == 200
    assert response.json()["items"] == []


def test_organization_search_matches_names_case_insensitively() -> None:
    acme = client.post("/api/organizations", json={"name": "Acme Sales", "type": "company"}).json()
    client.post("/api/organizations", json={"name": "Globex"})
    beta = client.post("/api/organizations", json={"name": "acme labs", "type": "agency"}).json()

    response = client.get("/api/zapier/search/organizations", params={"query": "ACME"})

    assert response.status_code == 200
    items = response.json()["items"]
    assert [item["value"] for item in items] == [beta["id"], acme["id"]]
    assert items[0]["label"] == "acme labs (agency)"
    assert items[1] == {
        "id": acme["id"],
        "label": "Acme Sales (company)",
        "value": acme["id"],
        "name": "Acme Sales",
        "type": "company",
    }


def test_organization_search_without_query_lists_all_by_name() -> None:
    client.post("/api/organizations", json={"name": "Globex"})
    client.post("/api/organizations", json={"name": "Acme Sales"})

    response = client.get("/api/zapier/search/organizations")

    assert [item["name"] for item in response.json()["items"]] == ["Acme Sales", "Globex"]
