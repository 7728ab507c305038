from __future__ import annotations

import json
import logging
from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from accessor import audit
from accessor.core.auth import AuthUser, get_current_user
from accessor.core.config import get_settings
from accessor.core.database import Base, get_db
from accessor.logging import JsonLogFormatter
from accessor.main import app
from accessor.platform.security.policies import InMemoryPolicyBackend, set_policy_backend


ROLES = [
    "system.metrics.read",
    "ProtectedSetting__c.read",
    "ProtectedSetting__c.update",
    "ProtectedSetting__c.field.read:*",
    "ProtectedSetting__c.field.update:Name",
    "ProtectedSetting__c.field.update:SetupOwnerId",
]


@pytest.fixture()
def db_session() -> Generator[Session, None, None]:
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def configure_env(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    monkeypatch.setenv("METRICS_ENABLED", "true")
    get_settings.cache_clear()
    audit.audit_entries.clear()
    set_policy_backend(InMemoryPolicyBackend(default_allow=False))
    yield
    get_settings.cache_clear()
    audit.audit_entries.clear()
    set_policy_backend(InMemoryPolicyBackend(default_allow=True))


@pytest.fixture()
def client(db_session: Session) -> Generator[TestClient, None, None]:
    def override_get_db() -> Generator[Session, None, None]:
        yield db_session

    def override_get_current_user() -> AuthUser:
        return AuthUser(sub="observer-1", roles=ROLES)

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_user] = override_get_current_user
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def _deny_update(client: TestClient, correlation_id: str) -> None:
    assert client.post("/api/access/hierarchy-setting/populate").status_code == 201
    response = client.post(
        "/api/access/hierarchy-setting",
        json={"access_type": "Update"},
        headers={"X-Correlation-Id": correlation_id},
    )
    assert response.status_code == 403


def test_correlation_id_is_echoed_or_generated(client: TestClient) -> None:
    echoed = client.get("/health", headers={"X-Correlation-Id": "corr-echo"})
    generated = client.get("/health")

    assert echoed.headers["x-correlation-id"] == "corr-echo"
    assert generated.headers["x-correlation-id"]
    assert generated.headers["x-correlation-id"] != "corr-echo"


def test_malformed_correlation_id_is_replaced(client: TestClient) -> None:
    free_text = client.get("/health", headers={"X-Correlation-Id": "not a token; drop table"})
    oversized = client.get("/health", headers={"X-Correlation-Id": "c" * 129})

    assert free_text.headers["x-correlation-id"] != "not a token; drop table"
    assert len(oversized.headers["x-correlation-id"]) == 36


def test_denial_audit_carries_request_correlation_id(client: TestClient) -> None:
    _deny_update(client, "corr-audit")

    denied = [entry for entry in audit.audit_entries if entry["action"] == "access.denied"]
    assert denied
    assert denied[-1]["correlation_id"] == "corr-audit"
    assert denied[-1]["actor_user_id"] == "observer-1"


def test_logs_include_correlation_id_and_access_fields(client: TestClient, caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.INFO)

    _deny_update(client, "abc-123")

    request_records = [
        record for record in caplog.records if record.name == "accessor.request" and record.getMessage() == "http.request"
    ]
    assert any(
        getattr(record, "correlation_id", None) == "abc-123"
        and getattr(record, "method", None) == "POST"
        and getattr(record, "status_code", None) == 403
        and isinstance(getattr(record, "duration_ms", None), float)
        for record in request_records
    )

    denial_records = [record for record in caplog.records if record.name == "accessor.security"]
    assert any(
        getattr(record, "correlation_id", None) == "abc-123"
        and getattr(record, "denied_fields", None) == "Value__c"
        for record in denial_records
    )


def test_json_formatter_keeps_known_fields_only() -> None:
    record = logging.makeLogRecord(
        {
            "name": "accessor.security",
            "levelname": "WARNING",
            "msg": "access.denied",
            "correlation_id": "corr-json",
            "access_type": "Update",
            "object_name": "ProtectedSetting__c",
            "denied_fields": "Value__c",
            "unrelated": "dropped",
        }
    )

    payload = json.loads(JsonLogFormatter().format(record))

    assert payload["msg"] == "access.denied"
    assert payload["correlation_id"] == "corr-json"
    assert payload["fields"] == {
        "access_type": "Update",
        "object_name": "ProtectedSetting__c",
        "denied_fields": "Value__c",
    }


def test_metrics_endpoint_exposes_access_metrics(client: TestClient) -> None:
    _deny_update(client, "corr-metrics")
    assert client.get("/api/access/report").status_code == 200

    metrics = client.get("/metrics")
    assert metrics.status_code == 200
    body = metrics.text

    assert "http_requests_total" in body
    assert "access_evaluations_total" in body
    assert 'outcome="denied"' in body
    assert "access_denied_fields_count" in body
    assert 'object_name="ProtectedSetting__c"' in body
    assert "access_reports_total" in body


def test_metrics_endpoint_hidden_when_disabled(client: TestClient, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("METRICS_ENABLED", "false")
    get_settings.cache_clear()

    assert client.get("/metrics").status_code == 404


def test_audit_trail_keeps_only_recent_entries() -> None:
    for index in range(audit.AUDIT_TRAIL_LIMIT + 5):
        audit.record("user-1", "security.fls", f"Object{index}__c", "access.denied", None, correlation_id="corr-cap")

    assert len(audit.audit_entries) == audit.AUDIT_TRAIL_LIMIT
    assert audit.audit_entries[0]["entity_id"] == "Object5__c"
    assert audit.audit_entries[-1]["entity_id"] == f"Object{audit.AUDIT_TRAIL_LIMIT + 4}__c"
