"""Tests for the app factory, health endpoint and API key middleware."""

import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..'))

import asyncio
from datetime import datetime, timezone

from fastapi.testclient import TestClient

from data_audit.api import health
from data_audit.api.health import HealthStatus, health_check
from data_audit.config import VERSION, Settings
from data_audit.main import create_app


def _settings(tmp_path, **overrides):
    values = dict(
        database_url=f"sqlite:///{tmp_path / 'data' / 'api.db'}",
        audit_log_path=str(tmp_path / "remediation-audit.json"),
        _env_file=None,
    )
    values.update(overrides)
    return Settings(**values)


# === HealthStatus Model Tests ===


def test_health_status_model():
    status = HealthStatus(
        status="healthy",
        version=VERSION,
        checks={"database": {"status": "ok", "detail": "sqlite"}},
        timestamp=datetime.now(timezone.utc),
    )
    assert status.status == "healthy"
    assert "database" in status.checks
    print("  PASS: health_status_model")


def test_health_without_engine_is_unhealthy(monkeypatch):
    monkeypatch.setattr(health, "_engine", None)
    monkeypatch.setattr(health, "_settings", None)
    result = asyncio.run(health_check())
    assert isinstance(result, HealthStatus)
    assert result.status == "unhealthy"
    assert result.checks["database"]["status"] == "error"
    print("  PASS: health_without_engine_is_unhealthy")


# === App factory ===


def test_app_starts_and_reports_healthy(tmp_path):
    app = create_app(_settings(tmp_path))
    with TestClient(app) as client:
        root = client.get("/")
        assert root.status_code == 200
        assert root.json() == {"name": "data-audit", "version": VERSION, "status": "running"}

        resp = client.get("/health")
        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "healthy"
        assert data["checks"]["database"] == {"status": "ok", "detail": "sqlite"}
        assert data["checks"]["audit_log"]["status"] == "ok"

        audit = client.get("/api/v1/admin/data-audit", params={"operation": "quick"})
        assert audit.status_code == 200
        assert audit.json()["report"]["overall_level"] == "HEALTHY"

    assert (tmp_path / "data" / "api.db").exists()
    print("  PASS: app_starts_and_reports_healthy")


def test_missing_audit_dir_is_degraded(tmp_path):
    settings = _settings(tmp_path, audit_log_path=str(tmp_path / "absent" / "audit.json"))
    with TestClient(create_app(settings)) as client:
        data = client.get("/health").json()
    assert data["status"] == "degraded"
    assert data["checks"]["audit_log"]["status"] == "warning"


# === API key middleware ===


def test_api_key_enforced(tmp_path):
    app = create_app(_settings(tmp_path, data_audit_api_key="s3cret"))
    url = "/api/v1/admin/data-audit/runs"
    with TestClient(app) as client:
        assert client.get(url).status_code == 401
        assert client.get(url, headers={"Authorization": "Token s3cret"}).status_code == 401
        assert client.get(url, headers={"Authorization": "Bearer wrong"}).status_code == 403
        assert client.get(url, headers={"Authorization": "Bearer s3cret"}).status_code == 200
        # Exempt paths stay open
        assert client.get("/health").status_code == 200
        assert client.get("/").status_code == 200
    print("  PASS: api_key_enforced")


def test_no_key_means_open_access(tmp_path):
    with TestClient(create_app(_settings(tmp_path))) as client:
        assert client.get("/api/v1/admin/data-audit/snapshots").status_code == 200
