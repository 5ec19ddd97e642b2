from __future__ import annotations

from datetime import datetime, timezone

from fastapi.testclient import TestClient

from selective_access.api.deps import (
    get_check_user_access_use_case,
    get_run_daily_payment_check_use_case,
)
from selective_access.application.dto.reconciliation import DailyPaymentCheckOutput, UserAccessOutput
from selective_access.domain.exceptions import StoreError
from selective_access.main import app
from selective_access.shared.config import Settings, get_settings


CHECKED_AT = datetime(2025, 3, 1, 22, 0, tzinfo=timezone.utc)


def _settings(cron_secret: str = "") -> Settings:
    return Settings(
        stripe_secret_key="",
        stripe_webhook_secret="",
        supabase_url="https://project.supabase.co",
        supabase_service_role_key="service-role-key",
        supabase_anon_key="anon-key",
        postgres_dsn="",
        app_default_url="https://app.example.com",
        temporary_access_hours=24,
        pending_grace_hours=24,
        http_timeout_seconds=5.0,
        cron_secret=cron_secret,
        cors_allow_origins=["*"],
        log_level="INFO",
    )


class FakeRunDailyPaymentCheckUseCase:
    def __init__(self, error: Exception | None = None):
        self.error = error
        self.calls = 0

    def execute(self) -> DailyPaymentCheckOutput:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return DailyPaymentCheckOutput(processed_count=3, candidate_count=4, cleanup_ok=True, ran_at=CHECKED_AT)


class FakeCheckUserAccessUseCase:
    def execute(self, *, user_id: str) -> UserAccessOutput:
        return UserAccessOutput(user_id=user_id, has_access=user_id == "paid-user", checked_at=CHECKED_AT)


def test_daily_payment_check_reports_processed_count():
    app.dependency_overrides[get_settings] = lambda: _settings()
    app.dependency_overrides[get_run_daily_payment_check_use_case] = lambda: FakeRunDailyPaymentCheckUseCase()

    client = TestClient(app)
    response = client.post("/v1/jobs/daily-payment-check")

    assert response.status_code == 200
    assert response.json() == {
        "success": True,
        "processedCount": 3,
        "message": "Daily payment check completed",
    }

    app.dependency_overrides.clear()


def test_daily_payment_check_requires_cron_secret_when_configured():
    use_case = FakeRunDailyPaymentCheckUseCase()
    app.dependency_overrides[get_settings] = lambda: _settings(cron_secret="s3cret")
    app.dependency_overrides[get_run_daily_payment_check_use_case] = lambda: use_case

    client = TestClient(app)
    denied = client.post("/v1/jobs/daily-payment-check", headers={"X-Cron-Secret": "wrong"})
    allowed = client.post("/v1/jobs/daily-payment-check", headers={"X-Cron-Secret": "s3cret"})

    assert denied.status_code == 401
    assert allowed.status_code == 200
    assert use_case.calls == 1

    app.dependency_overrides.clear()


def test_daily_payment_check_query_failure_returns_500():
    app.dependency_overrides[get_settings] = lambda: _settings()
    app.dependency_overrides[get_run_daily_payment_check_use_case] = lambda: FakeRunDailyPaymentCheckUseCase(
        error=StoreError("Failed to query pending profiles: timeout")
    )

    client = TestClient(app)
    response = client.post("/v1/jobs/daily-payment-check")

    assert response.status_code == 500
    assert response.json() == {"error": "Failed to query pending profiles: timeout"}

    app.dependency_overrides.clear()


def test_user_access_endpoint_returns_access_flag():
    app.dependency_overrides[get_check_user_access_use_case] = lambda: FakeCheckUserAccessUseCase()

    client = TestClient(app)
    paid = client.get("/v1/access/paid-user")
    pending = client.get("/v1/access/pending-user")

    assert paid.status_code == 200
    assert paid.json()["userId"] == "paid-user"
    assert paid.json()["hasAccess"] is True
    assert pending.json()["hasAccess"] is False

    app.dependency_overrides.clear()


def test_health():
    client = TestClient(app)

    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}
