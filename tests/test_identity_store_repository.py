from __future__ import annotations

from datetime import datetime, timezone
import json

import pytest
from sqlalchemy.exc import OperationalError

from selective_access.domain.entities.payment_log import PaymentLogEntry
from selective_access.domain.exceptions import StoreError
from selective_access.domain.services.access import is_fallback_candidate
from selective_access.infrastructure.db.repositories.identity_store_repository import (
    SqlIdentityStoreRepository,
)


class _FakeResult:
    def __init__(self, rows: list[dict] | None = None, rowcount: int = 0, scalar=None):
        self._rows = rows or []
        self.rowcount = rowcount
        self._scalar = scalar

    def mappings(self) -> "_FakeResult":
        return self

    def all(self) -> list[dict]:
        return list(self._rows)

    def first(self):
        return self._rows[0] if self._rows else None

    def scalar(self):
        return self._scalar


class _FakeConnection:
    def __init__(self, engine: "_FakeEngine"):
        self._engine = engine

    def __enter__(self) -> "_FakeConnection":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        _ = (exc_type, exc, tb)
        return None

    def execute(self, sql, params=None):
        self._engine.calls.append((str(sql), params))
        if self._engine.error is not None:
            raise self._engine.error
        return self._engine.results.pop(0) if self._engine.results else _FakeResult()


class _FakeEngine:
    def __init__(self, results: list[_FakeResult] | None = None, error: Exception | None = None):
        self.results = list(results or [])
        self.error = error
        self.calls: list[tuple[str, dict | None]] = []

    def connect(self) -> _FakeConnection:
        return _FakeConnection(self)

    def begin(self) -> _FakeConnection:
        return _FakeConnection(self)


def test_list_pending_profiles_maps_rows():
    created_at = datetime(2025, 2, 27, tzinfo=timezone.utc)
    engine = _FakeEngine(
        [
            _FakeResult(
                [
                    {
                        "id": 1,
                        "user_id": "u1",
                        "email": "u1@example.com",
                        "payment_status": "pending",
                        "stripe_customer_id": None,
                        "plan_type": None,
                        "created_at": created_at,
                        "updated_at": None,
                    }
                ]
            )
        ]
    )
    repo = SqlIdentityStoreRepository(engine)
    cutoff = datetime(2025, 2, 28, tzinfo=timezone.utc)

    profiles = repo.list_pending_profiles(created_before=cutoff)

    sql, params = engine.calls[0]
    assert "FROM public.user_profiles" in sql
    assert "created_at < :created_before" in sql
    assert params == {"payment_status": "pending", "created_before": cutoff}
    assert profiles[0].id == "1"
    assert profiles[0].created_at == created_at


def test_grant_temporary_access_calls_stored_procedure():
    engine = _FakeEngine()
    repo = SqlIdentityStoreRepository(engine)

    repo.grant_temporary_access(user_id="u1", hours=24, reason="Payment initiated")

    sql, params = engine.calls[0]
    assert "public.grant_temporary_access" in sql
    assert params == {"user_id": "u1", "hours": 24, "reason": "Payment initiated"}


def test_database_errors_become_store_errors():
    engine = _FakeEngine(error=OperationalError("SELECT 1", {}, Exception("server closed the connection")))
    repo = SqlIdentityStoreRepository(engine)

    with pytest.raises(StoreError):
        repo.list_pending_profiles(created_before=datetime(2025, 2, 28, tzinfo=timezone.utc))


def test_activate_payment_reports_whether_status_changed():
    engine = _FakeEngine([_FakeResult([{"user_id": "u1"}]), _FakeResult([])])
    repo = SqlIdentityStoreRepository(engine)
    now = datetime(2025, 3, 1, tzinfo=timezone.utc)

    first = repo.activate_payment(user_id="u1", stripe_customer_id="cus_1", plan_type="base_plan", now=now)
    second = repo.activate_payment(user_id="u1", stripe_customer_id="cus_1", plan_type="base_plan", now=now)

    sql, params = engine.calls[0]
    assert "payment_status IS DISTINCT FROM :active" in sql
    assert params["active"] == "active"
    assert first is True
    assert second is False


def test_insert_payment_log_serializes_metadata():
    engine = _FakeEngine()
    repo = SqlIdentityStoreRepository(engine)

    repo.insert_payment_log(
        PaymentLogEntry(
            event_type="checkout.session.created",
            payment_status="pending",
            user_id="u1",
            stripe_session_id="cs_1",
            plan_type="base_plan",
            metadata={"price_id": "price_123"},
        )
    )

    sql, params = engine.calls[0]
    assert "INSERT INTO public.payment_logs" in sql
    assert json.loads(params["metadata"]) == {"price_id": "price_123"}
    assert params["stripe_session_id"] == "cs_1"


def test_set_payment_status_by_customer_returns_rowcount():
    engine = _FakeEngine([_FakeResult(rowcount=2)])
    repo = SqlIdentityStoreRepository(engine)

    updated = repo.set_payment_status_by_customer(
        stripe_customer_id="cus_1",
        payment_status="expired",
        now=datetime(2025, 3, 1, tzinfo=timezone.utc),
    )

    assert updated == 2


def test_user_has_valid_access_requires_true():
    engine = _FakeEngine([_FakeResult(scalar=True), _FakeResult(scalar=None)])
    repo = SqlIdentityStoreRepository(engine)

    assert repo.user_has_valid_access(user_id="u1") is True
    assert repo.user_has_valid_access(user_id="u2") is False


def test_naive_timestamps_are_read_as_utc():
    engine = _FakeEngine(
        [
            _FakeResult(
                [
                    {
                        "id": 2,
                        "user_id": "u2",
                        "email": "u2@example.com",
                        "payment_status": "pending",
                        "stripe_customer_id": None,
                        "plan_type": None,
                        "created_at": datetime(2025, 2, 26, 8, 30),
                        "updated_at": "2025-02-26T09:00:00",
                    }
                ]
            )
        ]
    )
    repo = SqlIdentityStoreRepository(engine)
    cutoff = datetime(2025, 2, 28, tzinfo=timezone.utc)

    profiles = repo.list_pending_profiles(created_before=cutoff)

    assert profiles[0].created_at == datetime(2025, 2, 26, 8, 30, tzinfo=timezone.utc)
    assert profiles[0].updated_at == datetime(2025, 2, 26, 9, 0, tzinfo=timezone.utc)
    assert is_fallback_candidate(profiles[0], cutoff=cutoff)


def test_get_profile_by_user_id_returns_none_when_missing():
    engine = _FakeEngine([_FakeResult([])])
    repo = SqlIdentityStoreRepository(engine)

    assert repo.get_profile_by_user_id(user_id="ghost") is None
    sql, params = engine.calls[0]
    assert "WHERE user_id = :value" in sql
    assert params == {"value": "ghost"}
