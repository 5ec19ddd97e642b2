from __future__ import annotations

from datetime import datetime
import logging
from typing import Any

import httpx

from selective_access.application.ports.identity_store_port import IdentityStorePort
from selective_access.application.ports.payment_log_port import PaymentLogPort
from selective_access.domain.entities.payment_log import PaymentLogEntry
from selective_access.domain.entities.user_profile import PAYMENT_STATUS_ACTIVE, PAYMENT_STATUS_PENDING
from selective_access.domain.exceptions import StoreError
from selective_access.infrastructure.db.mappers.identity_mapper import map_row_to_user_profile


logger = logging.getLogger(__name__)

PROFILE_SELECT = "id,user_id,email,payment_status,stripe_customer_id,plan_type,created_at,updated_at"


def _email_filter(email: str) -> str:
    """Case-insensitive exact match; LIKE wildcards in the address are escaped."""
    value = email.strip()
    if "*" in value:
        # PostgREST rewrites `*` to `%` before escaping applies.
        return f"eq.{value.lower()}"
    escaped = value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"ilike.{escaped}"


class SupabaseRestIdentityStore(IdentityStorePort, PaymentLogPort):
    """Identity store backed by the Supabase REST (PostgREST) API and the service-role key."""

    def __init__(
        self,
        *,
        supabase_url: str,
        service_role_key: str,
        timeout_seconds: float,
        transport: httpx.BaseTransport | None = None,
    ):
        self._rest_base = f"{supabase_url.rstrip('/')}/rest/v1"
        self._service_role_key = service_role_key
        self._timeout = timeout_seconds
        self._transport = transport

    def list_pending_profiles(self, *, created_before: datetime):
        rows = self._request(
            "GET",
            "/user_profiles",
            params={
                "select": PROFILE_SELECT,
                "payment_status": f"eq.{PAYMENT_STATUS_PENDING}",
                "created_at": f"lt.{created_before.isoformat()}",
                "order": "created_at.asc",
            },
        )
        return [map_row_to_user_profile(row) for row in rows or []]

    def get_profile_by_user_id(self, *, user_id: str):
        return self._get_single_profile({"user_id": f"eq.{user_id}"})

    def get_profile_by_email(self, *, email: str):
        return self._get_single_profile({"email": _email_filter(email)})

    def grant_temporary_access(self, *, user_id: str, hours: int, reason: str) -> None:
        self._request(
            "POST",
            "/rpc/grant_temporary_access",
            json={"p_user_id": user_id, "p_hours": hours, "p_reason": reason},
        )

    def cleanup_expired_temporary_access(self) -> None:
        self._request("POST", "/rpc/cleanup_expired_temporary_access", json={})

    def activate_payment(
        self,
        *,
        user_id: str,
        stripe_customer_id: str | None,
        plan_type: str | None,
        now: datetime,
    ) -> bool:
        changes: dict[str, Any] = {
            "payment_status": PAYMENT_STATUS_ACTIVE,
            "last_payment_date": now.isoformat(),
            "updated_at": now.isoformat(),
        }
        if stripe_customer_id:
            changes["stripe_customer_id"] = stripe_customer_id
        if plan_type:
            changes["plan_type"] = plan_type
        rows = self._request(
            "PATCH",
            "/user_profiles",
            params={
                "user_id": f"eq.{user_id}",
                "or": f"(payment_status.is.null,payment_status.neq.{PAYMENT_STATUS_ACTIVE})",
                "select": "user_id",
            },
            json=changes,
            prefer="return=representation",
        )
        return bool(rows)

    def set_payment_status_by_customer(
        self,
        *,
        stripe_customer_id: str,
        payment_status: str,
        now: datetime,
    ) -> int:
        rows = self._request(
            "PATCH",
            "/user_profiles",
            params={"stripe_customer_id": f"eq.{stripe_customer_id}", "select": "user_id"},
            json={"payment_status": payment_status, "updated_at": now.isoformat()},
            prefer="return=representation",
        )
        return len(rows or [])

    def user_has_valid_access(self, *, user_id: str) -> bool:
        value = self._request("POST", "/rpc/user_has_valid_access", json={"p_user_id": user_id})
        return value is True

    def insert_payment_log(self, entry: PaymentLogEntry) -> None:
        self._request(
            "POST",
            "/payment_logs",
            json={
                "user_id": entry.user_id,
                "stripe_session_id": entry.stripe_session_id,
                "stripe_customer_id": entry.stripe_customer_id,
                "event_type": entry.event_type,
                "payment_status": entry.payment_status,
                "plan_type": entry.plan_type,
                "error_message": entry.error_message,
                "metadata": entry.metadata,
            },
            prefer="return=minimal",
        )

    def has_payment_log(self, *, stripe_session_id: str, event_type: str) -> bool:
        rows = self._request(
            "GET",
            "/payment_logs",
            params={
                "select": "id",
                "stripe_session_id": f"eq.{stripe_session_id}",
                "event_type": f"eq.{event_type}",
                "limit": "1",
            },
        )
        return bool(rows)

    def _get_single_profile(self, filters: dict[str, str]):
        rows = self._request(
            "GET",
            "/user_profiles",
            params={"select": PROFILE_SELECT, "limit": "1", **filters},
        )
        if not rows:
            return None
        return map_row_to_user_profile(rows[0])

    def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, str] | None = None,
        json: Any = None,
        prefer: str | None = None,
    ) -> Any:
        headers = {
            "apikey": self._service_role_key,
            "Authorization": f"Bearer {self._service_role_key}",
        }
        if prefer:
            headers["Prefer"] = prefer

        url = f"{self._rest_base}{path}"
        try:
            with httpx.Client(timeout=self._timeout, transport=self._transport) as client:
                response = client.request(method, url, params=params, json=json, headers=headers)
                response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            logger.warning(
                "supabase_rest_store: request_failed method=%s path=%s status=%s body=%s",
                method,
                path,
                exc.response.status_code,
                exc.response.text,
            )
            raise StoreError(f"Supabase {method} {path} failed with status {exc.response.status_code}.") from exc
        except httpx.HTTPError as exc:
            raise StoreError(f"Supabase {method} {path} failed: {exc}") from exc

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise StoreError(f"Supabase {method} {path} returned invalid JSON.") from exc
