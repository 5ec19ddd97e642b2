from __future__ import annotations

from datetime import datetime
import json
import logging

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from selective_access.application.ports.identity_store_port import IdentityStorePort
from selective_access.application.ports.payment_log_port import PaymentLogPort
from selective_access.domain.entities.payment_log import PaymentLogEntry
from selective_access.domain.entities.user_profile import PAYMENT_STATUS_ACTIVE, PAYMENT_STATUS_PENDING
from selective_access.domain.exceptions import StoreError
from selective_access.infrastructure.db.mappers.identity_mapper import map_row_to_user_profile


logger = logging.getLogger(__name__)

_PROFILE_COLUMNS = """
    id, user_id, email, payment_status, stripe_customer_id, plan_type, created_at, updated_at
"""


class SqlIdentityStoreRepository(IdentityStorePort, PaymentLogPort):
    def __init__(self, engine):
        self._engine = engine

    def list_pending_profiles(self, *, created_before: datetime):
        sql = f"""
            SELECT {_PROFILE_COLUMNS}
            FROM public.user_profiles
            WHERE payment_status = :payment_status
              AND created_at < :created_before
            ORDER BY created_at
        """
        try:
            with self._engine.connect() as conn:
                rows = conn.execute(
                    text(sql),
                    {
                        "payment_status": PAYMENT_STATUS_PENDING,
                        "created_before": created_before,
                    },
                ).mappings().all()
        except SQLAlchemyError as exc:
            raise StoreError(f"Failed to query pending profiles: {exc}") from exc
        return [map_row_to_user_profile(row) for row in rows]

    def get_profile_by_user_id(self, *, user_id: str):
        return self._get_profile_where("user_id = :value", user_id)

    def get_profile_by_email(self, *, email: str):
        return self._get_profile_where("lower(email) = :value", email.strip().lower())

    def grant_temporary_access(self, *, user_id: str, hours: int, reason: str) -> None:
        sql = """
            SELECT public.grant_temporary_access(
                p_user_id => :user_id,
                p_hours => :hours,
                p_reason => :reason
            )
        """
        try:
            with self._engine.begin() as conn:
                conn.execute(text(sql), {"user_id": user_id, "hours": hours, "reason": reason})
        except SQLAlchemyError as exc:
            raise StoreError(f"grant_temporary_access failed for user {user_id}: {exc}") from exc

    def cleanup_expired_temporary_access(self) -> None:
        sql = "SELECT public.cleanup_expired_temporary_access()"
        try:
            with self._engine.begin() as conn:
                conn.execute(text(sql))
        except SQLAlchemyError as exc:
            raise StoreError(f"cleanup_expired_temporary_access failed: {exc}") from exc

    def activate_payment(
        self,
        *,
        user_id: str,
        stripe_customer_id: str | None,
        plan_type: str | None,
        now: datetime,
    ) -> bool:
        sql = """
            UPDATE public.user_profiles
            SET payment_status = :active,
                stripe_customer_id = COALESCE(:stripe_customer_id, stripe_customer_id),
                plan_type = COALESCE(:plan_type, plan_type),
                last_payment_date = :now,
                updated_at = :now
            WHERE user_id = :user_id
              AND payment_status IS DISTINCT FROM :active
            RETURNING user_id
        """
        params = {
            "active": PAYMENT_STATUS_ACTIVE,
            "stripe_customer_id": stripe_customer_id,
            "plan_type": plan_type,
            "now": now,
            "user_id": user_id,
        }
        try:
            with self._engine.begin() as conn:
                row = conn.execute(text(sql), params).first()
        except SQLAlchemyError as exc:
            raise StoreError(f"Failed to activate payment for user {user_id}: {exc}") from exc
        return row is not None

    def set_payment_status_by_customer(
        self,
        *,
        stripe_customer_id: str,
        payment_status: str,
        now: datetime,
    ) -> int:
        sql = """
            UPDATE public.user_profiles
            SET payment_status = :payment_status,
                updated_at = :now
            WHERE stripe_customer_id = :stripe_customer_id
        """
        try:
            with self._engine.begin() as conn:
                result = conn.execute(
                    text(sql),
                    {
                        "payment_status": payment_status,
                        "now": now,
                        "stripe_customer_id": stripe_customer_id,
                    },
                )
        except SQLAlchemyError as exc:
            raise StoreError(f"Failed to update payment status for customer {stripe_customer_id}: {exc}") from exc
        return int(result.rowcount or 0)

    def user_has_valid_access(self, *, user_id: str) -> bool:
        sql = "SELECT public.user_has_valid_access(p_user_id => :user_id)"
        try:
            with self._engine.connect() as conn:
                value = conn.execute(text(sql), {"user_id": user_id}).scalar()
        except SQLAlchemyError as exc:
            raise StoreError(f"user_has_valid_access failed for user {user_id}: {exc}") from exc
        return value is True

    def insert_payment_log(self, entry: PaymentLogEntry) -> None:
        sql = """
            INSERT INTO public.payment_logs (
                user_id, stripe_session_id, stripe_customer_id, event_type,
                payment_status, plan_type, error_message, metadata, processed_at
            ) VALUES (
                :user_id, :stripe_session_id, :stripe_customer_id, :event_type,
                :payment_status, :plan_type, :error_message, CAST(:metadata AS jsonb), now()
            )
        """
        params = {
            "user_id": entry.user_id,
            "stripe_session_id": entry.stripe_session_id,
            "stripe_customer_id": entry.stripe_customer_id,
            "event_type": entry.event_type,
            "payment_status": entry.payment_status,
            "plan_type": entry.plan_type,
            "error_message": entry.error_message,
            "metadata": json.dumps(entry.metadata, default=str),
        }
        try:
            with self._engine.begin() as conn:
                conn.execute(text(sql), params)
        except SQLAlchemyError as exc:
            raise StoreError(f"Failed to insert payment log {entry.event_type}: {exc}") from exc
        logger.debug(
            "identity_store_repo: payment_log event_type=%s session_id=%s",
            entry.event_type,
            entry.stripe_session_id,
        )

    def has_payment_log(self, *, stripe_session_id: str, event_type: str) -> bool:
        sql = """
            SELECT 1
            FROM public.payment_logs
            WHERE stripe_session_id = :stripe_session_id
              AND event_type = :event_type
            LIMIT 1
        """
        try:
            with self._engine.connect() as conn:
                row = conn.execute(
                    text(sql),
                    {"stripe_session_id": stripe_session_id, "event_type": event_type},
                ).first()
        except SQLAlchemyError as exc:
            raise StoreError(f"Failed to query payment logs for session {stripe_session_id}: {exc}") from exc
        return row is not None

    def _get_profile_where(self, condition: str, value: str):
        sql = f"""
            SELECT {_PROFILE_COLUMNS}
            FROM public.user_profiles
            WHERE {condition}
            LIMIT 1
        """
        try:
            with self._engine.connect() as conn:
                row = conn.execute(text(sql), {"value": value}).mappings().first()
        except SQLAlchemyError as exc:
            raise StoreError(f"Failed to query user profile: {exc}") from exc
        if row is None:
            return None
        return map_row_to_user_profile(row)
