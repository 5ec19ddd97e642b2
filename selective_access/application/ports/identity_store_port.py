from __future__ import annotations

from datetime import datetime
from typing import Protocol

from selective_access.domain.entities.user_profile import UserProfile


class IdentityStorePort(Protocol):
    def list_pending_profiles(self, *, created_before: datetime) -> list[UserProfile]:
        ...

    def get_profile_by_user_id(self, *, user_id: str) -> UserProfile | None:
        ...

    def get_profile_by_email(self, *, email: str) -> UserProfile | None:
        ...

    def grant_temporary_access(self, *, user_id: str, hours: int, reason: str) -> None:
        ...

    def cleanup_expired_temporary_access(self) -> None:
        ...

    def activate_payment(
        self,
        *,
        user_id: str,
        stripe_customer_id: str | None,
        plan_type: str | None,
        now: datetime,
    ) -> bool:
        ...

    def set_payment_status_by_customer(
        self,
        *,
        stripe_customer_id: str,
        payment_status: str,
        now: datetime,
    ) -> int:
        ...

    def user_has_valid_access(self, *, user_id: str) -> bool:
        ...
