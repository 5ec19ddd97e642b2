from __future__ import annotations

from datetime import datetime, timedelta

from selective_access.domain.entities.user_profile import (
    PAYMENT_STATUS_ACTIVE,
    PAYMENT_STATUS_EXPIRED,
    PAYMENT_STATUS_PENDING,
    UserProfile,
)


ACTIVE_SUBSCRIPTION_STATUSES = frozenset({"active", "trialing"})


def fallback_cutoff(*, now: datetime, grace_hours: int) -> datetime:
    return now - timedelta(hours=grace_hours)


def is_fallback_candidate(profile: UserProfile, *, cutoff: datetime) -> bool:
    """Pending profiles created strictly before the cut-off get fallback access."""
    return profile.payment_status == PAYMENT_STATUS_PENDING and profile.created_at < cutoff


def payment_status_for_subscription(status: str) -> str:
    if status in ACTIVE_SUBSCRIPTION_STATUSES:
        return PAYMENT_STATUS_ACTIVE
    return PAYMENT_STATUS_EXPIRED
