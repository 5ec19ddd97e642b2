from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Mapping

from selective_access.domain.entities.user_profile import UserProfile


def _as_str(value: Any) -> str:
    return str(value)


def _as_datetime(value: Any) -> datetime | None:
    if value is None:
        return None
    parsed = value if isinstance(value, datetime) else datetime.fromisoformat(str(value))
    # timestamp without time zone columns are stored in UTC.
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed


def map_row_to_user_profile(row: Mapping[str, Any]) -> UserProfile:
    return UserProfile(
        id=_as_str(row["id"]),
        user_id=_as_str(row["user_id"]),
        email=row.get("email"),
        payment_status=str(row.get("payment_status") or ""),
        stripe_customer_id=row.get("stripe_customer_id"),
        plan_type=row.get("plan_type"),
        created_at=_as_datetime(row["created_at"]),
        updated_at=_as_datetime(row.get("updated_at")),
    )
