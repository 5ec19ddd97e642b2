from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class DailyPaymentCheckOutput:
    processed_count: int
    candidate_count: int
    cleanup_ok: bool
    ran_at: datetime


@dataclass(frozen=True)
class UserAccessOutput:
    user_id: str
    has_access: bool
    checked_at: datetime
