from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Literal


PaymentStatus = Literal["pending", "active", "expired"]

PAYMENT_STATUS_PENDING: PaymentStatus = "pending"
PAYMENT_STATUS_ACTIVE: PaymentStatus = "active"
PAYMENT_STATUS_EXPIRED: PaymentStatus = "expired"


@dataclass(frozen=True)
class UserProfile:
    id: str
    user_id: str
    email: str | None
    payment_status: str
    stripe_customer_id: str | None
    plan_type: str | None
    created_at: datetime
    updated_at: datetime | None = None
