from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


EVENT_CHECKOUT_SESSION_CREATED = "checkout.session.created"
EVENT_CHECKOUT_SESSION_FAILED = "checkout.session.failed"
EVENT_CHECKOUT_SESSION_COMPLETED = "checkout.session.completed"
EVENT_INVOICE_PAYMENT_FAILED = "invoice.payment_failed"
EVENT_WEBHOOK_ERROR = "webhook.error"


@dataclass(frozen=True)
class PaymentLogEntry:
    event_type: str
    payment_status: str
    user_id: str | None = None
    stripe_session_id: str | None = None
    stripe_customer_id: str | None = None
    plan_type: str | None = None
    error_message: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)
