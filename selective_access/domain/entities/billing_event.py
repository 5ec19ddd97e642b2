from __future__ import annotations

from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class CheckoutSessionCompleted:
    event_id: str
    session_id: str
    user_id: str | None
    customer_id: str | None
    customer_email: str | None
    plan_type: str | None
    subscription_id: str | None
    amount_total: int | None
    currency: str | None

    event_type = "checkout.session.completed"


@dataclass(frozen=True)
class SubscriptionStatusChanged:
    event_id: str
    event_type: str
    subscription_id: str
    customer_id: str | None
    status: str


@dataclass(frozen=True)
class InvoicePaymentSucceeded:
    event_id: str
    invoice_id: str
    customer_id: str | None

    event_type = "invoice.payment_succeeded"


@dataclass(frozen=True)
class InvoicePaymentFailed:
    event_id: str
    invoice_id: str
    customer_id: str | None
    amount_due: int | None
    currency: str | None

    event_type = "invoice.payment_failed"


@dataclass(frozen=True)
class UnhandledBillingEvent:
    event_id: str
    event_type: str


BillingEvent = Union[
    CheckoutSessionCompleted,
    SubscriptionStatusChanged,
    InvoicePaymentSucceeded,
    InvoicePaymentFailed,
    UnhandledBillingEvent,
]

SUBSCRIPTION_EVENT_TYPES = frozenset(
    {
        "customer.subscription.created",
        "customer.subscription.updated",
        "customer.subscription.deleted",
    }
)
