from __future__ import annotations

from dataclasses import dataclass

from selective_access.application.best_effort import SideEffectOutcome


@dataclass(frozen=True)
class CreateCheckoutSessionInput:
    price_id: str | None
    plan_type: str | None
    user_id: str | None
    user_email: str | None
    origin: str | None
    referer: str | None


@dataclass(frozen=True)
class CreateCheckoutSessionOutput:
    checkout_session_id: str
    checkout_url: str
    side_effects: tuple[SideEffectOutcome, ...]


@dataclass(frozen=True)
class CheckoutSessionRequest:
    price_id: str
    plan_type: str
    user_id: str | None
    success_url: str
    cancel_url: str
    customer_id: str | None
    customer_email: str | None


@dataclass(frozen=True)
class StripeCheckoutSessionResult:
    id: str
    url: str


@dataclass(frozen=True)
class StripeWebhookInput:
    signature: str | None
    payload: bytes


@dataclass(frozen=True)
class StripeWebhookOutput:
    event_id: str
    event_type: str
    handled: bool
    duplicate: bool = False
