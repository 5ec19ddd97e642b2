from __future__ import annotations

from typing import Protocol

from selective_access.application.dto.billing import CheckoutSessionRequest, StripeCheckoutSessionResult
from selective_access.domain.entities.billing_event import BillingEvent


class StripePort(Protocol):
    def find_customer_id_by_email(self, *, email: str) -> str | None:
        ...

    def create_checkout_session(self, request: CheckoutSessionRequest) -> StripeCheckoutSessionResult:
        ...

    def verify_webhook(self, *, signature: str, payload: bytes) -> BillingEvent:
        ...
