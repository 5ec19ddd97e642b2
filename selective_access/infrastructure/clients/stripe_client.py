from __future__ import annotations

import json
import logging
from typing import Any

import stripe

from selective_access.application.dto.billing import CheckoutSessionRequest, StripeCheckoutSessionResult
from selective_access.application.ports.stripe_port import StripePort
from selective_access.domain.entities.billing_event import (
    SUBSCRIPTION_EVENT_TYPES,
    BillingEvent,
    CheckoutSessionCompleted,
    InvoicePaymentFailed,
    InvoicePaymentSucceeded,
    SubscriptionStatusChanged,
    UnhandledBillingEvent,
)
from selective_access.domain.exceptions import BillingProviderError, InvalidSignatureError


logger = logging.getLogger(__name__)

CHECKOUT_SOURCE = "website"


class StripeClient(StripePort):
    def __init__(self, *, secret_key: str, webhook_secret: str):
        stripe.api_key = secret_key
        self._webhook_secret = webhook_secret

    def find_customer_id_by_email(self, *, email: str) -> str | None:
        try:
            customers = stripe.Customer.list(email=email, limit=1)
        except Exception as exc:  # pragma: no cover - external API
            raise BillingProviderError("Failed to look up Stripe customer.") from exc

        data = getattr(customers, "data", None) or []
        if not data:
            return None
        customer_id = getattr(data[0], "id", None)
        return str(customer_id) if customer_id else None

    def create_checkout_session(self, request: CheckoutSessionRequest) -> StripeCheckoutSessionResult:
        metadata = {
            "userId": request.user_id or "unknown",
            "planType": request.plan_type,
            "source": CHECKOUT_SOURCE,
        }
        payload: dict[str, Any] = {
            "payment_method_types": ["card"],
            "mode": "subscription",
            "line_items": [{"price": request.price_id, "quantity": 1}],
            "success_url": request.success_url,
            "cancel_url": request.cancel_url,
            "metadata": metadata,
            "subscription_data": {"metadata": dict(metadata)},
        }
        if request.user_id:
            payload["client_reference_id"] = request.user_id
        if request.customer_id:
            payload["customer"] = request.customer_id
        elif request.customer_email:
            payload["customer_email"] = request.customer_email

        try:
            session = stripe.checkout.Session.create(**payload)
        except Exception as exc:
            raise BillingProviderError(f"Failed to create Stripe checkout session: {exc}") from exc

        session_id = getattr(session, "id", None)
        session_url = getattr(session, "url", None)
        if not session_id or not session_url:
            raise BillingProviderError("Stripe checkout session response is incomplete.")

        return StripeCheckoutSessionResult(id=str(session_id), url=str(session_url))

    def verify_webhook(self, *, signature: str, payload: bytes) -> BillingEvent:
        try:
            stripe.Webhook.construct_event(payload=payload, sig_header=signature, secret=self._webhook_secret)
            event = json.loads(payload)
        except Exception as exc:
            logger.warning("stripe_client: webhook_verification_failed error=%s", exc)
            raise InvalidSignatureError(str(exc) or "Invalid Stripe webhook signature.") from exc

        if not isinstance(event, dict):
            raise InvalidSignatureError("Webhook payload is not an event object.")
        return parse_billing_event(event)


def parse_billing_event(event: dict) -> BillingEvent:
    event_id = str(event.get("id", ""))
    event_type = str(event.get("type", ""))
    data = event.get("data")
    data_object = data.get("object") if isinstance(data, dict) else None
    if not isinstance(data_object, dict):
        raise InvalidSignatureError("Webhook payload is malformed.")

    if event_type == "checkout.session.completed":
        metadata = _as_dict(data_object.get("metadata"))
        user_id = metadata.get("userId")
        if not user_id or user_id == "unknown":
            user_id = data_object.get("client_reference_id")
        customer_details = _as_dict(data_object.get("customer_details"))
        return CheckoutSessionCompleted(
            event_id=event_id,
            session_id=str(data_object.get("id", "")),
            user_id=user_id or None,
            customer_id=_as_optional_id(data_object.get("customer")),
            customer_email=data_object.get("customer_email") or customer_details.get("email"),
            plan_type=metadata.get("planType"),
            subscription_id=_as_optional_id(data_object.get("subscription")),
            amount_total=data_object.get("amount_total"),
            currency=data_object.get("currency"),
        )

    if event_type in SUBSCRIPTION_EVENT_TYPES:
        return SubscriptionStatusChanged(
            event_id=event_id,
            event_type=event_type,
            subscription_id=str(data_object.get("id", "")),
            customer_id=_as_optional_id(data_object.get("customer")),
            status=str(data_object.get("status", "")),
        )

    if event_type == "invoice.payment_succeeded":
        return InvoicePaymentSucceeded(
            event_id=event_id,
            invoice_id=str(data_object.get("id", "")),
            customer_id=_as_optional_id(data_object.get("customer")),
        )

    if event_type == "invoice.payment_failed":
        return InvoicePaymentFailed(
            event_id=event_id,
            invoice_id=str(data_object.get("id", "")),
            customer_id=_as_optional_id(data_object.get("customer")),
            amount_due=data_object.get("amount_due"),
            currency=data_object.get("currency"),
        )

    return UnhandledBillingEvent(event_id=event_id, event_type=event_type)


def _as_optional_id(value: Any) -> str | None:
    # Expanded objects carry the id inside; plain references are strings.
    if isinstance(value, dict):
        value = value.get("id")
    if not value:
        return None
    return str(value)


def _as_dict(value: Any) -> dict:
    return value if isinstance(value, dict) else {}
