from __future__ import annotations

import hashlib
import hmac
import json
import time
from types import SimpleNamespace

import pytest
import stripe

from selective_access.application.dto.billing import CheckoutSessionRequest
from selective_access.domain.entities.billing_event import (
    CheckoutSessionCompleted,
    InvoicePaymentFailed,
    SubscriptionStatusChanged,
    UnhandledBillingEvent,
)
from selective_access.domain.exceptions import BillingProviderError, InvalidSignatureError
from selective_access.infrastructure.clients.stripe_client import StripeClient, parse_billing_event


WEBHOOK_SECRET = "whsec_test_secret"


def _client() -> StripeClient:
    return StripeClient(secret_key="sk_test_123", webhook_secret=WEBHOOK_SECRET)


def _sign(payload: bytes, secret: str = WEBHOOK_SECRET) -> str:
    timestamp = int(time.time())
    signed = f"{timestamp}.".encode() + payload
    digest = hmac.new(secret.encode(), signed, hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={digest}"


def _event_payload(event_type: str, data_object: dict) -> bytes:
    return json.dumps(
        {
            "id": "evt_123",
            "object": "event",
            "type": event_type,
            "data": {"object": data_object},
        }
    ).encode()


def _request(**overrides) -> CheckoutSessionRequest:
    values = {
        "price_id": "price_123",
        "plan_type": "base_plan",
        "user_id": "user-1",
        "success_url": "https://app.example.com?paymentSuccess=true&planType=base_plan",
        "cancel_url": "https://app.example.com/pricing?paymentSuccess=false",
        "customer_id": None,
        "customer_email": "kid@example.com",
    }
    values.update(overrides)
    return CheckoutSessionRequest(**values)


def test_create_checkout_session_sends_metadata_on_session_and_subscription(monkeypatch: pytest.MonkeyPatch):
    captured: dict = {}

    def fake_create(**kwargs):
        captured.update(kwargs)
        return SimpleNamespace(id="cs_test_1", url="https://checkout.stripe.com/c/cs_test_1")

    monkeypatch.setattr(stripe.checkout.Session, "create", fake_create)

    result = _client().create_checkout_session(_request())

    assert result.id == "cs_test_1"
    assert captured["mode"] == "subscription"
    assert captured["line_items"] == [{"price": "price_123", "quantity": 1}]
    assert captured["metadata"] == {"userId": "user-1", "planType": "base_plan", "source": "website"}
    assert captured["subscription_data"]["metadata"] == captured["metadata"]
    assert captured["client_reference_id"] == "user-1"
    assert captured["customer_email"] == "kid@example.com"
    assert "customer" not in captured


def test_create_checkout_session_prefers_existing_customer(monkeypatch: pytest.MonkeyPatch):
    captured: dict = {}

    def fake_create(**kwargs):
        captured.update(kwargs)
        return SimpleNamespace(id="cs_test_2", url="https://checkout.stripe.com/c/cs_test_2")

    monkeypatch.setattr(stripe.checkout.Session, "create", fake_create)

    _client().create_checkout_session(_request(customer_id="cus_1", customer_email=None))

    assert captured["customer"] == "cus_1"
    assert "customer_email" not in captured


def test_create_checkout_session_wraps_provider_errors(monkeypatch: pytest.MonkeyPatch):
    def fake_create(**kwargs):
        _ = kwargs
        raise stripe.InvalidRequestError("No such price: 'price_123'", param="line_items[0][price]")

    monkeypatch.setattr(stripe.checkout.Session, "create", fake_create)

    with pytest.raises(BillingProviderError) as exc_info:
        _client().create_checkout_session(_request())

    assert "No such price" in str(exc_info.value)


def test_find_customer_returns_first_match(monkeypatch: pytest.MonkeyPatch):
    calls: list[dict] = []

    def fake_list(**kwargs):
        calls.append(kwargs)
        return SimpleNamespace(data=[SimpleNamespace(id="cus_first"), SimpleNamespace(id="cus_second")])

    monkeypatch.setattr(stripe.Customer, "list", fake_list)

    assert _client().find_customer_id_by_email(email="kid@example.com") == "cus_first"
    assert calls == [{"email": "kid@example.com", "limit": 1}]


def test_find_customer_returns_none_without_match(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(stripe.Customer, "list", lambda **kwargs: SimpleNamespace(data=[]))

    assert _client().find_customer_id_by_email(email="kid@example.com") is None


def test_verify_webhook_parses_signed_checkout_event():
    payload = _event_payload(
        "checkout.session.completed",
        {
            "id": "cs_test_1",
            "object": "checkout.session",
            "client_reference_id": "user-1",
            "customer": "cus_1",
            "customer_email": "kid@example.com",
            "subscription": "sub_1",
            "amount_total": 4900,
            "currency": "aud",
            "metadata": {"userId": "user-1", "planType": "base_plan", "source": "website"},
        },
    )

    event = _client().verify_webhook(signature=_sign(payload), payload=payload)

    assert isinstance(event, CheckoutSessionCompleted)
    assert event.session_id == "cs_test_1"
    assert event.user_id == "user-1"
    assert event.plan_type == "base_plan"
    assert event.customer_id == "cus_1"


def test_verify_webhook_rejects_wrong_secret():
    payload = _event_payload("checkout.session.completed", {"id": "cs_test_1"})

    with pytest.raises(InvalidSignatureError):
        _client().verify_webhook(signature=_sign(payload, secret="whsec_other"), payload=payload)


def test_verify_webhook_rejects_tampered_payload():
    payload = _event_payload("checkout.session.completed", {"id": "cs_test_1"})
    signature = _sign(payload)
    tampered = payload.replace(b"cs_test_1", b"cs_test_2")

    with pytest.raises(InvalidSignatureError):
        _client().verify_webhook(signature=signature, payload=tampered)


def test_parse_uses_client_reference_when_metadata_user_is_unknown():
    event = parse_billing_event(
        {
            "id": "evt_1",
            "type": "checkout.session.completed",
            "data": {
                "object": {
                    "id": "cs_1",
                    "client_reference_id": "user-9",
                    "customer_details": {"email": "parent@example.com"},
                    "metadata": {"userId": "unknown"},
                }
            },
        }
    )

    assert isinstance(event, CheckoutSessionCompleted)
    assert event.user_id == "user-9"
    assert event.customer_email == "parent@example.com"


def test_parse_subscription_and_invoice_events():
    subscription = parse_billing_event(
        {
            "id": "evt_2",
            "type": "customer.subscription.deleted",
            "data": {"object": {"id": "sub_1", "customer": "cus_1", "status": "canceled"}},
        }
    )
    invoice = parse_billing_event(
        {
            "id": "evt_3",
            "type": "invoice.payment_failed",
            "data": {"object": {"id": "in_1", "customer": {"id": "cus_1"}, "amount_due": 4900, "currency": "aud"}},
        }
    )

    assert isinstance(subscription, SubscriptionStatusChanged)
    assert subscription.status == "canceled"
    assert isinstance(invoice, InvoicePaymentFailed)
    assert invoice.customer_id == "cus_1"


def test_parse_unknown_event_type():
    event = parse_billing_event({"id": "evt_4", "type": "charge.refunded", "data": {"object": {}}})

    assert event == UnhandledBillingEvent(event_id="evt_4", event_type="charge.refunded")


@pytest.mark.parametrize(
    "body",
    [
        {"id": "evt_5", "type": "checkout.session.completed", "data": {"object": "cs_1"}},
        {"id": "evt_6", "type": "checkout.session.completed", "data": "x"},
        {"id": "evt_7", "type": "invoice.payment_failed"},
    ],
)
def test_verify_webhook_rejects_signed_payload_with_malformed_data(body):
    payload = json.dumps(body).encode()

    with pytest.raises(InvalidSignatureError):
        _client().verify_webhook(signature=_sign(payload), payload=payload)


def test_parse_ignores_non_object_metadata():
    event = parse_billing_event(
        {
            "id": "evt_8",
            "type": "checkout.session.completed",
            "data": {"object": {"id": "cs_8", "client_reference_id": "user-8", "metadata": "oops"}},
        }
    )

    assert isinstance(event, CheckoutSessionCompleted)
    assert event.user_id == "user-8"
    assert event.plan_type is None
