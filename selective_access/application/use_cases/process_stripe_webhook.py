from __future__ import annotations

import logging

from selective_access.application.best_effort import run_best_effort
from selective_access.application.dto.billing import StripeWebhookInput, StripeWebhookOutput
from selective_access.application.ports.identity_store_port import IdentityStorePort
from selective_access.application.ports.payment_log_port import PaymentLogPort
from selective_access.application.ports.stripe_port import StripePort
from selective_access.domain.entities.billing_event import (
    BillingEvent,
    CheckoutSessionCompleted,
    InvoicePaymentFailed,
    InvoicePaymentSucceeded,
    SubscriptionStatusChanged,
    UnhandledBillingEvent,
)
from selective_access.domain.entities.payment_log import (
    EVENT_CHECKOUT_SESSION_COMPLETED,
    EVENT_INVOICE_PAYMENT_FAILED,
    EVENT_WEBHOOK_ERROR,
    PaymentLogEntry,
)
from selective_access.domain.entities.user_profile import PAYMENT_STATUS_ACTIVE
from selective_access.domain.exceptions import InvalidSignatureError, StoreError
from selective_access.domain.services.access import payment_status_for_subscription

from .common import Clock, utcnow


logger = logging.getLogger(__name__)


class ProcessStripeWebhookUseCase:
    def __init__(
        self,
        *,
        identity_store: IdentityStorePort,
        payment_log: PaymentLogPort,
        stripe_port: StripePort,
        clock: Clock = utcnow,
    ):
        self._identity_store = identity_store
        self._payment_log = payment_log
        self._stripe_port = stripe_port
        self._clock = clock

    def execute(self, command: StripeWebhookInput) -> StripeWebhookOutput:
        if not command.payload or not command.signature:
            raise InvalidSignatureError("Missing body or signature")

        event = self._stripe_port.verify_webhook(signature=command.signature, payload=command.payload)
        logger.info("stripe_webhook: verified event_id=%s event_type=%s", event.event_id, event.event_type)

        try:
            return self._dispatch(event)
        except Exception as exc:  # noqa: BLE001
            # Verified events are always acknowledged; failures land in payment_logs.
            logger.exception(
                "stripe_webhook: handler_failed event_id=%s event_type=%s",
                event.event_id,
                event.event_type,
            )
            run_best_effort(
                "insert_payment_log",
                self._payment_log.insert_payment_log,
                PaymentLogEntry(
                    event_type=EVENT_WEBHOOK_ERROR,
                    payment_status="error",
                    stripe_session_id=getattr(event, "session_id", None),
                    stripe_customer_id=getattr(event, "customer_id", None),
                    error_message=str(exc),
                    metadata={"event_id": event.event_id, "event_type": event.event_type},
                ),
            )
            return StripeWebhookOutput(event_id=event.event_id, event_type=event.event_type, handled=False)

    def _dispatch(self, event: BillingEvent) -> StripeWebhookOutput:
        if isinstance(event, CheckoutSessionCompleted):
            return self._handle_checkout_completed(event)
        if isinstance(event, SubscriptionStatusChanged):
            return self._handle_subscription_changed(event)
        if isinstance(event, InvoicePaymentSucceeded):
            return self._handle_invoice_succeeded(event)
        if isinstance(event, InvoicePaymentFailed):
            return self._handle_invoice_failed(event)
        if isinstance(event, UnhandledBillingEvent):
            logger.info("stripe_webhook: unhandled event_type=%s", event.event_type)
            return StripeWebhookOutput(event_id=event.event_id, event_type=event.event_type, handled=False)
        raise TypeError(f"Unsupported billing event variant: {type(event).__name__}")

    def _handle_checkout_completed(self, event: CheckoutSessionCompleted) -> StripeWebhookOutput:
        if self._payment_log.has_payment_log(
            stripe_session_id=event.session_id,
            event_type=EVENT_CHECKOUT_SESSION_COMPLETED,
        ):
            logger.info("stripe_webhook: duplicate session_id=%s", event.session_id)
            return StripeWebhookOutput(
                event_id=event.event_id,
                event_type=event.event_type,
                handled=True,
                duplicate=True,
            )

        # A completed entry is only written for an existing profile.
        profile = None
        if event.user_id:
            profile = self._identity_store.get_profile_by_user_id(user_id=event.user_id)
        elif event.customer_email:
            profile = self._identity_store.get_profile_by_email(email=event.customer_email)
        if profile is None:
            raise StoreError(f"No user profile found for checkout session {event.session_id}.")
        user_id = profile.user_id

        transitioned = self._identity_store.activate_payment(
            user_id=user_id,
            stripe_customer_id=event.customer_id,
            plan_type=event.plan_type,
            now=self._clock(),
        )
        self._payment_log.insert_payment_log(
            PaymentLogEntry(
                user_id=user_id,
                stripe_session_id=event.session_id,
                stripe_customer_id=event.customer_id,
                event_type=EVENT_CHECKOUT_SESSION_COMPLETED,
                payment_status="completed",
                plan_type=event.plan_type,
                metadata={
                    "event_id": event.event_id,
                    "subscription_id": event.subscription_id,
                    "amount_total": event.amount_total,
                    "currency": event.currency,
                    "customer_email": event.customer_email,
                },
            )
        )
        logger.info(
            "stripe_webhook: checkout_completed session_id=%s user_id=%s transitioned=%s",
            event.session_id,
            user_id,
            transitioned,
        )
        return StripeWebhookOutput(event_id=event.event_id, event_type=event.event_type, handled=True)

    def _handle_subscription_changed(self, event: SubscriptionStatusChanged) -> StripeWebhookOutput:
        if not event.customer_id:
            logger.warning("stripe_webhook: subscription_without_customer id=%s", event.subscription_id)
            return StripeWebhookOutput(event_id=event.event_id, event_type=event.event_type, handled=False)

        payment_status = payment_status_for_subscription(event.status)
        updated = self._identity_store.set_payment_status_by_customer(
            stripe_customer_id=event.customer_id,
            payment_status=payment_status,
            now=self._clock(),
        )
        if not updated:
            logger.warning("stripe_webhook: no_profile_for_customer customer_id=%s", event.customer_id)
        return StripeWebhookOutput(event_id=event.event_id, event_type=event.event_type, handled=bool(updated))

    def _handle_invoice_succeeded(self, event: InvoicePaymentSucceeded) -> StripeWebhookOutput:
        if not event.customer_id:
            return StripeWebhookOutput(event_id=event.event_id, event_type=event.event_type, handled=False)
        updated = self._identity_store.set_payment_status_by_customer(
            stripe_customer_id=event.customer_id,
            payment_status=PAYMENT_STATUS_ACTIVE,
            now=self._clock(),
        )
        return StripeWebhookOutput(event_id=event.event_id, event_type=event.event_type, handled=bool(updated))

    def _handle_invoice_failed(self, event: InvoicePaymentFailed) -> StripeWebhookOutput:
        self._payment_log.insert_payment_log(
            PaymentLogEntry(
                stripe_customer_id=event.customer_id,
                event_type=EVENT_INVOICE_PAYMENT_FAILED,
                payment_status="failed",
                error_message="Invoice payment failed",
                metadata={
                    "invoice_id": event.invoice_id,
                    "amount_due": event.amount_due,
                    "currency": event.currency,
                },
            )
        )
        return StripeWebhookOutput(event_id=event.event_id, event_type=event.event_type, handled=True)
