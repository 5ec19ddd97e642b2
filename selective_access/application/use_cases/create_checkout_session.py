from __future__ import annotations

import logging

from selective_access.application.best_effort import SideEffectOutcome, run_best_effort
from selective_access.application.dto.billing import (
    CheckoutSessionRequest,
    CreateCheckoutSessionInput,
    CreateCheckoutSessionOutput,
)
from selective_access.application.ports.identity_store_port import IdentityStorePort
from selective_access.application.ports.payment_log_port import PaymentLogPort
from selective_access.application.ports.stripe_port import StripePort
from selective_access.domain.entities.access_grant import GRANT_REASON_PAYMENT_INITIATED
from selective_access.domain.entities.payment_log import (
    EVENT_CHECKOUT_SESSION_CREATED,
    EVENT_CHECKOUT_SESSION_FAILED,
    PaymentLogEntry,
)
from selective_access.domain.exceptions import (
    BillingProviderError,
    InvalidRequestError,
    SessionCreationFailedError,
)
from selective_access.domain.services.redirects import build_checkout_redirects, resolve_base_url

from .common import clean_optional


logger = logging.getLogger(__name__)


class CreateCheckoutSessionUseCase:
    def __init__(
        self,
        *,
        identity_store: IdentityStorePort,
        payment_log: PaymentLogPort,
        stripe_port: StripePort,
        default_app_url: str,
        temporary_access_hours: int = 24,
    ):
        self._identity_store = identity_store
        self._payment_log = payment_log
        self._stripe_port = stripe_port
        self._default_app_url = default_app_url
        self._temporary_access_hours = temporary_access_hours

    def execute(self, command: CreateCheckoutSessionInput) -> CreateCheckoutSessionOutput:
        price_id = clean_optional(command.price_id)
        plan_type = clean_optional(command.plan_type)
        if not price_id:
            raise InvalidRequestError("Missing required parameter: priceId")
        if not plan_type:
            raise InvalidRequestError("Missing required parameter: planType")

        user_id = clean_optional(command.user_id)
        user_email = clean_optional(command.user_email)
        side_effects: list[SideEffectOutcome] = []

        if user_id:
            side_effects.append(
                run_best_effort(
                    "grant_temporary_access",
                    self._identity_store.grant_temporary_access,
                    user_id=user_id,
                    hours=self._temporary_access_hours,
                    reason=GRANT_REASON_PAYMENT_INITIATED,
                )
            )

        base_url = resolve_base_url(
            origin=command.origin,
            referer=command.referer,
            default_url=self._default_app_url,
        )
        redirects = build_checkout_redirects(base_url=base_url, plan_type=plan_type)

        customer_id = None
        if user_id and user_email:
            lookup = run_best_effort(
                "find_customer_by_email",
                self._stripe_port.find_customer_id_by_email,
                email=user_email,
            )
            side_effects.append(lookup)
            customer_id = lookup.value if lookup.ok else None

        logger.info(
            "create_checkout_session: creating price_id=%s plan_type=%s user_id=%s reuse_customer=%s",
            price_id,
            plan_type,
            user_id,
            bool(customer_id),
        )
        try:
            result = self._stripe_port.create_checkout_session(
                CheckoutSessionRequest(
                    price_id=price_id,
                    plan_type=plan_type,
                    user_id=user_id,
                    success_url=redirects.success_url,
                    cancel_url=redirects.cancel_url,
                    customer_id=customer_id,
                    customer_email=None if customer_id else user_email,
                )
            )
        except BillingProviderError as exc:
            logger.error("create_checkout_session: failed price_id=%s error=%s", price_id, exc)
            run_best_effort(
                "insert_payment_log",
                self._payment_log.insert_payment_log,
                PaymentLogEntry(
                    user_id=user_id,
                    event_type=EVENT_CHECKOUT_SESSION_FAILED,
                    payment_status="error",
                    plan_type=plan_type,
                    error_message=str(exc),
                    metadata={"price_id": price_id},
                ),
            )
            raise SessionCreationFailedError(str(exc)) from exc

        side_effects.append(
            run_best_effort(
                "insert_payment_log",
                self._payment_log.insert_payment_log,
                PaymentLogEntry(
                    user_id=user_id,
                    stripe_session_id=result.id,
                    stripe_customer_id=customer_id,
                    event_type=EVENT_CHECKOUT_SESSION_CREATED,
                    payment_status="pending",
                    plan_type=plan_type,
                    metadata={"price_id": price_id, "customer_email": user_email},
                ),
            )
        )
        logger.info("create_checkout_session: created session_id=%s user_id=%s", result.id, user_id)

        return CreateCheckoutSessionOutput(
            checkout_session_id=result.id,
            checkout_url=result.url,
            side_effects=tuple(side_effects),
        )
