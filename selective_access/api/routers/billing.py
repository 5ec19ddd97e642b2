from __future__ import annotations

from fastapi import APIRouter, Depends, Header, Request
from fastapi.responses import JSONResponse

from selective_access.api.deps import (
    get_create_checkout_session_use_case,
    get_process_stripe_webhook_use_case,
)
from selective_access.api.schemas.billing import (
    CreateCheckoutSessionRequest,
    CreateCheckoutSessionResponse,
    StripeWebhookResponse,
)
from selective_access.api.schemas.common import ErrorResponse
from selective_access.application.dto.billing import CreateCheckoutSessionInput, StripeWebhookInput
from selective_access.application.use_cases.create_checkout_session import CreateCheckoutSessionUseCase
from selective_access.application.use_cases.process_stripe_webhook import ProcessStripeWebhookUseCase
from selective_access.domain.exceptions import (
    InvalidRequestError,
    InvalidSignatureError,
    SessionCreationFailedError,
)


router = APIRouter()


def _error(status_code: int, error: str, message: str | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=error, message=message).model_dump(exclude_none=True),
    )


@router.post("/v1/billing/checkout-session", response_model=CreateCheckoutSessionResponse)
def create_checkout_session(
    req: CreateCheckoutSessionRequest,
    origin: str | None = Header(default=None),
    referer: str | None = Header(default=None),
    use_case: CreateCheckoutSessionUseCase = Depends(get_create_checkout_session_use_case),
):
    try:
        output = use_case.execute(
            CreateCheckoutSessionInput(
                price_id=req.price_id,
                plan_type=req.plan_type,
                user_id=req.user_id,
                user_email=req.user_email,
                origin=origin,
                referer=referer,
            )
        )
    except InvalidRequestError as exc:
        return _error(400, str(exc))
    except SessionCreationFailedError as exc:
        return _error(500, "Failed to create checkout session", str(exc))

    return CreateCheckoutSessionResponse(
        url=output.checkout_url,
        session_id=output.checkout_session_id,
    )


@router.post("/v1/billing/webhook", response_model=StripeWebhookResponse)
async def stripe_webhook(
    request: Request,
    stripe_signature: str | None = Header(default=None, alias="Stripe-Signature"),
    use_case: ProcessStripeWebhookUseCase = Depends(get_process_stripe_webhook_use_case),
):
    payload = await request.body()
    try:
        output = use_case.execute(
            StripeWebhookInput(
                signature=stripe_signature,
                payload=payload,
            )
        )
    except InvalidSignatureError as exc:
        return _error(400, f"Webhook Error: {exc}")

    return StripeWebhookResponse(
        event_type=output.event_type,
        event_id=output.event_id,
        handled=output.handled,
        duplicate=output.duplicate,
    )
