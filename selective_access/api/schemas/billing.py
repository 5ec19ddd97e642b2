from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class CreateCheckoutSessionRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    price_id: str | None = Field(default=None, alias="priceId")
    plan_type: str | None = Field(default=None, alias="planType")
    user_id: str | None = Field(default=None, alias="userId")
    user_email: str | None = Field(default=None, alias="userEmail")


class CreateCheckoutSessionResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    url: str
    session_id: str = Field(..., alias="sessionId")
    message: str = "Checkout session created successfully"


class StripeWebhookResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    received: bool = True
    message: str = "Webhook received"
    event_type: str = Field(..., alias="eventType")
    event_id: str = Field(..., alias="eventId")
    handled: bool
    duplicate: bool = False
