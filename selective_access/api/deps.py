from __future__ import annotations

import hmac

from fastapi import Depends, Header, HTTPException

from selective_access.application.ports.identity_store_port import IdentityStorePort
from selective_access.application.use_cases.check_user_access import CheckUserAccessUseCase
from selective_access.application.use_cases.create_checkout_session import CreateCheckoutSessionUseCase
from selective_access.application.use_cases.process_stripe_webhook import ProcessStripeWebhookUseCase
from selective_access.application.use_cases.proxy_auth_request import ProxyAuthRequestUseCase
from selective_access.application.use_cases.run_daily_payment_check import RunDailyPaymentCheckUseCase
from selective_access.domain.exceptions import ConfigurationError
from selective_access.infrastructure.clients.stripe_client import StripeClient
from selective_access.infrastructure.clients.supabase_auth_client import SupabaseAuthClient
from selective_access.infrastructure.store_factory import build_identity_store
from selective_access.shared.config import Settings, get_settings


def get_identity_store(settings: Settings = Depends(get_settings)) -> IdentityStorePort:
    try:
        return build_identity_store(settings)
    except ConfigurationError as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc


def get_stripe_client(settings: Settings = Depends(get_settings)) -> StripeClient:
    if not settings.stripe_secret_key:
        raise HTTPException(status_code=500, detail="STRIPE_SECRET_KEY is required.")
    if not settings.stripe_webhook_secret:
        raise HTTPException(status_code=500, detail="STRIPE_WEBHOOK_SECRET is required.")
    return StripeClient(
        secret_key=settings.stripe_secret_key,
        webhook_secret=settings.stripe_webhook_secret,
    )


def get_supabase_auth_client(settings: Settings = Depends(get_settings)) -> SupabaseAuthClient:
    if not settings.supabase_url:
        raise HTTPException(status_code=500, detail="SUPABASE_URL is required.")
    if not settings.supabase_anon_key:
        raise HTTPException(status_code=500, detail="SUPABASE_ANON_KEY is required.")
    return SupabaseAuthClient(
        supabase_url=settings.supabase_url,
        anon_key=settings.supabase_anon_key,
        timeout_seconds=settings.http_timeout_seconds,
    )


def get_create_checkout_session_use_case(
    settings: Settings = Depends(get_settings),
    identity_store=Depends(get_identity_store),
    stripe_client: StripeClient = Depends(get_stripe_client),
) -> CreateCheckoutSessionUseCase:
    return CreateCheckoutSessionUseCase(
        identity_store=identity_store,
        payment_log=identity_store,
        stripe_port=stripe_client,
        default_app_url=settings.app_default_url,
        temporary_access_hours=settings.temporary_access_hours,
    )


def get_process_stripe_webhook_use_case(
    identity_store=Depends(get_identity_store),
    stripe_client: StripeClient = Depends(get_stripe_client),
) -> ProcessStripeWebhookUseCase:
    return ProcessStripeWebhookUseCase(
        identity_store=identity_store,
        payment_log=identity_store,
        stripe_port=stripe_client,
    )


def get_run_daily_payment_check_use_case(
    settings: Settings = Depends(get_settings),
    identity_store=Depends(get_identity_store),
) -> RunDailyPaymentCheckUseCase:
    return RunDailyPaymentCheckUseCase(
        identity_store=identity_store,
        temporary_access_hours=settings.temporary_access_hours,
        pending_grace_hours=settings.pending_grace_hours,
    )


def get_check_user_access_use_case(identity_store=Depends(get_identity_store)) -> CheckUserAccessUseCase:
    return CheckUserAccessUseCase(identity_store=identity_store)


def get_proxy_auth_request_use_case(
    auth_client: SupabaseAuthClient = Depends(get_supabase_auth_client),
) -> ProxyAuthRequestUseCase:
    return ProxyAuthRequestUseCase(auth_port=auth_client)


def require_cron_secret(
    settings: Settings = Depends(get_settings),
    x_cron_secret: str | None = Header(default=None, alias="X-Cron-Secret"),
) -> None:
    if not settings.cron_secret:
        return
    if not x_cron_secret or not hmac.compare_digest(x_cron_secret, settings.cron_secret):
        raise HTTPException(status_code=401, detail="Invalid cron secret.")
