from __future__ import annotations


class DomainError(Exception):
    """Base for domain errors."""


class InvalidRequestError(DomainError):
    """Request is missing required fields or is malformed."""


class SessionCreationFailedError(DomainError):
    """Billing provider could not create the checkout session."""


class InvalidSignatureError(DomainError):
    """Webhook signature or payload could not be verified."""


class BillingProviderError(DomainError):
    """Call to the billing provider failed."""


class StoreError(DomainError):
    """Call to the identity store failed."""


class AuthProxyError(DomainError):
    """Auth request could not be forwarded."""


class ConfigurationError(DomainError):
    """Required setting is missing."""
