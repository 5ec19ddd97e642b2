from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import quote, urlsplit


@dataclass(frozen=True)
class CheckoutRedirects:
    success_url: str
    cancel_url: str


def resolve_base_url(*, origin: str | None, referer: str | None, default_url: str) -> str:
    """Pick the post-payment redirect base: origin, then referer host, then default."""
    if origin and origin.strip():
        return origin.strip().rstrip("/")

    if referer and referer.strip():
        parts = urlsplit(referer.strip())
        if parts.scheme and parts.netloc:
            return f"{parts.scheme}://{parts.netloc}"

    return default_url.rstrip("/")


def build_checkout_redirects(*, base_url: str, plan_type: str) -> CheckoutRedirects:
    return CheckoutRedirects(
        success_url=f"{base_url}?paymentSuccess=true&planType={quote(plan_type, safe='')}",
        cancel_url=f"{base_url}/pricing?paymentSuccess=false",
    )
