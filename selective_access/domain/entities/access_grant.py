from __future__ import annotations


GRANT_REASON_PAYMENT_INITIATED = "Payment initiated"
GRANT_REASON_DAILY_FALLBACK = "Daily fallback process"
