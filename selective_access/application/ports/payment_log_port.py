from __future__ import annotations

from typing import Protocol

from selective_access.domain.entities.payment_log import PaymentLogEntry


class PaymentLogPort(Protocol):
    def insert_payment_log(self, entry: PaymentLogEntry) -> None:
        ...

    def has_payment_log(self, *, stripe_session_id: str, event_type: str) -> bool:
        ...
