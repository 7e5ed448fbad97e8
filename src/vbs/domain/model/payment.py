"""What the payment provider reports about a charge or refund."""

from __future__ import annotations

from dataclasses import dataclass

PAYMENT_SUCCEEDED = "succeeded"


@dataclass(frozen=True)
class PaymentFacts:
    """A payment as seen by the provider.  ``amount`` is in minor units."""

    reference: str
    amount: int
    currency: str
    status: str

    @property
    def succeeded(self) -> bool:
        return self.status == PAYMENT_SUCCEEDED


@dataclass(frozen=True)
class RefundFacts:
    reference: str
    payment_reference: str
    amount: int
    currency: str
    status: str
