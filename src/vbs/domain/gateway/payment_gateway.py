"""Abstract payment provider."""

from __future__ import annotations

from abc import ABC, abstractmethod

from vbs.domain.model.payment import PaymentFacts, RefundFacts


class PaymentGateway(ABC):

    @abstractmethod
    def retrieve_payment(self, payment_reference: str) -> PaymentFacts | None:
        """Return the provider's view of a payment, or None if unknown.

        Raises GatewayUnavailableError on transport failures and timeouts.
        """

    @abstractmethod
    def issue_refund(
        self,
        payment_reference: str,
        amount: int,
        metadata: dict[str, str] | None = None,
    ) -> RefundFacts:
        """Refund *amount* minor units of a captured payment."""
