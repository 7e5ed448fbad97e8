"""Stripe implementation of PaymentGateway.

Payment references are PaymentIntent ids (``pi_...``).  Stripe already
reports amounts in the currency's minor unit, so they pass through
unchanged; currencies come back lower-case and are upper-cased here.
"""

from __future__ import annotations

import logging

import stripe

from vbs.domain.exceptions import GatewayUnavailableError, ValidationError
from vbs.domain.gateway.payment_gateway import PaymentGateway
from vbs.domain.model.payment import PaymentFacts, RefundFacts

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 10.0


def build_client(api_key: str, timeout: float = DEFAULT_TIMEOUT_SECONDS) -> stripe.StripeClient:
    return stripe.StripeClient(
        api_key,
        http_client=stripe.RequestsClient(timeout=timeout),
        max_network_retries=1,
    )


class StripePaymentGateway(PaymentGateway):

    def __init__(self, client: stripe.StripeClient) -> None:
        self._client = client

    def retrieve_payment(self, payment_reference: str) -> PaymentFacts | None:
        try:
            intent = self._client.payment_intents.retrieve(payment_reference)
        except stripe.InvalidRequestError as exc:
            if exc.code != "resource_missing":
                logger.warning(f"Stripe rejected lookup of {payment_reference}: {exc}")
            return None
        except stripe.StripeError as exc:
            logger.warning(f"Stripe lookup of {payment_reference} failed: {exc}")
            raise GatewayUnavailableError("Payment provider unavailable") from exc

        return PaymentFacts(
            reference=intent.id,
            amount=int(intent.amount),
            currency=str(intent.currency).upper(),
            status=intent.status,
        )

    def issue_refund(
        self,
        payment_reference: str,
        amount: int,
        metadata: dict[str, str] | None = None,
    ) -> RefundFacts:
        try:
            refund = self._client.refunds.create(
                params={
                    "payment_intent": payment_reference,
                    "amount": amount,
                    "metadata": dict(metadata or {}),
                }
            )
        except (stripe.InvalidRequestError, stripe.CardError) as exc:
            raise ValidationError(
                f"Refund rejected by payment provider: {exc.user_message or exc}"
            ) from exc
        except stripe.StripeError as exc:
            logger.warning(f"Stripe refund of {payment_reference} failed: {exc}")
            raise GatewayUnavailableError("Payment provider unavailable") from exc

        logger.info(f"Stripe refund {refund.id} created for {payment_reference} ({amount})")
        return RefundFacts(
            reference=refund.id,
            payment_reference=payment_reference,
            amount=int(refund.amount),
            currency=str(refund.currency).upper(),
            status=refund.status or "pending",
        )
