"""Domain service: check a provider payment against what a booking owes.

Amounts are compared as integers in the currency's minor unit.  There is
no tolerance: a one-penny difference is a mismatch.
"""

from __future__ import annotations

from vbs.domain.exceptions import (
    AmountMismatchError,
    InvalidPaymentReferenceError,
    PaymentIncompleteError,
)
from vbs.domain.gateway.payment_gateway import PaymentGateway
from vbs.domain.model.payment import PaymentFacts
from vbs.domain.model.value_objects import Money


class PaymentVerifier:

    def __init__(self, gateway: PaymentGateway) -> None:
        self._gateway = gateway

    def verify(self, payment_reference: str, expected: Money) -> PaymentFacts:
        """Return the payment if it succeeded for exactly *expected*.

        GatewayUnavailableError from the gateway propagates unchanged.
        """
        payment = self._gateway.retrieve_payment(payment_reference)
        if payment is None:
            raise InvalidPaymentReferenceError(payment_reference)

        if not payment.succeeded:
            raise PaymentIncompleteError(payment_reference, payment.status)

        expected_amount = expected.to_minor_units()
        if (
            payment.amount != expected_amount
            or payment.currency.upper() != expected.currency
        ):
            raise AmountMismatchError(
                expected_amount=expected_amount,
                expected_currency=expected.currency,
                actual_amount=payment.amount,
                actual_currency=payment.currency.upper(),
            )

        return payment
