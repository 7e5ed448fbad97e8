"""Tests for the PaymentVerifier domain service."""

import pytest

from vbs.domain.exceptions import (
    AmountMismatchError,
    GatewayUnavailableError,
    InvalidPaymentReferenceError,
    PaymentIncompleteError,
)
from vbs.domain.model.value_objects import Money
from vbs.domain.service.payment_verifier import PaymentVerifier
from tests.fakes import FakePaymentGateway


def _verifier():
    gateway = FakePaymentGateway()
    return gateway, PaymentVerifier(gateway)


class TestPaymentVerifier:

    def test_exact_match_passes(self):
        gateway, verifier = _verifier()
        gateway.add_payment("pi_1", 15000)

        payment = verifier.verify("pi_1", Money.of("150.00"))

        assert payment.reference == "pi_1"
        assert payment.amount == 15000
        assert payment.currency == "GBP"

    def test_unknown_reference(self):
        _, verifier = _verifier()
        with pytest.raises(InvalidPaymentReferenceError, match="Invalid payment reference"):
            verifier.verify("pi_missing", Money.of("1"))

    def test_not_succeeded(self):
        gateway, verifier = _verifier()
        gateway.add_payment("pi_1", 15000, status="requires_payment_method")
        with pytest.raises(PaymentIncompleteError, match="Payment not completed"):
            verifier.verify("pi_1", Money.of("150.00"))

    def test_one_penny_short_is_a_mismatch(self):
        gateway, verifier = _verifier()
        gateway.add_payment("pi_1", 14999)
        with pytest.raises(AmountMismatchError, match="Payment amount mismatch") as exc_info:
            verifier.verify("pi_1", Money.of("150.00"))
        assert exc_info.value.expected_amount == 15000
        assert exc_info.value.actual_amount == 14999

    def test_currency_mismatch(self):
        gateway, verifier = _verifier()
        gateway.add_payment("pi_1", 15000, currency="EUR")
        with pytest.raises(AmountMismatchError):
            verifier.verify("pi_1", Money.of("150.00"))

    def test_expected_amount_rounds_half_up(self):
        gateway, verifier = _verifier()
        gateway.add_payment("pi_1", 1001)
        verifier.verify("pi_1", Money.of("10.005"))

    def test_gateway_failure_propagates(self):
        gateway, verifier = _verifier()
        gateway.unavailable = True
        with pytest.raises(GatewayUnavailableError):
            verifier.verify("pi_1", Money.of("1"))
