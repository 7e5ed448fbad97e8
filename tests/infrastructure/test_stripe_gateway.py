"""Tests for the Stripe gateway using a stand-in client object."""

from types import SimpleNamespace

import pytest
import stripe

from vbs.domain.exceptions import GatewayUnavailableError, ValidationError
from vbs.infrastructure.payments.stripe_gateway import StripePaymentGateway, build_client


class _Endpoint:
    def __init__(self, result=None, error=None):
        self.result = result
        self.error = error
        self.calls = []

    def _respond(self, *args, **kwargs):
        self.calls.append((args, kwargs))
        if self.error is not None:
            raise self.error
        return self.result

    retrieve = _respond
    create = _respond


def _gateway(intent=None, refund=None, retrieve_error=None, refund_error=None):
    client = SimpleNamespace(
        payment_intents=_Endpoint(intent, retrieve_error),
        refunds=_Endpoint(refund, refund_error),
    )
    return StripePaymentGateway(client), client


class TestRetrievePayment:

    def test_maps_intent(self):
        intent = SimpleNamespace(id="pi_1", amount=9900, currency="gbp", status="succeeded")
        gateway, client = _gateway(intent=intent)

        facts = gateway.retrieve_payment("pi_1")

        assert facts.reference == "pi_1"
        assert facts.amount == 9900
        assert facts.currency == "GBP"
        assert facts.succeeded
        assert client.payment_intents.calls == [(("pi_1",), {})]

    def test_missing_intent_is_none(self):
        error = stripe.InvalidRequestError("No such payment_intent", "id", code="resource_missing")
        gateway, _ = _gateway(retrieve_error=error)

        assert gateway.retrieve_payment("pi_missing") is None

    def test_connection_failure(self):
        gateway, _ = _gateway(retrieve_error=stripe.APIConnectionError("network down"))

        with pytest.raises(GatewayUnavailableError):
            gateway.retrieve_payment("pi_1")


class TestIssueRefund:

    def test_creates_refund(self):
        refund = SimpleNamespace(id="re_1", amount=5000, currency="gbp", status="succeeded")
        gateway, client = _gateway(refund=refund)

        facts = gateway.issue_refund("pi_1", 5000, metadata={"booking_id": "b1"})

        assert facts.reference == "re_1"
        assert facts.payment_reference == "pi_1"
        assert facts.currency == "GBP"
        [(_, kwargs)] = client.refunds.calls
        assert kwargs["params"] == {
            "payment_intent": "pi_1",
            "amount": 5000,
            "metadata": {"booking_id": "b1"},
        }

    def test_missing_status_reads_as_pending(self):
        refund = SimpleNamespace(id="re_1", amount=5000, currency="gbp", status=None)
        gateway, _ = _gateway(refund=refund)

        assert gateway.issue_refund("pi_1", 5000).status == "pending"

    def test_rejected_refund(self):
        error = stripe.InvalidRequestError("Refund exceeds charge", "amount")
        gateway, _ = _gateway(refund_error=error)

        with pytest.raises(ValidationError, match="Refund rejected by payment provider"):
            gateway.issue_refund("pi_1", 999999)

    def test_provider_outage(self):
        gateway, _ = _gateway(refund_error=stripe.APIConnectionError("timeout"))

        with pytest.raises(GatewayUnavailableError):
            gateway.issue_refund("pi_1", 5000)


def test_build_client():
    assert isinstance(build_client("sk_test_123", timeout=5), stripe.StripeClient)
