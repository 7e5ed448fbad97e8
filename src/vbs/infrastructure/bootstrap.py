"""Composition root: wires concrete implementations to domain interfaces.

This is the only place in the codebase that knows about *all* layers.
Every other module depends only on abstractions.
"""

from __future__ import annotations

from functools import lru_cache

from sqlalchemy.engine import Engine

from vbs.domain.exceptions import ConfigurationError
from vbs.domain.service.reference_generator import ReferenceGenerator
from vbs.infrastructure.config import Settings, load_settings
from vbs.infrastructure.payments.stripe_gateway import StripePaymentGateway, build_client
from vbs.infrastructure.persistence.database import make_engine, make_session_factory
from vbs.infrastructure.persistence.sqlalchemy_booking_store import SqlAlchemyBookingStore


@lru_cache(maxsize=1)
def settings() -> Settings:
    return load_settings()


@lru_cache(maxsize=1)
def engine() -> Engine:
    return make_engine(settings().database_url)


def booking_store() -> SqlAlchemyBookingStore:
    return SqlAlchemyBookingStore(make_session_factory(engine()))


def payment_gateway() -> StripePaymentGateway:
    api_key = settings().stripe_api_key
    if not api_key:
        raise ConfigurationError("STRIPE_API_KEY is not set")
    return StripePaymentGateway(build_client(api_key, settings().gateway_timeout_seconds))


def reference_generator() -> ReferenceGenerator:
    return ReferenceGenerator(settings().reference_length)
