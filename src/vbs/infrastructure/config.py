"""Settings read from the environment (and a local ``.env`` file)."""

from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import timedelta
from typing import Mapping

from dotenv import load_dotenv

from vbs.domain.exceptions import ConfigurationError
from vbs.domain.service.reference_generator import (
    DEFAULT_REFERENCE_LENGTH,
    MAX_REFERENCE_LENGTH,
    MIN_REFERENCE_LENGTH,
)


@dataclass(frozen=True)
class Settings:
    database_url: str = "sqlite:///./vbs.db"
    stripe_api_key: str | None = None
    gateway_timeout_seconds: float = 10.0
    reference_length: int = DEFAULT_REFERENCE_LENGTH
    reference_max_attempts: int = 5
    reminder_lead_hours: int = 24
    default_currency: str = "GBP"
    venue_name: str = "Country Days"
    log_level: str = "INFO"

    @property
    def reminder_lead(self) -> timedelta:
        return timedelta(hours=self.reminder_lead_hours)


def _int(env: Mapping[str, str], name: str, default: int, minimum: int = 1) -> int:
    raw = env.get(name)
    if raw is None or raw == "":
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from exc
    if value < minimum:
        raise ConfigurationError(f"{name} must be at least {minimum}, got {value}")
    return value


def load_settings(env: Mapping[str, str] | None = None) -> Settings:
    """Build Settings from *env*, defaulting to ``os.environ`` after loading ``.env``."""
    if env is None:
        load_dotenv()
        env = os.environ

    raw_timeout = env.get("VBS_GATEWAY_TIMEOUT_SECONDS") or "10"
    try:
        timeout = float(raw_timeout)
    except ValueError as exc:
        raise ConfigurationError(
            f"VBS_GATEWAY_TIMEOUT_SECONDS must be a number, got {raw_timeout!r}"
        ) from exc
    if timeout <= 0:
        raise ConfigurationError("VBS_GATEWAY_TIMEOUT_SECONDS must be positive")

    reference_length = _int(env, "VBS_REFERENCE_LENGTH", DEFAULT_REFERENCE_LENGTH)
    if not MIN_REFERENCE_LENGTH <= reference_length <= MAX_REFERENCE_LENGTH:
        raise ConfigurationError(
            f"VBS_REFERENCE_LENGTH must be between {MIN_REFERENCE_LENGTH} "
            f"and {MAX_REFERENCE_LENGTH}"
        )

    currency = (env.get("VBS_DEFAULT_CURRENCY") or "GBP").upper()
    if len(currency) != 3 or not currency.isalpha():
        raise ConfigurationError(f"VBS_DEFAULT_CURRENCY is not a currency code: {currency!r}")

    return Settings(
        database_url=env.get("VBS_DATABASE_URL") or Settings.database_url,
        stripe_api_key=env.get("STRIPE_API_KEY") or None,
        gateway_timeout_seconds=timeout,
        reference_length=reference_length,
        reference_max_attempts=_int(env, "VBS_REFERENCE_MAX_ATTEMPTS", 5),
        reminder_lead_hours=_int(env, "VBS_REMINDER_LEAD_HOURS", 24, minimum=0),
        default_currency=currency,
        venue_name=env.get("VBS_VENUE_NAME") or Settings.venue_name,
        log_level=(env.get("VBS_LOG_LEVEL") or "INFO").upper(),
    )
