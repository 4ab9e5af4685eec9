"""Runtime settings for storefront.

Every setting has a module-level default that can be overridden through a
``STOREFRONT_*`` environment variable.
"""

import os
from dataclasses import dataclass
from typing import Mapping

from .errors import ConfigError

# Total attempts (first try included) for a reservation that loses a stock race
DEFAULT_RESERVATION_ATTEMPTS = 3
# Seconds allowed for a single order assembly; None disables the deadline
DEFAULT_ORDER_TIMEOUT: float | None = None
DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_SEED = True

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class Settings:
    reservation_attempts: int = DEFAULT_RESERVATION_ATTEMPTS
    order_timeout: float | None = DEFAULT_ORDER_TIMEOUT
    log_level: str = DEFAULT_LOG_LEVEL
    seed: bool = DEFAULT_SEED


def _parse_int(name: str, raw: str, minimum: int) -> int:
    try:
        value = int(raw)
    except ValueError:
        raise ConfigError(name, raw, "expected an integer")
    if value < minimum:
        raise ConfigError(name, raw, f"must be >= {minimum}")
    return value


def _parse_timeout(name: str, raw: str) -> float | None:
    try:
        value = float(raw)
    except ValueError:
        raise ConfigError(name, raw, "expected a number of seconds")
    if value < 0:
        raise ConfigError(name, raw, "must not be negative")
    return value or None  # 0 disables the deadline


def _parse_bool(name: str, raw: str) -> bool:
    lowered = raw.strip().lower()
    if lowered in ("1", "true", "yes", "on"):
        return True
    if lowered in ("0", "false", "no", "off", ""):
        return False
    raise ConfigError(name, raw, "expected 1/0 or true/false")


def load_settings(environ: Mapping[str, str] | None = None) -> Settings:
    """
    Build Settings from the environment.

    Args:
        environ: Mapping to read instead of ``os.environ`` (for testing).

    Raises:
        ConfigError: If a variable is set to an invalid value.
    """
    env = os.environ if environ is None else environ

    attempts = DEFAULT_RESERVATION_ATTEMPTS
    raw = env.get("STOREFRONT_RESERVATION_ATTEMPTS")
    if raw is not None:
        attempts = _parse_int("STOREFRONT_RESERVATION_ATTEMPTS", raw, minimum=1)

    timeout = DEFAULT_ORDER_TIMEOUT
    raw = env.get("STOREFRONT_ORDER_TIMEOUT")
    if raw is not None:
        timeout = _parse_timeout("STOREFRONT_ORDER_TIMEOUT", raw)

    log_level = env.get("STOREFRONT_LOG_LEVEL", DEFAULT_LOG_LEVEL).upper()
    if log_level not in LOG_LEVELS:
        raise ConfigError("STOREFRONT_LOG_LEVEL", log_level, f"must be one of {', '.join(LOG_LEVELS)}")

    seed = DEFAULT_SEED
    raw = env.get("STOREFRONT_SEED")
    if raw is not None:
        seed = _parse_bool("STOREFRONT_SEED", raw)

    return Settings(
        reservation_attempts=attempts,
        order_timeout=timeout,
        log_level=log_level,
        seed=seed,
    )
