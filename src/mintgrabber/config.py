"""
Configuration for mintgrabber.

Constants describe the trends API; tunable values (rate limit, retry budget,
endpoint) are read from the environment by ``get_config``.
"""

import os
from dataclasses import dataclass, field
from typing import Optional

# The daily trends report refuses ranges longer than this.
MAX_WINDOW_DAYS = 43

# Provider default page size. 1000 months is more than 83 years of history.
DEFAULT_LIMIT = 1000

DATE_FILTER_ALL_TIME = {"type": "ALL_TIME"}

ACCOUNTS_PATH = "/pfm/v1/accounts"
TRENDS_PATH = "/pfm/v1/trends"

MINT_HEADERS = {
    "Accept": "application/json",
    "Content-Type": "application/json",
}

ENV_PREFIX = "MINTGRABBER_"


@dataclass
class ApiConfig:
    """Trends API endpoint settings."""

    base_url: str = "https://mint.intuit.com"
    timeout: float = 60.0


@dataclass
class RateLimitConfig:
    """Global request budget shared by every fetch in one run."""

    max_requests: int = 5
    period: float = 1.0  # seconds
    max_concurrent: Optional[int] = 5


@dataclass
class RetryConfig:
    """Per-request retry budget."""

    attempts: int = 3
    backoff: float = 1.0  # seconds before the first retry
    multiplier: float = 2.0


@dataclass
class Config:
    api: ApiConfig = field(default_factory=ApiConfig)
    rate_limit: RateLimitConfig = field(default_factory=RateLimitConfig)
    retry: RetryConfig = field(default_factory=RetryConfig)


def _env(name: str) -> Optional[str]:
    value = os.environ.get(f"{ENV_PREFIX}{name}")
    return value if value else None


def _env_number(name: str, cast, default, minimum):
    raw = _env(name)
    if raw is None:
        return default
    try:
        value = cast(raw)
    except ValueError:
        raise ValueError(f"{ENV_PREFIX}{name} must be a number, got {raw!r}")
    if value < minimum:
        raise ValueError(f"{ENV_PREFIX}{name} must be >= {minimum}, got {value}")
    return value


def get_config() -> Config:
    """Build configuration from defaults overridden by MINTGRABBER_* variables."""
    api = ApiConfig(
        base_url=_env("BASE_URL") or ApiConfig.base_url,
        timeout=_env_number("TIMEOUT", float, ApiConfig.timeout, 0.1),
    )
    rate_limit = RateLimitConfig(
        max_requests=_env_number(
            "RATE_LIMIT_REQUESTS", int, RateLimitConfig.max_requests, 1
        ),
        period=_env_number("RATE_LIMIT_PERIOD", float, RateLimitConfig.period, 0.0),
        max_concurrent=_env_number(
            "MAX_CONCURRENT", int, RateLimitConfig.max_concurrent, 1
        ),
    )
    retry = RetryConfig(
        attempts=_env_number("RETRY_ATTEMPTS", int, RetryConfig.attempts, 1),
        backoff=_env_number("RETRY_BACKOFF", float, RetryConfig.backoff, 0.0),
    )
    return Config(api=api, rate_limit=rate_limit, retry=retry)
