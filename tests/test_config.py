import pytest

from mintgrabber.config import get_config


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in (
        "BASE_URL",
        "TIMEOUT",
        "RATE_LIMIT_REQUESTS",
        "RATE_LIMIT_PERIOD",
        "MAX_CONCURRENT",
        "RETRY_ATTEMPTS",
        "RETRY_BACKOFF",
    ):
        monkeypatch.delenv(f"MINTGRABBER_{name}", raising=False)


def test_defaults():
    """Test configuration defaults."""
    config = get_config()
    assert config.api.base_url == "https://mint.intuit.com"
    assert config.api.timeout == 60.0
    assert config.rate_limit.max_requests == 5
    assert config.rate_limit.period == 1.0
    assert config.rate_limit.max_concurrent == 5
    assert config.retry.attempts == 3
    assert config.retry.backoff == 1.0
    assert config.retry.multiplier == 2.0


def test_env_overrides(monkeypatch):
    """Test that MINTGRABBER_* variables override defaults."""
    monkeypatch.setenv("MINTGRABBER_BASE_URL", "http://localhost:8080")
    monkeypatch.setenv("MINTGRABBER_RATE_LIMIT_REQUESTS", "2")
    monkeypatch.setenv("MINTGRABBER_RATE_LIMIT_PERIOD", "0.5")
    monkeypatch.setenv("MINTGRABBER_RETRY_ATTEMPTS", "1")

    config = get_config()

    assert config.api.base_url == "http://localhost:8080"
    assert config.rate_limit.max_requests == 2
    assert config.rate_limit.period == 0.5
    assert config.retry.attempts == 1


def test_empty_env_uses_default(monkeypatch):
    monkeypatch.setenv("MINTGRABBER_RETRY_ATTEMPTS", "")
    assert get_config().retry.attempts == 3


def test_invalid_number(monkeypatch):
    monkeypatch.setenv("MINTGRABBER_MAX_CONCURRENT", "many")
    with pytest.raises(ValueError, match="MINTGRABBER_MAX_CONCURRENT must be a number"):
        get_config()


def test_number_below_minimum(monkeypatch):
    monkeypatch.setenv("MINTGRABBER_RETRY_ATTEMPTS", "0")
    with pytest.raises(ValueError, match="must be >= 1"):
        get_config()
