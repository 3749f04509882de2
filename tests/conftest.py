"""Pytest configuration and fixtures."""

import pytest

from webhook_platform.common.clock import fixed_clock
from webhook_platform.common.settings import Settings

SECRET = "whsec_test_secret_key_123"
PAYLOAD = b'{"type":"order.completed","data":{"orderId":"12345"}}'
NOW_MS = 1700000000000


@pytest.fixture
def secret() -> str:
    return SECRET


@pytest.fixture
def payload() -> bytes:
    """Order-completed event body."""
    return PAYLOAD


@pytest.fixture
def now_ms() -> int:
    return NOW_MS


@pytest.fixture
def clock():
    """Clock frozen at NOW_MS."""
    return fixed_clock(NOW_MS)


@pytest.fixture
def settings() -> Settings:
    """Create test settings."""
    return Settings(
        _env_file=None,
        secret=SECRET,
        tolerance_ms=300_000,
        webhook_path="/webhooks",
    )
