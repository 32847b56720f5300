"""Route test configuration: disable the rate limiter."""

from unittest.mock import patch

import pytest


@pytest.fixture(autouse=True)
def _disable_rate_limiter():
    """Disable slowapi rate limiting so route handlers can be called freely."""
    with patch("core.ratelimit.limiter.enabled", False):
        yield
