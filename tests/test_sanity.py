import pytest
from unittest.mock import patch

from launch_arbiter.retry_policy import RetryPolicy
from launch_arbiter.sanity import run_sanity_checks


# ========
# FIXTURES
# ========
class MockConfig:
    BASE_URL = "https://resolver.test/server.php"
    PARTNER_TOKEN = "partner-123"
    RESPONSE_MARKER = "TOKEN"
    RESPONSE_SEPARATOR = "#"
    SPLASH_MIN_DURATION_S = 2.0
    CACHE_FILE = "/tmp/endpoint.json"
    CONNECTIVITY_PROBE_HOST = "1.1.1.1"
    CONNECTIVITY_PROBE_PORT = 443

@pytest.fixture
def config():
    """Fresh config double per test; attributes may be overridden"""
    cfg = type("Cfg", (MockConfig,), {})
    with patch("launch_arbiter.sanity.Config", cfg):
        yield cfg


# ==============================
# TEST GROUP: Startup Invariants
# ==============================
def test_valid_configuration_passes(config):
    run_sanity_checks(RetryPolicy())

@pytest.mark.parametrize(
    "attr, value",
    [
        # ❌ Not a URL
        ("BASE_URL", "server.php"),

        # ❌ Unsupported scheme
        ("BASE_URL", "ftp://resolver.test/server.php"),

        # ❌ Empty partner token
        ("PARTNER_TOKEN", ""),

        # ❌ Empty marker
        ("RESPONSE_MARKER", ""),

        # ❌ Multi-character separator
        ("RESPONSE_SEPARATOR", "##"),

        # ❌ Missing separator
        ("RESPONSE_SEPARATOR", ""),
    ],
)
def test_invalid_protocol_config_raises(config, attr, value):
    setattr(config, attr, value)

    with pytest.raises(ValueError):
        run_sanity_checks(RetryPolicy())

@pytest.mark.parametrize(
    "policy",
    [
        RetryPolicy(max_attempts=0),
        RetryPolicy(attempt_timeout_s=0),
        RetryPolicy(retry_delay_s=-1),
    ],
)
def test_invalid_retry_policy_raises(config, policy):
    with pytest.raises(ValueError):
        run_sanity_checks(policy)
