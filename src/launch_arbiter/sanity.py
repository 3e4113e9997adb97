# --- Standard library imports ---
from urllib.parse import urlparse

# --- Project imports ---
from .config import Config
from .logger import get_logger
from .retry_policy import RetryPolicy


# Define the logger once for the entire module
logger = get_logger("sanity")


def print_summary(policy: RetryPolicy) -> None:
    # --- Quick Summary Printout ---
    logger.info("===== Runtime Summary =====")
    logger.info(f"Base URL:                      {Config.BASE_URL}")
    logger.info(f"Cache file:                    {Config.CACHE_FILE}")
    logger.info(f"Connectivity probe:            {Config.CONNECTIVITY_PROBE_HOST}:{Config.CONNECTIVITY_PROBE_PORT}")
    logger.info(f"Splash minimum:                {Config.SPLASH_MIN_DURATION_S}s")
    for name, value in policy.summary().items():
        logger.info(f"{name + ':':<31}{value}")
    logger.info("==========================")

def run_sanity_checks(policy: RetryPolicy) -> None:
    """
    Validate configuration invariants before any service is built.

    Violations describe a configuration that cannot resolve correctly and
    abort startup.

    Raises:
        ValueError: on any invalid setting.
    """

    # --- Endpoint protocol ---
    parsed = urlparse(Config.BASE_URL or "")
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValueError(f"❌ Invalid BASE_URL: {Config.BASE_URL!r}")

    if not Config.PARTNER_TOKEN:
        raise ValueError("❌ PARTNER_TOKEN must not be empty")

    if not Config.RESPONSE_MARKER:
        raise ValueError("❌ RESPONSE_MARKER must not be empty")

    if len(Config.RESPONSE_SEPARATOR) != 1:
        raise ValueError(
            f"❌ RESPONSE_SEPARATOR must be exactly one character: {Config.RESPONSE_SEPARATOR!r}"
        )

    # --- Retry policy ---
    if policy.max_attempts < 1:
        raise ValueError(f"❌ MAX_ATTEMPTS must be >= 1: {policy.max_attempts}")

    if policy.attempt_timeout_s <= 0:
        raise ValueError(f"❌ ATTEMPT_TIMEOUT_S must be positive: {policy.attempt_timeout_s}")

    if policy.retry_delay_s < 0:
        raise ValueError(f"❌ RETRY_DELAY_S must not be negative: {policy.retry_delay_s}")

    # --- Warn-only: splash longer than a full resolution pass ---
    if Config.SPLASH_MIN_DURATION_S > policy.worst_case_latency_s:
        logger.warning(
            f"Splash minimum ({Config.SPLASH_MIN_DURATION_S}s) exceeds worst-case "
            f"resolution latency ({policy.worst_case_latency_s}s)"
        )

    logger.info("🧩 Sanity checks passed")
    print_summary(policy)
