# --- Standard library imports ---
import os
from pathlib import Path

# --- Third-party imports ---
from dotenv import load_dotenv


# Load .env once
load_dotenv()

class Config:
    """Centralized config for endpoint resolution and launch decision parameters"""

    # --- Remote endpoint protocol ---
    BASE_URL = os.getenv(
        "BASE_URL", "https://wallen-eatery.space/ios-olg-1/server.php"
    )
    PARTNER_TOKEN = os.getenv("PARTNER_TOKEN", "Bs2675kDjkb5Ga")
    RESPONSE_MARKER = os.getenv("RESPONSE_MARKER", "GJDFHDFHFDJGSDAGKGHK")
    RESPONSE_SEPARATOR = os.getenv("RESPONSE_SEPARATOR", "#")

    # --- Retry Policy ---
    try:
        MAX_ATTEMPTS = int(os.getenv("MAX_ATTEMPTS", 3))
    except ValueError:
        MAX_ATTEMPTS = 3

    try:
        ATTEMPT_TIMEOUT_S = float(os.getenv("ATTEMPT_TIMEOUT_S", 15))
    except ValueError:
        ATTEMPT_TIMEOUT_S = 15.0

    try:
        RETRY_DELAY_S = float(os.getenv("RETRY_DELAY_S", 1))
    except ValueError:
        RETRY_DELAY_S = 1.0

    # --- Launch Policy ---
    try:
        SPLASH_MIN_DURATION_S = float(os.getenv("SPLASH_MIN_DURATION_S", 2))
    except ValueError:
        SPLASH_MIN_DURATION_S = 2.0

    # --- Cache layout ---
    CACHE_DIR = Path(
        os.getenv("CACHE_DIR", Path.home() / ".cache" / "launch_arbiter")
    )
    CACHE_FILE = CACHE_DIR / os.getenv("CACHE_FILE", "endpoint.json")
    CACHE_KEY = os.getenv("CACHE_KEY", "resolved_endpoint")

    # --- Connectivity Probe ---
    CONNECTIVITY_PROBE_HOST = os.getenv("CONNECTIVITY_PROBE_HOST", "1.1.1.1")

    try:
        CONNECTIVITY_PROBE_PORT = int(os.getenv("CONNECTIVITY_PROBE_PORT", 443))
    except ValueError:
        CONNECTIVITY_PROBE_PORT = 443

    try:
        CONNECTIVITY_INTERVAL_S = float(os.getenv("CONNECTIVITY_INTERVAL_S", 5))
    except ValueError:
        CONNECTIVITY_INTERVAL_S = 5.0

    # --- Network Policy (NOT user configurable) ---
    CONNECTIVITY_TIMEOUT_S = 2.0   # seconds (LAN/WAN probe, fast-fail)

    # --- Observability Policy ---
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    LOG_TIMING = os.getenv("LOG_TIMING", "false").lower() == "true"
