# --- Standard library imports ---
import time
import socket
from dataclasses import dataclass

# --- Project imports ---
from .logger import get_logger


# Define the logger once for the entire module
logger = get_logger("utils")

@dataclass(frozen=True)
class ProbeResult:
    """Outcome of a single reachability probe."""
    success: bool
    elapsed_ms: float

def ping_host(host: str, port: int = 443, timeout: float = 2.0) -> ProbeResult:
    """
    Check host reachability efficiently and cross-platform.

    Performs a TCP connection (Layer 4) to the given IP/hostname and port,
    avoiding ICMP so no admin privileges are required.

    Args:
        host: IP address or hostname to check.
        port: TCP port to attempt (default 443).
        timeout: Seconds before giving up.

    Returns:
        ProbeResult with success flag and round-trip time in milliseconds.
    """
    start = time.monotonic()
    try:
        with socket.create_connection((host, port), timeout=timeout):
            success = True
    except OSError:
        success = False

    elapsed_ms = (time.monotonic() - start) * 1000
    logger.debug(f"Probe {host}:{port} → {'UP' if success else 'DOWN'} ({elapsed_ms:.0f} ms)")
    return ProbeResult(success=success, elapsed_ms=elapsed_ms)

# ============================================================
# Performance Timing Utilities (optional instrumentation)
# ============================================================

class Timer:
    def __init__(self, logger):
        self.logger = logger
        self.run_start = None
        self.lap_start = None

    def start(self):
        """Call once at the beginning of a timed operation."""
        now = time.perf_counter()  # Recommended clock for benchmarking
        self.run_start = now
        self.lap_start = now

    def lap(self, label: str):
        """Measure time since last lap."""
        if self.lap_start is None:
            return

        now = time.perf_counter()
        delta_ms = (now - self.lap_start) * 1000
        self.logger.timing(f"Timing | {label:<34} [{delta_ms:8.1f} ms]")
        self.lap_start = now

    def end(self, label: str) -> float:
        """End-to-end duration; returns elapsed milliseconds."""
        if self.run_start is None:
            return 0.0
        total_ms = (time.perf_counter() - self.run_start) * 1000
        self.logger.timing(f"Timing | {label:<34} [{total_ms:8.1f} ms]")
        self.run_start = None
        self.lap_start = None
        return total_ms
