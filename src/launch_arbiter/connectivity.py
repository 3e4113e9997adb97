# ─── Standard library imports ───
import threading
from typing import Callable, Optional

# ─── Project imports ───
from .config import Config
from .events import EventChannel
from .logger import get_logger
from .telemetry import tlog
from .utils import ping_host


class ConnectivityMonitor:
    """
    Continuous network reachability observer.

    Responsibilities:
    • Probe the WAN path on a background thread
    • Track the current reachability value (no history)
    • Publish a boolean on every transition

    Non-responsibilities:
    • No decisions about what to show
    • No retries beyond the next scheduled probe

    `current` is None until the first observation arrives; callers that
    must decide before then treat unknown as reachable (`is_connected()`).
    """

    def __init__(
        self,
        host: str | None = None,
        port: int | None = None,
        interval_s: float | None = None,
        timeout_s: float | None = None,
    ):
        # ─── Probe Configuration ───
        self.host = host or Config.CONNECTIVITY_PROBE_HOST
        self.port = port or Config.CONNECTIVITY_PROBE_PORT
        self.interval_s = interval_s if interval_s is not None else Config.CONNECTIVITY_INTERVAL_S
        self.timeout_s = timeout_s if timeout_s is not None else Config.CONNECTIVITY_TIMEOUT_S

        # ─── Runtime State ───
        self._current: Optional[bool] = None
        self._transitions = EventChannel("connectivity")
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

        self.logger = get_logger("connectivity")

    @property
    def current(self) -> Optional[bool]:
        return self._current

    def is_connected(self) -> bool:
        """Current reachability, assuming reachable until the first observation."""
        return True if self._current is None else self._current

    def subscribe(self, callback: Callable[[bool], None]) -> Callable[[], None]:
        return self._transitions.subscribe(callback)

    def report(self, reachable: bool) -> None:
        """
        Record one observation and publish it if it is a transition.

        The first observation always counts as a transition.
        """
        reachable = bool(reachable)
        if reachable == self._current:
            return

        prev = self._current
        self._current = reachable
        tlog(
            self.logger,
            "🟢" if reachable else "🔴",
            "NETWORK",
            "UP" if reachable else "DOWN",
            primary=f"dest={self.host}:{self.port}",
            meta=f"was={'UNKNOWN' if prev is None else ('UP' if prev else 'DOWN')}",
        )
        self._transitions.publish(reachable)

    def probe_once(self) -> bool:
        result = ping_host(self.host, port=self.port, timeout=self.timeout_s)
        self.report(result.success)
        return result.success

    # ──────────────────────────────────────────────────────────────
    # Background observation
    # ──────────────────────────────────────────────────────────────

    def start(self) -> None:
        """Start observing; calling it again while running is a no-op."""
        if self._thread is not None and self._thread.is_alive():
            return

        self._stop.clear()
        self._thread = threading.Thread(
            target=self._run, name="ConnectivityMonitor", daemon=True
        )
        self._thread.start()
        self.logger.debug(
            f"Connectivity monitor started ({self.host}:{self.port} every {self.interval_s}s)"
        )

    def stop(self, timeout: float | None = None) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None

    def _run(self) -> None:
        while not self._stop.is_set():
            try:
                self.probe_once()
            except Exception:
                self.logger.exception("Unhandled exception during connectivity probe")
            self._stop.wait(self.interval_s)
