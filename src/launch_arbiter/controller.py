# ─── Standard library imports ───
import time
import queue
import threading
from typing import Callable, Optional

# ─── Project imports ───
from .config import Config
from .telemetry import tlog
from .logger import get_logger
from .events import EventChannel
from .cache import ResolutionCache
from .connectivity import ConnectivityMonitor
from .resolver import EndpointResolver, ResolutionResult, SOURCE_CACHE
from .mode import BootstrapMode, INITIALIZING, NATIVE_FALLBACK, MODE_EMOJI, decide_mode


# ─── Inbox event kinds ───
EVENT_CONNECTIVITY = "connectivity"
EVENT_ENDPOINT_UPDATED = "endpoint_updated"
_STOP = object()

class BootstrapController:
    """
    Launch decision orchestrator and sole owner of the BootstrapMode.

    Responsibilities:
    • Run the startup sequence once (splash floor + resolution + decision)
    • Recompute the mode on connectivity transitions and endpoint updates
    • Publish every mode change to subscribers

    Non-responsibilities:
    • No resolution after startup (recomputes reuse the last outcome)
    • No rendering; collaborators subscribe and draw

    Threading:
        Other threads only enqueue events (`on_connectivity_changed`,
        `on_endpoint_updated`). The mode is written exclusively by whoever
        runs `run_startup()` / `process_pending()`: the owner thread after
        `start()`, or the caller directly when no thread is started.
    """

    def __init__(
        self,
        resolver: EndpointResolver,
        cache: ResolutionCache,
        monitor: ConnectivityMonitor,
        endpoint_updates: EventChannel,
        splash_min_duration_s: float | None = None,
    ):
        # ─── Dependencies / Configuration ───
        self.resolver = resolver
        self.cache = cache
        self.monitor = monitor
        self.splash_min_duration_s = (
            splash_min_duration_s
            if splash_min_duration_s is not None
            else Config.SPLASH_MIN_DURATION_S
        )

        # ─── Decision inputs (owner context only) ───
        self._result: Optional[ResolutionResult] = None
        self._connected: bool = monitor.is_connected()

        # ─── Output ───
        self._mode: Optional[BootstrapMode] = None
        self._changes = EventChannel("bootstrap_mode")
        self._decided = threading.Event()

        # ─── Owner context ───
        self._inbox: queue.Queue = queue.Queue()
        self._thread: Optional[threading.Thread] = None

        self.logger = get_logger("controller")

        # Subscribe before startup so early signals are queued, not lost
        self._unsubscribers = [
            monitor.subscribe(self.on_connectivity_changed),
            endpoint_updates.subscribe(self.on_endpoint_updated),
        ]

    # ──────────────────────────────────────────────────────────────
    # Read-only views
    # ──────────────────────────────────────────────────────────────

    @property
    def mode(self) -> BootstrapMode:
        return self._mode or INITIALIZING

    def subscribe(self, listener: Callable[[BootstrapMode], None]) -> Callable[[], None]:
        """Register a listener for mode changes."""
        return self._changes.subscribe(listener)

    def wait_for_decision(self, timeout: float | None = None) -> Optional[BootstrapMode]:
        """Block until the initial decision exists; None on timeout."""
        if not self._decided.wait(timeout):
            return None
        return self.mode

    # ──────────────────────────────────────────────────────────────
    # Startup sequence
    # ──────────────────────────────────────────────────────────────

    def run_startup(self) -> BootstrapMode:
        """
        Initial decision.

        1. Enter INITIALIZING
        2. Resolve the endpoint (cache first)
        3. Hold the splash until the minimum duration has elapsed
        4. Decide from (outcome, current connectivity)
        """
        started = time.monotonic()
        self._set_mode(INITIALIZING, reason="startup")

        result = self.resolver.resolve()

        remaining = self.splash_min_duration_s - (time.monotonic() - started)
        if remaining > 0:
            self.logger.debug(f"Holding splash for {remaining:.2f}s")
            time.sleep(remaining)

        # Signals queued during the splash are superseded by this decision
        self.process_pending()

        self._result = result
        self._connected = self.monitor.is_connected()
        self._recompute(reason="startup")
        self._decided.set()
        return self.mode

    # ──────────────────────────────────────────────────────────────
    # Signal intake (any thread)
    # ──────────────────────────────────────────────────────────────

    def on_connectivity_changed(self, reachable: bool) -> None:
        self._inbox.put((EVENT_CONNECTIVITY, bool(reachable)))

    def on_endpoint_updated(self) -> None:
        self._inbox.put((EVENT_ENDPOINT_UPDATED, None))

    def reload_if_connected(self) -> None:
        """Re-derive the mode against the monitor's current reachability."""
        self.on_connectivity_changed(self.monitor.is_connected())

    # ──────────────────────────────────────────────────────────────
    # Owner context
    # ──────────────────────────────────────────────────────────────

    def process_pending(self) -> BootstrapMode:
        """Apply every queued event in arrival order; returns the resulting mode."""
        while True:
            try:
                event = self._inbox.get_nowait()
            except queue.Empty:
                break
            if event is _STOP:
                # Leave shutdown to the owner loop
                self._inbox.put(_STOP)
                break
            self._dispatch(event)
        return self.mode

    def _dispatch(self, event: tuple) -> None:
        kind, value = event

        if kind == EVENT_CONNECTIVITY:
            self._connected = value

        elif kind == EVENT_ENDPOINT_UPDATED:
            if self._result is None:
                # Startup has not decided yet; its resolution reads the cache anyway
                self.logger.debug("Endpoint update before initial decision; deferred to startup")
                return
            self._result = self._result_from_cache()

        if self._result is None:
            return

        self._recompute(reason=kind)

    def _result_from_cache(self) -> ResolutionResult:
        endpoint = self.cache.load()
        return ResolutionResult(
            endpoint=endpoint,
            source=SOURCE_CACHE if endpoint else None,
            attempts=0,
            max_attempts=self._result.max_attempts,
        )

    def _recompute(self, reason: str) -> None:
        self._set_mode(decide_mode(self._result, self._connected), reason=reason)

    def _set_mode(self, mode: BootstrapMode, reason: str) -> None:
        prev = self._mode
        if mode == prev:
            return

        self._mode = mode
        tlog(
            self.logger,
            MODE_EMOJI[mode.kind],
            "MODE",
            "CHANGE",
            primary=f"{prev.kind.name if prev else 'NONE'} → {mode.kind.name}",
            meta=f"trigger={reason}" + (f" | endpoint={mode.endpoint}" if mode.endpoint else ""),
        )
        self._changes.publish(mode)

    # ──────────────────────────────────────────────────────────────
    # Owner thread lifecycle
    # ──────────────────────────────────────────────────────────────

    def start(self) -> None:
        """Run startup and the event loop on a dedicated daemon thread."""
        if self._thread is not None and self._thread.is_alive():
            return

        self._thread = threading.Thread(
            target=self._run, name="BootstrapController", daemon=True
        )
        self._thread.start()

    def stop(self, timeout: float | None = None) -> None:
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers = []

        if self._thread is not None:
            self._inbox.put(_STOP)
            self._thread.join(timeout)
            self._thread = None

    def _run(self) -> None:
        try:
            self.run_startup()
        except Exception:
            self.logger.exception("Unhandled exception during startup; falling back to native mode")
            self._result = ResolutionResult(
                endpoint=None,
                source=None,
                attempts=0,
                max_attempts=self.resolver.policy.max_attempts,
            )
            self._set_mode(NATIVE_FALLBACK, reason="startup-error")
            self._decided.set()

        while True:
            event = self._inbox.get()
            if event is _STOP:
                break
            try:
                self._dispatch(event)
            except Exception:
                self.logger.exception(f"Unhandled exception while handling {event[0]}")
