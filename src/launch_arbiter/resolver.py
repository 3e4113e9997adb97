# ─── Standard library imports ───
import time
import threading
from dataclasses import dataclass
from typing import Optional

# ─── Third-party imports ───
import requests

# ─── Project imports ───
from .config import Config
from .telemetry import tlog
from .logger import get_logger
from .utils import Timer
from .cache import ResolutionCache
from .device import DeviceFingerprint
from .retry_policy import RetryPolicy
from .errors import ResolutionError, NetworkError, ProtocolError, ExtractionError


SOURCE_CACHE = "cache"
SOURCE_NETWORK = "network"

@dataclass(frozen=True)
class ResolutionResult:
    """
    Outcome of one `EndpointResolver.resolve()` call.

    `success` (an endpoint is present) is the Resolved case; anything else
    is Unavailable.
    """
    endpoint: Optional[str]
    source: Optional[str]
    attempts: int
    max_attempts: int
    elapsed_ms: float = 0.0

    @property
    def success(self) -> bool:
        return self.endpoint is not None

def extract_endpoint(body: str, marker: str, separator: str) -> str:
    """
    Pull the endpoint out of a marker/separator response body.

    The body must start with `marker`; the endpoint is the text after the
    first `separator`, stripped of surrounding whitespace.

    Example:
        'TOKEN#https://example.com/x' → 'https://example.com/x'

    Raises:
        ExtractionError: marker missing, separator missing or empty endpoint.
    """
    if not body.startswith(marker):
        raise ExtractionError("response marker missing")

    parts = body.split(separator, 1)
    if len(parts) < 2:
        raise ExtractionError(f"separator {separator!r} not found")

    endpoint = parts[1].strip()
    if not endpoint:
        raise ExtractionError("empty endpoint after separator")

    return endpoint

class _Flight:
    """Shared slot for the result of the resolution currently in progress."""

    def __init__(self):
        self.done = threading.Event()
        self.result: Optional[ResolutionResult] = None

class EndpointResolver:
    """
    Resolves the remote endpoint once and persists it.

    Workflow:
    1. Cache hit → return immediately (zero network calls)
    2. GET the base URL with partner token + device fingerprint
    3. Retry transport/protocol failures with a fixed delay
    4. Stop immediately on extraction failures (remote opt-out)
    5. Write a successful extraction through the cache

    `resolve()` is total: it always returns a ResolutionResult and never
    raises. Concurrent callers share one in-flight resolution.
    """

    def __init__(
        self,
        cache: ResolutionCache,
        device: DeviceFingerprint,
        policy: RetryPolicy | None = None,
        base_url: str | None = None,
        partner_token: str | None = None,
        marker: str | None = None,
        separator: str | None = None,
    ):
        # ─── Dependencies / Configuration ───
        self.cache = cache
        self.device = device
        self.policy = policy or RetryPolicy.from_config()
        self.base_url = base_url or Config.BASE_URL
        self.partner_token = partner_token or Config.PARTNER_TOKEN
        self.marker = marker or Config.RESPONSE_MARKER
        self.separator = separator or Config.RESPONSE_SEPARATOR

        # ─── Single-flight guard ───
        self._flight_lock = threading.Lock()
        self._flight: Optional[_Flight] = None

        # ─── Observability ───
        self.logger = get_logger("resolver")
        self.timer = Timer(self.logger)

    def build_query_params(self) -> dict[str, str]:
        """Outbound query parameters: partner token followed by device metadata."""
        return {"p": self.partner_token, **self.device.as_query_params()}

    def resolve(self) -> ResolutionResult:
        """
        Resolve the endpoint, joining an in-flight resolution if one exists.
        """
        with self._flight_lock:
            flight = self._flight
            leader = flight is None
            if leader:
                flight = self._flight = _Flight()

        if not leader:
            self.logger.debug("Resolution already in flight; awaiting its result")
            flight.done.wait()
            return flight.result

        try:
            flight.result = self._resolve_guarded()
        finally:
            with self._flight_lock:
                self._flight = None
            flight.done.set()

        return flight.result

    def _resolve_guarded(self) -> ResolutionResult:
        try:
            return self._resolve_once()
        except Exception:
            self.logger.exception("Unexpected error during endpoint resolution")
            return ResolutionResult(
                endpoint=None,
                source=None,
                attempts=0,
                max_attempts=self.policy.max_attempts,
            )

    def _resolve_once(self) -> ResolutionResult:
        max_attempts = self.policy.max_attempts

        # ─── L1 Cache (authoritative, zero network calls) ───
        cached = self.cache.load()
        if cached:
            tlog(self.logger, "🟢", "RESOLVER", "CACHE HIT", primary=f"source={SOURCE_CACHE}")
            return ResolutionResult(
                endpoint=cached,
                source=SOURCE_CACHE,
                attempts=0,
                max_attempts=max_attempts,
            )

        # ─── L2 Network resolution ───
        params = self.build_query_params()
        self.timer.start()

        for attempt in range(1, max_attempts + 1):
            try:
                endpoint = self._attempt(params)

            except ExtractionError as e:
                elapsed_ms = self.timer.end("Resolution (opt-out)")
                self._log_failure(attempt, e)
                tlog(
                    self.logger,
                    "🟡",
                    "RESOLVER",
                    "UNAVAILABLE",
                    primary="reason=opt-out",
                    meta=f"attempts={attempt}/{max_attempts}",
                )
                return ResolutionResult(
                    endpoint=None,
                    source=None,
                    attempts=attempt,
                    max_attempts=max_attempts,
                    elapsed_ms=elapsed_ms,
                )

            except ResolutionError as e:
                self._log_failure(attempt, e)
                self.timer.lap(f"Attempt {attempt} failed")
                if attempt < max_attempts:
                    time.sleep(self.policy.retry_delay_s)
                continue

            self.timer.lap(f"Attempt {attempt} succeeded")
            if not self.cache.store(endpoint):
                self.logger.warning("Endpoint resolved but not persisted; next launch will resolve again")

            elapsed_ms = self.timer.end("Resolution (resolved)")
            tlog(
                self.logger,
                "🟢",
                "RESOLVER",
                "RESOLVED",
                primary=f"source={SOURCE_NETWORK}",
                meta=f"attempts={attempt}/{max_attempts} | rtt={elapsed_ms:.0f}ms",
            )
            return ResolutionResult(
                endpoint=endpoint,
                source=SOURCE_NETWORK,
                attempts=attempt,
                max_attempts=max_attempts,
                elapsed_ms=elapsed_ms,
            )

        # ─── Attempts exhausted ───
        elapsed_ms = self.timer.end("Resolution (exhausted)")
        tlog(
            self.logger,
            "🔴",
            "RESOLVER",
            "UNAVAILABLE",
            primary="reason=exhausted",
            meta=f"attempts={max_attempts}/{max_attempts}",
        )
        return ResolutionResult(
            endpoint=None,
            source=None,
            attempts=max_attempts,
            max_attempts=max_attempts,
            elapsed_ms=elapsed_ms,
        )

    def _attempt(self, params: dict[str, str]) -> str:
        """
        Execute a single GET and extract the endpoint from its body.

        Raises:
            NetworkError: timeout or connection failure
            ProtocolError: non-200 status or body that is not UTF-8
            ExtractionError: body does not follow the marker/separator protocol
        """
        try:
            resp = requests.get(
                self.base_url,
                params=params,
                timeout=self.policy.attempt_timeout_s,
            )
        except requests.Timeout as e:
            raise NetworkError(f"timed out after {self.policy.attempt_timeout_s}s") from e
        except requests.RequestException as e:
            raise NetworkError(f"request failed ({e.__class__.__name__})") from e

        if resp.status_code != 200:
            raise ProtocolError(f"HTTP {resp.status_code}")

        try:
            body = resp.content.decode("utf-8")
        except UnicodeDecodeError as e:
            raise ProtocolError("response body is not valid UTF-8") from e

        return extract_endpoint(body, self.marker, self.separator)

    def _log_failure(self, attempt: int, error: ResolutionError) -> None:
        self.logger.warning(
            f"Attempt {attempt}/{self.policy.max_attempts} failed "
            f"[{error.classification}, {'retryable' if error.retryable else 'terminal'}]: {error}"
        )
