# ─── Future imports ───
from __future__ import annotations

# ─── Standard library imports ───
from dataclasses import dataclass

# ─── Project imports ───
from .config import Config


@dataclass(frozen=True)
class RetryPolicy:
    """
    Policy governing how hard endpoint resolution tries before giving up.

    Attempts are strictly sequential and the pause between them is fixed;
    there is no backoff growth.
    """

    # Total attempts per resolution pass (first try included)
    max_attempts: int = 3

    # Per-attempt HTTP timeout
    attempt_timeout_s: float = 15.0

    # Pause after a failed attempt before the next one
    retry_delay_s: float = 1.0

    @classmethod
    def from_config(cls) -> RetryPolicy:
        return cls(
            max_attempts=Config.MAX_ATTEMPTS,
            attempt_timeout_s=Config.ATTEMPT_TIMEOUT_S,
            retry_delay_s=Config.RETRY_DELAY_S,
        )

    # ─── Derived policy values (computed) ───

    @property
    def worst_case_latency_s(self) -> float:
        """
        Upper bound on a full resolution pass that ends in exhaustion.
        """
        return self.max_attempts * (self.attempt_timeout_s + self.retry_delay_s)

    # ─── Introspection / debugging helpers ───

    def summary(self) -> dict[str, int | float]:
        """
        Return a structured summary of the effective policy values.
        Useful for logs and startup diagnostics.
        """
        return {
            "max_attempts": self.max_attempts,
            "attempt_timeout_s": self.attempt_timeout_s,
            "retry_delay_s": self.retry_delay_s,
            "worst_case_latency_s": self.worst_case_latency_s,
        }
