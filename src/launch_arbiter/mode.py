# ─── Standard library imports ───
from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional

# ─── Project imports ───
from .resolver import ResolutionResult


class ModeKind(Enum):
    """
    Top-level experiences the application can present.

    • INITIALIZING   : splash, decision pending
    • REMOTE         : endpoint known, network reachable
    • REMOTE_OFFLINE : endpoint known, network unreachable
    • NATIVE_FALLBACK: no endpoint; local functionality only
    """
    INITIALIZING = auto()
    REMOTE = auto()
    REMOTE_OFFLINE = auto()
    NATIVE_FALLBACK = auto()

    def __str__(self) -> str:
        return self.name

MODE_EMOJI = {
    ModeKind.INITIALIZING:    "⚪",
    ModeKind.REMOTE:          "💚",
    ModeKind.REMOTE_OFFLINE:  "🟠",
    ModeKind.NATIVE_FALLBACK: "🔵",
}

@dataclass(frozen=True)
class BootstrapMode:
    """
    The single launch decision handed to the rendering layer.

    Remote kinds always carry the endpoint; the others never do.
    """
    kind: ModeKind
    endpoint: Optional[str] = None

    def __post_init__(self):
        remote = self.kind in (ModeKind.REMOTE, ModeKind.REMOTE_OFFLINE)
        if remote and not self.endpoint:
            raise ValueError(f"{self.kind} requires an endpoint")
        if not remote and self.endpoint is not None:
            raise ValueError(f"{self.kind} does not carry an endpoint")

    @property
    def is_remote(self) -> bool:
        return self.endpoint is not None

    def __str__(self) -> str:
        return f"{self.kind}({self.endpoint})" if self.endpoint else str(self.kind)

INITIALIZING = BootstrapMode(ModeKind.INITIALIZING)
NATIVE_FALLBACK = BootstrapMode(ModeKind.NATIVE_FALLBACK)

def decide_mode(result: ResolutionResult, connected: bool) -> BootstrapMode:
    """
    Map (resolver outcome, connectivity) to a launch mode.

        Resolved(e)  + connected     → REMOTE(e)
        Resolved(e)  + disconnected  → REMOTE_OFFLINE(e)
        Unavailable  + either        → NATIVE_FALLBACK

    Pure function: no I/O, no state.
    """
    if not result.success:
        return NATIVE_FALLBACK

    if connected:
        return BootstrapMode(ModeKind.REMOTE, result.endpoint)

    return BootstrapMode(ModeKind.REMOTE_OFFLINE, result.endpoint)
