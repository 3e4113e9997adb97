# --- Standard library imports ---
import sys
import logging

# --- Project imports ---
from .config import Config


# Parent logger for every module in the package
ROOT_NAMESPACE = "launch_arbiter"

# --- Custom log levels ---
TIMING = 25   # Between INFO (20) and WARNING (30)
logging.addLevelName(TIMING, "TIME")

def timing(self, message, *args, **kwargs):
    """Add `timing` method to Logger for TIMING-level logs."""
    if self.isEnabledFor(TIMING):
        self._log(TIMING, message, args, stacklevel=2, **kwargs)

logging.Logger.timing = timing

# --- Filters ---
class TimingFilter(logging.Filter):
    """Drop TIMING records unless LOG_TIMING is enabled."""
    def __init__(self, enabled: bool):
        super().__init__()
        self.enabled = enabled

    def filter(self, record: logging.LogRecord) -> bool:
        if record.levelno == TIMING:
            return self.enabled
        return True

# --- Format configuration constants ---
LOG_LEVEL_EMOJIS = {
    logging.DEBUG: "🧱",
    logging.INFO: "🟢",
    TIMING: "⚡️",
    logging.WARNING: "⚠️ ",
    logging.ERROR: "❌",
    logging.CRITICAL: "🔥",
}

LEVEL_NAME_MAP = {
    "WARNING": "WARN",
    "CRITICAL": "FATAL",
}

# Third-party loggers that would leak request URLs at DEBUG
QUIET_LOGGERS = ("urllib3", "requests")

# --- Formatters ---
class EmojiFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        """
        Prepend a per-level emoji and shorten verbose level names.

        The short component name is derived from the dotted logger name,
        so `launch_arbiter.resolver` renders as `resolver`.
        """
        record.levelemoji = LOG_LEVEL_EMOJIS.get(record.levelno, "")
        record.levelname = LEVEL_NAME_MAP.get(record.levelname, record.levelname)
        record.component = record.name.rsplit(".", 1)[-1]
        return super().format(record)

# --- Public logging setup API ---
def setup_logging(level=logging.INFO, timing_enabled: bool | None = None) -> None:
    """
    Configure global logging with emoji decorations and optional TIMING logs.

    HTTP client loggers are capped at WARNING: their DEBUG lines echo the
    full resolution URL, partner token included.
    """
    if timing_enabled is None:
        timing_enabled = Config.LOG_TIMING

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    formatter = EmojiFormatter(
        fmt="%(asctime)s %(levelemoji)s %(component)s:%(funcName)s → %(message)s",
        datefmt="%H:%M:%S",
    )
    handler.setFormatter(formatter)

    # Apply optional TIMING filter based on config
    handler.addFilter(TimingFilter(enabled=timing_enabled))
    root.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

def get_logger(name: str) -> logging.Logger:
    """
    Return a logger namespaced under the package (e.g. `launch_arbiter.cache`).
    """
    return logging.getLogger(f"{ROOT_NAMESPACE}.{name}")
