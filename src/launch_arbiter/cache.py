# --- Standard library imports ---
import json
import threading
from pathlib import Path
from typing import Optional

# --- Project imports ---
from .config import Config
from .logger import get_logger


logger = get_logger("cache")

class ResolutionCache:
    """
    Durable single-key store for the resolved endpoint.

    Layout:
        <CACHE_DIR>/endpoint.json → {"resolved_endpoint": "<url>"}

    The cache is authoritative: once it holds a value, no network
    resolution is attempted. There is no TTL; the value survives restarts
    until `clear()` is called.
    """

    def __init__(self, path: Path | None = None, key: str | None = None):
        self.path = Path(path) if path is not None else Config.CACHE_FILE
        self.key = key or Config.CACHE_KEY
        self._write_lock = threading.Lock()

    def load(self) -> Optional[str]:
        """
        Return the persisted endpoint, or None.

        Failure or corruption is treated as a cache miss.
        """
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return None
        except (json.JSONDecodeError, UnicodeDecodeError, OSError) as e:
            logger.warning(f"Unreadable cache at {self.path} ({e.__class__.__name__})")
            return None

        if not isinstance(data, dict):
            return None

        endpoint = data.get(self.key)
        if isinstance(endpoint, str) and endpoint:
            return endpoint
        return None

    def store(self, endpoint: str) -> bool:
        """
        Persist the endpoint, replacing any previous value.

        The payload is written to a sibling temp file and renamed over the
        cache file, so readers see either the old value or the new one.

        Returns:
            True if the value is durably stored, False otherwise.
        """
        if not endpoint:
            raise ValueError("endpoint must be a non-empty string")

        payload = json.dumps({self.key: endpoint}, indent=2)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")

        with self._write_lock:
            try:
                self.path.parent.mkdir(parents=True, exist_ok=True)
                tmp.write_text(payload, encoding="utf-8")
                tmp.replace(self.path)
            except OSError as e:
                logger.warning(f"Failed to persist endpoint to {self.path} ({e})")
                try:
                    tmp.unlink(missing_ok=True)
                except OSError:
                    pass
                return False

        logger.debug(f"Endpoint cached at {self.path}")
        return True

    def clear(self) -> None:
        """Remove the persisted endpoint; a missing cache is not an error."""
        with self._write_lock:
            try:
                self.path.unlink(missing_ok=True)
            except OSError as e:
                logger.warning(f"Failed to clear cache at {self.path} ({e})")
                return
        logger.info(f"Endpoint cache cleared ({self.path})")
