# --- Standard library imports ---
import threading
from typing import Callable

# --- Project imports ---
from .logger import get_logger


logger = get_logger("events")

class EventChannel:
    """
    Explicit in-process event channel.

    Listeners register a callback and receive every published payload in
    registration order. A failing listener is logged and skipped so it
    cannot starve the others. Publishing runs on the caller's thread.
    """

    def __init__(self, name: str):
        self.name = name
        self._listeners: list[Callable] = []
        self._lock = threading.Lock()

    def subscribe(self, callback: Callable) -> Callable[[], None]:
        """
        Register a listener.

        Returns:
            A zero-argument function that removes the listener again.
        """
        with self._lock:
            self._listeners.append(callback)

        def unsubscribe() -> None:
            with self._lock:
                if callback in self._listeners:
                    self._listeners.remove(callback)

        return unsubscribe

    def publish(self, *args) -> None:
        with self._lock:
            listeners = list(self._listeners)

        for callback in listeners:
            try:
                callback(*args)
            except Exception:
                logger.exception(f"Listener failed on channel '{self.name}'")

    def __len__(self) -> int:
        return len(self._listeners)
