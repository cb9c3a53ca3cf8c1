"""Maps API names to request handlers."""

from __future__ import annotations

import threading
from typing import Any, Callable, Optional

Handler = Callable[[Any, Any], None]


class Router:
    """Thread-safe registry of handlers by API name."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self.callbacks: dict[str, Handler] = {}

    def register(self, api: str, callback: Handler) -> None:
        """Set the handler for ``api``."""
        with self._lock:
            self.callbacks[api] = callback

    def get(self, api: str) -> Optional[Handler]:
        """Return the handler for ``api``, or ``None``."""
        with self._lock:
            return self.callbacks.get(api)

    def remove(self, api: str) -> None:
        """Forget the handler for ``api``."""
        with self._lock:
            self.callbacks.pop(api, None)

    def remove_all(self) -> None:
        """Forget every handler."""
        with self._lock:
            self.callbacks = {}