"""
Per-message cache of classification results.

Both actions and "not found" (None) are memoized. At most one
classification runs per message id at a time: concurrent callers for an
id that is still being classified wait for the in-flight result. A failed
classification is never cached; its exception is delivered to every
waiter and the next call classifies again.
"""

import threading
from concurrent.futures import Future
from typing import Any, Callable, Dict, Hashable, Optional

from .logging import UnsubscribeLogger
from .types import UnsubscribeAction

_MISSING = object()


class UnsubscribeActionCache:
    """Memoize classification results keyed by message id, single-flight."""

    def __init__(self):
        self._results: Dict[Hashable, Optional[UnsubscribeAction]] = {}
        self._in_flight: Dict[Hashable, Future] = {}
        self._lock = threading.Lock()
        self.logger = UnsubscribeLogger("action_cache")

    def __contains__(self, message_id: Hashable) -> bool:
        with self._lock:
            return message_id in self._results

    def __len__(self) -> int:
        with self._lock:
            return len(self._results)

    def get(self, message_id: Hashable, default: Any = None) -> Any:
        """Return the cached result without classifying."""
        with self._lock:
            return self._results.get(message_id, default)

    def get_or_compute(self, message_id: Hashable,
                       compute: Callable[[], Optional[UnsubscribeAction]]) -> Optional[UnsubscribeAction]:
        """Return the cached result, running compute at most once concurrently."""
        with self._lock:
            cached = self._results.get(message_id, _MISSING)
            if cached is not _MISSING:
                self.logger.debug("Cache hit", {'message_id': message_id})
                return cached

            future = self._in_flight.get(message_id)
            leader = future is None
            if leader:
                future = Future()
                self._in_flight[message_id] = future

        if not leader:
            self.logger.debug("Waiting for in-flight classification", {'message_id': message_id})
            return future.result()

        self.logger.debug("Cache miss", {'message_id': message_id})
        try:
            result = compute()
        except Exception as e:
            future.set_exception(e)
            raise
        else:
            with self._lock:
                self._results[message_id] = result
            future.set_result(result)
            return result
        finally:
            with self._lock:
                self._in_flight.pop(message_id, None)
            if not future.done():
                future.cancel()

    def invalidate(self, message_id: Hashable) -> None:
        """Forget a cached result, e.g. after the message was deleted."""
        with self._lock:
            self._results.pop(message_id, None)

    def clear(self) -> None:
        with self._lock:
            self._results.clear()
