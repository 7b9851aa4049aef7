import logging
import threading
from collections import defaultdict
from typing import Callable

logger = logging.getLogger(__name__)

XP_UPDATED = "xp-updated"
STREAK_UPDATED = "streak-updated"


class EventBus:
    """
    In-process publish/subscribe registry.
    Callbacks run synchronously in the publisher's thread.
    """

    def __init__(self):
        self._subscribers: dict[str, list[Callable]] = defaultdict(list)
        self._lock = threading.Lock()

    def subscribe(self, event_name: str, callback: Callable) -> Callable:
        with self._lock:
            if callback not in self._subscribers[event_name]:
                self._subscribers[event_name].append(callback)
        return callback

    def unsubscribe(self, event_name: str, callback: Callable) -> None:
        with self._lock:
            if callback in self._subscribers.get(event_name, []):
                self._subscribers[event_name].remove(callback)

    def clear(self) -> None:
        with self._lock:
            self._subscribers.clear()

    def publish(self, event_name: str, **payload) -> int:
        """Deliver to every subscriber. Returns how many callbacks succeeded."""
        with self._lock:
            callbacks = list(self._subscribers.get(event_name, []))

        delivered = 0
        for callback in callbacks:
            try:
                callback(**payload)
                delivered += 1
            except Exception as e:
                # One broken listener must not stop the others
                logger.error(f"Subscriber {callback!r} failed on '{event_name}': {e}", exc_info=True)

        return delivered


# Global Instance
event_bus = EventBus()
