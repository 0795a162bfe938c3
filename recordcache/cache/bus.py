"""Publish/subscribe channel for cache invalidation notifications.

Subscribers register for either an exact ``"namespace:operation"`` pattern
or a bare ``"namespace"`` wildcard. Delivery is synchronous and in-process:
by the time a callback runs, the invalidated key has already been removed
from the store and its edges dropped, so a subscriber may re-fetch
immediately. There is no buffering or replay for late subscribers.
"""

from dataclasses import dataclass
from typing import Callable, Dict, List

from recordcache.logging_config import get_logger

from .keys import SEPARATOR

logger = get_logger(name=__name__)


@dataclass(frozen=True)
class InvalidationEvent:
    key: str
    namespace: str
    operation_name: str
    args_string: str


InvalidationCallback = Callable[[InvalidationEvent], None]


class InvalidationBus:
    """Multi-subscriber fan-out of :class:`InvalidationEvent`."""

    def __init__(self):
        self._listeners: Dict[str, List[InvalidationCallback]] = {}

    def subscribe(self, pattern: str, callback: InvalidationCallback) -> Callable[[], None]:
        """Register ``callback`` for ``pattern``.

        Returns:
            A function that removes this subscription when called.
        """
        self._listeners.setdefault(pattern, []).append(callback)

        def unsubscribe() -> None:
            self.unsubscribe(pattern, callback)

        return unsubscribe

    def unsubscribe(self, pattern: str, callback: InvalidationCallback) -> bool:
        callbacks = self._listeners.get(pattern)
        if not callbacks or callback not in callbacks:
            return False
        callbacks.remove(callback)
        if not callbacks:
            del self._listeners[pattern]
        return True

    def emit(self, key: str, namespace: str, operation_name: str, args_string: str) -> InvalidationEvent:
        """Deliver one event to exact subscribers, then wildcard subscribers.

        A failing callback is logged and does not prevent delivery to the
        remaining subscribers.
        """
        event = InvalidationEvent(
            key=key,
            namespace=namespace,
            operation_name=operation_name,
            args_string=args_string,
        )

        # Copies, so a callback may unsubscribe while being notified
        exact = list(self._listeners.get(f"{namespace}{SEPARATOR}{operation_name}", ()))
        wildcard = list(self._listeners.get(namespace, ()))

        for callback in exact + wildcard:
            try:
                callback(event)
            except Exception:
                logger.exception("Invalidation subscriber failed for {}", key)

        return event

    def subscriber_count(self, pattern: str) -> int:
        return len(self._listeners.get(pattern, ()))

    def clear(self) -> None:
        self._listeners.clear()
