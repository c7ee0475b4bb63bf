import logging
from collections import deque
from functools import lru_cache
from typing import Callable

logger = logging.getLogger("pac_portal.cache")

Subscriber = Callable[[str], None]


class CacheInvalidator:
    """Advisory "path X is stale" signal for views that cache rendered data."""

    def __init__(self, history_size: int = 200):
        self._subscribers: list[Subscriber] = []
        self.history: deque[str] = deque(maxlen=history_size)

    def subscribe(self, callback: Subscriber) -> None:
        self._subscribers.append(callback)

    def unsubscribe(self, callback: Subscriber) -> None:
        if callback in self._subscribers:
            self._subscribers.remove(callback)

    def invalidate(self, *paths: str) -> None:
        for path in paths:
            self.history.append(path)
            for callback in list(self._subscribers):
                try:
                    callback(path)
                except Exception:
                    logger.exception("Falha ao invalidar cache path=%s", path)


@lru_cache(maxsize=1)
def get_invalidator() -> CacheInvalidator:
    return CacheInvalidator()
