"""Holds the current runtime configuration."""

import threading
from typing import Callable, Optional

from .models import Configuration


class ConfigStore:
    """A single, lock-guarded configuration slot.

    Values are immutable, so readers always see a whole configuration. The
    store does not validate what it is given.
    """

    def __init__(self, initial: Optional[Configuration] = None):
        self._lock = threading.RLock()
        self._current = initial if initial is not None else Configuration()

    def get(self) -> Configuration:
        with self._lock:
            return self._current

    def set(self, config: Configuration) -> None:
        with self._lock:
            self._current = config

    def update(
        self, transform: Callable[[Configuration], Configuration]
    ) -> Configuration:
        """Replaces the current value with ``transform(current)``.

        The lock is held for the whole read-compute-write, so concurrent
        updates never lose each other's changes. It is reentrant: the
        transform may read the store.
        """
        with self._lock:
            self._current = transform(self._current)
            return self._current
