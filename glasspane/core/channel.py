"""
glasspane/core/channel.py — Single-slot, replace-latest value cell.

Producers overwrite the slot; readers always see the newest value. There is
no queue, so a slow or absent consumer never holds back a producer. Change
listeners run on the producer's thread, outside the lock.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

Listener = Callable[[T], None]


class LatestValue(Generic[T]):
    """
    Observable cell holding only the most recent value.

    Args:
        initial: Value visible before the first :meth:`publish`.
        distinct: When True (default), publishing a value equal to the
            current one is a no-op and listeners are not notified.
        name: Label used in log messages.
    """

    def __init__(self, initial: T, distinct: bool = True, name: str = "value") -> None:
        self._value: T = initial
        self._distinct = distinct
        self._name = name
        self._version: int = 0
        self._lock = threading.Lock()
        self._listeners: list[Listener] = []

    @property
    def value(self) -> T:
        """Return the latest value (thread-safe read)."""
        with self._lock:
            return self._value

    @property
    def version(self) -> int:
        """Number of accepted publishes since construction."""
        with self._lock:
            return self._version

    def publish(self, value: T) -> bool:
        """
        Overwrite the slot and notify listeners.

        Args:
            value: The new value.

        Returns:
            True if the value was accepted (changed, or ``distinct`` is off).
        """
        with self._lock:
            if self._distinct and value == self._value:
                return False
            self._value = value
            self._version += 1
            listeners = list(self._listeners)

        for listener in listeners:
            try:
                listener(value)
            except Exception as exc:  # noqa: BLE001
                logger.warning("%s listener %r raised: %s", self._name, listener, exc)
        return True

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Register a change listener.

        Args:
            listener: Called with each newly published value.

        Returns:
            A zero-argument function that removes the listener.
        """
        with self._lock:
            self._listeners.append(listener)

        def _unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return _unsubscribe

    def __repr__(self) -> str:
        return f"LatestValue(name={self._name}, value={self.value!r}, version={self.version})"
