"""Clock — источники времени для EpochGate и in-memory venue.

- SystemClock: wall clock, целые секунды Unix time
- ManualClock: время задаётся явно (тесты, симуляции)
"""

import time
from typing import Protocol


class Clock(Protocol):
    """Источник текущего времени (целые секунды)."""

    def now(self) -> int:
        ...


class SystemClock:
    """Wall clock: int(time.time())."""

    def now(self) -> int:
        return int(time.time())


class ManualClock:
    """Часы с ручным управлением.

    Время только растёт: set() в прошлое запрещён.
    """

    def __init__(self, start: int = 0):
        if start < 0:
            raise ValueError(f"start must be non-negative, got {start}")
        self._now = start

    def now(self) -> int:
        return self._now

    def advance(self, seconds: int) -> int:
        """Сдвиг времени вперёд на seconds. Возвращает новое время."""
        if seconds < 0:
            raise ValueError(f"seconds must be non-negative, got {seconds}")
        self._now += seconds
        return self._now

    def set(self, timestamp: int) -> None:
        if timestamp < self._now:
            raise ValueError(
                f"clock cannot go backwards: {timestamp} < {self._now}"
            )
        self._now = timestamp
