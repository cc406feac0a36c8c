"""Epoch — ограничение частоты обновлений oracle по фиксированным окнам времени.

- EpochGate с catch-up после длительных простоев
- Источники времени (SystemClock, ManualClock)
"""

from .clock import Clock, ManualClock, SystemClock
from .gate import EpochAdvance, EpochGate, EpochState

__all__ = [
    "Clock",
    "ManualClock",
    "SystemClock",
    "EpochAdvance",
    "EpochGate",
    "EpochState",
]
