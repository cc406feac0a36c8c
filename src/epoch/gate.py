"""EpochGate — ограничение частоты операции фиксированным окном времени.

Операция разрешена не чаще одного раза за period секунд:
- can_enter(now): now >= epoch_start + period
- enter(now): catch-up переход к последней границе эпохи <= now, epoch += 1
- guard(now): context manager, эпоха расходуется только при успешном теле

Catch-up: после длительного простоя epoch_start сдвигается сразу на
period * k (наименьшее k, восстанавливающее инвариант now < epoch_start + period),
а не на один period. Две успешные операции всегда попадают в разные
выровненные по period окна; расстояние между ними может быть меньше
period, если первая пришлась на середину окна.
"""

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator

from src.core.errors import ConfigurationError, EpochNotElapsed

_log = logging.getLogger(__name__)


@dataclass(frozen=True)
class EpochState:
    """Состояние гейта.

    period — длина эпохи (неизменна после конструирования)
    epoch — индекс эпохи, +1 на каждый успешный вход
    epoch_start — timestamp начала текущей эпохи
    """
    period: int
    epoch: int
    epoch_start: int

    @property
    def next_epoch_point(self) -> int:
        return self.epoch_start + self.period


@dataclass(frozen=True)
class EpochAdvance:
    """Результат успешного входа в эпоху."""

    previous_epoch: int
    epoch: int
    previous_epoch_start: int
    epoch_start: int

    # Сколько полных периодов прошло с предыдущего epoch_start (>= 1)
    periods_elapsed: int


class EpochGate:
    """Гейт с одним переменным состоянием (EpochState) и двумя переходами.

    States:
    - CLOSED: now < epoch_start + period, enter() → EpochNotElapsed
    - OPEN: now >= epoch_start + period, enter() → catch-up + epoch += 1

    Гейт не знает о теле операции: атомарность обеспечивает guard().
    """

    def __init__(self, period: int, start_time: int = 0, start_epoch: int = 0):
        """
        Args:
            period: длина эпохи в секундах (> 0)
            start_time: timestamp начала нулевой эпохи
            start_epoch: начальный индекс эпохи
        """
        if not isinstance(period, int) or isinstance(period, bool) or period <= 0:
            raise ConfigurationError(f"period must be a positive integer, got {period!r}")
        if start_time < 0:
            raise ConfigurationError(f"start_time must be non-negative, got {start_time}")
        if start_epoch < 0:
            raise ConfigurationError(f"start_epoch must be non-negative, got {start_epoch}")

        self._state = EpochState(period=period, epoch=start_epoch, epoch_start=start_time)

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def state(self) -> EpochState:
        return self._state

    @property
    def period(self) -> int:
        return self._state.period

    @property
    def epoch(self) -> int:
        return self._state.epoch

    @property
    def epoch_start(self) -> int:
        return self._state.epoch_start

    def next_epoch_point(self) -> int:
        """Первый момент, когда гейт откроется."""
        return self._state.next_epoch_point

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def can_enter(self, now: int) -> bool:
        """Чистый предикат: now >= epoch_start + period."""
        return now >= self._state.next_epoch_point

    def enter(self, now: int) -> EpochAdvance:
        """Вход в новую эпоху.

        Args:
            now: текущее время

        Returns:
            EpochAdvance с новым состоянием

        Raises:
            EpochNotElapsed: если гейт закрыт (состояние не меняется)
        """
        current = self._state

        if not self.can_enter(now):
            raise EpochNotElapsed(now=now, next_epoch_point=current.next_epoch_point)

        # Catch-up: последняя граница эпохи <= now
        periods_elapsed = (now - current.epoch_start) // current.period
        new_epoch_start = current.epoch_start + current.period * periods_elapsed

        self._state = EpochState(
            period=current.period,
            epoch=current.epoch + 1,
            epoch_start=new_epoch_start,
        )

        if periods_elapsed > 1:
            _log.info(
                "epoch %d -> %d, caught up %d periods (epoch_start %d -> %d)",
                current.epoch, self._state.epoch, periods_elapsed,
                current.epoch_start, new_epoch_start,
            )
        else:
            _log.info(
                "epoch %d -> %d (epoch_start %d -> %d)",
                current.epoch, self._state.epoch, current.epoch_start, new_epoch_start,
            )

        return EpochAdvance(
            previous_epoch=current.epoch,
            epoch=self._state.epoch,
            previous_epoch_start=current.epoch_start,
            epoch_start=new_epoch_start,
            periods_elapsed=periods_elapsed,
        )

    @contextmanager
    def guard(self, now: int) -> Iterator[EpochState]:
        """Context manager вокруг gated операции.

        Проверяет гейт до тела (EpochNotElapsed без изменений состояния) и
        расходует эпоху только после успешного завершения тела. Исключение
        в теле пробрасывается, эпоха остаётся нерасходованной.

        Yields:
            EpochState на момент входа
        """
        if not self.can_enter(now):
            raise EpochNotElapsed(now=now, next_epoch_point=self._state.next_epoch_point)

        yield self._state

        self.enter(now)
