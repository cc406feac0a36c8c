"""
TwapOracle — time-weighted average price по cumulative accumulators пары

Операции:
- update(): gated EpochGate; снимает свежий снапшот, делит модульную дельту
  accumulators на модульное time_elapsed, сохраняет Q112 средние
- consult(asset, amount_in): по сохранённому среднему (0 до первого update)
- twap(asset, amount_in): живой пересчёт против сохранённого снапшота,
  БЕЗ защиты от time_elapsed == 0 (DivisionByZero — сигнал staleness)

Результаты нормализуются к 18 десятичным знакам независимо от актива.

КРИТИЧЕСКИЕ ИНВАРИАНТЫ:
1. update() — единственный мутатор; снапшот и средние заменяются одним
   присваиванием неизменяемого _OracleState
2. Неуспешный update() не меняет ни состояние, ни эпоху
3. update() при time_elapsed == 0 не трогает средние, но расходует эпоху
4. Дельты считаются только модульным вычитанием (32 / 256 бит)
"""

import logging
import threading
from dataclasses import dataclass
from typing import Optional

from src.core.contracts import validate_accumulator_snapshot
from src.core.domain.assets import TARGET_DECIMALS, DecimalNormalizer
from src.core.domain.events import EventEmitter, Updated
from src.core.domain.observation import AccumulatorSnapshot
from src.core.errors import ConfigurationError, UnknownAsset
from src.core.math.fixed_point import FixedPointQ112
from src.core.math.numerical_safeguards import BITS_32, BITS_256, validate_uint, wrapping_sub
from src.epoch.clock import Clock, SystemClock
from src.epoch.gate import EpochGate
from src.oracle.sources import AssetMetadataSource, CumulativePriceSource

_log = logging.getLogger(__name__)


# =============================================================================
# CONFIG
# =============================================================================


@dataclass(frozen=True)
class OracleConfig:
    """Конфигурация oracle.

    period — длина эпохи update в секундах
    start_time — начало нулевой эпохи (None → время конструирования)
    """

    period: int = 86400
    start_time: Optional[int] = None
    start_epoch: int = 0
    target_decimals: int = TARGET_DECIMALS


# =============================================================================
# STATE & RESULTS
# =============================================================================


@dataclass(frozen=True)
class _OracleState:
    """Снапшот и средние, заменяемые атомарно."""

    snapshot: AccumulatorSnapshot
    price0_average: FixedPointQ112
    price1_average: FixedPointQ112

    def average(self, index: int) -> FixedPointQ112:
        return self.price0_average if index == 0 else self.price1_average


@dataclass(frozen=True)
class UpdateResult:
    """Результат update()."""

    # False — time_elapsed == 0, средние не изменены (эпоха всё равно израсходована)
    updated: bool
    epoch: int
    time_elapsed: int
    price0_average: FixedPointQ112
    price1_average: FixedPointQ112


# =============================================================================
# ORACLE
# =============================================================================


class TwapOracle:
    """TWAP oracle для одной пары и одного периода.

    Один экземпляр на конфигурацию (pair, period). update() взаимно исключён
    через lock; consult()/twap() читают один неизменяемый _OracleState и
    никогда не видят частично обновлённое состояние.
    """

    def __init__(
        self,
        pair_address: str,
        price_source: CumulativePriceSource,
        asset_metadata: AssetMetadataSource,
        config: Optional[OracleConfig] = None,
        clock: Optional[Clock] = None,
        events: Optional[EventEmitter] = None,
    ):
        """
        Args:
            pair_address: идентификатор пары в venue
            price_source: источник cumulative accumulators
            asset_metadata: источник decimals (используется только здесь)
            config: конфигурация (default: OracleConfig())
            clock: источник времени для EpochGate (default: SystemClock)
            events: emitter уведомлений (default: новый EventEmitter)

        Raises:
            ConfigurationError: нет ликвидности, одинаковые активы или
                decimals не равны ровно {6, 18}
        """
        self.config = config or OracleConfig()
        self.pair_address = pair_address
        self._source = price_source
        self._clock = clock or SystemClock()
        self.events = events or EventEmitter()

        self.token0 = price_source.token0(pair_address)
        self.token1 = price_source.token1(pair_address)
        if self.token0 == self.token1:
            raise ConfigurationError(f"pair {pair_address!r} has identical tokens")

        self.normalizer = DecimalNormalizer.from_decimals(
            asset_metadata.decimals(self.token0),
            asset_metadata.decimals(self.token1),
            target_decimals=self.config.target_decimals,
        )

        reserves = price_source.get_reserves(pair_address)
        if not reserves.has_liquidity:
            raise ConfigurationError(f"pair {pair_address!r} has no reserves")

        start_time = self.config.start_time
        if start_time is None:
            start_time = self._clock.now()
        self._gate = EpochGate(
            period=self.config.period,
            start_time=start_time,
            start_epoch=self.config.start_epoch,
        )

        self._state = _OracleState(
            snapshot=_checked(price_source.cumulative_prices_last(pair_address)),
            price0_average=FixedPointQ112.zero(),
            price1_average=FixedPointQ112.zero(),
        )
        self._update_lock = threading.Lock()

        _log.info(
            "oracle created: pair=%s token0=%s token1=%s period=%d start_time=%d",
            pair_address, self.token0, self.token1, self.config.period, start_time,
        )

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def snapshot(self) -> AccumulatorSnapshot:
        return self._state.snapshot

    @property
    def price0_cumulative_last(self) -> int:
        return self._state.snapshot.price0_cumulative

    @property
    def price1_cumulative_last(self) -> int:
        return self._state.snapshot.price1_cumulative

    @property
    def block_timestamp_last(self) -> int:
        return self._state.snapshot.block_timestamp

    @property
    def price0_average(self) -> FixedPointQ112:
        return self._state.price0_average

    @property
    def price1_average(self) -> FixedPointQ112:
        return self._state.price1_average

    @property
    def epoch(self) -> int:
        return self._gate.epoch

    @property
    def period(self) -> int:
        return self._gate.period

    def next_epoch_point(self) -> int:
        return self._gate.next_epoch_point()

    def can_update(self) -> bool:
        return self._gate.can_enter(self._clock.now())

    # ------------------------------------------------------------------
    # Update
    # ------------------------------------------------------------------

    def update(self) -> UpdateResult:
        """Пересчёт средних по свежему снапшоту.

        Returns:
            UpdateResult (updated=False при time_elapsed == 0)

        Raises:
            EpochNotElapsed: эпоха ещё не завершилась (состояние не меняется)
            jsonschema.ValidationError: снапшот источника нарушает контракт
                (эпоха не расходуется)
        """
        with self._update_lock:
            now = self._clock.now()
            previous = self._state

            with self._gate.guard(now):
                current = _checked(self._source.current_cumulative_prices(self.pair_address))
                time_elapsed = wrapping_sub(
                    current.block_timestamp, previous.snapshot.block_timestamp, BITS_32
                )

                if time_elapsed == 0:
                    _log.warning(
                        "oracle %s: zero time elapsed since ts=%d, averages unchanged",
                        self.pair_address, previous.snapshot.block_timestamp,
                    )
                else:
                    self._state = _OracleState(
                        snapshot=current,
                        price0_average=_average(current, previous.snapshot, 0, time_elapsed),
                        price1_average=_average(current, previous.snapshot, 1, time_elapsed),
                    )

            state = self._state
            result = UpdateResult(
                updated=time_elapsed != 0,
                epoch=self._gate.epoch,
                time_elapsed=time_elapsed,
                price0_average=state.price0_average,
                price1_average=state.price1_average,
            )

        if result.updated:
            _log.info(
                "oracle %s updated: epoch=%d elapsed=%ds price0=%.12g price1=%.12g",
                self.pair_address, result.epoch, time_elapsed,
                state.price0_average.to_float(), state.price1_average.to_float(),
            )
            self.events.emit(
                Updated(
                    price0_cumulative=state.snapshot.price0_cumulative,
                    price1_cumulative=state.snapshot.price1_cumulative,
                )
            )

        return result

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def consult(self, asset: str, amount_in: int) -> int:
        """Количество другого актива за amount_in по сохранённому среднему.

        Args:
            asset: token0 или token1
            amount_in: количество в нативных единицах asset

        Returns:
            Результат в 18 десятичных знаках; 0 до первого update

        Raises:
            UnknownAsset: asset вне пары
            ValueError: amount_in не uint256
        """
        index = self._direction(asset)
        validate_uint(amount_in, "amount_in")

        average = self._state.average(index)
        amount_out = average.multiply_truncate(amount_in) * self.normalizer.multiplier_for(index)

        _log.debug("consult %s amount_in=%d -> %d", asset, amount_in, amount_out)
        return amount_out

    def twap(self, asset: str, amount_in: int) -> int:
        """Живой пересчёт среднего против сохранённого снапшота.

        Нулевой time_elapsed намеренно не защищён.

        Raises:
            UnknownAsset: asset вне пары
            DivisionByZero: текущий timestamp равен сохранённому
            jsonschema.ValidationError: снапшот источника нарушает контракт
            ValueError: amount_in не uint256
        """
        index = self._direction(asset)
        validate_uint(amount_in, "amount_in")

        last = self._state.snapshot
        current = _checked(self._source.current_cumulative_prices(self.pair_address))
        time_elapsed = wrapping_sub(current.block_timestamp, last.block_timestamp, BITS_32)

        average = _average(current, last, index, time_elapsed)
        amount_out = average.multiply_truncate(amount_in) * self.normalizer.multiplier_for(index)

        _log.debug(
            "twap %s amount_in=%d elapsed=%ds -> %d", asset, amount_in, time_elapsed, amount_out
        )
        return amount_out

    def _direction(self, asset: str) -> int:
        if asset == self.token0:
            return 0
        elif asset == self.token1:
            return 1
        raise UnknownAsset(asset, known=(self.token0, self.token1))


def _average(
    current: AccumulatorSnapshot,
    last: AccumulatorSnapshot,
    index: int,
    time_elapsed: int,
) -> FixedPointQ112:
    """Q112 среднее направления: uint224(wrapping delta / time_elapsed)."""
    delta = wrapping_sub(current.cumulative(index), last.cumulative(index), BITS_256)
    return FixedPointQ112.from_truncated_ratio(delta, time_elapsed)


def _checked(snapshot: AccumulatorSnapshot) -> AccumulatorSnapshot:
    """Снапшот источника, проверенный по контракту accumulator_snapshot."""
    validate_accumulator_snapshot(snapshot.model_dump(mode="json"))
    return snapshot
