"""Тесты для TwapOracle.

Coverage:
- Конструирование и ConfigurationError
- update(): gating, zero-elapsed no-op, wraparound, атомарность
- consult(): 0 до первого update, нормализация decimals
- twap(): живой пересчёт, DivisionByZero при нулевом time_elapsed
- Согласованность twap/consult
- События Updated
- Сценарий 6/18 decimals с периодом 86400
"""

import logging
import threading
from typing import List, Optional

import pytest
from jsonschema import ValidationError

from src.core.domain import (
    DEFAULT_HISTORY_LIMIT,
    AccumulatorSnapshot,
    Asset,
    EventEmitter,
    Reserves,
    Updated,
)
from src.core.errors import ConfigurationError, DivisionByZero, EpochNotElapsed, UnknownAsset
from src.core.math import Q112, FixedPointQ112
from src.epoch import ManualClock
from src.oracle import AssetRegistry, InMemoryVenue, OracleConfig, TwapOracle

USDC = "0xUSDC"  # 6 decimals
WETH = "0xWETH"  # 18 decimals
PAIR = "0xPAIR"
DAY = 86400


# =============================================================================
# FIXTURES
# =============================================================================


class ScriptedSource:
    """CumulativePriceSource с явно задаваемыми снапшотами."""

    def __init__(
        self,
        token0: str = USDC,
        token1: str = WETH,
        reserves: tuple[int, int] = (10**12, 10**24),
        last: Optional[AccumulatorSnapshot] = None,
    ):
        self._token0 = token0
        self._token1 = token1
        self.last = last or AccumulatorSnapshot(
            price0_cumulative=0, price1_cumulative=0, block_timestamp=0
        )
        self.current = self.last
        self._reserves = reserves
        self.fail_with: Optional[Exception] = None
        self.current_calls = 0

    def token0(self, pair_address: str) -> str:
        return self._token0

    def token1(self, pair_address: str) -> str:
        return self._token1

    def get_reserves(self, pair_address: str) -> Reserves:
        return Reserves(
            reserve0=self._reserves[0],
            reserve1=self._reserves[1],
            block_timestamp_last=self.last.block_timestamp,
        )

    def cumulative_prices_last(self, pair_address: str) -> AccumulatorSnapshot:
        return self.last

    def current_cumulative_prices(self, pair_address: str) -> AccumulatorSnapshot:
        self.current_calls += 1
        if self.fail_with is not None:
            raise self.fail_with
        return self.current

    def report(self, price0_cumulative: int, price1_cumulative: int, block_timestamp: int) -> None:
        self.current = AccumulatorSnapshot(
            price0_cumulative=price0_cumulative,
            price1_cumulative=price1_cumulative,
            block_timestamp=block_timestamp,
        )


@pytest.fixture
def registry():
    return AssetRegistry(
        Asset(address=USDC, symbol="USDC", decimals=6),
        Asset(address=WETH, symbol="WETH", decimals=18),
    )


@pytest.fixture
def clock():
    return ManualClock(start=0)


@pytest.fixture
def source():
    return ScriptedSource()


@pytest.fixture
def oracle(source, registry, clock):
    return TwapOracle(PAIR, source, registry, OracleConfig(period=DAY), clock=clock)


# Цена token0 (USDC) в raw token1 (WETH) за raw token0: 1 USDC (1e6) = 1 WETH (1e18)
PRICE0_Q112 = 10**12 * Q112
# Цена token1 в raw token0 за raw token1
PRICE1_Q112 = Q112 // 10**12


# =============================================================================
# CONSTRUCTION
# =============================================================================


class TestConstruction:
    """Тесты конструирования oracle."""

    def test_initial_state(self, oracle, source):
        assert oracle.token0 == USDC
        assert oracle.token1 == WETH
        assert oracle.snapshot == source.last
        assert oracle.price0_average.is_zero
        assert oracle.price1_average.is_zero
        assert oracle.epoch == 0
        assert oracle.period == DAY
        assert oracle.next_epoch_point() == DAY

    def test_normalizer_multipliers(self, oracle):
        # token0 = 6 decimals → результат в token1 (18) → множитель 1
        assert oracle.normalizer.multiplier0 == 1
        # token1 = 18 decimals → результат в token0 (6) → множитель 10^12
        assert oracle.normalizer.multiplier1 == 10**12

    def test_no_reserves(self, registry, clock):
        source = ScriptedSource(reserves=(0, 10**18))
        with pytest.raises(ConfigurationError, match="no reserves"):
            TwapOracle(PAIR, source, registry, clock=clock)

    def test_unsupported_decimals(self, clock):
        registry = AssetRegistry(
            Asset(address=USDC, decimals=18),
            Asset(address=WETH, decimals=18),
        )
        with pytest.raises(ConfigurationError, match="Unsupported decimals"):
            TwapOracle(PAIR, ScriptedSource(), registry, clock=clock)

    def test_missing_six_decimal_asset(self, clock):
        registry = AssetRegistry(
            Asset(address=USDC, decimals=8),
            Asset(address=WETH, decimals=18),
        )
        with pytest.raises(ConfigurationError):
            TwapOracle(PAIR, ScriptedSource(), registry, clock=clock)

    def test_identical_tokens(self, registry, clock):
        source = ScriptedSource(token0=WETH, token1=WETH)
        with pytest.raises(ConfigurationError, match="identical tokens"):
            TwapOracle(PAIR, source, registry, clock=clock)

    def test_invalid_period(self, source, registry, clock):
        with pytest.raises(ConfigurationError):
            TwapOracle(PAIR, source, registry, OracleConfig(period=0), clock=clock)

    def test_start_time_defaults_to_clock(self, source, registry):
        clock = ManualClock(start=5000)
        oracle = TwapOracle(PAIR, source, registry, OracleConfig(period=100), clock=clock)
        assert oracle.next_epoch_point() == 5100

    def test_explicit_start_time(self, source, registry, clock):
        oracle = TwapOracle(
            PAIR, source, registry, OracleConfig(period=100, start_time=250), clock=clock
        )
        assert oracle.next_epoch_point() == 350


# =============================================================================
# CONSULT BEFORE UPDATE
# =============================================================================


class TestUninitialized:
    """До первого update()."""

    def test_consult_returns_zero_for_both_assets(self, oracle):
        assert oracle.consult(USDC, 10**6) == 0
        assert oracle.consult(WETH, 10**18) == 0

    def test_twap_before_update_raises_division_by_zero(self, oracle, source):
        """Timestamp источника равен сохранённому: деление на ноль"""
        assert source.current.block_timestamp == oracle.block_timestamp_last

        with pytest.raises(DivisionByZero):
            oracle.twap(USDC, 10**6)


# =============================================================================
# UPDATE
# =============================================================================


class TestUpdate:
    """Тесты update()."""

    def test_update_before_epoch_elapsed(self, oracle, source, clock):
        clock.set(DAY - 1)
        source.report(PRICE0_Q112 * (DAY - 1), PRICE1_Q112 * (DAY - 1), DAY - 1)

        with pytest.raises(EpochNotElapsed) as exc_info:
            oracle.update()

        assert exc_info.value.next_epoch_point == DAY
        assert oracle.epoch == 0
        assert oracle.price0_average.is_zero
        # Источник не опрашивается, если гейт закрыт
        assert source.current_calls == 0

    def test_successful_update(self, oracle, source, clock):
        clock.set(DAY)
        source.report(PRICE0_Q112 * DAY, PRICE1_Q112 * DAY, DAY)

        result = oracle.update()

        assert result.updated
        assert result.epoch == 1
        assert result.time_elapsed == DAY
        assert oracle.price0_average == FixedPointQ112(PRICE0_Q112)
        assert oracle.price1_average == FixedPointQ112(PRICE1_Q112)
        assert oracle.price0_cumulative_last == PRICE0_Q112 * DAY
        assert oracle.price1_cumulative_last == PRICE1_Q112 * DAY
        assert oracle.block_timestamp_last == DAY

    def test_zero_elapsed_is_noop_but_consumes_epoch(self, oracle, source, clock):
        """Гейт открыт, но timestamp источника не сдвинулся"""
        clock.set(DAY)
        snapshot_before = oracle.snapshot

        result = oracle.update()

        assert not result.updated
        assert result.time_elapsed == 0
        assert result.epoch == 1
        assert oracle.epoch == 1
        assert oracle.snapshot == snapshot_before
        assert oracle.price0_average.is_zero
        assert oracle.price1_average.is_zero
        assert oracle.events.history == ()

        # Эпоха израсходована: повторный update в том же окне запрещён
        with pytest.raises(EpochNotElapsed):
            oracle.update()

    def test_zero_elapsed_logged(self, oracle, clock, caplog):
        clock.set(DAY)
        with caplog.at_level(logging.WARNING, logger="src.oracle.twap_oracle"):
            oracle.update()
        assert "zero time elapsed" in caplog.text

    def test_second_update_uses_previous_snapshot(self, oracle, source, clock):
        clock.set(DAY)
        source.report(PRICE0_Q112 * DAY, PRICE1_Q112 * DAY, DAY)
        oracle.update()

        # Во втором окне цена token0 удвоилась
        clock.set(2 * DAY)
        source.report(PRICE0_Q112 * DAY * 3, PRICE1_Q112 * DAY + PRICE1_Q112 // 2 * DAY, 2 * DAY)
        result = oracle.update()

        assert result.epoch == 2
        assert oracle.price0_average.raw == 2 * PRICE0_Q112
        assert oracle.price1_average.raw == PRICE1_Q112 // 2

    def test_timestamp_and_accumulator_wraparound(self, registry, clock):
        """Timestamp перешёл через 2^32, accumulators через 2^256"""
        last = AccumulatorSnapshot(
            price0_cumulative=2**256 - Q112 * 100,
            price1_cumulative=2**256 - 1,
            block_timestamp=2**32 - 100,
        )
        source = ScriptedSource(last=last)
        oracle = TwapOracle(PAIR, source, registry, OracleConfig(period=100), clock=clock)

        clock.set(200)
        source.report(Q112 * 100, Q112 * 200 - 1, 100)
        result = oracle.update()

        assert result.time_elapsed == 200
        assert oracle.price0_average.raw == Q112
        assert oracle.price1_average.raw == Q112
        assert oracle.consult(USDC, 10**6) == 10**6

    def test_failed_source_leaves_state_and_epoch(self, oracle, source, clock):
        clock.set(DAY)
        source.fail_with = RuntimeError("venue unavailable")

        with pytest.raises(RuntimeError, match="venue unavailable"):
            oracle.update()

        assert oracle.epoch == 0
        assert oracle.price0_average.is_zero

        # Источник восстановился: update в том же окне проходит
        source.fail_with = None
        source.report(PRICE0_Q112 * DAY, PRICE1_Q112 * DAY, DAY)
        assert oracle.update().updated
        assert oracle.epoch == 1

    def test_failed_update_keeps_last_good_average(self, oracle, source, clock):
        clock.set(DAY)
        source.report(PRICE0_Q112 * DAY, PRICE1_Q112 * DAY, DAY)
        oracle.update()
        good = oracle.consult(USDC, 10**6)

        clock.set(2 * DAY)
        source.fail_with = RuntimeError("venue unavailable")
        with pytest.raises(RuntimeError):
            oracle.update()

        assert oracle.consult(USDC, 10**6) == good

    def test_concurrent_updates_mutually_exclusive(self, oracle, source, clock):
        """Два update в один момент: ровно один успешен"""
        clock.set(DAY)
        source.report(PRICE0_Q112 * DAY, PRICE1_Q112 * DAY, DAY)

        barrier = threading.Barrier(2)
        outcomes: List[str] = []
        lock = threading.Lock()

        def worker():
            barrier.wait()
            try:
                oracle.update()
                outcome = "ok"
            except EpochNotElapsed:
                outcome = "rejected"
            with lock:
                outcomes.append(outcome)

        threads = [threading.Thread(target=worker) for _ in range(2)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert sorted(outcomes) == ["ok", "rejected"]
        assert oracle.epoch == 1

    def test_update_replaces_state_object(self, oracle, source, clock):
        """Снапшот и средние заменяются одним объектом"""
        state_before = oracle._state
        clock.set(DAY)
        source.report(PRICE0_Q112 * DAY, PRICE1_Q112 * DAY, DAY)
        oracle.update()

        assert oracle._state is not state_before
        # Старый объект не изменён
        assert state_before.price0_average.is_zero
        assert state_before.snapshot.block_timestamp == 0

    def test_out_of_contract_snapshot_rejected(self, oracle, source, clock):
        """Снапшот источника вне uint32/uint256 отклоняется, эпоха не расходуется"""
        clock.set(DAY)
        source.current = AccumulatorSnapshot.model_construct(
            price0_cumulative=PRICE0_Q112 * DAY,
            price1_cumulative=2**256,
            block_timestamp=DAY,
        )

        with pytest.raises(ValidationError):
            oracle.update()

        assert oracle.epoch == 0
        assert oracle.price1_average.is_zero
        assert oracle.events.history == ()

        with pytest.raises(ValidationError):
            oracle.twap(USDC, 10**6)

    def test_out_of_contract_initial_snapshot_rejected(self, registry, clock):
        bad = AccumulatorSnapshot.model_construct(
            price0_cumulative=2**256, price1_cumulative=0, block_timestamp=0
        )
        with pytest.raises(ValidationError):
            TwapOracle(PAIR, ScriptedSource(last=bad), registry, clock=clock)


# =============================================================================
# EVENTS
# =============================================================================


class TestEvents:
    """Тесты события Updated."""

    def test_updated_emitted(self, oracle, source, clock):
        received = []
        oracle.events.subscribe(received.append)

        clock.set(DAY)
        source.report(PRICE0_Q112 * DAY, PRICE1_Q112 * DAY, DAY)
        oracle.update()

        expected = Updated(price0_cumulative=PRICE0_Q112 * DAY, price1_cumulative=PRICE1_Q112 * DAY)
        assert received == [expected]
        assert oracle.events.history == (expected,)

    def test_shared_emitter(self, source, registry, clock):
        emitter = EventEmitter()
        oracle = TwapOracle(PAIR, source, registry, OracleConfig(period=DAY), clock=clock, events=emitter)
        assert oracle.events is emitter

    def test_failing_subscriber_does_not_break_update(self, oracle, source, clock, caplog):
        def broken(event):
            raise RuntimeError("subscriber bug")

        oracle.events.subscribe(broken)
        clock.set(DAY)
        source.report(PRICE0_Q112 * DAY, PRICE1_Q112 * DAY, DAY)

        with caplog.at_level(logging.ERROR):
            result = oracle.update()

        assert result.updated
        assert oracle.epoch == 1
        assert "subscriber bug" in caplog.text


# =============================================================================
# CONSULT / TWAP
# =============================================================================


class TestReads:
    """Тесты consult() и twap()."""

    @pytest.fixture
    def updated_oracle(self, oracle, source, clock):
        clock.set(DAY)
        source.report(PRICE0_Q112 * DAY, PRICE1_Q112 * DAY, DAY)
        oracle.update()
        return oracle

    def test_consult_token0_normalized(self, updated_oracle):
        # 1 USDC → 1 WETH, в 18 decimals
        assert updated_oracle.consult(USDC, 10**6) == 10**18

    def test_consult_token1_normalized(self, updated_oracle):
        # 1 WETH → ~1 USDC (6 decimals, усечение) → 18 decimals
        amount_out = updated_oracle.consult(WETH, 10**18)
        assert 10**18 - 10**12 <= amount_out <= 10**18
        assert amount_out % 10**12 == 0

    def test_consult_unknown_asset(self, updated_oracle):
        with pytest.raises(UnknownAsset) as exc_info:
            updated_oracle.consult("0xDAI", 10**18)
        assert exc_info.value.asset == "0xDAI"

    def test_consult_invalid_amount(self, updated_oracle):
        with pytest.raises(ValueError, match="amount_in"):
            updated_oracle.consult(USDC, -1)

    def test_twap_unknown_asset(self, updated_oracle):
        with pytest.raises(UnknownAsset):
            updated_oracle.twap("0xDAI", 1)

    def test_twap_same_instant_as_update_raises(self, updated_oracle):
        """Сохранённый timestamp равен текущему: деление не защищено"""
        with pytest.raises(DivisionByZero):
            updated_oracle.twap(USDC, 10**6)

    def test_twap_live_recomputation(self, updated_oracle, source, clock):
        """twap видит цену, которую consult ещё не видит"""
        clock.set(DAY + 100)
        source.report(PRICE0_Q112 * DAY + 3 * PRICE0_Q112 * 100, PRICE1_Q112 * (DAY + 100), DAY + 100)

        assert updated_oracle.twap(USDC, 10**6) == 3 * 10**18
        assert updated_oracle.consult(USDC, 10**6) == 10**18

    def test_twap_does_not_mutate_state(self, updated_oracle, source, clock):
        snapshot_before = updated_oracle.snapshot
        clock.set(DAY + 100)
        source.report(PRICE0_Q112 * (DAY + 100), PRICE1_Q112 * (DAY + 100), DAY + 100)

        updated_oracle.twap(WETH, 10**18)

        assert updated_oracle.snapshot == snapshot_before
        assert updated_oracle.epoch == 1

    def test_twap_matches_consult_after_update_at_same_instant(self, oracle, source, clock):
        """twap в момент T == consult после update в момент T"""
        clock.set(DAY)
        source.report(PRICE0_Q112 * DAY + 12345, PRICE1_Q112 * DAY + 777, DAY)

        live0 = oracle.twap(USDC, 10**6)
        live1 = oracle.twap(WETH, 10**18)
        oracle.update()

        assert oracle.consult(USDC, 10**6) == live0
        assert oracle.consult(WETH, 10**18) == live1


# =============================================================================
# SCENARIO: 6/18 decimals, period 86400
# =============================================================================


class TestDailyScenario:
    """Сценарий: period = 86400, A — 6 decimals, B — 18 decimals."""

    def test_literal_cumulative_values(self, oracle, source, clock):
        """Источник сообщает (1_000_000 * 2^112, 1 * 2^112) через сутки"""
        clock.set(DAY)
        source.report(1_000_000 * Q112, 1 * Q112, DAY)

        result = oracle.update()

        assert result.time_elapsed == DAY
        assert oracle.price0_average.raw == (1_000_000 * Q112) // DAY
        assert oracle.price1_average.raw == Q112 // DAY

    def test_one_unit_of_a_is_one_unit_of_b(self, oracle, source, clock):
        """Накопленная цена 1 A = 1 B за сутки: consult(A, 1e6) == 1e18"""
        clock.set(DAY)
        source.report(PRICE0_Q112 * DAY, PRICE1_Q112 * DAY, DAY)

        oracle.update()

        assert oracle.consult(USDC, 1_000_000) == 10**18


# =============================================================================
# END-TO-END WITH IN-MEMORY VENUE
# =============================================================================


class TestWithInMemoryVenue:
    """Интеграция с in-memory venue."""

    @pytest.fixture
    def venue(self, clock):
        venue = InMemoryVenue(clock)
        pair = venue.create_pair(PAIR, USDC, WETH)
        # 2000 USDC за 1 WETH
        pair.sync(2000 * 10**6, 10**18)
        return venue

    def test_twap_before_first_update(self, venue, registry, clock):
        oracle = TwapOracle(PAIR, venue, registry, OracleConfig(period=3600), clock=clock)
        with pytest.raises(DivisionByZero):
            oracle.twap(WETH, 10**18)

    def test_steady_price(self, venue, registry, clock):
        oracle = TwapOracle(PAIR, venue, registry, OracleConfig(period=3600), clock=clock)

        clock.advance(3600)
        oracle.update()

        # 2000 USDC за raw 1e6 → 1 WETH = 1e18
        assert oracle.consult(USDC, 2000 * 10**6) == 10**18
        # 1 WETH → ~2000 USDC, в 18 decimals
        amount_out = oracle.consult(WETH, 10**18)
        assert abs(amount_out - 2000 * 10**18) <= 10**12

    def test_short_spike_has_bounded_effect(self, venue, registry, clock):
        """Манипуляция ценой за 10 секунд до update почти не влияет на TWAP"""
        oracle = TwapOracle(PAIR, venue, registry, OracleConfig(period=3600), clock=clock)
        pair = venue.pair(PAIR)

        clock.advance(3590)
        # Цена WETH ×10
        pair.sync(20000 * 10**6, 10**18)
        clock.advance(10)
        oracle.update()

        amount_out = oracle.consult(WETH, 10**18)
        spot_after_spike = 20000 * 10**18
        assert amount_out < 2100 * 10**18
        assert amount_out < spot_after_spike // 9

    def test_event_history_bounded_across_many_updates(self, venue, registry, clock):
        """Долгоживущий oracle хранит только последние события"""
        oracle = TwapOracle(PAIR, venue, registry, OracleConfig(period=10), clock=clock)
        updates = DEFAULT_HISTORY_LIMIT + 250

        for _ in range(updates):
            clock.advance(10)
            oracle.update()

        history = oracle.events.history
        assert oracle.epoch == updates
        assert len(history) == DEFAULT_HISTORY_LIMIT
        assert history[-1] == Updated(
            price0_cumulative=oracle.price0_cumulative_last,
            price1_cumulative=oracle.price1_cumulative_last,
        )
