"""
In-memory Venue — эталонная constant-product пара с price accumulators

Пара ведёт cumulative accumulators так же, как внешняя venue:
- на каждом sync() к accumulator прибавляется Q112(reserve_other / reserve_self)
  * time_elapsed по ПРЕДЫДУЩИМ резервам
- accumulators оборачиваются по модулю 2^256, timestamps по модулю 2^32
- current_cumulative_prices() продолжает сохранённые accumulators до
  текущего момента, не изменяя пару

Используется в тестах и симуляциях как CumulativePriceSource.
"""

import logging
from typing import Dict, Optional

from src.core.domain.assets import Asset
from src.core.domain.observation import AccumulatorSnapshot, Reserves
from src.core.math.fixed_point import FixedPointQ112
from src.core.math.numerical_safeguards import (
    BITS_32,
    BITS_112,
    BITS_256,
    validate_uint,
    wrap,
    wrapping_add,
    wrapping_sub,
)
from src.epoch.clock import Clock

_log = logging.getLogger(__name__)


# =============================================================================
# PAIR
# =============================================================================


class InMemoryPair:
    """
    Пара двух активов с резервами и cumulative accumulators.

    Attributes:
        address: идентификатор пары
        token0, token1: идентификаторы активов (порядок значим)
    """

    def __init__(self, address: str, token0: str, token1: str, clock: Clock):
        if token0 == token1:
            raise ValueError(f"identical tokens: {token0!r}")

        self.address = address
        self.token0 = token0
        self.token1 = token1
        self._clock = clock

        self._reserve0 = 0
        self._reserve1 = 0
        self._block_timestamp_last = self.block_timestamp()
        self._price0_cumulative_last = 0
        self._price1_cumulative_last = 0

    def block_timestamp(self) -> int:
        """Текущее время пары, uint32 (оборачивается)."""
        return wrap(self._clock.now(), BITS_32)

    def sync(self, reserve0: int, reserve1: int) -> None:
        """
        Обновление резервов с накоплением цен за прошедший интервал.

        Накопление идёт по предыдущим резервам и только если оба были
        ненулевые и время продвинулось.

        Raises:
            ValueError: Если резерв не помещается в uint112
        """
        validate_uint(reserve0, "reserve0", BITS_112)
        validate_uint(reserve1, "reserve1", BITS_112)

        block_timestamp = self.block_timestamp()
        time_elapsed = wrapping_sub(block_timestamp, self._block_timestamp_last, BITS_32)

        if time_elapsed > 0 and self._reserve0 != 0 and self._reserve1 != 0:
            price0 = FixedPointQ112.from_ratio(self._reserve1, self._reserve0)
            price1 = FixedPointQ112.from_ratio(self._reserve0, self._reserve1)
            self._price0_cumulative_last = wrapping_add(
                self._price0_cumulative_last, price0.raw * time_elapsed, BITS_256
            )
            self._price1_cumulative_last = wrapping_add(
                self._price1_cumulative_last, price1.raw * time_elapsed, BITS_256
            )

        self._reserve0 = reserve0
        self._reserve1 = reserve1
        self._block_timestamp_last = block_timestamp

        _log.debug(
            "pair %s sync: reserves=(%d, %d) ts=%d",
            self.address, reserve0, reserve1, block_timestamp,
        )

    def get_reserves(self) -> Reserves:
        return Reserves(
            reserve0=self._reserve0,
            reserve1=self._reserve1,
            block_timestamp_last=self._block_timestamp_last,
        )

    @property
    def price0_cumulative_last(self) -> int:
        return self._price0_cumulative_last

    @property
    def price1_cumulative_last(self) -> int:
        return self._price1_cumulative_last

    def cumulative_prices_last(self) -> AccumulatorSnapshot:
        return AccumulatorSnapshot(
            price0_cumulative=self._price0_cumulative_last,
            price1_cumulative=self._price1_cumulative_last,
            block_timestamp=self._block_timestamp_last,
        )


def current_cumulative_prices(pair: InMemoryPair) -> AccumulatorSnapshot:
    """
    Accumulators пары, продолженные до текущего момента.

    Если с последнего sync прошло время, добавляется counterfactual
    накопление по текущим резервам. Пара не изменяется.
    """
    block_timestamp = pair.block_timestamp()
    price0_cumulative = pair.price0_cumulative_last
    price1_cumulative = pair.price1_cumulative_last

    reserves = pair.get_reserves()
    if reserves.block_timestamp_last != block_timestamp and reserves.has_liquidity:
        time_elapsed = wrapping_sub(block_timestamp, reserves.block_timestamp_last, BITS_32)
        price0 = FixedPointQ112.from_ratio(reserves.reserve1, reserves.reserve0)
        price1 = FixedPointQ112.from_ratio(reserves.reserve0, reserves.reserve1)
        price0_cumulative = wrapping_add(price0_cumulative, price0.raw * time_elapsed, BITS_256)
        price1_cumulative = wrapping_add(price1_cumulative, price1.raw * time_elapsed, BITS_256)

    return AccumulatorSnapshot(
        price0_cumulative=price0_cumulative,
        price1_cumulative=price1_cumulative,
        block_timestamp=block_timestamp,
    )


# =============================================================================
# VENUE
# =============================================================================


class InMemoryVenue:
    """
    Реестр пар, реализующий CumulativePriceSource.
    """

    def __init__(self, clock: Clock):
        self._clock = clock
        self._pairs: Dict[str, InMemoryPair] = {}

    def create_pair(self, address: str, token0: str, token1: str) -> InMemoryPair:
        if address in self._pairs:
            raise ValueError(f"pair already exists: {address!r}")
        pair = InMemoryPair(address, token0, token1, self._clock)
        self._pairs[address] = pair
        return pair

    def pair(self, address: str) -> InMemoryPair:
        try:
            return self._pairs[address]
        except KeyError:
            raise ValueError(f"unknown pair: {address!r}") from None

    # CumulativePriceSource

    def token0(self, pair_address: str) -> str:
        return self.pair(pair_address).token0

    def token1(self, pair_address: str) -> str:
        return self.pair(pair_address).token1

    def get_reserves(self, pair_address: str) -> Reserves:
        return self.pair(pair_address).get_reserves()

    def cumulative_prices_last(self, pair_address: str) -> AccumulatorSnapshot:
        return self.pair(pair_address).cumulative_prices_last()

    def current_cumulative_prices(self, pair_address: str) -> AccumulatorSnapshot:
        return current_cumulative_prices(self.pair(pair_address))


# =============================================================================
# ASSET REGISTRY
# =============================================================================


class AssetRegistry:
    """In-memory AssetMetadataSource."""

    def __init__(self, *assets: Asset):
        self._assets: Dict[str, Asset] = {}
        for asset in assets:
            self.register(asset)

    def register(self, asset: Asset) -> None:
        self._assets[asset.address] = asset

    def get(self, address: str) -> Optional[Asset]:
        return self._assets.get(address)

    def decimals(self, asset: str) -> int:
        found = self._assets.get(asset)
        if found is None:
            raise ValueError(f"unknown asset: {asset!r}")
        return found.decimals
