"""Sources — внешние коллабораторы oracle (только интерфейсы).

CumulativePriceSource — venue, которая поддерживает cumulative price
accumulators пары и отвечает синхронно, без побочных эффектов на oracle.

AssetMetadataSource — метаданные активов, используется только при
конструировании oracle.

Ошибки источников не перехватываются oracle: retry — забота вызывающего кода.
"""

from typing import Protocol

from src.core.domain.observation import AccumulatorSnapshot, Reserves


class CumulativePriceSource(Protocol):
    """Venue с cumulative price accumulators."""

    def token0(self, pair_address: str) -> str:
        """Идентификатор актива направления 0."""
        ...

    def token1(self, pair_address: str) -> str:
        """Идентификатор актива направления 1."""
        ...

    def get_reserves(self, pair_address: str) -> Reserves:
        """Текущие резервы и timestamp последнего sync."""
        ...

    def cumulative_prices_last(self, pair_address: str) -> AccumulatorSnapshot:
        """Сохранённые accumulators на момент последнего sync пары."""
        ...

    def current_cumulative_prices(self, pair_address: str) -> AccumulatorSnapshot:
        """Accumulators, продолженные до текущего момента (counterfactual)."""
        ...


class AssetMetadataSource(Protocol):
    """Метаданные активов."""

    def decimals(self, asset: str) -> int:
        ...
