"""Oracle — TWAP по cumulative price accumulators внешней venue.

- TwapOracle: update (gated), consult (cached), twap (live)
- Интерфейсы внешних источников
- In-memory venue и реестр активов
"""

from .sources import AssetMetadataSource, CumulativePriceSource
from .twap_oracle import OracleConfig, TwapOracle, UpdateResult
from .venue import AssetRegistry, InMemoryPair, InMemoryVenue, current_cumulative_prices

__all__ = [
    "AssetMetadataSource",
    "CumulativePriceSource",
    "OracleConfig",
    "TwapOracle",
    "UpdateResult",
    "AssetRegistry",
    "InMemoryPair",
    "InMemoryVenue",
    "current_cumulative_prices",
]
