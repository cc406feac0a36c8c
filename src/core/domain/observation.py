"""
Observation — снапшоты cumulative price accumulators и резервов пары

Immutable Pydantic модели, пересекающие границу oracle ↔ venue.
Совместимы с JSON Schema (src/core/contracts/schema/accumulator_snapshot.json).

Accumulators монотонно не убывают между наблюдениями ТОЛЬКО по модулю
wraparound (256 бит для accumulators, 32 бита для timestamp). Потребители
обязаны считать дельты через wrapping_sub, а не сравнением.
"""

from pydantic import BaseModel, Field

from src.core.math.numerical_safeguards import UINT32_MAX, UINT112_MAX, UINT256_MAX


# =============================================================================
# ACCUMULATOR SNAPSHOT
# =============================================================================


class AccumulatorSnapshot(BaseModel):
    """
    Снапшот cumulative price accumulators пары.

    price0_cumulative — интеграл цены token0 (в единицах token1) по времени, Q112
    price1_cumulative — интеграл цены token1 (в единицах token0) по времени, Q112
    """

    price0_cumulative: int = Field(
        ..., ge=0, le=UINT256_MAX, description="Cumulative price token0 → token1 (uint256)"
    )
    price1_cumulative: int = Field(
        ..., ge=0, le=UINT256_MAX, description="Cumulative price token1 → token0 (uint256)"
    )
    block_timestamp: int = Field(
        ..., ge=0, le=UINT32_MAX, description="Timestamp наблюдения (uint32, wraps)"
    )

    model_config = {"frozen": True}

    def cumulative(self, index: int) -> int:
        """Accumulator по индексу направления (0 или 1)."""
        if index == 0:
            return self.price0_cumulative
        elif index == 1:
            return self.price1_cumulative
        raise ValueError(f"direction index must be 0 or 1, got {index}")


# =============================================================================
# RESERVES
# =============================================================================


class Reserves(BaseModel):
    """Резервы пары и timestamp последнего обновления."""

    reserve0: int = Field(..., ge=0, le=UINT112_MAX, description="Резерв token0 (uint112)")
    reserve1: int = Field(..., ge=0, le=UINT112_MAX, description="Резерв token1 (uint112)")
    block_timestamp_last: int = Field(
        ..., ge=0, le=UINT32_MAX, description="Timestamp последнего sync (uint32)"
    )

    model_config = {"frozen": True}

    @property
    def has_liquidity(self) -> bool:
        return self.reserve0 != 0 and self.reserve1 != 0
