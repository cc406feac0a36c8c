"""
Assets — Модель актива и нормализация десятичной точности

Все внешне сообщаемые количества выражены в 18-десятичной fixed-point
конвенции, независимо от того, по какому активу сделан запрос.

Пара обязана состоять ровно из одного 18-десятичного и одного 6-десятичного
актива. Множитель для актива i равен 10^(18 - decimals другого актива),
поскольку consult(i, amount) возвращает количество в единицах другого актива.
"""

from dataclasses import dataclass
from typing import Final

from pydantic import BaseModel, Field

from src.core.errors import ConfigurationError

# =============================================================================
# КОНСТАНТЫ
# =============================================================================

# Десятичная точность, в которой сообщаются все результаты
TARGET_DECIMALS: Final[int] = 18

# Единственная допустимая комбинация точностей пары
REQUIRED_DECIMALS: Final[frozenset[int]] = frozenset({6, 18})


# =============================================================================
# ASSET MODEL
# =============================================================================


class Asset(BaseModel):
    """
    Метаданные актива.

    Immutable модель (frozen=True).
    """

    address: str = Field(..., min_length=1, description="Идентификатор актива")
    symbol: str = Field("", description="Тикер (для логов)")
    decimals: int = Field(..., ge=0, le=255, description="Десятичная точность (uint8)")

    model_config = {"frozen": True}


# =============================================================================
# DECIMAL NORMALIZER
# =============================================================================


@dataclass(frozen=True)
class DecimalNormalizer:
    """
    Множители нормализации для двух активов пары.

    Вычисляется один раз при конструировании oracle.

    Attributes:
        decimals0: точность token0
        decimals1: точность token1
        multiplier0: множитель для запросов по token0 = 10^(18 - decimals1)
        multiplier1: множитель для запросов по token1 = 10^(18 - decimals0)
    """

    decimals0: int
    decimals1: int
    multiplier0: int
    multiplier1: int

    @classmethod
    def from_decimals(
        cls,
        decimals0: int,
        decimals1: int,
        target_decimals: int = TARGET_DECIMALS,
    ) -> "DecimalNormalizer":
        """
        Построение нормализатора по точностям активов.

        Args:
            decimals0: точность token0
            decimals1: точность token1
            target_decimals: целевая точность отчётов (default 18)

        Returns:
            DecimalNormalizer

        Raises:
            ConfigurationError: Если точности не равны ровно {6, 18}
        """
        if {decimals0, decimals1} != REQUIRED_DECIMALS:
            raise ConfigurationError(
                f"Unsupported decimals pair: token0={decimals0}, token1={decimals1}; "
                f"exactly one 18-decimal and one 6-decimal asset required"
            )
        if target_decimals < max(decimals0, decimals1):
            raise ConfigurationError(
                f"target_decimals={target_decimals} is below asset precision"
            )

        return cls(
            decimals0=decimals0,
            decimals1=decimals1,
            multiplier0=10 ** (target_decimals - decimals1),
            multiplier1=10 ** (target_decimals - decimals0),
        )

    def multiplier_for(self, index: int) -> int:
        """Множитель по индексу направления (0 или 1)."""
        if index == 0:
            return self.multiplier0
        elif index == 1:
            return self.multiplier1
        raise ValueError(f"direction index must be 0 or 1, got {index}")
