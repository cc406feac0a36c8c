"""
FixedPointQ112 — бинарная fixed-point арифметика (формат UQ112x112)

Значение хранится как 224-битное целое raw = value * 2^112.

Операции:
- encode / from_ratio: построение из целого или дроби
- from_truncated_ratio: деление уже масштабированного (Q112) числителя,
  результат приводится к 224 битам
- multiply_truncate: умножение на целое количество и decode до 144 бит

Wraparound намеренный: cumulative accumulators источника сами оборачиваются,
поэтому их модульная разность с последующим приведением к 224 битам даёт
корректное среднее, пока между наблюдениями прошло меньше одного полного
периода wraparound. Переполнение здесь не ошибка.

Усечение всегда вниз (floor), никогда не округление вверх.
"""

from dataclasses import dataclass
from typing import Final

from src.core.errors import DivisionByZero
from src.core.math.numerical_safeguards import (
    BITS_144,
    BITS_224,
    BITS_256,
    wrap,
)

# =============================================================================
# КОНСТАНТЫ ФОРМАТА
# =============================================================================

# Количество дробных бит
RESOLUTION: Final[int] = 112

# 2^112 — единица в формате Q112
Q112: Final[int] = 1 << RESOLUTION


# =============================================================================
# FIXED POINT TYPE
# =============================================================================


@dataclass(frozen=True)
class FixedPointQ112:
    """
    Беззнаковое fixed-point число UQ112x112.

    Immutable: создаётся заново при каждом пересчёте среднего.

    Attributes:
        raw: 224-битная магнитуда, интерпретируемая как raw / 2^112
    """

    raw: int = 0

    def __post_init__(self) -> None:
        if not isinstance(self.raw, int) or isinstance(self.raw, bool):
            raise TypeError(f"raw must be int, got {type(self.raw).__name__}")
        # Явное приведение к 224 битам (wraparound, не ошибка)
        object.__setattr__(self, "raw", wrap(self.raw, BITS_224))

    # -------------------------------------------------------------------------
    # Конструкторы
    # -------------------------------------------------------------------------

    @classmethod
    def zero(cls) -> "FixedPointQ112":
        """Неинициализированное среднее (0)."""
        return cls(0)

    @classmethod
    def encode(cls, value: int) -> "FixedPointQ112":
        """
        Кодирование целого в Q112.

        Args:
            value: Целое значение (ожидается uint112)

        Returns:
            FixedPointQ112(value << 112), приведённое к 224 битам
        """
        if value < 0:
            raise ValueError(f"value must be non-negative, got {value}")
        return cls(value << RESOLUTION)

    @classmethod
    def from_ratio(cls, numerator: int, denominator: int) -> "FixedPointQ112":
        """
        Построение из дроби numerator / denominator.

        Args:
            numerator: Числитель (целое, не масштабированное)
            denominator: Знаменатель

        Returns:
            FixedPointQ112 ≈ numerator / denominator (усечение вниз)

        Raises:
            DivisionByZero: Если denominator == 0

        Examples:
            >>> FixedPointQ112.from_ratio(1, 2).raw == Q112 // 2
            True
        """
        if denominator == 0:
            raise DivisionByZero("FixedPointQ112: division by zero")
        if numerator < 0 or denominator < 0:
            raise ValueError(
                f"numerator and denominator must be non-negative, "
                f"got {numerator}/{denominator}"
            )
        return cls((numerator << RESOLUTION) // denominator)

    @classmethod
    def from_truncated_ratio(
        cls, scaled_numerator: int, denominator: int
    ) -> "FixedPointQ112":
        """
        Деление уже масштабированного числителя, с приведением к 224 битам.

        Числитель — дельта cumulative accumulators, которые уже хранятся
        в Q112. Частное намеренно усекается до 224 бит.

        Args:
            scaled_numerator: Числитель в Q112 (uint256)
            denominator: Знаменатель (time_elapsed, uint32)

        Returns:
            FixedPointQ112(uint224(scaled_numerator // denominator))

        Raises:
            DivisionByZero: Если denominator == 0
        """
        if denominator == 0:
            raise DivisionByZero("FixedPointQ112: division by zero")
        if scaled_numerator < 0 or denominator < 0:
            raise ValueError(
                f"numerator and denominator must be non-negative, "
                f"got {scaled_numerator}/{denominator}"
            )
        return cls(scaled_numerator // denominator)

    # -------------------------------------------------------------------------
    # Операции
    # -------------------------------------------------------------------------

    def multiply_truncate(self, amount: int) -> int:
        """
        Умножение на целое количество с decode до 144 бит.

        Произведение приводится к 256 битам (UQ144x112), затем сдвигается
        вправо на 112 бит. Биты за пределами 144 значащих отбрасываются.
        Ошибок нет.

        Args:
            amount: Количество (uint256)

        Returns:
            floor(self * amount), uint144
        """
        if amount < 0:
            raise ValueError(f"amount must be non-negative, got {amount}")
        product = wrap(self.raw * amount, BITS_256)
        return wrap(product >> RESOLUTION, BITS_144)

    def decode(self) -> int:
        """Целая часть значения (raw >> 112), uint112."""
        return self.raw >> RESOLUTION

    @property
    def is_zero(self) -> bool:
        return self.raw == 0

    def to_float(self) -> float:
        """Приближённое значение для логов и диагностики."""
        return self.raw / Q112

    def __repr__(self) -> str:
        return f"FixedPointQ112(raw={self.raw}, ~{self.to_float():.12g})"


def multiply_truncate(fixed_value: FixedPointQ112, amount: int) -> int:
    """Функциональная форма FixedPointQ112.multiply_truncate."""
    return fixed_value.multiply_truncate(amount)
