"""
Numerical Safeguards — Integer Wraparound Primitives

Модуль обеспечивает явную модульную арифметику фиксированной разрядности:
- Маски и границы для uint32/uint112/uint144/uint224/uint256
- Wrapping вычитание (модульная разность accumulators и timestamps)
- Явное усечение (cast down) до заданной разрядности
- Валидация беззнаковых целых

Python int не переполняется, поэтому переполнение здесь никогда не бывает
неявным: каждая операция, где wraparound намеренный, вызывает wrap() или
wrapping_sub() с документированной разрядностью.

КРИТИЧЕСКИЕ ИНВАРИАНТЫ:
1. Результат wrap(x, bits) всегда в [0, 2^bits)
2. wrapping_sub(a, b, bits) восстанавливает корректную дельту, если между
   наблюдениями прошло меньше одного полного периода wraparound
3. Все операции детерминированы и воспроизводимы
"""

from typing import Final

# =============================================================================
# РАЗРЯДНОСТИ
# =============================================================================

BITS_32: Final[int] = 32
BITS_112: Final[int] = 112
BITS_144: Final[int] = 144
BITS_224: Final[int] = 224
BITS_256: Final[int] = 256

# Максимальные значения беззнаковых типов
UINT32_MAX: Final[int] = (1 << BITS_32) - 1
UINT112_MAX: Final[int] = (1 << BITS_112) - 1
UINT144_MAX: Final[int] = (1 << BITS_144) - 1
UINT224_MAX: Final[int] = (1 << BITS_224) - 1
UINT256_MAX: Final[int] = (1 << BITS_256) - 1


# =============================================================================
# WRAPPING АРИФМЕТИКА
# =============================================================================


def _mask(bits: int) -> int:
    if bits <= 0:
        raise ValueError(f"bits must be positive, got {bits}")
    return (1 << bits) - 1


def wrap(value: int, bits: int) -> int:
    """
    Усечение целого до младших `bits` бит (cast down).

    Эквивалентно приведению к uintN в языках с фиксированной разрядностью:
    старшие биты отбрасываются, отрицательные значения переходят в
    дополнительный код.

    Args:
        value: Исходное целое (любого знака и размера)
        bits: Разрядность результата

    Returns:
        value mod 2^bits

    Examples:
        >>> wrap(2**32 + 5, 32)
        5
        >>> wrap(-1, 32)
        4294967295
    """
    return value & _mask(bits)


def wrapping_sub(a: int, b: int, bits: int) -> int:
    """
    Модульная разность a - b в кольце 2^bits.

    Используется для дельт cumulative price accumulators (256 бит) и
    timestamps (32 бита), которые сами по себе оборачиваются.

    Args:
        a: Текущее значение
        b: Предыдущее значение
        bits: Разрядность кольца

    Returns:
        (a - b) mod 2^bits

    Examples:
        >>> wrapping_sub(10, 3, 32)
        7
        >>> wrapping_sub(2, 2**32 - 3, 32)  # timestamp обернулся
        5
    """
    return (a - b) & _mask(bits)


def wrapping_add(a: int, b: int, bits: int) -> int:
    """Модульная сумма a + b в кольце 2^bits."""
    return (a + b) & _mask(bits)


# =============================================================================
# ВАЛИДАЦИЯ
# =============================================================================


def validate_uint(value: int, name: str, bits: int = BITS_256) -> None:
    """
    Валидация беззнакового целого заданной разрядности.

    Args:
        value: Проверяемое значение
        name: Имя параметра (для сообщения об ошибке)
        bits: Максимальная разрядность (default: 256)

    Raises:
        ValueError: Если value не int, отрицательное или не помещается в bits
    """
    # bool — подкласс int, но как количество не допускается
    if not isinstance(value, int) or isinstance(value, bool):
        raise ValueError(f"{name} must be an integer, got {type(value).__name__}")

    if value < 0:
        raise ValueError(f"{name} must be non-negative, got {value}")

    if value > _mask(bits):
        raise ValueError(f"{name} must fit in uint{bits}, got {value}")

