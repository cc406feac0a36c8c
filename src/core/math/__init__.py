"""
Core math modules для TWAP oracle

Целочисленные примитивы фиксированной разрядности и fixed-point арифметика.
"""

# Numerical Safeguards (wraparound primitives)
from src.core.math.numerical_safeguards import (
    # Bit widths
    BITS_32,
    BITS_112,
    BITS_144,
    BITS_224,
    BITS_256,
    UINT32_MAX,
    UINT112_MAX,
    UINT144_MAX,
    UINT224_MAX,
    UINT256_MAX,
    # Wrapping arithmetic
    wrap,
    wrapping_add,
    wrapping_sub,
    # Validation
    validate_uint,
)

# Fixed Point (UQ112x112)
from src.core.math.fixed_point import (
    Q112,
    RESOLUTION,
    FixedPointQ112,
    multiply_truncate,
)

__all__ = [
    # Numerical Safeguards — Bit widths
    "BITS_32",
    "BITS_112",
    "BITS_144",
    "BITS_224",
    "BITS_256",
    "UINT32_MAX",
    "UINT112_MAX",
    "UINT144_MAX",
    "UINT224_MAX",
    "UINT256_MAX",
    # Numerical Safeguards — Wrapping arithmetic
    "wrap",
    "wrapping_add",
    "wrapping_sub",
    # Numerical Safeguards — Validation
    "validate_uint",
    # Fixed Point — Constants
    "Q112",
    "RESOLUTION",
    # Fixed Point — Types
    "FixedPointQ112",
    # Fixed Point — Functions
    "multiply_truncate",
]
