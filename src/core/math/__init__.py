"""
Core math modules для token sale

Целочисленные fixed-point примитивы с гарантией точности.
"""

from src.core.math.fixed_point import (
    MAX_DECIMALS,
    UINT256_MAX,
    WAD,
    WAD_DECIMALS,
    linear_fraction,
    mul_div,
    scale_amount,
    to_wad,
    validate_decimals,
    validate_positive_uint,
    validate_uint,
)

__all__ = [
    # Constants
    "MAX_DECIMALS",
    "UINT256_MAX",
    "WAD",
    "WAD_DECIMALS",
    # Arithmetic
    "linear_fraction",
    "mul_div",
    "scale_amount",
    "to_wad",
    # Validation
    "validate_decimals",
    "validate_positive_uint",
    "validate_uint",
]
