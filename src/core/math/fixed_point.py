"""
Fixed Point — Integer Math Primitives

Модуль обеспечивает точную целочисленную арифметику для всех денежных расчётов
продажи и вестинга:
- Количества токенов в base units (token_decimals, по умолчанию 18)
- Стоимость в wei (18 знаков)
- Цены оракула с произвольным числом знаков, нормализуемые к WAD (18 знаков)

КРИТИЧЕСКИЕ ИНВАРИАНТЫ:
1. Никаких float в денежных расчётах (только int)
2. Деление всегда с округлением вниз (floor), в пользу продавца
3. Деление на ноль никогда не происходит (ValueError до вычисления)
4. Отрицательные количества отвергаются на входе
"""

from typing import Final

# =============================================================================
# КОНСТАНТЫ
# =============================================================================

# Число знаков WAD fixed point (совпадает с decimals ETH)
WAD_DECIMALS: Final[int] = 18

# 1.0 в WAD представлении
WAD: Final[int] = 10**WAD_DECIMALS

# Верхняя граница для беззнаковых значений (uint256)
UINT256_MAX: Final[int] = 2**256 - 1

# Разумный предел числа знаков для цен и токенов
MAX_DECIMALS: Final[int] = 36


# =============================================================================
# ВАЛИДАЦИЯ
# =============================================================================


def validate_uint(value: int, name: str) -> None:
    """
    Валидация, что значение — неотрицательное целое в пределах uint256.

    bool отвергается явно (bool — подкласс int в Python).

    Args:
        value: Проверяемое значение
        name: Имя параметра (для сообщения об ошибке)

    Raises:
        ValueError: Если value не int, отрицательное или больше UINT256_MAX
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{name} must be an integer, got {type(value).__name__}")

    if value < 0:
        raise ValueError(f"{name} must be non-negative, got {value}")

    if value > UINT256_MAX:
        raise ValueError(f"{name} exceeds uint256 range, got {value}")


def validate_positive_uint(value: int, name: str) -> None:
    """
    Валидация, что значение — строго положительное целое.

    Raises:
        ValueError: Если value <= 0 или не int
    """
    validate_uint(value, name)

    if value == 0:
        raise ValueError(f"{name} must be positive, got {value}")


def validate_decimals(decimals: int, name: str = "decimals") -> None:
    """Валидация числа знаков: 0 <= decimals <= MAX_DECIMALS."""
    validate_uint(decimals, name)

    if decimals > MAX_DECIMALS:
        raise ValueError(f"{name} must be <= {MAX_DECIMALS}, got {decimals}")


# =============================================================================
# АРИФМЕТИКА
# =============================================================================


def mul_div(a: int, b: int, denominator: int) -> int:
    """
    Вычисление floor(a * b / denominator) без потери точности.

    Python int не переполняется, поэтому промежуточное произведение точное.

    Args:
        a: Множитель (>= 0)
        b: Множитель (>= 0)
        denominator: Делитель (> 0)

    Returns:
        floor(a * b / denominator)

    Raises:
        ValueError: Если аргументы отрицательные или denominator == 0

    Examples:
        >>> mul_div(10, 3, 4)
        7
        >>> mul_div(1, 1, 2)
        0
    """
    validate_uint(a, "a")
    validate_uint(b, "b")
    validate_positive_uint(denominator, "denominator")

    return (a * b) // denominator


def scale_amount(amount: int, from_decimals: int, to_decimals: int) -> int:
    """
    Перевод fixed-point значения между разными числами знаков.

    При уменьшении числа знаков округление вниз.

    Examples:
        >>> scale_amount(3000_00000000, 8, 18)
        3000000000000000000000
        >>> scale_amount(15, 1, 0)
        1
    """
    validate_uint(amount, "amount")
    validate_decimals(from_decimals, "from_decimals")
    validate_decimals(to_decimals, "to_decimals")

    if to_decimals >= from_decimals:
        return amount * 10 ** (to_decimals - from_decimals)
    return amount // 10 ** (from_decimals - to_decimals)


def to_wad(amount: int, decimals: int) -> int:
    """Нормализация fixed-point значения к WAD (18 знаков)."""
    return scale_amount(amount, decimals, WAD_DECIMALS)


def linear_fraction(total: int, elapsed: int, duration: int) -> int:
    """
    Линейная доля: floor(total * min(elapsed, duration) / duration).

    Используется для вестинга. Отрицательный elapsed трактуется как 0.

    Args:
        total: Полная сумма (>= 0)
        elapsed: Прошедшее время (может быть отрицательным)
        duration: Полная длительность (> 0)

    Returns:
        Доля total в пределах [0, total]
    """
    validate_uint(total, "total")
    validate_positive_uint(duration, "duration")

    if elapsed <= 0:
        return 0
    if elapsed >= duration:
        return total
    return mul_div(total, elapsed, duration)
