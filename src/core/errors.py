"""
Таксономия ошибок продажи и вестинга.

Каждая ошибка прерывает операцию целиком до любой записи состояния
(all-or-nothing). Повторов внутри ядра нет: вызывающий код исправляет
условие (ждёт начала продажи, получает свежую аттестацию, добавляет value)
и повторяет вызов.

reason — стабильный машинный код причины, message — человекочитаемый текст.
"""


class SaleError(Exception):
    """Базовый класс для всех отказов операций продажи."""

    reason: str = "sale_error"

    def __init__(self, message: str = "", **context):
        self.message = message or self.reason
        self.context = context
        super().__init__(self.message)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(reason={self.reason!r}, message={self.message!r})"


# =============================================================================
# ОКНО ПРОДАЖИ
# =============================================================================


class SaleNotStarted(SaleError):
    """now < sale_start_time."""

    reason = "sale_not_started"


class SaleEnded(SaleError):
    """now >= sale_end_time при покупке."""

    reason = "sale_ended"


class SaleStillActive(SaleError):
    """now < sale_end_time при recover_excess."""

    reason = "sale_still_active"


# =============================================================================
# ПОКУПКА
# =============================================================================


class ValueTooSmall(SaleError):
    """Расчётное количество токенов округлилось до нуля."""

    reason = "value_too_small"


class CapacityExceeded(SaleError):
    """total_buys + tokens превышает лимит предложения или баланс custody."""

    reason = "capacity_exceeded"


class InvalidAttestation(SaleError):
    """Аттестация оракула не прошла проверку (подпись, формат, пара, свежесть)."""

    reason = "invalid_attestation"


# =============================================================================
# ВЕСТИНГ И ПОЗИЦИИ
# =============================================================================


class VestingNotStarted(SaleError):
    """now < vest_start_time при claim."""

    reason = "vesting_not_started"


class NoPosition(SaleError):
    """У адреса нет открытой позиции."""

    reason = "no_position"


class PositionNotTransferable(SaleError):
    """Позиция привязана к адресу, который её накопил."""

    reason = "position_not_transferable"


# =============================================================================
# ДОСТУП И CUSTODY
# =============================================================================


class Unauthorized(SaleError):
    """Вызывающий не является владельцем."""

    reason = "unauthorized"


class InsufficientBalance(SaleError):
    """Недостаточно токенов на балансе отправителя."""

    reason = "insufficient_balance"
