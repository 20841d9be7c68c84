"""Admin Controls — операции владельца.

- set_base_price: мгновенно сдвигает всю ценовую кривую (в т.ч. посреди продажи)
- recover_excess: после конца продажи отдаёт custody_balance - total_buys

Собственного состояния нет: работает над SaleState и балансом custody.
Проверка владельца всегда первая.
"""

from dataclasses import dataclass
import logging

from src.core.domain.sale_state import SaleState
from src.core.errors import SaleStillActive, Unauthorized
from src.core.math.fixed_point import validate_positive_uint, validate_uint
from src.sale.registry import normalize_address

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RecoveryResult:
    """Результат вывода непроданного остатка."""

    recipient: str
    amount: int
    custody_balance_before: int
    total_buys: int
    details: str


class AdminControls:
    """Owner-gated операции."""

    def require_owner(self, state: SaleState, caller: str) -> None:
        if not state.config.is_owner(caller):
            raise Unauthorized(f"caller {caller} is not the owner", caller=caller)

    def set_base_price(self, state: SaleState, caller: str, new_price: int) -> SaleState:
        """
        Замена базовой цены.

        Raises:
            Unauthorized: caller не владелец
            ValueError: new_price <= 0
        """
        self.require_owner(state, caller)
        validate_positive_uint(new_price, "new_price")

        old_price = state.config.base_price
        new_state = state.replace(config=state.config.with_base_price(new_price))

        logger.info("Base price changed: %d -> %d", old_price, new_price)
        return new_state

    def recover_excess(
        self,
        state: SaleState,
        caller: str,
        recipient: str,
        custody_balance: int,
        now: int,
    ) -> RecoveryResult:
        """
        Расчёт непроданного остатка для вывода.

        Граница — sale_end_time (а не vest_start_time), хотя сейчас это один
        и тот же момент. Повторный вызов возвращает amount == 0.

        Raises:
            Unauthorized: caller не владелец
            SaleStillActive: now < sale_end_time
        """
        self.require_owner(state, caller)
        recipient = normalize_address(recipient)
        validate_uint(custody_balance, "custody_balance")

        if now < state.config.sale_end_time:
            raise SaleStillActive(
                f"sale hasn't ended yet: ends at {state.config.sale_end_time}, now={now}"
            )

        total_buys = state.ledger.total_buys
        amount = max(0, custody_balance - total_buys)

        logger.info("Excess recovery: recipient=%s amount=%d", recipient, amount)

        return RecoveryResult(
            recipient=recipient,
            amount=amount,
            custody_balance_before=custody_balance,
            total_buys=total_buys,
            details=f"custody {custody_balance} - total_buys {total_buys} = {amount}",
        )
