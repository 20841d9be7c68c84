"""Vesting Ledger — линейный вестинг и вывод токенов.

vested(now)    = purchased_total * min(now - vest_start_time, vest_duration) / vest_duration
claimable(now) = max(0, vested(now) - claimed_total)

- claimable — запрос: до начала вестинга или без позиции возвращает 0
- claim — операция: VestingNotStarted / NoPosition, вывод 0 — легальный no-op
  (в том числе после закрытия позиции; NoPosition только для адресов без покупок)
- Позиция закрывается в момент, когда remaining_balance становится 0
"""

from dataclasses import dataclass
from typing import Optional
import logging

from src.core.domain.position import Position
from src.core.domain.sale_state import SaleState
from src.core.errors import VestingNotStarted
from src.core.math.fixed_point import linear_fraction
from src.sale.registry import PositionRegistry, normalize_address

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ClaimResult:
    """Результат вывода."""

    new_state: SaleState
    holder: str
    withdrawn: int
    remaining_balance: int
    position_closed: bool

    # Диагностика
    details: str


class VestingLedger:
    """Расчёт и выполнение выводов по позициям."""

    def __init__(self, registry: Optional[PositionRegistry] = None):
        self.registry = registry or PositionRegistry()

    def vested_amount(self, state: SaleState, holder: str, now: int) -> int:
        """Разблокированная к моменту now часть purchased_total."""
        position = self.registry.get(state, holder)
        if position is None:
            return 0
        return self._vested(state, position, now)

    def claimable(self, state: SaleState, holder: str, now: int) -> int:
        """Доступно к выводу сейчас. Никогда не бросает ошибок окна."""
        position = self.registry.get(state, holder)
        if position is None:
            return 0
        return self._claimable(state, position, now)

    def claim(self, state: SaleState, holder: str, now: int) -> ClaimResult:
        """Вывод всего доступного на момент now.

        Перевод токенов выполняет вызывающий код (TokenSale) до коммита
        нового состояния.

        Raises:
            VestingNotStarted: now < vest_start_time
            NoPosition: holder никогда не покупал
        """
        holder = normalize_address(holder)
        config = state.config

        if now < config.vest_start_time:
            raise VestingNotStarted(
                f"sale hasn't ended yet: vesting starts at {config.vest_start_time}, now={now}"
            )

        if self.registry.is_closed(state, holder):
            return ClaimResult(
                new_state=state,
                holder=holder,
                withdrawn=0,
                remaining_balance=0,
                position_closed=False,
                details="position already fully withdrawn",
            )

        position = self.registry.require(state, holder)
        withdrawn = self._claimable(state, position, now)

        if withdrawn == 0:
            return ClaimResult(
                new_state=state,
                holder=holder,
                withdrawn=0,
                remaining_balance=position.remaining_balance,
                position_closed=False,
                details="nothing vested since last claim",
            )

        updated = position.record_claim(withdrawn)
        new_state, closed = self.registry.store(state, updated)

        logger.info(
            "Claim: holder=%s withdrawn=%d remaining=%d closed=%s",
            holder,
            withdrawn,
            updated.remaining_balance,
            closed,
        )

        return ClaimResult(
            new_state=new_state,
            holder=holder,
            withdrawn=withdrawn,
            remaining_balance=updated.remaining_balance,
            position_closed=closed,
            details=(
                f"withdrawn {withdrawn}, remaining {updated.remaining_balance}"
                + (", position closed" if closed else "")
            ),
        )

    @staticmethod
    def _vested(state: SaleState, position: Position, now: int) -> int:
        config = state.config
        return linear_fraction(
            position.purchased_total, now - config.vest_start_time, config.vest_duration
        )

    def _claimable(self, state: SaleState, position: Position, now: int) -> int:
        vested = self._vested(state, position, now)
        return max(0, vested - position.claimed_total)
