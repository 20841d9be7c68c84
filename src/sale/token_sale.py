"""TokenSale — публичная поверхность продажи.

Держит handle на текущий SaleState и связывает компоненты:
- SaleEngine (purchase)
- VestingLedger (claim, claimable)
- AdminControls (set_base_price, recover_excess)
- PositionRegistry (total_supply, owner_of, balance_of)
- TokenCustody (баланс продажи и переводы)

Атомарность: каждая операция вычисляет новый SaleState, затем выполняет
перевод токенов, и только после успешного перевода коммитит состояние одним
присваиванием. Ошибка на любом шаге оставляет состояние нетронутым.

Время now всегда передаётся вызывающим кодом.
"""

from typing import Optional
import logging

from src.core.domain.position import Position
from src.core.domain.sale_config import SaleConfig
from src.core.domain.sale_state import SaleState
from src.oracle.verifier import PriceOracleVerifier
from src.sale.admin import AdminControls
from src.sale.custody import TokenCustody
from src.sale.engine import SaleEngine
from src.sale.pricing import PricingSchedule
from src.sale.registry import PositionRegistry, normalize_address
from src.sale.vesting import VestingLedger

logger = logging.getLogger(__name__)


class TokenSale:
    """Продажа токенов со ступенчатой ценой и последующим вестингом.

    Args:
        config: конфигурация продажи
        verifier: capability проверки аттестаций оракула
        token: custody продаваемого токена
        address: адрес самой продажи в реестре токена
        enforce_custody_balance: ограничивать покупки балансом custody
            (помимо sale_supply_cap)
    """

    def __init__(
        self,
        config: SaleConfig,
        verifier: PriceOracleVerifier,
        token: TokenCustody,
        address: str = "token-sale",
        enforce_custody_balance: bool = True,
    ):
        self.address = normalize_address(address)
        self.token = token
        self.enforce_custody_balance = enforce_custody_balance

        self.pricing = PricingSchedule()
        self.registry = PositionRegistry()
        self.engine = SaleEngine(verifier, pricing=self.pricing, registry=self.registry)
        self.vesting = VestingLedger(registry=self.registry)
        self.admin = AdminControls()

        self._state = SaleState.initial(config)

    # -------------------------------------------------------------------------
    # Состояние
    # -------------------------------------------------------------------------

    @property
    def state(self) -> SaleState:
        """Текущий снапшот (immutable)."""
        return self._state

    @property
    def config(self) -> SaleConfig:
        return self._state.config

    @property
    def custody_balance(self) -> int:
        return self.token.balance_of(self.address)

    # -------------------------------------------------------------------------
    # Публичные операции
    # -------------------------------------------------------------------------

    def fund(self, funder: str, amount: int) -> None:
        """Пополнение продажи токенами (transferIn)."""
        self.token.transfer(funder, self.address, amount)
        logger.info("Sale funded: funder=%s amount=%d", normalize_address(funder), amount)

    def purchase(self, attestation: bytes, recipient: str, value: int, now: int) -> int:
        """Покупка на value wei; позиция записывается на recipient.

        Returns:
            Количество распределённых токенов (base units)
        """
        custody = self.custody_balance if self.enforce_custody_balance else None
        result = self.engine.purchase(
            self._state,
            buyer=recipient,
            attestation=attestation,
            eth_value=value,
            now=now,
            custody_balance=custody,
        )
        self._state = result.new_state
        return result.tokens_allocated

    def claim(self, caller: str, now: int) -> int:
        """Вывод всего доступного caller на момент now.

        Returns:
            Выведенное количество (0 — легальный no-op)
        """
        result = self.vesting.claim(self._state, caller, now)
        if result.withdrawn > 0:
            self.token.transfer(self.address, result.holder, result.withdrawn)
        self._state = result.new_state
        return result.withdrawn

    def set_base_price(self, caller: str, new_price: int) -> None:
        self._state = self.admin.set_base_price(self._state, caller, new_price)

    def recover_excess(self, caller: str, recipient: str, now: int) -> int:
        """Вывод непроданного остатка владельцем после конца продажи."""
        result = self.admin.recover_excess(
            self._state, caller, recipient, self.custody_balance, now
        )
        if result.amount > 0:
            self.token.transfer(self.address, result.recipient, result.amount)
        return result.amount

    # -------------------------------------------------------------------------
    # Запросы
    # -------------------------------------------------------------------------

    def get_price(self, now: int) -> int:
        return self.pricing.current_price(self.config, now)

    def get_balance(self, address: str) -> int:
        """Невыведенный остаток позиции (0 без позиции)."""
        position = self.registry.get(self._state, address)
        return position.remaining_balance if position is not None else 0

    def get_claimable(self, address: str, now: int) -> int:
        return self.vesting.claimable(self._state, address, now)

    def get_position(self, address: str) -> Optional[Position]:
        return self.registry.get(self._state, address)

    def total_buys(self) -> int:
        return self._state.ledger.total_buys

    def total_raised(self) -> int:
        return self._state.ledger.total_raised

    def total_supply(self) -> int:
        """Число открытых позиций."""
        return self.registry.open_position_count(self._state)

    def balance_of(self, address: str) -> int:
        """Число позиций адреса (0 или 1)."""
        return self.registry.balance_of(self._state, address)

    def owner_of(self, position_id: str) -> str:
        return self.registry.owner_of(self._state, position_id)

    def transfer_position(self, sender: str, recipient: str, position_id: str) -> None:
        """Позиции непередаваемы: всегда PositionNotTransferable."""
        self.registry.transfer(self._state, sender, recipient, position_id)
