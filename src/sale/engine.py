"""Sale Engine — покупка токенов.

Порядок проверок (первая неудачная определяет ошибку):
1. now >= sale_start_time             → SaleNotStarted
2. now <  sale_end_time               → SaleEnded
3. аттестация оракула валидна         → InvalidAttestation
4. price = PricingSchedule.current_price(now)
5. value = eth_value * ref_price (целые quote units), tokens = value / price; 0 → ValueTooSmall
6. total_buys + tokens > sale_supply_cap (или > custody balance) → CapacityExceeded

Все проверки выполняются до любой записи: при ошибке состояние не меняется.
Покупка не идемпотентна: каждый вызов — новая покупка.
"""

from dataclasses import dataclass
from typing import Optional
import logging

from src.core.domain.sale_config import SaleConfig
from src.core.domain.sale_state import SaleState
from src.core.errors import CapacityExceeded, SaleEnded, SaleError, SaleNotStarted, ValueTooSmall
from src.core.math.fixed_point import WAD, validate_uint
from src.oracle.verifier import OracleReading, PriceOracleVerifier
from src.sale.pricing import PricingSchedule
from src.sale.registry import PositionRegistry, normalize_address

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PurchaseResult:
    """Результат покупки."""

    new_state: SaleState
    buyer: str
    tokens_allocated: int
    eth_value: int

    # Цены на момент покупки
    price: int
    reference_price_wad: int

    position_created: bool

    # Диагностика
    details: str


def value_in_quote_units(config: SaleConfig, eth_value: int, reference_price_wad: int) -> int:
    """
    Стоимость eth_value wei в единицах цены продажи (price_decimals знаков).

    value = eth_value * reference_price_wad * 10**price_decimals / (1e18 * 1e18)

    При price_decimals=0 это целые quote units: остаток меньше одной единицы
    отбрасывается, поэтому 1 wei ничего не стоит.
    """
    return (eth_value * reference_price_wad * 10**config.price_decimals) // (WAD * WAD)


def tokens_for_value(config: SaleConfig, eth_value: int, reference_price_wad: int, price: int) -> int:
    """
    Количество токенов (base units) за eth_value wei.

    tokens = value_in_quote_units * token_unit / price

    Промежуточные произведения не ограничены uint256 (Python int),
    ограничены только входы и результат.
    """
    value = value_in_quote_units(config, eth_value, reference_price_wad)
    return (value * config.token_unit) // price


class SaleEngine:
    """Оркестрация покупки: окно, оракул, цена, лимиты, позиция."""

    def __init__(
        self,
        verifier: PriceOracleVerifier,
        pricing: Optional[PricingSchedule] = None,
        registry: Optional[PositionRegistry] = None,
    ):
        self.verifier = verifier
        self.pricing = pricing or PricingSchedule()
        self.registry = registry or PositionRegistry()

    def quote(self, state: SaleState, eth_value: int, reading: OracleReading, now: int) -> int:
        """Сколько токенов дала бы покупка сейчас (без проверок лимитов)."""
        validate_uint(eth_value, "eth_value")
        price = self.pricing.current_price(state.config, now)
        return tokens_for_value(state.config, eth_value, reading.price_wad, price)

    def purchase(
        self,
        state: SaleState,
        buyer: str,
        attestation: bytes,
        eth_value: int,
        now: int,
        custody_balance: Optional[int] = None,
    ) -> PurchaseResult:
        """Покупка токенов на eth_value wei для buyer.

        Args:
            state: текущее состояние продажи
            buyer: адрес получателя позиции
            attestation: байты аттестации оракула
            eth_value: присланное значение (wei)
            now: текущее время (Unix, секунды)
            custody_balance: баланс токенов продажи; None — не проверяется

        Returns:
            PurchaseResult с новым состоянием

        Raises:
            SaleNotStarted, SaleEnded, InvalidAttestation, ValueTooSmall, CapacityExceeded
        """
        buyer = normalize_address(buyer)
        validate_uint(eth_value, "eth_value")

        try:
            return self._purchase(state, buyer, attestation, eth_value, now, custody_balance)
        except SaleError as e:
            logger.warning("Purchase rejected for %s: %s (%s)", buyer, e.reason, e.message)
            raise

    def _purchase(
        self,
        state: SaleState,
        buyer: str,
        attestation: bytes,
        eth_value: int,
        now: int,
        custody_balance: Optional[int],
    ) -> PurchaseResult:
        config = state.config

        # 1-2. Окно продажи
        if now < config.sale_start_time:
            raise SaleNotStarted(
                f"sale has not started: starts at {config.sale_start_time}, now={now}"
            )
        if now >= config.sale_end_time:
            raise SaleEnded(f"sale has ended at {config.sale_end_time}, now={now}")

        # 3. Оракул
        reading = self.verifier.verify(attestation, now=now)

        # 4-5. Цена и количество
        price = self.pricing.current_price(config, now)
        tokens = tokens_for_value(config, eth_value, reading.price_wad, price)
        if tokens == 0:
            raise ValueTooSmall(
                f"value {eth_value} wei buys zero tokens at price {price}",
                eth_value=eth_value,
                price=price,
            )

        # 6. Лимиты
        total_after = state.ledger.total_buys + tokens
        if total_after > config.sale_supply_cap:
            raise CapacityExceeded(
                f"not enough tokens left: requested {tokens}, "
                f"available {config.sale_supply_cap - state.ledger.total_buys}"
            )
        if custody_balance is not None and total_after > custody_balance:
            raise CapacityExceeded(
                f"not enough tokens left in custody: requested {tokens}, "
                f"available {max(0, custody_balance - state.ledger.total_buys)}"
            )

        # Запись
        new_state, created = self.registry.upsert(state, buyer, tokens, now)
        new_state = new_state.replace(ledger=new_state.ledger.record_purchase(tokens, eth_value))

        logger.info(
            "Purchase: buyer=%s tokens=%d value=%d price=%d total_buys=%d",
            buyer,
            tokens,
            eth_value,
            price,
            new_state.ledger.total_buys,
        )

        return PurchaseResult(
            new_state=new_state,
            buyer=buyer,
            tokens_allocated=tokens,
            eth_value=eth_value,
            price=price,
            reference_price_wad=reading.price_wad,
            position_created=created,
            details=(
                f"{'new position' if created else 'top-up'}: {tokens} tokens "
                f"at price {price}, total_buys={new_state.ledger.total_buys}"
            ),
        )
