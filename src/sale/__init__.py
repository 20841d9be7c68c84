"""Sale — продажа токенов со ступенчатой ценой и линейным вестингом.

Компоненты (от листьев к фасаду):
- PricingSchedule: время → цена
- PositionRegistry: одна непередаваемая позиция на адрес
- SaleEngine: покупка с проверкой аттестации оракула и лимитов
- VestingLedger: claimable и claim
- AdminControls: set_base_price, recover_excess
- TokenSale: публичная поверхность и атомарный коммит состояния
"""

from .admin import AdminControls, RecoveryResult
from .custody import InMemoryTokenLedger, TokenCustody
from .engine import PurchaseResult, SaleEngine, tokens_for_value, value_in_quote_units
from .pricing import PricingSchedule
from .registry import PositionRegistry, normalize_address
from .token_sale import TokenSale
from .vesting import ClaimResult, VestingLedger

__all__ = [
    "AdminControls",
    "ClaimResult",
    "InMemoryTokenLedger",
    "PositionRegistry",
    "PricingSchedule",
    "PurchaseResult",
    "RecoveryResult",
    "SaleEngine",
    "TokenCustody",
    "TokenSale",
    "VestingLedger",
    "normalize_address",
    "tokens_for_value",
    "value_in_quote_units",
]
