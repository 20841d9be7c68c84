"""
SaleState — Снапшот состояния продажи

Immutable Pydantic модели:
- SaleLedger: глобальные счётчики (total_buys, total_raised)
- SaleState: конфигурация + ledger + позиции

Состояние передаётся явно в каждую операцию и никогда не мутирует на месте:
операция возвращает новый SaleState, а вызывающий код коммитит его одним
присваиванием (all-or-nothing).
"""

from typing import Mapping

from pydantic import BaseModel, Field, model_validator

from .position import Position
from .sale_config import SaleConfig


# =============================================================================
# LEDGER
# =============================================================================


class SaleLedger(BaseModel):
    """
    Глобальные счётчики продажи.

    total_buys монотонно не убывает: вывод токенов его не уменьшает.
    """

    total_buys: int = Field(default=0, ge=0, description="Всего распределено токенов (base units)")
    total_raised: int = Field(default=0, ge=0, description="Всего принято ETH (wei)")

    model_config = {"frozen": True, "strict": True}

    def record_purchase(self, tokens: int, eth_value: int) -> "SaleLedger":
        return self.model_copy(
            update={
                "total_buys": self.total_buys + tokens,
                "total_raised": self.total_raised + eth_value,
            }
        )


# =============================================================================
# SALE STATE
# =============================================================================


class SaleState(BaseModel):
    """
    Полное состояние продажи.

    positions: holder address (lower-case) → Position, только открытые позиции.
    closed_holders: адреса, полностью выведшие свои позиции. Повторный claim
    для них — легальный no-op, а не NoPosition.
    """

    config: SaleConfig = Field(..., description="Конфигурация продажи")
    ledger: SaleLedger = Field(default_factory=SaleLedger, description="Глобальные счётчики")
    positions: dict[str, Position] = Field(
        default_factory=dict, description="Открытые позиции по адресу"
    )
    closed_holders: frozenset[str] = Field(
        default_factory=frozenset, description="Адреса закрытых позиций"
    )

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def validate_invariants(self) -> "SaleState":
        """
        Инварианты снапшота:
        - total_buys <= sale_supply_cap
        - ключ позиции совпадает с holder
        - в реестре нет закрытых позиций
        - адрес не бывает одновременно открытым и закрытым
        """
        if self.ledger.total_buys > self.config.sale_supply_cap:
            raise ValueError(
                f"total_buys {self.ledger.total_buys} exceeds "
                f"sale_supply_cap {self.config.sale_supply_cap}"
            )
        for key, position in self.positions.items():
            if key != position.holder:
                raise ValueError(f"position key {key!r} does not match holder {position.holder!r}")
            if position.is_settled:
                raise ValueError(f"settled position {key!r} must be removed from registry")
            if key in self.closed_holders:
                raise ValueError(f"holder {key!r} is both open and closed")
        return self

    @classmethod
    def initial(cls, config: SaleConfig) -> "SaleState":
        """Пустое состояние до первой покупки."""
        return cls(config=config)

    def replace(
        self,
        *,
        config: SaleConfig | None = None,
        ledger: SaleLedger | None = None,
        positions: Mapping[str, Position] | None = None,
        closed_holders: frozenset[str] | None = None,
    ) -> "SaleState":
        """
        Новый снапшот с заменёнными частями.

        Собирается через конструктор, чтобы инварианты проверялись заново.
        """
        return SaleState(
            config=config if config is not None else self.config,
            ledger=ledger if ledger is not None else self.ledger,
            positions=dict(positions) if positions is not None else dict(self.positions),
            closed_holders=(
                closed_holders if closed_holders is not None else self.closed_holders
            ),
        )
