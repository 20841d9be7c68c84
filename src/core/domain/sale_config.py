"""
SaleConfig — Конфигурация продажи токенов

Immutable Pydantic модель, задающая окно продажи, ступенчатую цену,
лимит предложения и параметры вестинга.

Единственное изменяемое поле — base_price, но изменение выполняется только
через создание нового экземпляра (with_base_price), сам экземпляр frozen.

Все времена — Unix timestamp в секундах, передаются извне (never wall clock).
"""

from pydantic import BaseModel, Field, field_validator, model_validator

from src.core.math.fixed_point import MAX_DECIMALS, UINT256_MAX


class SaleConfig(BaseModel):
    """
    Модель конфигурации продажи.

    Временная шкала:
        sale_start_time ── sale_end_time (= vest_start_time) ── vest_end_time
        |<-- sale_duration -->|<-------- vest_duration ------->|
    """

    # Доступ
    owner: str = Field(..., min_length=1, description="Адрес владельца (admin)")

    # Окно продажи
    sale_start_time: int = Field(..., ge=0, description="Начало продажи (Unix, секунды)")
    sale_duration: int = Field(..., gt=0, description="Длительность продажи (секунды)")
    vest_duration: int = Field(..., gt=0, description="Длительность вестинга (секунды)")

    # Ценовая кривая
    base_price: int = Field(
        ..., gt=0, description="Базовая цена за целый токен (quote units, price_decimals)"
    )
    price_step_interval: int = Field(..., gt=0, description="Интервал шага цены (секунды)")
    price_step_amount: int = Field(..., ge=0, description="Прирост цены за шаг")
    price_decimals: int = Field(
        default=0, ge=0, le=MAX_DECIMALS, description="Число знаков цены продажи"
    )

    # Предложение
    sale_supply_cap: int = Field(
        ..., gt=0, le=UINT256_MAX, description="Максимум токенов к продаже (base units)"
    )
    token_decimals: int = Field(
        default=18, ge=0, le=MAX_DECIMALS, description="Число знаков продаваемого токена"
    )

    model_config = {"frozen": True, "strict": True}

    @field_validator("owner")
    @classmethod
    def normalize_owner(cls, v: str) -> str:
        """Адреса сравниваются без учёта регистра и пробелов."""
        normalized = v.strip().lower()
        if not normalized:
            raise ValueError("owner must not be blank")
        return normalized

    @model_validator(mode="after")
    def validate_timeline(self) -> "SaleConfig":
        """Вся временная шкала должна помещаться в uint256."""
        if self.vest_end_time > UINT256_MAX:
            raise ValueError(f"vest_end_time {self.vest_end_time} exceeds uint256 range")
        return self

    # -------------------------------------------------------------------------
    # Производные значения
    # -------------------------------------------------------------------------

    @property
    def sale_end_time(self) -> int:
        """Конец окна продажи (исключительно)."""
        return self.sale_start_time + self.sale_duration

    @property
    def vest_start_time(self) -> int:
        """Начало вестинга — совпадает с концом продажи."""
        return self.sale_end_time

    @property
    def vest_end_time(self) -> int:
        """Момент, после которого вся позиция доступна к выводу."""
        return self.vest_start_time + self.vest_duration

    @property
    def token_unit(self) -> int:
        """Один целый токен в base units."""
        return 10**self.token_decimals

    def is_owner(self, caller: str) -> bool:
        return caller.strip().lower() == self.owner

    def with_base_price(self, new_price: int) -> "SaleConfig":
        """
        Новый экземпляр с заменённой базовой ценой.

        model_copy не запускает валидацию, поэтому модель пересобирается.
        """
        return SaleConfig.model_validate({**self.model_dump(), "base_price": new_price})
