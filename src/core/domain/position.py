"""
Position — Модель позиции покупателя

Immutable Pydantic модель: кумулятивно купленные и уже выведенные токены
одного адреса. Одна позиция на адрес; идентификатор позиции — сам адрес.

Позиция существует, только пока purchased_total > 0 и remaining_balance > 0:
полностью выведенная позиция удаляется из реестра.
"""

from pydantic import BaseModel, Field, field_validator, model_validator


class Position(BaseModel):
    """
    Модель позиции покупателя.

    Все изменения позиции создают новый экземпляр (frozen=True).
    """

    holder: str = Field(..., min_length=1, description="Адрес владельца позиции")
    purchased_total: int = Field(..., gt=0, description="Куплено всего (base units)")
    claimed_total: int = Field(default=0, ge=0, description="Выведено всего (base units)")
    opened_at: int = Field(..., ge=0, description="Время первой покупки (Unix, секунды)")

    model_config = {"frozen": True, "strict": True}

    @field_validator("holder")
    @classmethod
    def normalize_holder(cls, v: str) -> str:
        normalized = v.strip().lower()
        if not normalized:
            raise ValueError("holder must not be blank")
        return normalized

    @model_validator(mode="after")
    def validate_claimed_not_above_purchased(self) -> "Position":
        """claimed_total <= purchased_total всегда."""
        if self.claimed_total > self.purchased_total:
            raise ValueError(
                f"claimed_total {self.claimed_total} exceeds purchased_total {self.purchased_total}"
            )
        return self

    @property
    def remaining_balance(self) -> int:
        """Ещё не выведенный остаток."""
        return self.purchased_total - self.claimed_total

    @property
    def is_settled(self) -> bool:
        """True, если всё выведено и позицию нужно закрыть."""
        return self.remaining_balance == 0

    def top_up(self, tokens: int) -> "Position":
        """
        Докупка: purchased_total += tokens.

        Args:
            tokens: Количество докупленных токенов (> 0)

        Returns:
            Новый экземпляр Position
        """
        if tokens <= 0:
            raise ValueError(f"top_up tokens must be positive, got {tokens}")
        return self.model_copy(update={"purchased_total": self.purchased_total + tokens})

    def record_claim(self, amount: int) -> "Position":
        """
        Вывод: claimed_total += amount.

        Raises:
            ValueError: Если amount отрицательный или превышает остаток
        """
        if amount < 0:
            raise ValueError(f"claim amount must be non-negative, got {amount}")
        if amount > self.remaining_balance:
            raise ValueError(
                f"claim amount {amount} exceeds remaining balance {self.remaining_balance}"
            )
        return self.model_copy(update={"claimed_total": self.claimed_total + amount})
