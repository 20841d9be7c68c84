"""Position Registry — одна уникальная позиция на адрес.

Позиция ведёт себя как непередаваемый токен, идентификатор которого —
сам адрес владельца:
- exists / balance_of (0 или 1) / owner_of / open_position_count
- upsert: создание при первой покупке или докупка
- store: запись после вывода; полностью выведенная позиция удаляется
  (единственный способ уменьшить счётчик), а адрес запоминается как закрытый
- transfer: всегда PositionNotTransferable

Реестр stateless: работает над переданным SaleState и возвращает новый.
"""

from typing import Optional

from src.core.domain.position import Position
from src.core.domain.sale_state import SaleState
from src.core.errors import NoPosition, PositionNotTransferable


def normalize_address(address: str) -> str:
    """Адреса сравниваются без учёта регистра."""
    if not isinstance(address, str) or not address.strip():
        raise ValueError(f"address must be a non-empty string, got {address!r}")
    return address.strip().lower()


class PositionRegistry:
    """Реестр позиций поверх SaleState.positions."""

    # -------------------------------------------------------------------------
    # Запросы
    # -------------------------------------------------------------------------

    def get(self, state: SaleState, holder: str) -> Optional[Position]:
        return state.positions.get(normalize_address(holder))

    def exists(self, state: SaleState, holder: str) -> bool:
        return normalize_address(holder) in state.positions

    def is_closed(self, state: SaleState, holder: str) -> bool:
        """Адрес владел позицией и вывел её полностью."""
        return normalize_address(holder) in state.closed_holders

    def require(self, state: SaleState, holder: str) -> Position:
        """Позиция адреса или NoPosition."""
        position = self.get(state, holder)
        if position is None:
            raise NoPosition(f"no open position for {holder}", holder=holder)
        return position

    def open_position_count(self, state: SaleState) -> int:
        """Число открытых позиций (supply)."""
        return len(state.positions)

    def total_supply(self, state: SaleState) -> int:
        return self.open_position_count(state)

    def balance_of(self, state: SaleState, holder: str) -> int:
        """0 или 1: позиций на адрес не больше одной."""
        return 1 if self.exists(state, holder) else 0

    def owner_of(self, state: SaleState, position_id: str) -> str:
        """Владелец позиции. Идентификатор позиции совпадает с адресом."""
        return self.require(state, position_id).holder

    # -------------------------------------------------------------------------
    # Изменения (возвращают новый SaleState)
    # -------------------------------------------------------------------------

    def upsert(self, state: SaleState, holder: str, tokens: int, now: int) -> tuple[SaleState, bool]:
        """
        Создание позиции или докупка.

        Returns:
            (новый SaleState, True если позиция создана)
        """
        key = normalize_address(holder)
        positions = dict(state.positions)
        existing = positions.get(key)

        if existing is None:
            positions[key] = Position(holder=key, purchased_total=tokens, opened_at=now)
        else:
            positions[key] = existing.top_up(tokens)

        return (
            state.replace(positions=positions, closed_holders=state.closed_holders - {key}),
            existing is None,
        )

    def store(self, state: SaleState, position: Position) -> tuple[SaleState, bool]:
        """
        Запись обновлённой позиции; полностью выведенная позиция закрывается.

        Returns:
            (новый SaleState, True если позиция закрыта)
        """
        positions = dict(state.positions)
        closed_holders = state.closed_holders
        if position.is_settled:
            positions.pop(position.holder, None)
            closed_holders = closed_holders | {position.holder}
            closed = True
        else:
            positions[position.holder] = position
            closed = False
        return state.replace(positions=positions, closed_holders=closed_holders), closed

    def transfer(self, state: SaleState, sender: str, recipient: str, position_id: str) -> SaleState:
        """Передача позиций не поддерживается."""
        raise PositionNotTransferable(
            f"position {position_id} is bound to its holder and cannot be transferred",
            sender=sender,
            recipient=recipient,
        )
