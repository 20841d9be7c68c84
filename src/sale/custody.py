"""Token Custody — интерфейс продаваемого токена.

Продажа потребляет токен только через:
- balance_of(address)
- transfer(sender, recipient, amount)

Пополнение продажи (transferIn) — transfer(funder, engine_address, amount),
вывод (claim, recover_excess) — transfer(engine_address, recipient, amount).

InMemoryTokenLedger — стандартный реестр балансов для тестов и симуляций.
"""

from typing import Protocol, runtime_checkable

from src.core.errors import InsufficientBalance
from src.core.math.fixed_point import validate_uint
from src.sale.registry import normalize_address


@runtime_checkable
class TokenCustody(Protocol):
    """Минимальный интерфейс fungible токена."""

    def balance_of(self, address: str) -> int:
        ...

    def transfer(self, sender: str, recipient: str, amount: int) -> None:
        ...


class InMemoryTokenLedger:
    """Fungible токен в памяти: адрес → баланс."""

    def __init__(self, symbol: str = "TKN", decimals: int = 18):
        self.symbol = symbol
        self.decimals = decimals
        self._balances: dict[str, int] = {}
        self.total_supply = 0

    def balance_of(self, address: str) -> int:
        return self._balances.get(normalize_address(address), 0)

    def mint(self, recipient: str, amount: int) -> None:
        """Выпуск токенов (только для фикстур — политика эмиссии вне модуля)."""
        validate_uint(amount, "amount")
        key = normalize_address(recipient)
        self._balances[key] = self._balances.get(key, 0) + amount
        self.total_supply += amount

    def transfer(self, sender: str, recipient: str, amount: int) -> None:
        """
        Перевод amount от sender к recipient.

        Raises:
            InsufficientBalance: баланс sender меньше amount
        """
        validate_uint(amount, "amount")
        sender_key = normalize_address(sender)
        recipient_key = normalize_address(recipient)

        balance = self._balances.get(sender_key, 0)
        if balance < amount:
            raise InsufficientBalance(
                f"{sender_key} holds {balance} {self.symbol}, cannot transfer {amount}"
            )

        self._balances[sender_key] = balance - amount
        self._balances[recipient_key] = self._balances.get(recipient_key, 0) + amount
