"""Price Oracle Verifier — capability проверки аттестации.

Контракт:
- verify(attestation, now=None) -> OracleReading
- InvalidAttestation при неверной подписи/trust anchor, битом формате,
  неподдерживаемой паре или chain type
- Без побочных эффектов: только валидация и извлечение цены

Свежесть проверяется только если формат аттестации содержит timestamp
и вызывающий код передал now.
"""

from dataclasses import dataclass
from typing import Optional, Protocol, runtime_checkable

from src.core.errors import InvalidAttestation
from src.core.math.fixed_point import to_wad, validate_decimals, validate_positive_uint


# Индекс пары ETH-USD у поставщика аттестаций
ETH_USD_PAIR_INDEX = 19

DEFAULT_CHAIN_TYPE = "evm"


@dataclass(frozen=True)
class OracleReading:
    """Результат успешной проверки аттестации."""

    reference_price: int
    decimals: int
    pair_index: int
    chain_type: str = DEFAULT_CHAIN_TYPE

    # None, если формат не кодирует время/раунд
    timestamp: Optional[int] = None
    round: Optional[int] = None

    def __post_init__(self):
        validate_positive_uint(self.reference_price, "reference_price")
        validate_decimals(self.decimals)

    @property
    def price_wad(self) -> int:
        """reference_price, нормализованная к 18 знакам."""
        return to_wad(self.reference_price, self.decimals)


@runtime_checkable
class PriceOracleVerifier(Protocol):
    """Capability проверки аттестации цены."""

    def verify(self, attestation: bytes, now: Optional[int] = None) -> OracleReading:
        ...


class StaticPriceVerifier:
    """Verifier с фиксированной ценой для тестов и симуляций.

    Принимает любую непустую аттестацию; accept=False отвергает всё.
    Формат без timestamp, поэтому свежесть не проверяется.
    """

    def __init__(
        self,
        reference_price: int,
        decimals: int = 18,
        pair_index: int = ETH_USD_PAIR_INDEX,
        accept: bool = True,
    ):
        self.reading = OracleReading(
            reference_price=reference_price,
            decimals=decimals,
            pair_index=pair_index,
        )
        self.accept = accept
        self.calls = 0

    def verify(self, attestation: bytes, now: Optional[int] = None) -> OracleReading:
        self.calls += 1

        if not self.accept:
            raise InvalidAttestation("attestation rejected by verifier")

        if not isinstance(attestation, (bytes, bytearray)) or len(attestation) == 0:
            raise InvalidAttestation("attestation must be non-empty bytes")

        return self.reading
