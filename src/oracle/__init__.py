"""Oracle — проверка аттестаций цены и извлечение reference price.

Ядро продажи зависит только от capability verify(bytes) -> OracleReading:
- StaticPriceVerifier: фиксированная цена (тесты, симуляции)
- SignedPriceAttestationVerifier: подписанные ECDSA secp256k1 JSON аттестации
"""

from .attestation import (
    AttestationPolicy,
    SignedPriceAttestationVerifier,
    canonical_payload_bytes,
    sign_price_attestation,
)
from .verifier import OracleReading, PriceOracleVerifier, StaticPriceVerifier

__all__ = [
    "AttestationPolicy",
    "OracleReading",
    "PriceOracleVerifier",
    "SignedPriceAttestationVerifier",
    "StaticPriceVerifier",
    "canonical_payload_bytes",
    "sign_price_attestation",
]
