"""Signed Price Attestation — production схема аттестаций оракула.

Формат аттестации (UTF-8 JSON):
    {
        "payload": {
            "schema_version": "1",
            "pair_index": 19,          # ETH-USD
            "chain_type": "evm",
            "price": "3000000000000000000000",   # целое, decimals знаков
            "decimals": 18,
            "timestamp": 1700000000,   # Unix, секунды
            "round": 42
        },
        "signature": "<base64 r||s>"
    }

Подпись: ECDSA secp256k1 над SHA-256 канонического payload
(json.dumps с sort_keys и без пробелов).

Порядок проверок:
1. Декодирование байтов и JSON
2. JSON Schema (price_attestation.json)
3. Подпись против trust anchors
4. Поддерживаемые pair_index / chain_type
5. Цена в (0, UINT256_MAX], в том числе после приведения к 18 знакам
6. Свежесть (если передан now и задан max_staleness_seconds)
"""

from dataclasses import dataclass
from typing import Any, Dict, Iterable, Optional, Union
import base64
import binascii
import hashlib
import json
import logging

from ecdsa import BadSignatureError, SECP256k1, SigningKey, VerifyingKey

from src.core.contracts.validators import PriceAttestationValidator
from src.core.errors import InvalidAttestation
from src.core.math.fixed_point import UINT256_MAX, to_wad
from src.oracle.verifier import DEFAULT_CHAIN_TYPE, ETH_USD_PAIR_INDEX, OracleReading

logger = logging.getLogger(__name__)

ATTESTATION_SCHEMA_VERSION = "1"


@dataclass(frozen=True)
class AttestationPolicy:
    """Политика приёма аттестаций.

    max_staleness_seconds=None отключает проверку свежести.
    max_future_drift_seconds — допуск на расхождение часов оракула.
    """

    supported_pairs: frozenset = frozenset({ETH_USD_PAIR_INDEX})
    supported_chain_types: frozenset = frozenset({DEFAULT_CHAIN_TYPE})
    max_staleness_seconds: Optional[int] = 3600
    max_future_drift_seconds: int = 60


def canonical_payload_bytes(payload: Dict[str, Any]) -> bytes:
    """Каноническое представление payload для подписи."""
    return json.dumps(payload, sort_keys=True, separators=(",", ":")).encode("utf-8")


def _payload_digest(payload: Dict[str, Any]) -> bytes:
    return hashlib.sha256(canonical_payload_bytes(payload)).digest()


def sign_price_attestation(signing_key: SigningKey, payload: Dict[str, Any]) -> bytes:
    """Подписать payload и собрать байты аттестации.

    Используется в фикстурах и симуляциях вместо удалённого proof-клиента.
    Подпись детерминированная (RFC 6979).
    """
    payload = {"schema_version": ATTESTATION_SCHEMA_VERSION, **payload}
    signature = signing_key.sign_digest_deterministic(
        _payload_digest(payload), hashfunc=hashlib.sha256
    )
    envelope = {
        "payload": payload,
        "signature": base64.b64encode(signature).decode("ascii"),
    }
    return json.dumps(envelope).encode("utf-8")


TrustAnchor = Union[VerifyingKey, str, bytes]


def _to_verifying_key(anchor: TrustAnchor) -> VerifyingKey:
    if isinstance(anchor, VerifyingKey):
        return anchor
    if isinstance(anchor, str):
        anchor = bytes.fromhex(anchor.removeprefix("0x"))
    return VerifyingKey.from_string(anchor, curve=SECP256k1)


class SignedPriceAttestationVerifier:
    """Verifier подписанных JSON аттестаций.

    Trust anchors — публичные ключи операторов оракула (VerifyingKey, hex или
    raw bytes). Распределение ключей вне зоны ответственности модуля.
    """

    def __init__(
        self,
        trust_anchors: Iterable[TrustAnchor],
        policy: Optional[AttestationPolicy] = None,
    ):
        self.trust_anchors = tuple(_to_verifying_key(a) for a in trust_anchors)
        if not self.trust_anchors:
            raise ValueError("at least one trust anchor is required")
        self.policy = policy or AttestationPolicy()
        self._validator = PriceAttestationValidator()

    def verify(self, attestation: bytes, now: Optional[int] = None) -> OracleReading:
        """Проверка аттестации и извлечение цены.

        Args:
            attestation: байты аттестации
            now: текущее время (Unix, секунды) для проверки свежести

        Returns:
            OracleReading с reference price

        Raises:
            InvalidAttestation: при любой ошибке проверки
        """
        try:
            return self._verify(attestation, now)
        except InvalidAttestation as e:
            logger.warning("Attestation rejected: %s", e.message)
            raise

    def _verify(self, attestation: bytes, now: Optional[int]) -> OracleReading:
        envelope = self._decode(attestation)

        if not self._validator.is_valid(envelope):
            raise InvalidAttestation(
                f"malformed attestation: {self._validator.error_summary(envelope)}"
            )

        payload = envelope["payload"]
        self._check_signature(payload, envelope["signature"])

        pair_index = payload["pair_index"]
        if pair_index not in self.policy.supported_pairs:
            raise InvalidAttestation(f"unsupported pair index {pair_index}", pair_index=pair_index)

        chain_type = payload["chain_type"]
        if chain_type not in self.policy.supported_chain_types:
            raise InvalidAttestation(f"unsupported chain type {chain_type!r}", chain_type=chain_type)

        price = int(payload["price"])
        decimals = payload["decimals"]
        self._check_price_range(price, decimals)

        timestamp = payload["timestamp"]
        if now is not None:
            self._check_freshness(timestamp, now)

        return OracleReading(
            reference_price=price,
            decimals=decimals,
            pair_index=pair_index,
            chain_type=chain_type,
            timestamp=timestamp,
            round=payload["round"],
        )

    @staticmethod
    def _decode(attestation: bytes) -> Dict[str, Any]:
        if not isinstance(attestation, (bytes, bytearray)) or len(attestation) == 0:
            raise InvalidAttestation("attestation must be non-empty bytes")

        try:
            envelope = json.loads(bytes(attestation).decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise InvalidAttestation(f"attestation is not valid JSON: {e}")

        if not isinstance(envelope, dict):
            raise InvalidAttestation("attestation must be a JSON object")
        return envelope

    def _check_signature(self, payload: Dict[str, Any], signature_b64: str) -> None:
        try:
            signature = base64.b64decode(signature_b64, validate=True)
        except (binascii.Error, ValueError) as e:
            raise InvalidAttestation(f"signature is not valid base64: {e}")

        digest = _payload_digest(payload)
        for key in self.trust_anchors:
            try:
                key.verify_digest(signature, digest)
                return
            except BadSignatureError:
                continue

        raise InvalidAttestation("signature does not match any trust anchor")

    @staticmethod
    def _check_price_range(price: int, decimals: int) -> None:
        """Цена и её WAD-представление должны быть в (0, UINT256_MAX]."""
        if price == 0:
            raise InvalidAttestation("attested price is zero")
        if price > UINT256_MAX:
            raise InvalidAttestation("attested price exceeds uint256 range", decimals=decimals)

        price_wad = to_wad(price, decimals)
        if price_wad == 0:
            raise InvalidAttestation(
                f"attested price {price} with {decimals} decimals rounds to zero at 18 decimals"
            )
        if price_wad > UINT256_MAX:
            raise InvalidAttestation("attested price exceeds uint256 range at 18 decimals")

    def _check_freshness(self, timestamp: int, now: int) -> None:
        if timestamp > now + self.policy.max_future_drift_seconds:
            raise InvalidAttestation(
                f"attestation timestamp {timestamp} is in the future (now={now})"
            )

        max_staleness = self.policy.max_staleness_seconds
        if max_staleness is not None and now - timestamp > max_staleness:
            raise InvalidAttestation(
                f"attestation is stale: age {now - timestamp}s > {max_staleness}s"
            )
