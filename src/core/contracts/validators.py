"""
JSON контракты продажи.

Схемы лежат в пакете (src/core/contracts/schema/):
- price_attestation: конверт {payload, signature} от оракула
- sale_config: конфигурация продажи в JSON

Ошибки схемы сводятся в одну строку, чтобы verifier мог положить их
в InvalidAttestation, а логи не разворачивали дерево ValidationError.
"""

from pathlib import Path
from typing import Any, Dict
import json

from jsonschema import Draft202012Validator


SCHEMA_DIR = Path(__file__).parent / "schema"


def load_schema(schema_name: str) -> Dict[str, Any]:
    """
    Схема из пакета по имени без расширения.

    Raises:
        FileNotFoundError: Если схемы нет в SCHEMA_DIR
    """
    with open(SCHEMA_DIR / f"{schema_name}.json", "r", encoding="utf-8") as f:
        return json.load(f)


class ContractValidator:
    """Draft 2020-12 валидатор одной пакетной схемы."""

    schema_name: str

    def __init__(self):
        self.schema = load_schema(self.schema_name)
        self._validator = Draft202012Validator(self.schema)

    def validate(self, data: Any) -> None:
        """
        Raises:
            jsonschema.ValidationError: первая найденная ошибка
        """
        self._validator.validate(data)

    def is_valid(self, data: Any) -> bool:
        return self._validator.is_valid(data)

    def error_summary(self, data: Any) -> str:
        """'путь: сообщение' для каждой ошибки, через '; ', пустой корень как <root>."""
        errors = sorted(self._validator.iter_errors(data), key=lambda e: [str(p) for p in e.path])
        return "; ".join(
            f"{'/'.join(str(p) for p in e.path) or '<root>'}: {e.message}" for e in errors
        )


class PriceAttestationValidator(ContractValidator):
    schema_name = "price_attestation"


class SaleConfigValidator(ContractValidator):
    schema_name = "sale_config"
