"""
Contract Validation Module

Модуль для валидации JSON контрактов: аттестации оракула и конфигурации продажи.
"""

from .config_loader import dump_sale_config, load_sale_config
from .validators import (
    SCHEMA_DIR,
    ContractValidator,
    PriceAttestationValidator,
    SaleConfigValidator,
    load_schema,
)

__all__ = [
    # Schemas
    "SCHEMA_DIR",
    "load_schema",
    # Validators
    "ContractValidator",
    "PriceAttestationValidator",
    "SaleConfigValidator",
    # Config
    "load_sale_config",
    "dump_sale_config",
]
