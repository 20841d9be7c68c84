"""
Загрузка конфигурации продажи.

Двухступенчатая валидация:
1. JSON Schema (sale_config.json) — структура, типы, обязательные поля
2. Pydantic SaleConfig — доменные инварианты и производные значения
"""

from pathlib import Path
from typing import Any, Dict, Union
import json

from src.core.contracts.validators import SaleConfigValidator
from src.core.domain.sale_config import SaleConfig


ConfigSource = Union[str, Path, Dict[str, Any]]


def load_sale_config(source: ConfigSource) -> SaleConfig:
    """
    Загрузка SaleConfig из JSON файла или dict.

    Args:
        source: Путь к JSON файлу или уже распарсенный dict

    Returns:
        Валидный SaleConfig

    Raises:
        FileNotFoundError: Если файл не найден
        jsonschema.ValidationError: Если JSON не соответствует схеме
        pydantic.ValidationError: Если нарушены доменные инварианты
    """
    if isinstance(source, dict):
        data = source
    else:
        with open(Path(source), "r", encoding="utf-8") as f:
            data = json.load(f)

    SaleConfigValidator().validate(data)
    return SaleConfig.model_validate(data)


def dump_sale_config(config: SaleConfig) -> Dict[str, Any]:
    """Сериализация SaleConfig в dict, совместимый со схемой."""
    return config.model_dump()
