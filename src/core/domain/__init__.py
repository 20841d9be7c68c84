"""
Domain models and value objects.

Contains fundamental domain entities like SaleConfig, Position, SaleLedger, SaleState.
"""

from src.core.domain.position import Position
from src.core.domain.sale_config import SaleConfig
from src.core.domain.sale_state import SaleLedger, SaleState

__all__ = [
    # Configuration
    "SaleConfig",
    # Position model
    "Position",
    # Sale state
    "SaleLedger",
    "SaleState",
]
