"""Storage backends."""
from .sqlite import SqliteLiquidationStore

__all__ = ["SqliteLiquidationStore"]
