"""Price oracle implementations."""
from .aave import AaveOracle
from .compound import CompoundOracle

__all__ = ["AaveOracle", "CompoundOracle"]
