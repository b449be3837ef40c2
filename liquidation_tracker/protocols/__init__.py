"""Protocol adapters."""
from .aave_v3 import AaveV3Adapter
from .compound_v2 import CompoundV2Adapter

__all__ = ["AaveV3Adapter", "CompoundV2Adapter"]
