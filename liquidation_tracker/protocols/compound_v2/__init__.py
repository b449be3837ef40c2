from .adapter import CompoundV2Adapter

__all__ = ["CompoundV2Adapter"]
