"""Service modules"""
from .pipeline import LiquidationPipeline
from .price_resolver import PriceResolver
from .router import EventRouter, build_router

__all__ = ["EventRouter", "LiquidationPipeline", "PriceResolver", "build_router"]
