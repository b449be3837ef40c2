"""Protocol interfaces for the liquidation tracker."""
from .chain import ChainClient
from .price_oracle import PriceOracle
from .protocol_adapter import ProtocolAdapter
from .store import LiquidationStore

__all__ = ["ChainClient", "LiquidationStore", "PriceOracle", "ProtocolAdapter"]
