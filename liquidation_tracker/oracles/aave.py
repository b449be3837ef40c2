"""Aave V3 price oracle (``AaveOracle`` contract)."""
import logging

from ..chains.evm.abi import checksum, decode_output, encode_call
from ..config import OracleConfig
from ..errors import OracleError
from ..interfaces.chain import ChainClient
from ..models import TokenDescriptor

logger = logging.getLogger(__name__)


class AaveOracle:
    """Read USD prices from the Aave oracle; prices carry a fixed number of decimals."""

    def __init__(self, client: ChainClient, config: OracleConfig) -> None:
        self._client = client
        self.address = config.address
        self._price_decimals = config.price_decimals

    def price_decimals(self, token: TokenDescriptor) -> int:
        return self._price_decimals

    async def get_asset_price(
        self, token: TokenDescriptor, block_number: int | None = None
    ) -> int:
        try:
            data = encode_call(
                "getAssetPrice(address)", ["address"], [checksum(token.address)]
            )
            raw = await self._client.eth_call(self.address, data, block_number)
            (price,) = decode_output(["uint256"], raw)
        except Exception as e:
            raise OracleError(f"getAssetPrice({token.symbol}) failed: {e}") from e
        logger.debug("Oracle price %s: %s", token.symbol, price)
        return int(price)

    async def get_assets_prices(
        self, tokens: list[TokenDescriptor], block_number: int | None = None
    ) -> list[int]:
        try:
            data = encode_call(
                "getAssetsPrices(address[])",
                ["address[]"],
                [[checksum(t.address) for t in tokens]],
            )
            raw = await self._client.eth_call(self.address, data, block_number)
            (prices,) = decode_output(["uint256[]"], raw)
        except Exception as e:
            raise OracleError(f"getAssetsPrices failed: {e}") from e
        if len(prices) != len(tokens):
            raise OracleError(
                f"getAssetsPrices returned {len(prices)} prices for {len(tokens)} assets"
            )
        return [int(p) for p in prices]
