"""Compound V2 style price oracle (``getUnderlyingPrice(mToken)``)."""
import logging

from ..chains.evm.abi import checksum, decode_output, encode_call
from ..config import OracleConfig
from ..errors import OracleError
from ..interfaces.chain import ChainClient
from ..models import TokenDescriptor

logger = logging.getLogger(__name__)


class CompoundOracle:
    """Prices are scaled by ``10 ** (36 - underlying decimals)``.

    The oracle is keyed by market, so the underlying → market mapping is
    needed to price a token. There is no batched read.
    """

    def __init__(
        self, client: ChainClient, config: OracleConfig, markets: dict[str, str]
    ) -> None:
        self._client = client
        self.address = config.address
        # underlying token -> market
        self._market_for = {u.lower(): m.lower() for m, u in markets.items()}

    def price_decimals(self, token: TokenDescriptor) -> int:
        return 36 - token.decimals

    async def get_asset_price(
        self, token: TokenDescriptor, block_number: int | None = None
    ) -> int:
        market = self._market_for.get(token.address.lower())
        if market is None:
            raise OracleError(f"No market configured for {token.symbol}")
        try:
            data = encode_call(
                "getUnderlyingPrice(address)", ["address"], [checksum(market)]
            )
            raw = await self._client.eth_call(self.address, data, block_number)
            (price,) = decode_output(["uint256"], raw)
        except Exception as e:
            raise OracleError(f"getUnderlyingPrice({token.symbol}) failed: {e}") from e
        logger.debug("Oracle price %s: %s", token.symbol, price)
        return int(price)

    async def get_assets_prices(
        self, tokens: list[TokenDescriptor], block_number: int | None = None
    ) -> list[int]:
        raise OracleError("Batched price reads are not supported by this oracle")
