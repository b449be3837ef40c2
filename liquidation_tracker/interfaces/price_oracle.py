"""Price oracle protocol — on-chain price feed abstraction."""
from typing import Protocol

from ..models import TokenDescriptor


class PriceOracle(Protocol):
    """Integer USD prices scaled by ``10 ** price_decimals(token)``.

    Implementations raise ``OracleError`` on any transport or contract failure.
    """

    def price_decimals(self, token: TokenDescriptor) -> int: ...

    async def get_asset_price(
        self, token: TokenDescriptor, block_number: int | None = None
    ) -> int: ...

    async def get_assets_prices(
        self, tokens: list[TokenDescriptor], block_number: int | None = None
    ) -> list[int]: ...
