"""Token registry — static address → descriptor table, no I/O."""
from __future__ import annotations

from collections.abc import Iterable

from .config import TokenConfig
from .models import TokenDescriptor

# Aave V3 reserves on Base.
DEFAULT_TOKENS: tuple[TokenConfig, ...] = (
    TokenConfig("0x4200000000000000000000000000000000000006", "WETH", 18),
    TokenConfig("0x2Ae3F1Ec7F1F5012CFEab0185bfc7aa3cf0DEc22", "cbETH", 18),
    TokenConfig("0xd9aAEc86B65D86f6A7B5B1b0c42FFA531710b6CA", "USDbC", 6),
    TokenConfig("0xc1CBa3fCea344f92D9239c08C0568f6F2F0ee452", "wstETH", 18),
    TokenConfig("0x833589fCD6eDb6E08f4c7C32D4f71b54bda02913", "USDC", 6),
    TokenConfig("0x04C0599Ae5A44757c0af6F9eC3b93da8976c150A", "weETH", 18),
    TokenConfig("0xcbB7C0000aB88B473b1f5aFd9ef808440eed33Bf", "cbBTC", 8),
    TokenConfig("0x2416092f143378750bb29b79eD961ab195CcEea5", "ezETH", 18),
    TokenConfig("0x6Bb7a212910682DCFdbd5BCBb3e28FB4E8da10Ee", "GHO", 18),
    TokenConfig("0xEDfa23602D0EC14714057867A78d01e94176BEA0", "wrsETH", 18),
    TokenConfig("0xecAc9C5F704e954931349Da37F60E39f515c11c1", "LBTC", 8),
    TokenConfig("0x60a3E35Cc302bfA44Cb288Bc5a4F316Fdb1adb42", "EURC", 6),
)


class TokenRegistry:
    """Case-insensitive lookup of token descriptors."""

    def __init__(self, tokens: Iterable[TokenConfig] = DEFAULT_TOKENS) -> None:
        self._by_address: dict[str, TokenDescriptor] = {}
        for token in tokens:
            key = token.address.lower()
            if key in self._by_address:
                raise ValueError(f"Duplicate token address in registry: {token.address}")
            self._by_address[key] = TokenDescriptor(
                address=token.address,
                symbol=token.symbol,
                decimals=token.decimals,
                price_feed=token.price_feed,
                ltv=token.ltv,
            )

    def __len__(self) -> int:
        return len(self._by_address)

    def __iter__(self):
        return iter(self._by_address.values())

    def resolve(self, address: str) -> TokenDescriptor | None:
        return self._by_address.get(address.lower())

    def resolve_by_symbol(self, symbol: str) -> TokenDescriptor | None:
        """Find a token by symbol; exact match wins over a case-insensitive one."""
        folded = None
        for token in self._by_address.values():
            if token.symbol == symbol:
                return token
            if folded is None and token.symbol.casefold() == symbol.casefold():
                folded = token
        return folded
