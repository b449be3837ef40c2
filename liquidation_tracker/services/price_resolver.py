"""Price resolution: batched oracle read, per-token retry, stablecoin fallback."""
from __future__ import annotations

import asyncio
import logging
import time
from decimal import Decimal

from ..errors import OracleError
from ..interfaces.price_oracle import PriceOracle
from ..models import PriceQuote, TokenDescriptor
from .valuation import to_decimal

logger = logging.getLogger(__name__)


class PriceResolver:
    """Resolve USD prices for registry tokens against one oracle."""

    def __init__(
        self,
        oracle: PriceOracle,
        fallback_prices: dict[str, float] | None = None,
    ) -> None:
        self._oracle = oracle
        self._fallbacks: dict[str, Decimal] = {
            symbol: to_decimal(price) for symbol, price in (fallback_prices or {}).items()
        }

    def _quote(
        self,
        token: TokenDescriptor,
        raw_price: int,
        block_number: int | None,
        source: str,
    ) -> PriceQuote | None:
        if raw_price <= 0:
            return None
        price = Decimal(raw_price).scaleb(-self._oracle.price_decimals(token))
        observed_at = block_number if block_number is not None else int(time.time())
        return PriceQuote(token.address.lower(), price, observed_at, source)

    async def get_price(
        self, token: TokenDescriptor, block_number: int | None = None
    ) -> PriceQuote | None:
        """Single oracle read; failure or a zero price means unavailable."""
        try:
            raw_price = await self._oracle.get_asset_price(token, block_number)
        except OracleError as e:
            logger.error("Error getting oracle price for %s: %s", token.symbol, e)
            return None
        quote = self._quote(token, raw_price, block_number, "oracle")
        if quote is None:
            logger.warning("Oracle returned zero price for %s", token.symbol)
        return quote

    async def get_prices_batch(
        self, tokens: list[TokenDescriptor], block_number: int | None = None
    ) -> list[PriceQuote | None]:
        """One oracle call for all tokens; all ``None`` when the call fails."""
        if not tokens:
            return []
        try:
            raw_prices = await self._oracle.get_assets_prices(tokens, block_number)
        except OracleError as e:
            logger.warning("Batched oracle read failed, retrying per token: %s", e)
            return [None] * len(tokens)
        return [
            self._quote(token, raw, block_number, "oracle-batch")
            for token, raw in zip(tokens, raw_prices)
        ]

    def get_fallback_price(self, symbol: str) -> Decimal | None:
        """Static peg for known stable assets."""
        price = self._fallbacks.get(symbol)
        if price is None or price <= 0:
            return None
        return price

    async def resolve_many(
        self, tokens: list[TokenDescriptor], block_number: int | None = None
    ) -> tuple[dict[str, PriceQuote], list[TokenDescriptor]]:
        """Resolve prices keyed by lower-cased address.

        Returns the quotes and the tokens that stayed unpriced after the batch
        call, the individual retries and the fallbacks.
        """
        unique: dict[str, TokenDescriptor] = {}
        for token in tokens:
            unique.setdefault(token.address.lower(), token)
        ordered = list(unique.values())

        quotes: dict[str, PriceQuote] = {}
        batch = await self.get_prices_batch(ordered, block_number)
        for token, quote in zip(ordered, batch):
            if quote is not None:
                quotes[token.address.lower()] = quote

        missing = [t for t in ordered if t.address.lower() not in quotes]
        if missing:
            singles = await asyncio.gather(
                *(self.get_price(t, block_number) for t in missing)
            )
            for token, quote in zip(missing, singles):
                if quote is not None:
                    quotes[token.address.lower()] = quote

        unresolved: list[TokenDescriptor] = []
        for token in ordered:
            key = token.address.lower()
            if key in quotes:
                continue
            fallback = self.get_fallback_price(token.symbol)
            if fallback is None:
                unresolved.append(token)
                continue
            logger.info("%s: $%.4f (Fallback)", token.symbol, fallback)
            quotes[key] = PriceQuote(key, fallback, int(time.time()), "fallback")

        if unresolved:
            logger.warning(
                "No price available for %s",
                ", ".join(f"{t.symbol} ({t.address})" for t in unresolved),
            )
        return quotes, unresolved
