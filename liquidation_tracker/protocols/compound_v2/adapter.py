"""Compound V2 style adapter (Moonwell) — ``LiquidateBorrow`` from market contracts.

The event is emitted by the borrowed market. ``seizeTokens`` is denominated
in market (mToken) units and is converted to underlying units with the
collateral market's ``exchangeRateStored()`` read at the event block:

    underlying = seizeTokens * exchangeRate / 1e18
"""
from __future__ import annotations

import logging
from typing import Any

from ...chains.evm.abi import decode_output, encode_call
from ...config import ProtocolConfig
from ...errors import EventParseError, OracleError
from ...interfaces.chain import ChainClient
from ...models import LiquidationEvent
from ..common import event_position, require, to_address, to_int

logger = logging.getLogger(__name__)

EXCHANGE_RATE_SCALE = 10**18


class CompoundV2Adapter:
    """Normalise ``LiquidateBorrow`` logs into underlying-token terms."""

    def __init__(
        self, name: str, config: ProtocolConfig, chain_client: ChainClient
    ) -> None:
        self._name = name
        self._event_name = config.event
        self._event_type = config.event.rpartition(":")[2]
        self._client = chain_client
        # market (mToken) -> underlying token
        self._markets = {m.lower(): u.lower() for m, u in config.markets.items()}

    @property
    def protocol_name(self) -> str:
        return self._name

    @property
    def event_name(self) -> str:
        return self._event_name

    def underlying(self, market: str) -> str:
        try:
            return self._markets[market.lower()]
        except KeyError:
            raise EventParseError(f"Unknown market {market}") from None

    async def exchange_rate(self, market: str, block_number: int | None) -> int:
        data = encode_call("exchangeRateStored()", [], [])
        try:
            raw = await self._client.eth_call(market, data, block_number)
            (rate,) = decode_output(["uint256"], raw)
        except Exception as e:
            raise OracleError(f"exchangeRateStored() on {market} failed: {e}") from e
        return int(rate)

    async def to_liquidation(self, raw: dict[str, Any]) -> LiquidationEvent:
        args = raw.get("args", {})
        log = raw.get("log", {})

        def arg(key: str) -> Any:
            return require(args, key, "args")

        position = event_position(raw)
        debt_market = to_address(require(log, "address", "log"), "log.address")
        collateral_market = to_address(arg("mTokenCollateral"), "mTokenCollateral")
        seize_tokens = to_int(arg("seizeTokens"), "seizeTokens")
        collateral_asset = self.underlying(collateral_market)
        debt_asset = self.underlying(debt_market)

        rate = await self.exchange_rate(collateral_market, position["block_number"])
        seized_underlying = seize_tokens * rate // EXCHANGE_RATE_SCALE
        logger.debug(
            "Converted %s seizeTokens of %s at rate %s to %s underlying",
            seize_tokens,
            collateral_market,
            rate,
            seized_underlying,
        )

        return LiquidationEvent(
            protocol=self._name,
            event_type=self._event_type,
            collateral_asset=collateral_asset,
            debt_asset=debt_asset,
            borrower=to_address(arg("borrower"), "borrower"),
            liquidator=to_address(arg("liquidator"), "liquidator"),
            debt_to_cover=to_int(arg("repayAmount"), "repayAmount"),
            liquidated_collateral_amount=seized_underlying,
            receive_a_token=False,
            **position,
        )
