"""Per-event valuation pipeline: normalise → resolve → price → value → store → log."""
from __future__ import annotations

import logging
from typing import Any

from ..errors import (
    EventParseError,
    OracleError,
    PriceUnavailableError,
    RecordBuildError,
    StorageError,
    TokenNotFoundError,
)
from ..interfaces.protocol_adapter import ProtocolAdapter
from ..interfaces.store import LiquidationStore
from ..liquidation_logger import LiquidationLogger
from ..models import PipelineOutcome, StoreResult
from ..tokens import TokenRegistry
from .price_resolver import PriceResolver
from .records import build_record

logger = logging.getLogger(__name__)


class LiquidationPipeline:
    """Values and stores liquidations of one protocol.

    ``process`` never raises: every failure is written to the error stream and
    turned into a skip outcome, so the feed calling it keeps running.
    """

    def __init__(
        self,
        adapter: ProtocolAdapter,
        registry: TokenRegistry,
        resolver: PriceResolver,
        store: LiquidationStore,
        sink: LiquidationLogger,
        price_at_event_block: bool = False,
    ) -> None:
        self._adapter = adapter
        self._registry = registry
        self._resolver = resolver
        self._store = store
        self._sink = sink
        self._price_at_event_block = price_at_event_block

    @property
    def event_name(self) -> str:
        return self._adapter.event_name

    @property
    def protocol_name(self) -> str:
        return self._adapter.protocol_name

    async def process(self, raw: dict[str, Any]) -> PipelineOutcome:
        try:
            return await self._process(raw)
        except Exception as e:
            self._sink.log_error(f"Error processing {self.event_name} event", e)
            return PipelineOutcome.FAILED

    async def _process(self, raw: dict[str, Any]) -> PipelineOutcome:
        try:
            event = await self._adapter.to_liquidation(raw)
        except EventParseError as e:
            self._sink.log_error(f"Invalid {self.event_name} event", e)
            return PipelineOutcome.SKIPPED_INVALID
        except OracleError as e:
            self._sink.log_error(f"Cannot normalise {self.event_name} event", e)
            return PipelineOutcome.SKIPPED_PRICE

        ref = f"{event.transaction_hash}#{event.log_index}"

        collateral_token = self._registry.resolve(event.collateral_asset)
        debt_token = self._registry.resolve(event.debt_asset)
        missing = [
            address
            for address, token in (
                (event.collateral_asset, collateral_token),
                (event.debt_asset, debt_token),
            )
            if token is None
        ]
        if missing:
            # one entry even when both sides are unknown
            self._sink.log_error(
                f"Skipping liquidation {ref}", TokenNotFoundError(sorted(set(missing)))
            )
            return PipelineOutcome.SKIPPED_TOKEN

        block = event.block_number if self._price_at_event_block else None
        quotes, unresolved = await self._resolver.resolve_many(
            [collateral_token, debt_token], block
        )
        if unresolved:
            symbols = ", ".join(f"{t.symbol} ({t.address})" for t in unresolved)
            self._sink.log_error(
                f"Skipping liquidation {ref}",
                PriceUnavailableError(f"No price for {symbols}"),
            )
            return PipelineOutcome.SKIPPED_PRICE

        try:
            record = build_record(
                event,
                collateral_token,
                debt_token,
                quotes.get(event.collateral_asset.lower()),
                quotes.get(event.debt_asset.lower()),
            )
        except RecordBuildError as e:
            self._sink.log_error(f"Skipping liquidation {ref}", e)
            return PipelineOutcome.SKIPPED_INVALID

        try:
            result = self._store.store(record)
        except StorageError as e:
            self._sink.log_error(f"Dropping liquidation {ref}", e)
            return PipelineOutcome.FAILED_STORAGE

        if result is StoreResult.DUPLICATE_IGNORED:
            logger.debug("Liquidation %s already stored", ref)
            return PipelineOutcome.DUPLICATE

        self._sink.log_liquidation(record)
        return PipelineOutcome.STORED
