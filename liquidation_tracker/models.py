"""Data models — all frozen (immutable)."""
from __future__ import annotations

import enum
from dataclasses import dataclass
from decimal import Decimal


@dataclass(frozen=True)
class TokenDescriptor:
    """Static token metadata, keyed by lower-cased address in the registry."""

    address: str
    symbol: str
    decimals: int
    price_feed: str | None = None
    ltv: float | None = None


@dataclass(frozen=True)
class PriceQuote:
    """USD price of one token.

    ``observed_at`` is the block the oracle was read at, or wall-clock seconds
    for fallbacks and reads against the latest block.
    """

    token_address: str
    price_usd: Decimal
    observed_at: int
    source: str = "oracle"


@dataclass(frozen=True)
class LiquidationEvent:
    """Protocol-independent shape of one liquidation log."""

    protocol: str
    event_type: str
    collateral_asset: str
    debt_asset: str
    borrower: str
    liquidator: str
    debt_to_cover: int
    liquidated_collateral_amount: int
    receive_a_token: bool
    block_number: int
    block_timestamp: int
    transaction_hash: str
    log_index: int


@dataclass(frozen=True)
class LiquidationRecord:
    """Valued liquidation, persisted once per (transaction_hash, log_index)."""

    transaction_hash: str
    log_index: int
    protocol: str
    event_type: str
    block_number: int
    block_timestamp: int
    borrower_address: str
    liquidator_address: str
    collateral_token: TokenDescriptor
    debt_token: TokenDescriptor
    seized_token_amount_raw: int
    formatted_collateral_amount: Decimal
    usd_value_seized: Decimal
    debt_amount_raw: int
    formatted_debt_amount: Decimal
    usd_value_debt: Decimal
    collateral_price_usd: Decimal
    debt_price_usd: Decimal
    receive_a_token: bool

    @property
    def key(self) -> tuple[str, int]:
        return (self.transaction_hash, self.log_index)


class StoreResult(enum.Enum):
    STORED = "stored"
    DUPLICATE_IGNORED = "duplicate_ignored"


class PipelineOutcome(enum.Enum):
    STORED = "stored"
    DUPLICATE = "duplicate"
    SKIPPED_TOKEN = "skipped_token"
    SKIPPED_PRICE = "skipped_price"
    SKIPPED_INVALID = "skipped_invalid"
    FAILED_STORAGE = "failed_storage"
    FAILED = "failed"
