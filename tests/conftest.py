"""Shared test fixtures and sample data."""
from __future__ import annotations

import textwrap
from decimal import Decimal
from pathlib import Path
from typing import Any

import pytest

from liquidation_tracker.config import (
    AppConfig,
    ChainConfig,
    LoggingConfig,
    OracleConfig,
    PricingConfig,
    ProtocolConfig,
    StorageConfig,
    TokenConfig,
)
from liquidation_tracker.errors import OracleError
from liquidation_tracker.liquidation_logger import LiquidationLogger
from liquidation_tracker.models import (
    LiquidationEvent,
    LiquidationRecord,
    PriceQuote,
    TokenDescriptor,
)
from liquidation_tracker.services.records import build_record
from liquidation_tracker.storage import SqliteLiquidationStore
from liquidation_tracker.tokens import TokenRegistry

WETH = "0x4200000000000000000000000000000000000006"
USDC = "0x833589fCD6eDb6E08f4c7C32D4f71b54bda02913"
CBBTC = "0xcbB7C0000aB88B473b1f5aFd9ef808440eed33Bf"
EURC = "0x60a3E35Cc302bfA44Cb288Bc5a4F316Fdb1adb42"
UNKNOWN = "0x00000000000000000000000000000000deadbeef"

BORROWER = "0x1111111111111111111111111111111111111111"
LIQUIDATOR = "0x2222222222222222222222222222222222222222"
TX_HASH = "0x" + "ab" * 32


# ---------------------------------------------------------------------------
# Token fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def sample_tokens() -> tuple[TokenConfig, ...]:
    return (
        TokenConfig(WETH, "WETH", 18),
        TokenConfig(USDC, "USDC", 6),
        TokenConfig(CBBTC, "cbBTC", 8),
        TokenConfig(EURC, "EURC", 6),
    )


@pytest.fixture()
def registry(sample_tokens: tuple[TokenConfig, ...]) -> TokenRegistry:
    return TokenRegistry(sample_tokens)


@pytest.fixture()
def weth(registry: TokenRegistry) -> TokenDescriptor:
    return registry.resolve(WETH)


@pytest.fixture()
def usdc(registry: TokenRegistry) -> TokenDescriptor:
    return registry.resolve(USDC)


# ---------------------------------------------------------------------------
# Config fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def sample_chain_config() -> ChainConfig:
    return ChainConfig(
        rpc_endpoints=("https://rpc1.example.com", "https://rpc2.example.com"),
        rpc_timeout=10,
        chain_id=8453,
    )


@pytest.fixture()
def sample_oracle_config() -> OracleConfig:
    return OracleConfig(
        kind="aave",
        address="0x2Cc0Fc26eD4563A5ce5e8bdcfe1A2878676Ae156",
        price_decimals=8,
    )


@pytest.fixture()
def sample_protocol_config(sample_oracle_config: OracleConfig) -> ProtocolConfig:
    return ProtocolConfig(
        kind="aave-v3",
        chain="base",
        event="Aave:LiquidationCall",
        contract="0xA238Dd80C259a72e81d7e4664a9801593F98d1c5",
        start_block=28281660,
        oracle=sample_oracle_config,
    )


@pytest.fixture()
def sample_app_config(
    tmp_path: Path,
    sample_chain_config: ChainConfig,
    sample_tokens: tuple[TokenConfig, ...],
    sample_protocol_config: ProtocolConfig,
) -> AppConfig:
    return AppConfig(
        chains={"base": sample_chain_config},
        tokens=sample_tokens,
        protocols={"aave-v3": sample_protocol_config},
        pricing=PricingConfig(),
        storage=StorageConfig(db_path=str(tmp_path / "liquidations.sqlite")),
        logging=LoggingConfig(log_dir=str(tmp_path / "logs"), console=False),
    )


SAMPLE_YAML = textwrap.dedent("""\
    chains:
      base:
        chain_id: 8453
        rpc_endpoints: ["https://rpc.example.com"]
        rpc_timeout: 10
    tokens:
      - {address: "0x4200000000000000000000000000000000000006", symbol: WETH, decimals: 18}
      - {address: "0x833589fCD6eDb6E08f4c7C32D4f71b54bda02913", symbol: USDC, decimals: 6}
    protocols:
      aave-v3:
        kind: aave-v3
        chain: base
        event: "Aave:LiquidationCall"
        contract: "0xA238Dd80C259a72e81d7e4664a9801593F98d1c5"
        start_block: 28281660
        oracle:
          kind: aave
          address: "0x2Cc0Fc26eD4563A5ce5e8bdcfe1A2878676Ae156"
          price_decimals: 8
    pricing:
      price_at_event_block: true
      fallback_prices: {USDC: 1.0, EURC: 1.1}
    storage:
      db_path: "data/test.sqlite"
    logging:
      log_dir: "test-logs"
      console: false
""")


@pytest.fixture()
def sample_yaml_path(tmp_path: Path) -> Path:
    cfg_file = tmp_path / "config.yaml"
    cfg_file.write_text(SAMPLE_YAML)
    return cfg_file


# ---------------------------------------------------------------------------
# Sinks and storage
# ---------------------------------------------------------------------------


@pytest.fixture()
def sink(tmp_path: Path):
    liq_logger = LiquidationLogger(tmp_path / "logs", console=False)
    yield liq_logger
    liq_logger.close()


@pytest.fixture()
def store(tmp_path: Path):
    sqlite_store = SqliteLiquidationStore(tmp_path / "liquidations.sqlite")
    yield sqlite_store
    sqlite_store.close()


# ---------------------------------------------------------------------------
# Oracle double
# ---------------------------------------------------------------------------


class FakeOracle:
    """In-memory oracle keyed by lower-cased token address."""

    def __init__(
        self,
        prices: dict[str, int],
        decimals: int = 8,
        batch_error: Exception | None = None,
        single_errors: set[str] | None = None,
    ) -> None:
        self.prices = {k.lower(): v for k, v in prices.items()}
        self.decimals = decimals
        self.batch_error = batch_error
        self.single_errors = {a.lower() for a in (single_errors or set())}
        self.batch_calls: list[list[str]] = []
        self.single_calls: list[str] = []
        self.blocks: list[int | None] = []

    def price_decimals(self, token: TokenDescriptor) -> int:
        return self.decimals

    async def get_asset_price(
        self, token: TokenDescriptor, block_number: int | None = None
    ) -> int:
        self.single_calls.append(token.symbol)
        self.blocks.append(block_number)
        key = token.address.lower()
        if key in self.single_errors:
            raise OracleError(f"execution reverted for {token.symbol}")
        return self.prices.get(key, 0)

    async def get_assets_prices(
        self, tokens: list[TokenDescriptor], block_number: int | None = None
    ) -> list[int]:
        self.batch_calls.append([t.symbol for t in tokens])
        self.blocks.append(block_number)
        if self.batch_error is not None:
            raise self.batch_error
        return [self.prices.get(t.address.lower(), 0) for t in tokens]


@pytest.fixture()
def fake_oracle_factory():
    return FakeOracle


# ---------------------------------------------------------------------------
# Sample raw events
# ---------------------------------------------------------------------------


def make_aave_event(
    collateral: str = WETH,
    debt: str = USDC,
    seized: Any = 500_000_000_000_000_000,
    debt_to_cover: Any = 1_500_000_000,
    tx_hash: str = TX_HASH,
    log_index: int = 7,
    block_number: int = 28_300_000,
    receive_a_token: bool = False,
) -> dict[str, Any]:
    return {
        "args": {
            "collateralAsset": collateral,
            "debtAsset": debt,
            "user": BORROWER,
            "debtToCover": debt_to_cover,
            "liquidatedCollateralAmount": seized,
            "liquidator": LIQUIDATOR,
            "receiveAToken": receive_a_token,
        },
        "block": {"number": block_number, "timestamp": 1_736_000_000},
        "transaction": {"hash": tx_hash},
        "log": {"logIndex": log_index, "address": "0xA238Dd80C259a72e81d7e4664a9801593F98d1c5"},
    }


@pytest.fixture()
def aave_event() -> dict[str, Any]:
    return make_aave_event()


# ---------------------------------------------------------------------------
# Valued records
# ---------------------------------------------------------------------------


def make_record(
    collateral: TokenDescriptor,
    debt: TokenDescriptor,
    tx_hash: str = TX_HASH,
    log_index: int = 7,
    seized: int = 500_000_000_000_000_000,
    debt_to_cover: int = 1_500_000_000,
    collateral_price: str = "3000",
    debt_price: str = "1",
    protocol: str = "aave-v3",
    event_type: str = "LiquidationCall",
) -> LiquidationRecord:
    event = LiquidationEvent(
        protocol=protocol,
        event_type=event_type,
        collateral_asset=collateral.address.lower(),
        debt_asset=debt.address.lower(),
        borrower=BORROWER,
        liquidator=LIQUIDATOR,
        debt_to_cover=debt_to_cover,
        liquidated_collateral_amount=seized,
        receive_a_token=False,
        block_number=28_300_000,
        block_timestamp=1_736_000_000,
        transaction_hash=tx_hash,
        log_index=log_index,
    )
    return build_record(
        event,
        collateral,
        debt,
        PriceQuote(collateral.address.lower(), Decimal(collateral_price), 0),
        PriceQuote(debt.address.lower(), Decimal(debt_price), 0),
    )


@pytest.fixture()
def sample_record(weth: TokenDescriptor, usdc: TokenDescriptor) -> LiquidationRecord:
    return make_record(weth, usdc)
