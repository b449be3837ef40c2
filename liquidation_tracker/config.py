"""Configuration loader — reads config.yaml, interpolates env vars, validates."""
from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv
from eth_utils import is_address

logger = logging.getLogger(__name__)

PROTOCOL_KINDS = ("aave-v3", "compound-v2")
ORACLE_KINDS = ("aave", "compound")

DEFAULT_FALLBACK_PRICES: dict[str, float] = {
    "USDbC": 1.0,
    "USDC": 1.0,
    "GHO": 1.0,
    "EURC": 1.1,  # approximate EUR/USD
}

# ---------------------------------------------------------------------------
# Frozen config dataclasses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ChainConfig:
    rpc_endpoints: tuple[str, ...] = ()
    rpc_timeout: int = 30
    # checked against eth_chainId by the healthcheck
    chain_id: int = 8453


@dataclass(frozen=True)
class TokenConfig:
    address: str = ""
    symbol: str = ""
    decimals: int = 18
    price_feed: str | None = None
    ltv: float | None = None


@dataclass(frozen=True)
class OracleConfig:
    kind: str = "aave"
    address: str = ""
    price_decimals: int = 8


@dataclass(frozen=True)
class ProtocolConfig:
    kind: str = "aave-v3"
    chain: str = ""
    event: str = "Aave:LiquidationCall"
    # subscription parameters of the event feed; logged at set-up
    contract: str = ""
    start_block: int = 0
    oracle: OracleConfig = field(default_factory=OracleConfig)
    # market (mToken) address -> underlying token address, compound-v2 only
    markets: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class PricingConfig:
    fallback_prices: dict[str, float] = field(
        default_factory=lambda: dict(DEFAULT_FALLBACK_PRICES)
    )
    price_at_event_block: bool = False


@dataclass(frozen=True)
class StorageConfig:
    db_path: str = "data/liquidations.sqlite"


@dataclass(frozen=True)
class LoggingConfig:
    log_dir: str = "logs"
    console: bool = True


@dataclass(frozen=True)
class AppConfig:
    chains: dict[str, ChainConfig] = field(default_factory=dict)
    tokens: tuple[TokenConfig, ...] = ()
    protocols: dict[str, ProtocolConfig] = field(default_factory=dict)
    pricing: PricingConfig = field(default_factory=PricingConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


# ---------------------------------------------------------------------------
# Env interpolation
# ---------------------------------------------------------------------------

_ENV_VAR_RE = re.compile(r"\$\{([^}]+)}")


def _interpolate_env(value: Any) -> Any:
    """Recursively replace ${VAR} references with environment variable values."""
    if isinstance(value, str):
        return _ENV_VAR_RE.sub(lambda m: os.environ.get(m.group(1), ""), value)
    if isinstance(value, dict):
        return {k: _interpolate_env(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_interpolate_env(item) for item in value]
    return value


# ---------------------------------------------------------------------------
# YAML → dataclass builders
# ---------------------------------------------------------------------------


def _build_chains(raw: dict[str, Any]) -> dict[str, ChainConfig]:
    chains: dict[str, ChainConfig] = {}
    for name, cfg in raw.items():
        endpoints = [e for e in cfg.get("rpc_endpoints", []) if e]
        chains[name] = ChainConfig(
            rpc_endpoints=tuple(endpoints),
            rpc_timeout=int(cfg.get("rpc_timeout", 30)),
            chain_id=int(cfg.get("chain_id", 8453)),
        )
    return chains


def _build_tokens(raw: list[dict[str, Any]]) -> tuple[TokenConfig, ...]:
    tokens: list[TokenConfig] = []
    for t in raw:
        ltv = t.get("ltv")
        tokens.append(
            TokenConfig(
                address=str(t.get("address", "")),
                symbol=str(t.get("symbol", "")),
                decimals=int(t.get("decimals", 18)),
                price_feed=t.get("price_feed") or None,
                ltv=float(ltv) if ltv is not None else None,
            )
        )
    return tuple(tokens)


def _build_oracle(raw: dict[str, Any]) -> OracleConfig:
    return OracleConfig(
        kind=raw.get("kind", "aave"),
        address=raw.get("address", ""),
        price_decimals=int(raw.get("price_decimals", 8)),
    )


def _build_protocols(raw: dict[str, Any]) -> dict[str, ProtocolConfig]:
    protocols: dict[str, ProtocolConfig] = {}
    for name, cfg in raw.items():
        protocols[name] = ProtocolConfig(
            kind=cfg.get("kind", "aave-v3"),
            chain=cfg.get("chain", ""),
            event=cfg.get("event", "Aave:LiquidationCall"),
            contract=cfg.get("contract", ""),
            start_block=int(cfg.get("start_block", 0)),
            oracle=_build_oracle(cfg.get("oracle", {})),
            markets={
                str(k).lower(): str(v).lower()
                for k, v in cfg.get("markets", {}).items()
            },
        )
    return protocols


def _build_pricing(raw: dict[str, Any]) -> PricingConfig:
    fallbacks = raw.get("fallback_prices")
    return PricingConfig(
        fallback_prices=(
            {str(k): float(v) for k, v in fallbacks.items()}
            if fallbacks is not None
            else dict(DEFAULT_FALLBACK_PRICES)
        ),
        price_at_event_block=bool(raw.get("price_at_event_block", False)),
    )


def _build_storage(raw: dict[str, Any]) -> StorageConfig:
    return StorageConfig(db_path=raw.get("db_path", StorageConfig.db_path))


def _build_logging(raw: dict[str, Any]) -> LoggingConfig:
    return LoggingConfig(
        log_dir=raw.get("log_dir", LoggingConfig.log_dir),
        console=bool(raw.get("console", True)),
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(config_path: str | Path | None = None) -> AppConfig:
    """Load and validate application configuration from YAML + .env.

    Args:
        config_path: Path to config.yaml. Defaults to ``config.yaml`` in the
            project root (one level up from this package).
    """
    load_dotenv()

    if config_path is None:
        config_path = Path(__file__).resolve().parent.parent / "config.yaml"
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path) as f:
        raw = yaml.safe_load(f) or {}

    raw = _interpolate_env(raw)

    cfg = AppConfig(
        chains=_build_chains(raw.get("chains", {})),
        tokens=_build_tokens(raw.get("tokens", [])),
        protocols=_build_protocols(raw.get("protocols", {})),
        pricing=_build_pricing(raw.get("pricing", {})),
        storage=_build_storage(raw.get("storage", {})),
        logging=_build_logging(raw.get("logging", {})),
    )

    _validate(cfg)
    logger.info("Configuration loaded from %s", config_path)
    return cfg


def _valid_address(value: str) -> bool:
    # format only; checksum case is not enforced
    return isinstance(value, str) and value.startswith("0x") and is_address(value.lower())


def _validate(cfg: AppConfig) -> None:
    """Raise on invalid configuration."""
    if not cfg.protocols:
        raise ValueError("At least one protocol must be configured")

    known_tokens = {t.address.lower() for t in cfg.tokens}
    for token in cfg.tokens:
        if not token.address or not token.symbol:
            raise ValueError(f"Token entry '{token.symbol}' needs address and symbol")
        if not _valid_address(token.address):
            raise ValueError(
                f"Token '{token.symbol}' has an invalid address {token.address!r}"
            )
        if not 0 <= token.decimals <= 36:
            raise ValueError(
                f"Token '{token.symbol}' has unsupported decimals {token.decimals}"
            )

    for name, proto in cfg.protocols.items():
        if proto.kind not in PROTOCOL_KINDS:
            raise ValueError(f"Protocol '{name}' has unknown kind '{proto.kind}'")
        if proto.chain not in cfg.chains:
            raise ValueError(
                f"Protocol '{name}' references unknown chain '{proto.chain}'"
            )
        if not cfg.chains[proto.chain].rpc_endpoints:
            raise ValueError(f"Chain '{proto.chain}' has no rpc_endpoints")
        if proto.oracle.kind not in ORACLE_KINDS:
            raise ValueError(
                f"Protocol '{name}' has unknown oracle kind '{proto.oracle.kind}'"
            )
        if not proto.oracle.address:
            raise ValueError(f"Protocol '{name}' has no oracle address")
        if not _valid_address(proto.oracle.address):
            raise ValueError(
                f"Protocol '{name}' has an invalid oracle address "
                f"{proto.oracle.address!r}"
            )
        if proto.contract and not _valid_address(proto.contract):
            raise ValueError(
                f"Protocol '{name}' has an invalid contract address {proto.contract!r}"
            )
        for market, underlying in proto.markets.items():
            if not (_valid_address(market) and _valid_address(underlying)):
                raise ValueError(
                    f"Protocol '{name}' has an invalid market entry "
                    f"{market!r}: {underlying!r}"
                )
        if proto.kind == "compound-v2":
            if not proto.markets:
                raise ValueError(f"Protocol '{name}' needs a markets mapping")
            # an empty token list means the built-in registry is used
            if known_tokens:
                for market, underlying in proto.markets.items():
                    if underlying not in known_tokens:
                        raise ValueError(
                            f"Market {market} of protocol '{name}' maps to "
                            f"unknown token {underlying}"
                        )
