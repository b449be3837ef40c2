"""Command-line interface for the liquidation tracker."""
from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from collections.abc import Iterator
from pathlib import Path
from typing import Any

from .config import AppConfig, load_config
from .errors import StorageError
from .liquidation_logger import LiquidationLogger
from .logging_setup import configure_logging
from .services.router import build_clients, build_resolver, build_router
from .storage import SqliteLiquidationStore
from .tokens import DEFAULT_TOKENS, TokenRegistry

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse CLI parser."""
    parser = argparse.ArgumentParser(
        prog="liquidation-tracker",
        description="Value and store lending-protocol liquidation events",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to config.yaml (default: config.yaml in project root)",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)",
    )

    sub = parser.add_subparsers(dest="command")

    replay_parser = sub.add_parser("replay", help="Process a JSON-lines event file")
    replay_parser.add_argument("file", type=Path, help="JSON-lines file of events")
    replay_parser.add_argument(
        "--concurrency",
        type=int,
        default=8,
        help="Events processed concurrently (default: 8)",
    )

    sub.add_parser("prices", help="Snapshot oracle prices for all registry tokens")
    sub.add_parser("healthcheck", help="Check storage and RPC connectivity")

    return parser


def read_events(
    path: Path, sink: LiquidationLogger
) -> Iterator[tuple[str, dict[str, Any]]]:
    """Yield ``(name, event)`` pairs; malformed lines are logged and skipped."""
    with open(path, encoding="utf-8") as f:
        for lineno, line in enumerate(f, start=1):
            line = line.strip()
            if not line:
                continue
            try:
                item = json.loads(line)
                name, event = item["name"], item["event"]
            except (ValueError, KeyError, TypeError) as e:
                sink.log_error(f"Malformed event on line {lineno} of {path}", e)
                continue
            if not isinstance(event, dict):
                sink.log_error(f"Malformed event on line {lineno} of {path}")
                continue
            yield name, event


def _registry(config: AppConfig) -> TokenRegistry:
    return TokenRegistry(config.tokens or DEFAULT_TOKENS)


async def _replay(config: AppConfig, args: argparse.Namespace) -> int:
    sink = LiquidationLogger(config.logging.log_dir, config.logging.console)
    try:
        store = SqliteLiquidationStore(config.storage.db_path)
    except StorageError as e:
        sink.log_error("Cannot open storage", e)
        sink.close()
        return 1

    try:
        router = build_router(config, _registry(config), store, sink)
        counts = await router.replay(
            read_events(args.file, sink), concurrency=args.concurrency
        )
    except OSError as e:
        sink.log_error(f"Cannot read event file {args.file}", e)
        return 1
    finally:
        store.close()
        sink.close()

    for outcome, n in sorted(counts.items()):
        print(f"{outcome}: {n}")
    return 0


async def _prices(config: AppConfig) -> int:
    sink = LiquidationLogger(config.logging.log_dir, config.logging.console)
    registry = _registry(config)
    proto_name, proto_cfg = next(iter(config.protocols.items()))
    resolver = build_resolver(config, proto_cfg, build_clients(config))

    tokens = list(registry)
    quotes, unresolved = await resolver.resolve_many(tokens)
    sink.log_token_prices(quotes, tokens)
    sink.close()

    for token in tokens:
        quote = quotes.get(token.address.lower())
        if quote is not None:
            print(f"{token.symbol}: ${quote.price_usd:,.4f} ({quote.source})")
    logger.info("Prices resolved with the %s oracle", proto_name)
    return 1 if unresolved else 0


async def _healthcheck(config: AppConfig) -> int:
    healthy = True
    try:
        store = SqliteLiquidationStore(config.storage.db_path)
        healthy = store.health_check()
        store.close()
    except StorageError as e:
        logger.error("%s", e)
        healthy = False

    for name, client in build_clients(config).items():
        try:
            chain_id = await client.get_chain_id()
            block = await client.get_block_number()
            logger.info("Chain %s reachable, latest block %d", name, block)
        except Exception as e:
            logger.error("Chain %s unreachable: %s", name, e)
            healthy = False
            continue
        expected = config.chains[name].chain_id
        if chain_id != expected:
            logger.error(
                "Chain %s reports chain id %d, expected %d", name, chain_id, expected
            )
            healthy = False

    print("healthy" if healthy else "unhealthy")
    return 0 if healthy else 1


async def _run(args: argparse.Namespace) -> int:
    """Execute the selected command."""
    configure_logging(args.log_level)
    config = load_config(args.config)

    if args.command == "replay":
        return await _replay(config, args)
    if args.command == "prices":
        return await _prices(config)
    if args.command == "healthcheck":
        return await _healthcheck(config)
    build_parser().print_help()
    return 1


def main() -> None:
    """Entry point."""
    parser = build_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    sys.exit(asyncio.run(_run(args)))
