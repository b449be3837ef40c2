"""Event routing and data-driven pipeline wiring from configuration."""
from __future__ import annotations

import asyncio
import logging
from collections import Counter
from collections.abc import Iterable, Iterator
from typing import Any

from ..chains.evm import EvmClient
from ..config import AppConfig, ProtocolConfig
from ..interfaces.price_oracle import PriceOracle
from ..interfaces.protocol_adapter import ProtocolAdapter
from ..interfaces.store import LiquidationStore
from ..liquidation_logger import LiquidationLogger
from ..models import PipelineOutcome
from ..oracles import AaveOracle, CompoundOracle
from ..protocols import AaveV3Adapter, CompoundV2Adapter
from ..tokens import TokenRegistry
from .pipeline import LiquidationPipeline
from .price_resolver import PriceResolver

logger = logging.getLogger(__name__)

# Oracle and adapter factories keyed by the ``kind`` used in config.yaml.
_ORACLE_FACTORIES: dict[str, Any] = {
    "aave": lambda client, cfg: AaveOracle(client, cfg.oracle),
    "compound": lambda client, cfg: CompoundOracle(client, cfg.oracle, cfg.markets),
}

_ADAPTER_FACTORIES: dict[str, Any] = {
    "aave-v3": lambda name, cfg, client: AaveV3Adapter(name, cfg),
    "compound-v2": lambda name, cfg, client: CompoundV2Adapter(name, cfg, client),
}


class EventRouter:
    """Maps feed event names (``Contract:Event``) to liquidation pipelines."""

    def __init__(self) -> None:
        self._pipelines: dict[str, LiquidationPipeline] = {}

    @property
    def event_names(self) -> list[str]:
        return list(self._pipelines)

    def register(self, pipeline: LiquidationPipeline) -> None:
        name = pipeline.event_name
        if name in self._pipelines:
            raise ValueError(f"A pipeline is already registered for {name}")
        self._pipelines[name] = pipeline
        logger.info("Registered %s handler for %s", pipeline.protocol_name, name)

    async def dispatch(self, name: str, raw: dict[str, Any]) -> PipelineOutcome | None:
        pipeline = self._pipelines.get(name)
        if pipeline is None:
            logger.debug("No handler for event %s", name)
            return None
        return await pipeline.process(raw)

    async def replay(
        self, events: Iterable[tuple[str, dict[str, Any]]], concurrency: int = 8
    ) -> Counter[str]:
        """Process ``(name, raw)`` pairs with at most ``concurrency`` in flight.

        A fixed set of workers pulls from the shared iterator, so events are
        read from ``events`` only as fast as they are processed.
        """
        pending: Iterator[tuple[str, dict[str, Any]]] = iter(events)
        counts: Counter[str] = Counter()

        async def _worker() -> None:
            for name, raw in pending:
                outcome = await self.dispatch(name, raw)
                counts[outcome.value if outcome else "unhandled"] += 1

        await asyncio.gather(*(_worker() for _ in range(max(1, concurrency))))
        return counts


def build_clients(config: AppConfig) -> dict[str, EvmClient]:
    return {name: EvmClient(chain_cfg) for name, chain_cfg in config.chains.items()}


def build_oracle(client: EvmClient, proto_cfg: ProtocolConfig) -> PriceOracle:
    return _ORACLE_FACTORIES[proto_cfg.oracle.kind](client, proto_cfg)


def build_resolver(
    config: AppConfig, proto_cfg: ProtocolConfig, clients: dict[str, EvmClient]
) -> PriceResolver:
    oracle = build_oracle(clients[proto_cfg.chain], proto_cfg)
    return PriceResolver(oracle, config.pricing.fallback_prices)


def build_router(
    config: AppConfig,
    registry: TokenRegistry,
    store: LiquidationStore,
    sink: LiquidationLogger,
    clients: dict[str, EvmClient] | None = None,
) -> EventRouter:
    """One pipeline per configured protocol, registered under its event name."""
    clients = clients if clients is not None else build_clients(config)
    router = EventRouter()

    for name, proto_cfg in config.protocols.items():
        factory = _ADAPTER_FACTORIES.get(proto_cfg.kind)
        if factory is None:
            logger.warning("No adapter factory for protocol kind '%s'", proto_cfg.kind)
            continue
        client = clients[proto_cfg.chain]
        adapter: ProtocolAdapter = factory(name, proto_cfg, client)
        router.register(
            LiquidationPipeline(
                adapter=adapter,
                registry=registry,
                resolver=build_resolver(config, proto_cfg, clients),
                store=store,
                sink=sink,
                price_at_event_block=config.pricing.price_at_event_block,
            )
        )
        sink.log_init(
            f"{name} {proto_cfg.event} handler set up "
            f"(contract {proto_cfg.contract or 'n/a'}, from block {proto_cfg.start_block})"
        )

    return router
