"""Protocol adapter — per-protocol event normalisation."""
from typing import Any, Protocol

from ..models import LiquidationEvent


class ProtocolAdapter(Protocol):
    """Turns one protocol's raw liquidation log into a ``LiquidationEvent``."""

    @property
    def protocol_name(self) -> str: ...

    @property
    def event_name(self) -> str: ...

    async def to_liquidation(self, raw: dict[str, Any]) -> LiquidationEvent: ...
