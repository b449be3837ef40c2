"""Aave V3 adapter — ``LiquidationCall`` events from the Pool contract."""
from __future__ import annotations

from typing import Any

from ...config import ProtocolConfig
from ...models import LiquidationEvent
from ..common import event_position, require, to_address, to_bool, to_int


class AaveV3Adapter:
    """Normalise Aave V3 ``LiquidationCall`` logs."""

    def __init__(self, name: str, config: ProtocolConfig) -> None:
        self._name = name
        self._event_name = config.event
        self._event_type = config.event.rpartition(":")[2]

    @property
    def protocol_name(self) -> str:
        return self._name

    @property
    def event_name(self) -> str:
        return self._event_name

    async def to_liquidation(self, raw: dict[str, Any]) -> LiquidationEvent:
        args = raw.get("args", {})

        def arg(key: str) -> Any:
            return require(args, key, "args")

        return LiquidationEvent(
            protocol=self._name,
            event_type=self._event_type,
            collateral_asset=to_address(arg("collateralAsset"), "collateralAsset"),
            debt_asset=to_address(arg("debtAsset"), "debtAsset"),
            borrower=to_address(arg("user"), "user"),
            liquidator=to_address(arg("liquidator"), "liquidator"),
            debt_to_cover=to_int(arg("debtToCover"), "debtToCover"),
            liquidated_collateral_amount=to_int(
                arg("liquidatedCollateralAmount"), "liquidatedCollateralAmount"
            ),
            receive_a_token=to_bool(arg("receiveAToken"), "receiveAToken"),
            **event_position(raw),
        )
