"""Multi-sink file logger for liquidations, events, errors and price snapshots.

Each sink is a ``logging.FileHandler``. A write is one ``Handler.handle`` call,
which holds the handler lock for the whole line, so concurrent writers never
interleave partial lines. A failing write is reported on the console only
and never raised.
"""
from __future__ import annotations

import json
import logging
import traceback
from datetime import datetime, timezone
from pathlib import Path

from .models import LiquidationRecord, PriceQuote, TokenDescriptor

logger = logging.getLogger(__name__)

EVENTS = "events"
LIQUIDATIONS = "liquidations"
LIQUIDATIONS_JSON = "liquidations_json"
ERRORS = "errors"

_SINK_FILES = {
    EVENTS: "events.log",
    LIQUIDATIONS: "liquidations.log",
    LIQUIDATIONS_JSON: "liquidations.json",
    ERRORS: "errors.log",
}
PRICES_FILE = "prices.log"


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds")


class LiquidationLogger:
    """Fan-out of log entries to console and per-purpose append-only files."""

    def __init__(self, log_dir: str | Path = "logs", console: bool = True) -> None:
        self.log_dir = Path(log_dir)
        self.console = console
        try:
            self.log_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.error("Cannot create log directory %s: %s", self.log_dir, e)

        self._sinks: dict[str, logging.Handler] = {}
        for sink, filename in _SINK_FILES.items():
            handler = logging.FileHandler(
                self.log_dir / filename, encoding="utf-8", delay=True
            )
            handler.setFormatter(logging.Formatter("%(message)s"))
            self._sinks[sink] = handler

    def close(self) -> None:
        for handler in self._sinks.values():
            handler.close()

    def _write(self, sink: str, message: str, level: int = logging.INFO) -> None:
        record = logging.LogRecord(
            name=f"{__name__}.{sink}",
            level=level,
            pathname=__file__,
            lineno=0,
            msg=message,
            args=None,
            exc_info=None,
        )
        try:
            self._sinks[sink].handle(record)
        except OSError as e:
            # FileHandler opens lazily, outside handleError's protection
            logger.error("Failed to write %s log entry: %s", sink, e)

    # ------------------------------------------------------------------
    # General entries
    # ------------------------------------------------------------------

    def log_event(self, category: str, message: str) -> None:
        """Append a line to the general event stream (``category`` is a tag)."""
        line = f"{_now_iso()} - [{category}] {message}"
        if self.console:
            logger.info("%s", message)
        self._write(EVENTS, line)

    def log_init(self, message: str) -> None:
        self.log_event("INIT", message)

    def log_error(self, context: str, error: BaseException | None = None) -> None:
        """Append one entry to the error stream. Never raises."""
        try:
            entry = f"{_now_iso()} - ERROR: {context}"
            if error is not None:
                entry += f": {type(error).__name__}: {error}"
                if error.__traceback__ is not None:
                    stack = "".join(traceback.format_tb(error.__traceback__))
                    entry += f"\nStack:\n{stack.rstrip()}"
            if self.console:
                logger.error("%s%s", context, f": {error}" if error else "")
            self._write(ERRORS, entry, logging.ERROR)
        except Exception as e:
            logger.error("Failed to write error entry for %r: %s", context, e)

    # ------------------------------------------------------------------
    # Liquidations
    # ------------------------------------------------------------------

    @staticmethod
    def _liquidation_line(record: LiquidationRecord, timestamp: str) -> str:
        collateral = record.collateral_token
        debt = record.debt_token
        return (
            f"{timestamp} - [Liquidation:{record.protocol}] "
            f"Borrower: {record.borrower_address} "
            f"Liquidator: {record.liquidator_address} "
            f"Collateral: {record.formatted_collateral_amount} {collateral.symbol} "
            f"({collateral.address}) USD: {record.usd_value_seized} "
            f"Debt: {record.formatted_debt_amount} {debt.symbol} "
            f"({debt.address}) USD: {record.usd_value_debt} "
            f"ReceiveAToken: {record.receive_a_token} "
            f"Block: {record.block_number} Tx: {record.transaction_hash} "
            f"LogIndex: {record.log_index}"
        )

    @staticmethod
    def liquidation_payload(record: LiquidationRecord, timestamp: str) -> dict:
        """JSON-serialisable facts of a record; raw integers as strings."""
        return {
            "eventType": record.event_type,
            "protocol": record.protocol,
            "timestamp": timestamp,
            "blockNumber": str(record.block_number),
            "blockTimestamp": str(record.block_timestamp),
            "transactionHash": record.transaction_hash,
            "logIndex": record.log_index,
            "borrower": record.borrower_address,
            "liquidator": record.liquidator_address,
            "collateralAsset": record.collateral_token.address,
            "collateralSymbol": record.collateral_token.symbol,
            "debtAsset": record.debt_token.address,
            "debtSymbol": record.debt_token.symbol,
            "liquidatedCollateralAmount": str(record.seized_token_amount_raw),
            "formattedCollateralAmount": float(record.formatted_collateral_amount),
            "usdValueSeized": float(record.usd_value_seized),
            "debtToCover": str(record.debt_amount_raw),
            "formattedDebtAmount": float(record.formatted_debt_amount),
            "usdValueDebt": float(record.usd_value_debt),
            "receiveAToken": record.receive_a_token,
        }

    def log_liquidation(self, record: LiquidationRecord) -> None:
        timestamp = _now_iso()
        line = self._liquidation_line(record, timestamp)

        if self.console:
            logger.info(
                "LIQUIDATION %s · borrower %s · %s %s ($%s) for %s %s ($%s)",
                record.protocol,
                record.borrower_address,
                record.formatted_collateral_amount,
                record.collateral_token.symbol,
                record.usd_value_seized,
                record.formatted_debt_amount,
                record.debt_token.symbol,
                record.usd_value_debt,
            )

        self._write(EVENTS, line)
        self._write(LIQUIDATIONS, line)
        self._write(
            LIQUIDATIONS_JSON, json.dumps(self.liquidation_payload(record, timestamp))
        )

    # ------------------------------------------------------------------
    # Price snapshots
    # ------------------------------------------------------------------

    def log_token_prices(
        self, quotes: dict[str, PriceQuote], tokens: list[TokenDescriptor]
    ) -> None:
        """Overwrite ``prices.log`` with the latest snapshot."""
        lines = [f"Timestamp: {_now_iso()}", "", "Token Prices (USD):", "=" * 18, ""]
        for token in tokens:
            quote = quotes.get(token.address.lower())
            if quote is None:
                continue
            lines += [
                token.symbol,
                f"Address: {token.address}",
                f"Price: ${quote.price_usd:.6f} ({quote.source})",
                "",
            ]
        try:
            (self.log_dir / PRICES_FILE).write_text("\n".join(lines), encoding="utf-8")
        except OSError as e:
            logger.error("Failed to write price snapshot: %s", e)
