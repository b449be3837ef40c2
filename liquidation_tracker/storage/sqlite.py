"""SQLite-backed liquidation store with insert-once semantics."""
from __future__ import annotations

import logging
import sqlite3
import threading
from decimal import Decimal
from pathlib import Path
from typing import Any

from ..errors import StorageError
from ..models import LiquidationRecord, StoreResult, TokenDescriptor

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS liquidation_events (
    transaction_hash TEXT NOT NULL,
    log_index INTEGER NOT NULL,
    protocol TEXT NOT NULL,
    event_type TEXT NOT NULL,
    block_number INTEGER NOT NULL,
    block_timestamp INTEGER NOT NULL,
    borrower_address TEXT NOT NULL,
    liquidator_address TEXT NOT NULL,
    collateral_token_address TEXT NOT NULL,
    collateral_token_symbol TEXT NOT NULL,
    collateral_token_decimals INTEGER NOT NULL,
    debt_token_address TEXT NOT NULL,
    debt_token_symbol TEXT NOT NULL,
    debt_token_decimals INTEGER NOT NULL,
    seized_token_amount_raw TEXT NOT NULL,
    formatted_collateral_amount TEXT NOT NULL,
    usd_value_seized TEXT NOT NULL,
    debt_amount_raw TEXT NOT NULL,
    formatted_debt_amount TEXT NOT NULL,
    usd_value_debt TEXT NOT NULL,
    collateral_price_usd TEXT NOT NULL,
    debt_price_usd TEXT NOT NULL,
    receive_a_token INTEGER NOT NULL,
    PRIMARY KEY (transaction_hash, log_index)
);
CREATE INDEX IF NOT EXISTS idx_liquidation_events_block
    ON liquidation_events(block_number);
CREATE INDEX IF NOT EXISTS idx_liquidation_events_borrower
    ON liquidation_events(borrower_address);
"""

_COLUMNS = (
    "transaction_hash",
    "log_index",
    "protocol",
    "event_type",
    "block_number",
    "block_timestamp",
    "borrower_address",
    "liquidator_address",
    "collateral_token_address",
    "collateral_token_symbol",
    "collateral_token_decimals",
    "debt_token_address",
    "debt_token_symbol",
    "debt_token_decimals",
    "seized_token_amount_raw",
    "formatted_collateral_amount",
    "usd_value_seized",
    "debt_amount_raw",
    "formatted_debt_amount",
    "usd_value_debt",
    "collateral_price_usd",
    "debt_price_usd",
    "receive_a_token",
)

_INSERT = (
    f"INSERT INTO liquidation_events ({', '.join(_COLUMNS)}) "
    f"VALUES ({', '.join('?' for _ in _COLUMNS)}) "
    "ON CONFLICT(transaction_hash, log_index) DO NOTHING"
)


def _row(record: LiquidationRecord) -> tuple[Any, ...]:
    # Amounts as TEXT: uint256 values overflow SQLite's 64-bit INTEGER.
    return (
        record.transaction_hash.lower(),
        record.log_index,
        record.protocol,
        record.event_type,
        record.block_number,
        record.block_timestamp,
        record.borrower_address,
        record.liquidator_address,
        record.collateral_token.address,
        record.collateral_token.symbol,
        record.collateral_token.decimals,
        record.debt_token.address,
        record.debt_token.symbol,
        record.debt_token.decimals,
        str(record.seized_token_amount_raw),
        str(record.formatted_collateral_amount),
        str(record.usd_value_seized),
        str(record.debt_amount_raw),
        str(record.formatted_debt_amount),
        str(record.usd_value_debt),
        str(record.collateral_price_usd),
        str(record.debt_price_usd),
        int(record.receive_a_token),
    )


def _record(row: sqlite3.Row) -> LiquidationRecord:
    return LiquidationRecord(
        transaction_hash=row["transaction_hash"],
        log_index=row["log_index"],
        protocol=row["protocol"],
        event_type=row["event_type"],
        block_number=row["block_number"],
        block_timestamp=row["block_timestamp"],
        borrower_address=row["borrower_address"],
        liquidator_address=row["liquidator_address"],
        collateral_token=TokenDescriptor(
            row["collateral_token_address"],
            row["collateral_token_symbol"],
            row["collateral_token_decimals"],
        ),
        debt_token=TokenDescriptor(
            row["debt_token_address"],
            row["debt_token_symbol"],
            row["debt_token_decimals"],
        ),
        seized_token_amount_raw=int(row["seized_token_amount_raw"]),
        formatted_collateral_amount=Decimal(row["formatted_collateral_amount"]),
        usd_value_seized=Decimal(row["usd_value_seized"]),
        debt_amount_raw=int(row["debt_amount_raw"]),
        formatted_debt_amount=Decimal(row["formatted_debt_amount"]),
        usd_value_debt=Decimal(row["usd_value_debt"]),
        collateral_price_usd=Decimal(row["collateral_price_usd"]),
        debt_price_usd=Decimal(row["debt_price_usd"]),
        receive_a_token=bool(row["receive_a_token"]),
    )


class SqliteLiquidationStore:
    """Liquidation rows keyed by (transaction_hash, log_index)."""

    def __init__(self, db_path: str | Path) -> None:
        self.db_path = str(db_path)
        self._lock = threading.Lock()
        try:
            if self.db_path != ":memory:":
                Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
            self._conn = sqlite3.connect(
                self.db_path, timeout=10.0, check_same_thread=False
            )
            self._conn.row_factory = sqlite3.Row
            if self.db_path != ":memory:":
                self._conn.execute("PRAGMA journal_mode=WAL")
            self._conn.executescript(_SCHEMA)
            self._conn.commit()
        except (OSError, sqlite3.Error) as e:
            raise StorageError(f"Cannot open liquidation store {self.db_path}: {e}") from e

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    def store(self, record: LiquidationRecord) -> StoreResult:
        """Insert once; a redelivered event is a no-op success."""
        try:
            with self._lock:
                cursor = self._conn.execute(_INSERT, _row(record))
                self._conn.commit()
        except sqlite3.Error as e:
            raise StorageError(
                f"Failed to store liquidation {record.transaction_hash}#{record.log_index}: {e}"
            ) from e

        if cursor.rowcount == 0:
            logger.debug(
                "Duplicate liquidation %s#%s ignored",
                record.transaction_hash,
                record.log_index,
            )
            return StoreResult.DUPLICATE_IGNORED
        return StoreResult.STORED

    def get(self, transaction_hash: str, log_index: int) -> LiquidationRecord | None:
        with self._lock:
            row = self._conn.execute(
                "SELECT * FROM liquidation_events "
                "WHERE transaction_hash = ? AND log_index = ?",
                (transaction_hash.lower(), log_index),
            ).fetchone()
        return _record(row) if row else None

    def count(self) -> int:
        with self._lock:
            (n,) = self._conn.execute(
                "SELECT COUNT(*) FROM liquidation_events"
            ).fetchone()
        return int(n)

    def health_check(self) -> bool:
        try:
            with self._lock:
                self._conn.execute("SELECT 1").fetchone()
            return True
        except sqlite3.Error as e:
            logger.error("Database health check failed: %s", e)
            return False
