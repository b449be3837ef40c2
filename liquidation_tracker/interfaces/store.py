"""Liquidation store protocol — idempotent persistence."""
from typing import Protocol

from ..models import LiquidationRecord, StoreResult


class LiquidationStore(Protocol):
    """Insert-once storage keyed by ``(transaction_hash, log_index)``.

    ``store`` returns ``DUPLICATE_IGNORED`` for a redelivered event and raises
    ``StorageError`` for any other failure.
    """

    def store(self, record: LiquidationRecord) -> StoreResult: ...
