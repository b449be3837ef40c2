"""Pure parsing helpers shared by protocol adapters — no I/O."""
from __future__ import annotations

from typing import Any

from ..errors import EventParseError


def to_int(value: Any, field: str) -> int:
    """Parse a non-negative integer that may arrive as int or as a decimal/hex string.

    Examples:
        1500 → 1500
        "1500" → 1500
        "0x5dc" → 1500
    """
    if isinstance(value, bool):
        raise EventParseError(f"Field '{field}' is not an integer: {value!r}")
    parsed: int | None = None
    if isinstance(value, int):
        parsed = value
    elif isinstance(value, str):
        text = value.strip()
        try:
            parsed = int(text, 16) if text.lower().startswith("0x") else int(text)
        except ValueError:
            parsed = None
    if parsed is None:
        raise EventParseError(f"Field '{field}' is not an integer: {value!r}")
    if parsed < 0:
        raise EventParseError(f"Field '{field}' is negative: {value!r}")
    return parsed


def to_address(value: Any, field: str) -> str:
    """Lower-cased 0x-prefixed 20-byte hex address."""
    if not isinstance(value, str):
        raise EventParseError(f"Field '{field}' is not an address: {value!r}")
    text = value.strip().lower()
    if not text.startswith("0x") or len(text) != 42:
        raise EventParseError(f"Field '{field}' is not an address: {value!r}")
    try:
        int(text, 16)
    except ValueError:
        raise EventParseError(f"Field '{field}' is not an address: {value!r}") from None
    return text


def to_bool(value: Any, field: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.lower() in ("true", "false"):
        return value.lower() == "true"
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    raise EventParseError(f"Field '{field}' is not a boolean: {value!r}")


def require(mapping: dict[str, Any], key: str, section: str) -> Any:
    if not isinstance(mapping, dict) or key not in mapping:
        raise EventParseError(f"Missing '{section}.{key}' in event")
    return mapping[key]


def event_position(raw: dict[str, Any]) -> dict[str, Any]:
    """Block, transaction and log identity fields of a raw event."""
    block = raw.get("block", {})
    transaction = raw.get("transaction", {})
    log = raw.get("log", {})

    tx_hash = require(transaction, "hash", "transaction")
    if not isinstance(tx_hash, str) or not tx_hash.startswith("0x"):
        raise EventParseError(f"Invalid transaction hash: {tx_hash!r}")

    return {
        "block_number": to_int(require(block, "number", "block"), "block.number"),
        "block_timestamp": to_int(
            require(block, "timestamp", "block"), "block.timestamp"
        ),
        "transaction_hash": tx_hash.lower(),
        "log_index": to_int(require(log, "logIndex", "log"), "log.logIndex"),
    }
