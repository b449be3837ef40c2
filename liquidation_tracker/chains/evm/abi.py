"""ABI helpers for view calls: selector plus encoded args, and decoded outputs."""
from __future__ import annotations

from typing import Any

from eth_abi import decode, encode
from eth_utils import function_signature_to_4byte_selector, to_checksum_address


def encode_call(signature: str, arg_types: list[str], args: list[Any]) -> bytes:
    """Build calldata for ``signature``, e.g. ``getAssetPrice(address)``."""
    selector = function_signature_to_4byte_selector(signature)
    return selector + encode(arg_types, args)


def decode_output(output_types: list[str], data: bytes) -> tuple[Any, ...]:
    """Decode return data; an empty payload (e.g. no contract) raises ValueError."""
    if not data:
        raise ValueError("Empty return data")
    return decode(output_types, data)


def checksum(address: str) -> str:
    return to_checksum_address(address)
