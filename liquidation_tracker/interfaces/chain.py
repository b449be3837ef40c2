"""Chain client protocol — blockchain RPC abstraction."""
from typing import Protocol


class ChainClient(Protocol):
    """Abstract interface for EVM read calls."""

    async def eth_call(
        self, to: str, data: bytes, block_number: int | None = None
    ) -> bytes: ...

    async def get_block_number(self) -> int: ...
