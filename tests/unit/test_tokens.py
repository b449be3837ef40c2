"""Unit tests for the token registry."""
from __future__ import annotations

import pytest
from conftest import UNKNOWN, USDC, WETH

from liquidation_tracker.config import TokenConfig
from liquidation_tracker.tokens import DEFAULT_TOKENS, TokenRegistry


class TestResolve:
    def test_exact_address(self, registry: TokenRegistry) -> None:
        token = registry.resolve(USDC)
        assert token is not None
        assert token.symbol == "USDC"
        assert token.decimals == 6

    def test_case_insensitive(self, registry: TokenRegistry) -> None:
        assert registry.resolve(USDC.lower()) == registry.resolve(USDC.upper().replace("0X", "0x"))

    def test_keeps_original_address_case(self, registry: TokenRegistry) -> None:
        assert registry.resolve(USDC.lower()).address == USDC

    def test_unknown_returns_none(self, registry: TokenRegistry) -> None:
        assert registry.resolve(UNKNOWN) is None


class TestResolveBySymbol:
    def test_exact_symbol(self, registry: TokenRegistry) -> None:
        assert registry.resolve_by_symbol("WETH").address == WETH

    def test_case_insensitive_fallback(self, registry: TokenRegistry) -> None:
        assert registry.resolve_by_symbol("cbbtc").symbol == "cbBTC"

    def test_exact_match_preferred(self) -> None:
        reg = TokenRegistry(
            (
                TokenConfig("0x" + "1" * 40, "usdc", 6),
                TokenConfig("0x" + "2" * 40, "USDC", 6),
            )
        )
        assert reg.resolve_by_symbol("USDC").address == "0x" + "2" * 40

    def test_unknown_symbol(self, registry: TokenRegistry) -> None:
        assert registry.resolve_by_symbol("DOGE") is None


class TestConstruction:
    def test_default_token_list(self) -> None:
        reg = TokenRegistry()
        assert len(reg) == len(DEFAULT_TOKENS) == 12
        assert reg.resolve(WETH).decimals == 18
        assert reg.resolve_by_symbol("cbBTC").decimals == 8
        assert reg.resolve_by_symbol("EURC").decimals == 6

    def test_duplicate_address_raises(self) -> None:
        with pytest.raises(ValueError, match="Duplicate token address"):
            TokenRegistry(
                (TokenConfig(WETH, "WETH", 18), TokenConfig(WETH.lower(), "WETH2", 18))
            )

    def test_iterates_descriptors(self, registry: TokenRegistry) -> None:
        assert {t.symbol for t in registry} == {"WETH", "USDC", "cbBTC", "EURC"}
