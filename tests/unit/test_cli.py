"""Unit tests for CLI parsing, event file reading and the prices/healthcheck commands."""
from __future__ import annotations

import argparse
import json
from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest
from conftest import CBBTC, USDC, WETH, make_aave_event

from liquidation_tracker.cli import (
    _healthcheck,
    _prices,
    _replay,
    build_parser,
    read_events,
)
from liquidation_tracker.services import PriceResolver


class TestBuildParser:
    def test_replay_command(self) -> None:
        parser = build_parser()
        args = parser.parse_args(["replay", "events.jsonl"])
        assert args.command == "replay"
        assert args.file == Path("events.jsonl")
        assert args.concurrency == 8

    def test_replay_concurrency(self) -> None:
        parser = build_parser()
        args = parser.parse_args(["replay", "events.jsonl", "--concurrency", "2"])
        assert args.concurrency == 2

    def test_prices_command(self) -> None:
        parser = build_parser()
        assert parser.parse_args(["prices"]).command == "prices"

    def test_healthcheck_command(self) -> None:
        parser = build_parser()
        assert parser.parse_args(["healthcheck"]).command == "healthcheck"

    def test_config_flag(self) -> None:
        parser = build_parser()
        args = parser.parse_args(["--config", "/tmp/c.yaml", "prices"])
        assert args.config == "/tmp/c.yaml"

    def test_log_level_flag(self) -> None:
        parser = build_parser()
        args = parser.parse_args(["--log-level", "DEBUG", "prices"])
        assert args.log_level == "DEBUG"

    def test_invalid_log_level(self) -> None:
        parser = build_parser()
        with pytest.raises(SystemExit):
            parser.parse_args(["--log-level", "TRACE", "prices"])

    def test_no_command(self) -> None:
        parser = build_parser()
        args = parser.parse_args([])
        assert args.command is None


class TestReadEvents:
    def test_yields_name_and_event(self, tmp_path: Path, sink) -> None:
        path = tmp_path / "events.jsonl"
        event = make_aave_event()
        path.write_text(
            json.dumps({"name": "Aave:LiquidationCall", "event": event}) + "\n\n"
        )
        assert list(read_events(path, sink)) == [("Aave:LiquidationCall", event)]

    def test_malformed_lines_are_logged_and_skipped(self, tmp_path: Path, sink) -> None:
        path = tmp_path / "events.jsonl"
        path.write_text(
            "\n".join(
                [
                    "not json",
                    json.dumps({"event": {}}),
                    json.dumps({"name": "Aave:LiquidationCall", "event": [1, 2]}),
                    json.dumps({"name": "Aave:LiquidationCall", "event": {"args": {}}}),
                ]
            )
        )
        events = list(read_events(path, sink))
        sink.close()

        assert events == [("Aave:LiquidationCall", {"args": {}})]
        errors = (sink.log_dir / "errors.log").read_text(encoding="utf-8")
        assert errors.count("ERROR: Malformed event") == 3
        assert "line 1" in errors and "line 3" in errors


class TestCommands:
    @pytest.mark.asyncio
    async def test_prices_writes_snapshot(
        self, sample_app_config, fake_oracle_factory, capsys
    ) -> None:
        oracle = fake_oracle_factory(
            {WETH: 300_000_000_000, USDC: 100_000_000, CBBTC: 9_700_000_000_000}
        )
        resolver = PriceResolver(oracle, {"EURC": 1.1})
        with patch("liquidation_tracker.cli.build_resolver", return_value=resolver):
            code = await _prices(sample_app_config)

        assert code == 0
        out = capsys.readouterr().out
        assert "WETH: $3,000.0000 (oracle-batch)" in out
        assert "EURC: $1.1000 (fallback)" in out
        snapshot = Path(sample_app_config.logging.log_dir) / "prices.log"
        assert "cbBTC" in snapshot.read_text(encoding="utf-8")

    @pytest.mark.asyncio
    async def test_prices_unresolved_exit_code(
        self, sample_app_config, fake_oracle_factory
    ) -> None:
        resolver = PriceResolver(fake_oracle_factory({WETH: 1}), {})
        with patch("liquidation_tracker.cli.build_resolver", return_value=resolver):
            assert await _prices(sample_app_config) == 1

    @pytest.mark.asyncio
    async def test_healthcheck(self, sample_app_config, capsys) -> None:
        client = AsyncMock()
        client.get_chain_id = AsyncMock(return_value=8453)
        client.get_block_number = AsyncMock(return_value=28_300_000)
        with patch("liquidation_tracker.cli.build_clients", return_value={"base": client}):
            assert await _healthcheck(sample_app_config) == 0
        assert capsys.readouterr().out.strip() == "healthy"

    @pytest.mark.asyncio
    async def test_healthcheck_rpc_down(self, sample_app_config, capsys) -> None:
        client = AsyncMock()
        client.get_chain_id = AsyncMock(return_value=8453)
        client.get_block_number = AsyncMock(
            side_effect=RuntimeError("All RPC endpoints failed")
        )
        with patch("liquidation_tracker.cli.build_clients", return_value={"base": client}):
            assert await _healthcheck(sample_app_config) == 1
        assert capsys.readouterr().out.strip() == "unhealthy"

    @pytest.mark.asyncio
    async def test_healthcheck_wrong_chain(self, sample_app_config, capsys) -> None:
        client = AsyncMock()
        client.get_chain_id = AsyncMock(return_value=1)
        client.get_block_number = AsyncMock(return_value=21_000_000)
        with patch("liquidation_tracker.cli.build_clients", return_value={"base": client}):
            assert await _healthcheck(sample_app_config) == 1
        assert capsys.readouterr().out.strip() == "unhealthy"

    @pytest.mark.asyncio
    async def test_replay_missing_file(self, sample_app_config, tmp_path: Path) -> None:
        args = argparse.Namespace(file=tmp_path / "missing.jsonl", concurrency=2)
        assert await _replay(sample_app_config, args) == 1

        errors = Path(sample_app_config.logging.log_dir) / "errors.log"
        assert "Cannot read event file" in errors.read_text(encoding="utf-8")

    @pytest.mark.asyncio
    async def test_replay_empty_file(self, sample_app_config, tmp_path: Path, capsys) -> None:
        events = tmp_path / "events.jsonl"
        events.write_text("")
        args = argparse.Namespace(file=events, concurrency=2)
        assert await _replay(sample_app_config, args) == 0
        assert capsys.readouterr().out == ""
