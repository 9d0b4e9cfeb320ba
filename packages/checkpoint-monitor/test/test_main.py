#!/usr/bin/env python3
"""Tests for the command-line interface."""

import json
import logging
import os
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from checkpoint_monitor.exceptions import StateRootMismatchError
from checkpoint_monitor.main import build_parser, main, run_command
from checkpoint_monitor.models import ChainFamily, ChainStatus, Checkpoint, Direction, NetworkType, ProofResult
from checkpoint_monitor.registry import ChainRegistry

from conftest import make_chain_config


@pytest.fixture
def registry():
    return ChainRegistry({
        NetworkType.TESTNET: {
            "taiko": make_chain_config(ChainFamily.SINGLE_EVENT_ANCHOR, "taiko"),
            "arbitrum": make_chain_config(ChainFamily.DUAL_MECHANISM, "arbitrum"),
        },
    })


@pytest.fixture
def mock_adapter():
    adapter = MagicMock()
    adapter.get_status = AsyncMock()
    adapter.get_checkpoints = AsyncMock(return_value=[])
    adapter.check_proof = AsyncMock()
    return adapter


def output_of(capsys) -> dict:
    return json.loads(capsys.readouterr().out)


class TestParser:
    """Tests for argument validation."""

    def test_defaults(self):
        args = build_parser().parse_args(["checkpoints", "taiko"])

        assert args.network == "testnet"
        assert args.direction == "l2ToL1"
        assert args.limit == 20

    @pytest.mark.parametrize("limit", ["0", "101", "ten"])
    def test_invalid_limit(self, limit):
        """Test that limits outside 1-100 are rejected."""
        with pytest.raises(SystemExit):
            build_parser().parse_args(["checkpoints", "taiko", "--limit", limit])

    def test_invalid_block_number(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["check-proof", "taiko", "--block-number", "-5"])

    def test_invalid_direction(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["status", "taiko", "--direction", "sideways"])


class TestRunCommand:
    """Tests for command dispatch and JSON output."""

    @pytest.mark.asyncio
    async def test_unknown_chain(self, registry, monitoring, capsys):
        args = build_parser().parse_args(["status", "optimism"])

        exit_code = await run_command(args, registry, monitoring)

        assert exit_code == 1
        assert output_of(capsys) == {"error": "Unknown chain: optimism. Supported: taiko, arbitrum"}

    @pytest.mark.asyncio
    async def test_chains(self, registry, monitoring, capsys):
        args = build_parser().parse_args(["chains"])

        assert await run_command(args, registry, monitoring) == 0

        chains = output_of(capsys)["chains"]
        assert [chain["id"] for chain in chains] == ["taiko", "arbitrum"]
        assert chains[1]["family"] == "dual-mechanism"

    @pytest.mark.asyncio
    async def test_status(self, registry, monitoring, mock_adapter, capsys):
        mock_adapter.get_status.return_value = ChainStatus(
            chain_name="Taiko (Testnet)",
            direction=Direction.L1_TO_L2,
            is_connected=True,
            latest_checkpoint=Checkpoint(block_number=90, block_hash="0xabc"),
            total_checkpoints=1,
            contract_address="0x1670010000000000000000000000000000000005",
            current_block=100,
            blocks_behind=10,
        )
        args = build_parser().parse_args(["status", "taiko", "--direction", "l1ToL2"])

        with patch("checkpoint_monitor.main.AdapterFactory") as factory_cls:
            factory_cls.return_value.get_adapter.return_value = mock_adapter
            assert await run_command(args, registry, monitoring) == 0

        mock_adapter.get_status.assert_called_once_with(Direction.L1_TO_L2)
        data = output_of(capsys)
        assert data["blocksBehind"] == 10
        assert data["latestCheckpoint"]["blockNumber"] == 90

    @pytest.mark.asyncio
    async def test_checkpoints(self, registry, monitoring, mock_adapter, capsys):
        mock_adapter.get_checkpoints.return_value = [
            Checkpoint(block_number=90, block_hash="0xabc"),
            Checkpoint(block_number=80, block_hash="0xdef"),
        ]
        args = build_parser().parse_args(["checkpoints", "taiko", "--limit", "2"])

        with patch("checkpoint_monitor.main.AdapterFactory") as factory_cls:
            factory_cls.return_value.get_adapter.return_value = mock_adapter
            await run_command(args, registry, monitoring)

        mock_adapter.get_checkpoints.assert_called_once_with(Direction.L2_TO_L1, 2)
        data = output_of(capsys)
        assert data["count"] == 2
        assert data["checkpoints"][1] == {"blockNumber": 80, "blockHash": "0xdef"}

    @pytest.mark.asyncio
    async def test_check_proof(self, registry, monitoring, mock_adapter, capsys):
        mock_adapter.check_proof.return_value = ProofResult(
            exists=False, block_number=85, error="Block not checkpointed. Next available: 90", next_available=90
        )
        args = build_parser().parse_args(["check-proof", "taiko", "--block-number", "85"])

        with patch("checkpoint_monitor.main.AdapterFactory") as factory_cls:
            factory_cls.return_value.get_adapter.return_value = mock_adapter
            await run_command(args, registry, monitoring)

        data = output_of(capsys)
        assert data["chain"] == "taiko"
        assert data["exists"] is False
        assert data["nextAvailable"] == 90

    @pytest.mark.asyncio
    async def test_generate_proof_mismatch(self, registry, monitoring, capsys):
        """Test that a state root mismatch is reported distinctly."""
        args = build_parser().parse_args(["generate-proof", "taiko", "--block-number", "1000"])

        with patch("checkpoint_monitor.main.ProofGenerator") as generator_cls:
            generator_cls.return_value.generate = AsyncMock(side_effect=StateRootMismatchError("root changed"))
            exit_code = await run_command(args, registry, monitoring)

        assert exit_code == 1
        assert output_of(capsys) == {"error": "State root verification failed", "details": "root changed"}


class TestMain:
    """Tests for startup: environment loading, configuration and logging."""

    @pytest.fixture
    def mock_run_command(self):
        with patch("checkpoint_monitor.main.run_command", new_callable=AsyncMock, return_value=0) as mock:
            yield mock

    @pytest.mark.asyncio
    async def test_dotenv_log_level(self, mock_run_command):
        """Test that LOG_LEVEL from a .env file sets the default log level."""
        def load_env_file():
            os.environ["LOG_LEVEL"] = "DEBUG"

        with patch.dict(os.environ, {}, clear=True), \
                patch("checkpoint_monitor.main.load_dotenv", side_effect=load_env_file), \
                patch("checkpoint_monitor.main.setup_logging") as mock_setup_logging:
            assert await main(["chains"]) == 0

        mock_setup_logging.assert_called_once_with("DEBUG")

    @pytest.mark.asyncio
    async def test_logs_monitoring_settings(self, mock_run_command, caplog):
        with patch.dict(os.environ, {"REQUEST_TIMEOUT": "12"}, clear=True), \
                patch("checkpoint_monitor.main.load_dotenv"), \
                patch("checkpoint_monitor.main.setup_logging"), \
                caplog.at_level(logging.INFO):
            await main(["chains"])

        assert "Monitoring Settings" in caplog.text
        assert "Request Timeout: 12 seconds" in caplog.text

    @pytest.mark.asyncio
    async def test_only_selected_network_validated(self, mock_run_command):
        """Test that a bad mainnet override does not block testnet commands."""
        env = {"TAIKO_MAINNET_L1_SIGNAL_SERVICE": "not-an-address"}
        with patch.dict(os.environ, env, clear=True), \
                patch("checkpoint_monitor.main.load_dotenv"), \
                patch("checkpoint_monitor.main.setup_logging"):
            assert await main(["--network", "testnet", "status", "taiko"]) == 0
            assert await main(["--network", "mainnet", "status", "taiko"]) == 1

        registry = mock_run_command.call_args.args[1]
        assert registry.supported(NetworkType.TESTNET, "taiko")
        mock_run_command.assert_called_once()
