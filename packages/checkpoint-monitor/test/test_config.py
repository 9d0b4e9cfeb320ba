#!/usr/bin/env python3
"""Tests for the configuration module."""

import logging
import os
from unittest.mock import patch

import pytest

from checkpoint_monitor.config import (
    ChainConfig,
    ChainContracts,
    DirectionSupport,
    LayerConfig,
    MonitoringConfig,
    load_chain_configs,
)
from checkpoint_monitor.models import ChainFamily, Direction, NetworkType

from conftest import make_chain_config


def make_layer(**overrides) -> LayerConfig:
    values = {
        "address": "0x85BfE05492aFC3D04Ff3B2ca6771ACF6f853d90d",
        "rpc": "https://test.rpc",
        "chain_id": 1,
        "explorer_url": "https://etherscan.io",
    }
    values.update(overrides)
    return LayerConfig(**values)


class TestLayerConfig:
    """Tests for LayerConfig."""

    def test_checksum_address_conversion(self):
        """Test that addresses are converted to checksum format."""
        layer = make_layer(address="0x85bfe05492afc3d04ff3b2ca6771acf6f853d90d")

        assert layer.address == "0x85BfE05492aFC3D04Ff3B2ca6771ACF6f853d90d"

    def test_broadcaster_checksummed(self):
        layer = make_layer(broadcaster="0x85bfe05492afc3d04ff3b2ca6771acf6f853d90d")

        assert layer.broadcaster == "0x85BfE05492aFC3D04Ff3B2ca6771ACF6f853d90d"

    def test_empty_broadcaster_is_none(self):
        """Test that an empty broadcaster override means 'not configured'."""
        assert make_layer(broadcaster="").broadcaster is None

    def test_invalid_rpc_url_scheme(self):
        """Test that non-HTTP RPC URL schemes are rejected."""
        with pytest.raises(ValueError, match="Invalid RPC URL scheme"):
            make_layer(rpc="wss://ethereum.publicnode.com")

    def test_missing_rpc_url(self):
        with pytest.raises(ValueError, match="RPC URL is required"):
            make_layer(rpc="")

    def test_invalid_contract_address(self):
        """Test that invalid contract address raises an error."""
        with pytest.raises(ValueError, match="Invalid contract address"):
            make_layer(address="invalid-address")

    def test_missing_contract_address(self):
        with pytest.raises(ValueError, match="contract address is required"):
            make_layer(address="")

    def test_non_positive_chain_id(self):
        with pytest.raises(ValueError, match="Chain ID must be positive"):
            make_layer(chain_id=0)

    def test_negative_slot(self):
        with pytest.raises(ValueError, match="Checkpoints slot must be non-negative"):
            make_layer(checkpoints_slot=-1)


class TestChainConfig:
    """Tests for ChainConfig."""

    def test_layers_per_direction(self):
        """Test that source and target layers follow the direction."""
        config = make_chain_config()

        assert config.source_layer(Direction.L1_TO_L2) is config.contracts.l1
        assert config.target_layer(Direction.L1_TO_L2) is config.contracts.l2
        assert config.source_layer(Direction.L2_TO_L1) is config.contracts.l2
        assert config.target_layer(Direction.L2_TO_L1) is config.contracts.l1

    def test_requires_a_direction(self):
        """Test that a chain supporting no direction is rejected."""
        with pytest.raises(ValueError, match="must support at least one direction"):
            ChainConfig(
                id="none",
                name="None",
                short_name="None",
                family=ChainFamily.SINGLE_EVENT_ANCHOR,
                directions=DirectionSupport(l1_to_l2=False, l2_to_l1=False),
                contracts=ChainContracts(l1=make_layer(), l2=make_layer()),
            )

    def test_direction_support(self):
        support = DirectionSupport(l1_to_l2=False, l2_to_l1=True)

        assert not support.supports(Direction.L1_TO_L2)
        assert support.supports(Direction.L2_TO_L1)


class TestMonitoringConfig:
    """Tests for MonitoringConfig."""

    def test_defaults(self):
        """Test default windows."""
        config = MonitoringConfig()

        assert config.request_timeout == 30
        assert config.checkpoint_lookback_blocks == 10000
        assert config.confirmation_lookback_blocks == 900
        assert config.accessibility_window == 256
        assert config.proof_scan_limit == 50

    def test_timeout_too_long(self):
        with pytest.raises(ValueError, match="Request timeout too long"):
            MonitoringConfig(request_timeout=121)

    def test_lookback_too_high(self):
        with pytest.raises(ValueError, match="checkpoint_lookback_blocks too high"):
            MonitoringConfig(checkpoint_lookback_blocks=100001)

    def test_invalid_window(self):
        with pytest.raises(ValueError, match="Accessibility window must be positive"):
            MonitoringConfig(accessibility_window=0)

    def test_from_env(self):
        """Test loading monitoring settings from environment."""
        env = {
            "REQUEST_TIMEOUT": "10",
            "CHECKPOINT_LOOKBACK_BLOCKS": "5000",
            "CONFIRMATION_LOOKBACK_BLOCKS": "500",
            "ACCESSIBILITY_WINDOW": "128",
            "PROOF_SCAN_LIMIT": "25",
        }
        with patch.dict(os.environ, env, clear=True):
            config = MonitoringConfig.from_env()

        assert config.request_timeout == 10
        assert config.checkpoint_lookback_blocks == 5000
        assert config.confirmation_lookback_blocks == 500
        assert config.accessibility_window == 128
        assert config.proof_scan_limit == 25

    def test_from_env_invalid_integer(self):
        with patch.dict(os.environ, {"REQUEST_TIMEOUT": "soon"}, clear=True):
            with pytest.raises(ValueError):
                MonitoringConfig.from_env()

    def test_log_config(self, caplog):
        """Test monitoring settings logging."""
        config = MonitoringConfig(request_timeout=15, accessibility_window=128)

        with caplog.at_level(logging.INFO):
            config.log_config()

        log_text = caplog.text
        assert "Monitoring Settings" in log_text
        assert "Request Timeout: 15 seconds" in log_text
        assert "Accessibility Window: 128 blocks" in log_text


class TestLoadChainConfigs:
    """Tests for the per-network chain tables."""

    def test_testnet_defaults(self):
        """Test the testnet table with no overrides."""
        with patch.dict(os.environ, {}, clear=True):
            configs = load_chain_configs(NetworkType.TESTNET)

        assert list(configs) == ["taiko", "arbitrum"]
        taiko = configs["taiko"]
        arbitrum = configs["arbitrum"]

        assert taiko.family is ChainFamily.SINGLE_EVENT_ANCHOR
        assert taiko.supports_proof_generation
        assert taiko.contracts.l1.checkpoints_slot == 254
        assert taiko.contracts.l2.broadcaster is not None

        assert arbitrum.family is ChainFamily.DUAL_MECHANISM
        assert not arbitrum.supports_proof_generation
        assert arbitrum.contracts.l2.address == "0x0000000000000000000000000000000000000064"
        assert arbitrum.contracts.l1.chain_id == 11155111

    def test_mainnet_defaults(self):
        """Test that mainnet has no broadcaster unless configured."""
        with patch.dict(os.environ, {}, clear=True):
            configs = load_chain_configs(NetworkType.MAINNET)

        assert configs["taiko"].contracts.l2.chain_id == 167000
        assert configs["taiko"].contracts.l1.broadcaster is None
        assert configs["arbitrum"].contracts.l2.chain_id == 42161

    def test_rpc_override(self):
        """Test that environment variables override endpoints."""
        env = {"TAIKO_TESTNET_L1_RPC": "https://custom.l1.rpc"}
        with patch.dict(os.environ, env, clear=True):
            configs = load_chain_configs(NetworkType.TESTNET)

        assert configs["taiko"].contracts.l1.rpc == "https://custom.l1.rpc"

    def test_legacy_variable_name(self):
        """Test that the un-networked variable name is honoured as a fallback."""
        env = {"TAIKO_L2_RPC": "https://legacy.l2.rpc"}
        with patch.dict(os.environ, env, clear=True):
            configs = load_chain_configs(NetworkType.TESTNET)

        assert configs["taiko"].contracts.l2.rpc == "https://legacy.l2.rpc"

    def test_invalid_override(self):
        env = {"ARBITRUM_SEPOLIA_L1_OUTBOX": "not-an-address"}
        with patch.dict(os.environ, env, clear=True):
            with pytest.raises(ValueError, match="Invalid contract address"):
                load_chain_configs(NetworkType.TESTNET)
