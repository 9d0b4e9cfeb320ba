#!/usr/bin/env python3
"""Shared fixtures for the Checkpoint Monitor tests."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from hexbytes import HexBytes

from checkpoint_monitor.config import (
    ChainConfig,
    ChainContracts,
    DirectionSupport,
    LayerConfig,
    MonitoringConfig,
)
from checkpoint_monitor.models import ChainFamily

L1_CONTRACT = "0x53789e39E3310737E8C8cED483032AAc25B39ded"
L2_CONTRACT = "0x1670010000000000000000000000000000000005"
BROADCASTER = "0x6BdBb69660E6849b98e8C524d266a0005D3655F7"


def hash_for(number: int, prefix: str = "aa") -> str:
    """Deterministic 32-byte hex value for a block number."""
    return "0x" + prefix + f"{number:062x}"


def make_chain_config(
    family: ChainFamily = ChainFamily.SINGLE_EVENT_ANCHOR,
    chain_id: str = "taiko",
    directions: DirectionSupport | None = None,
    supports_proof_generation: bool = True,
    broadcaster: str | None = BROADCASTER,
) -> ChainConfig:
    return ChainConfig(
        id=chain_id,
        name=f"{chain_id.capitalize()} (Testnet)",
        short_name=chain_id.capitalize(),
        family=family,
        directions=directions or DirectionSupport(),
        supports_proof_generation=supports_proof_generation,
        contracts=ChainContracts(
            l1=LayerConfig(
                address=L1_CONTRACT,
                rpc="https://l1.test.rpc",
                chain_id=32382,
                explorer_url="https://l1.test.explorer",
                broadcaster=broadcaster,
                checkpoints_slot=254,
            ),
            l2=LayerConfig(
                address=L2_CONTRACT,
                rpc="https://l2.test.rpc",
                chain_id=167001,
                explorer_url="https://l2.test.explorer",
                broadcaster=broadcaster,
                checkpoints_slot=254,
            ),
        ),
    )


def make_block(number: int, timestamp: int = 1700000000) -> dict:
    return {
        "number": number,
        "hash": HexBytes(hash_for(number, "bb")),
        "stateRoot": HexBytes(hash_for(number, "cc")),
        "timestamp": timestamp + number,
    }


@pytest.fixture
def monitoring():
    """Monitoring settings with the default windows."""
    return MonitoringConfig()


@pytest.fixture
def mock_l1_client():
    """Create a mock L1 ChainClient."""
    client = MagicMock()
    client.get_block_number = AsyncMock()
    client.get_block = AsyncMock()
    client.get_logs = AsyncMock(return_value=[])
    return client


@pytest.fixture
def mock_l2_client():
    """Create a mock L2 ChainClient."""
    client = MagicMock()
    client.get_block_number = AsyncMock()
    client.get_block = AsyncMock()
    client.get_logs = AsyncMock(return_value=[])
    return client
