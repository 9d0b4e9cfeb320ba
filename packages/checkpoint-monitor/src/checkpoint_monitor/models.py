#!/usr/bin/env python3
"""Data models for the Checkpoint Monitor.

This module provides the immutable value objects returned by the chain
adapters: checkpoints, chain status snapshots and proof lookups. All of them
are rebuilt on every call and serialize to the camelCase JSON shape used by
the HTTP API.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any


class NetworkType(str, Enum):
    """Which configuration table partition is active."""
    MAINNET = "mainnet"
    TESTNET = "testnet"


class Direction(str, Enum):
    """Which layer's state is being proven on which other layer.

    ``L1_TO_L2`` proves L1 state on L2, ``L2_TO_L1`` proves L2 state on L1.
    """
    L1_TO_L2 = "l1ToL2"
    L2_TO_L1 = "l2ToL1"

    @property
    def source_layer(self) -> str:
        """Layer whose blocks are being committed."""
        return "l1" if self is Direction.L1_TO_L2 else "l2"

    @property
    def target_layer(self) -> str:
        """Layer on which the commitment is verified."""
        return "l2" if self is Direction.L1_TO_L2 else "l1"


class ChainFamily(str, Enum):
    """Anchoring mechanism implemented by a chain pair."""
    SINGLE_EVENT_ANCHOR = "single-event-anchor"
    DUAL_MECHANISM = "dual-mechanism"


@dataclass(frozen=True, slots=True)
class Checkpoint:
    """One anchored commitment of a source-chain block.
    
    Attributes:
        block_number: Source-chain block the commitment covers
        block_hash: Hash of that block (with 0x prefix)
        state_root: State root of the block, when the anchor carries it
        send_root: Output/send root, for chains that commit one instead
        timestamp: Anchor time in milliseconds since epoch, if resolved
        tx_hash: Anchoring transaction on the target chain, if any
    """
    
    block_number: int
    block_hash: str
    state_root: str | None = None
    send_root: str | None = None
    timestamp: int | None = None
    tx_hash: str | None = None
    
    def __str__(self) -> str:
        """Human-readable string representation."""
        return (
            f"Checkpoint(block={self.block_number}, "
            f"hash={self.block_hash[:10]}...)"
        )
    
    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        data: dict[str, Any] = {
            "blockNumber": self.block_number,
            "blockHash": self.block_hash,
        }
        if self.state_root is not None:
            data["stateRoot"] = self.state_root
        if self.send_root is not None:
            data["sendRoot"] = self.send_root
        if self.timestamp is not None:
            data["timestamp"] = self.timestamp
        if self.tx_hash is not None:
            data["txHash"] = self.tx_hash
        return data


@dataclass(frozen=True, slots=True)
class ChainStatus:
    """Snapshot of the anchoring state for one chain and direction.
    
    ``blocks_behind`` is None when no checkpoint was found, so callers can
    tell "no data" apart from "fully synced".
    """
    
    chain_name: str
    direction: Direction
    is_connected: bool
    latest_checkpoint: Checkpoint | None
    total_checkpoints: int
    contract_address: str
    current_block: int | None = None
    blocks_behind: int | None = None
    error: str | None = None
    
    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        data: dict[str, Any] = {
            "chainName": self.chain_name,
            "direction": self.direction.value,
            "isConnected": self.is_connected,
            "latestCheckpoint": (
                self.latest_checkpoint.to_dict() if self.latest_checkpoint else None
            ),
            "totalCheckpoints": self.total_checkpoints,
            "contractAddress": self.contract_address,
        }
        if self.current_block is not None:
            data["currentBlock"] = self.current_block
        if self.blocks_behind is not None:
            data["blocksBehind"] = self.blocks_behind
        if self.error is not None:
            data["error"] = self.error
        return data


@dataclass(frozen=True, slots=True)
class ProofResult:
    """Answer to "is this block provable on the target chain right now".
    
    Attributes:
        exists: Whether a usable commitment for the block exists
        block_number: The queried block number
        block_hash: Hash of the committed block when exists is True
        state_root: State root of the committed block, if known
        send_root: Output/send root of the committed block, if known
        error: Human-readable reason when exists is False
        next_available: Smallest checkpointed block above the queried one
    """
    
    exists: bool
    block_number: int
    block_hash: str | None = None
    state_root: str | None = None
    send_root: str | None = None
    error: str | None = None
    next_available: int | None = None
    
    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        data: dict[str, Any] = {
            "exists": self.exists,
            "blockNumber": self.block_number,
        }
        for key, value in (
            ("blockHash", self.block_hash),
            ("stateRoot", self.state_root),
            ("sendRoot", self.send_root),
            ("error", self.error),
            ("nextAvailable", self.next_available),
        ):
            if value is not None:
                data[key] = value
        return data
