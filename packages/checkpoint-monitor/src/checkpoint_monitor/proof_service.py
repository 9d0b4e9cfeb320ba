#!/usr/bin/env python3
"""Storage proof generation for checkpointed blocks.

This module resolves which layer, account and storage slot a proof request
refers to and delegates the actual proof work to a storage-proof
collaborator. Block-hash and state-root mismatches reported by the
collaborator are passed through as their own exception types; everything
else is wrapped in ProofGenerationError.
"""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from .config import DEFAULT_CHECKPOINTS_SLOT, MonitoringConfig
from .exceptions import (
    BlockHashMismatchError,
    ProofGenerationError,
    ProofRequestError,
    StateRootMismatchError,
)
from .models import Direction, NetworkType
from .registry import ChainRegistry
from .storage_proof import StorageProof, StorageProofRequest, generate_storage_proof

logger = logging.getLogger(__name__)

StorageProofGenerator = Callable[..., Awaitable[StorageProof]]


def parse_storage_slot(value: int | str) -> int:
    """
    Parse a storage slot given as an int, decimal string or 0x-hex string.

    Raises:
        ProofRequestError: If the value is not a non-negative integer
    """
    try:
        if isinstance(value, int):
            slot = value
        elif value.lower().startswith("0x"):
            slot = int(value, 16)
        else:
            slot = int(value)
    except (AttributeError, ValueError):
        raise ProofRequestError(f"Invalid storage slot: {value}") from None

    if slot < 0:
        raise ProofRequestError(f"Invalid storage slot: {value}")
    return slot


@dataclass(frozen=True, slots=True)
class GeneratedProof:
    """A storage proof together with the context it was generated for."""
    proof: StorageProof
    chain: str
    network: NetworkType
    direction: Direction
    source_chain_id: int
    generated_at: datetime

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "success": True,
            "proof": self.proof.to_dict(),
            "metadata": {
                "chain": self.chain,
                "network": self.network.value,
                "direction": self.direction.value,
                "sourceChainId": self.source_chain_id,
                "generatedAt": self.generated_at.isoformat(),
            },
        }


class ProofGenerator:
    """Generates storage proofs of a chain's broadcaster account."""

    def __init__(
        self,
        registry: ChainRegistry,
        generate: StorageProofGenerator = generate_storage_proof,
        monitoring: MonitoringConfig | None = None,
    ) -> None:
        """
        Initialize the ProofGenerator.

        Args:
            registry: Source of chain configurations
            generate: Storage-proof collaborator
            monitoring: Provides the per-read timeout
        """
        self.registry = registry
        self.generate_storage_proof = generate
        self.monitoring = monitoring or MonitoringConfig()

    def build_request(
        self,
        chain_id: str,
        network: NetworkType,
        direction: Direction,
        block_number: int,
        storage_slot: int | str | None = None,
    ) -> tuple[StorageProofRequest, int]:
        """
        Resolve the proof request for a chain and direction.

        l1ToL2 proves L1 state, so the L1 broadcaster is proven on L1;
        l2ToL1 proves the L2 broadcaster on L2.

        Returns:
            The collaborator request and the source chain id

        Raises:
            ProofRequestError: If the chain, its proof support or its
                broadcaster is not configured, or the inputs are invalid
        """
        config = self.registry.lookup(network, chain_id)
        if config is None:
            supported = ", ".join(self.registry.list_chains(network))
            raise ProofRequestError(f"Unknown chain: {chain_id}. Supported: {supported}")

        if not config.supports_proof_generation:
            raise ProofRequestError(f"Chain {chain_id} does not support proof generation")

        if block_number < 0:
            raise ProofRequestError(f"Invalid block number: {block_number}")

        source = config.source_layer(direction)
        if not source.broadcaster:
            raise ProofRequestError(
                f"Broadcaster address not configured for {chain_id} {network.value} "
                f"{direction.source_layer.upper()}"
            )

        if storage_slot is not None:
            slot = parse_storage_slot(storage_slot)
        elif source.checkpoints_slot is not None:
            slot = source.checkpoints_slot
        else:
            slot = DEFAULT_CHECKPOINTS_SLOT

        request = StorageProofRequest(
            rpc=source.rpc,
            account=source.broadcaster,
            slot=slot,
            block_number=block_number,
        )
        return request, source.chain_id

    async def generate(
        self,
        chain_id: str,
        network: NetworkType,
        direction: Direction,
        block_number: int,
        storage_slot: int | str | None = None,
    ) -> GeneratedProof:
        """
        Generate a storage proof for a block.

        Raises:
            ProofRequestError: If the request cannot be served
            BlockHashMismatchError: If the block changed since it was read
            StateRootMismatchError: If the state no longer matches the block
            ProofGenerationError: For any other failure
        """
        request, source_chain_id = self.build_request(
            chain_id, network, direction, block_number, storage_slot
        )

        logger.info(f"[generate-proof] Generating proof for {chain_id} ({network.value})")
        logger.info(f"[generate-proof] Direction: {direction.value}")
        logger.info(f"[generate-proof] Block: {block_number}")
        logger.info(f"[generate-proof] Account: {request.account}")
        logger.info(f"[generate-proof] Slot: {request.slot}")

        try:
            proof = await self.generate_storage_proof(request, timeout=self.monitoring.request_timeout)
        except (BlockHashMismatchError, StateRootMismatchError) as e:
            logger.error(f"[generate-proof] {type(e).__name__}: {e}")
            raise
        except Exception as e:
            logger.error(f"[generate-proof] Error: {e}", exc_info=True)
            raise ProofGenerationError(f"Failed to generate proof: {e}") from e

        logger.info(f"[generate-proof] Proof generated successfully, block hash: {proof.block_hash}")

        return GeneratedProof(
            proof=proof,
            chain=chain_id,
            network=network,
            direction=direction,
            source_chain_id=source_chain_id,
            generated_at=datetime.now(timezone.utc),
        )
