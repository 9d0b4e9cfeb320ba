"""
Dual-mechanism chain adapter.

For chains that prove each direction differently, e.g. Arbitrum:

- l2ToL1: L2 blocks are confirmed on L1 by the Outbox, which emits
  ``SendRootUpdated(bytes32 indexed outputRoot, bytes32 indexed l2BlockHash)``.
  The event carries the L2 block hash but not its number, so the number is
  looked up on L2 by hash.
- l1ToL2: there is no anchoring event. L2 can read the hashes of the most
  recent L1 blocks (the accessibility window), so "checkpoints" are simply
  the latest L1 blocks.
"""

import asyncio
import logging
from typing import ClassVar

from web3.types import EventData

from ..client import ChainClient, ChainClientError
from ..config import ChainConfig, MonitoringConfig
from ..models import ChainFamily, Checkpoint, Direction, ProofResult
from ..utils.contract_utility import get_contract_abi
from .base import ChainAdapter, order_checkpoints, to_hex

logger = logging.getLogger(__name__)

SEND_ROOT_UPDATED_EVENT = "SendRootUpdated"


class DualMechanismAdapter(ChainAdapter):
    """Adapter for chains with confirmation events one way and an accessibility window the other."""

    family: ClassVar[ChainFamily] = ChainFamily.DUAL_MECHANISM

    def __init__(self, config: ChainConfig, monitoring: MonitoringConfig | None = None):
        super().__init__(config, monitoring)
        self.abi = get_contract_abi("Outbox")

    async def _fetch_checkpoints(self, direction: Direction, limit: int) -> list[Checkpoint]:
        match direction:
            case Direction.L2_TO_L1:
                return await self._confirmed_checkpoints(limit)
            case Direction.L1_TO_L2:
                return await self._accessible_checkpoints(limit)
            case _:
                raise ValueError(f"Unknown direction: {direction}")

    async def _check_proof(self, direction: Direction, block_number: int) -> ProofResult:
        match direction:
            case Direction.L2_TO_L1:
                checkpoints = await self.get_checkpoints(direction, self.monitoring.proof_scan_limit)
                return self._match_checkpoint(
                    checkpoints,
                    block_number,
                    next_message="Block not confirmed on L1. Next confirmed",
                    missing_message="Block not confirmed on L1 yet.",
                )
            case Direction.L1_TO_L2:
                return await self._check_accessible(block_number)
            case _:
                raise ValueError(f"Unknown direction: {direction}")

    # l2ToL1: Outbox confirmations

    async def _confirmed_checkpoints(self, limit: int) -> list[Checkpoint]:
        l1_client = self.get_l1_client()
        l2_client = self.get_l2_client()
        outbox_address = self.config.contracts.l1.address

        current_block = await l1_client.get_block_number()
        # Public RPCs commonly cap eth_getLogs ranges at ~1k blocks
        from_block = max(0, current_block - self.monitoring.confirmation_lookback_blocks)

        logs = await l1_client.get_logs(
            outbox_address,
            self.abi,
            SEND_ROOT_UPDATED_EVENT,
            from_block,
            current_block,
        )
        logger.debug(
            f"Found {len(logs)} {SEND_ROOT_UPDATED_EVENT} events on {outbox_address} "
            f"in blocks {from_block}-{current_block}"
        )

        recent_logs = logs[-limit * 2:]
        checkpoints = await asyncio.gather(
            *(self._resolve_confirmation(l1_client, l2_client, log) for log in recent_logs)
        )
        return order_checkpoints(checkpoints, limit)

    async def _resolve_confirmation(
        self, l1_client: ChainClient, l2_client: ChainClient, log: EventData
    ) -> Checkpoint | None:
        """Build a checkpoint from a confirmation, or None if the L2 block is unknown."""
        args = log["args"]
        l2_block_hash = to_hex(args["l2BlockHash"])

        timestamp, l2_block_number = await asyncio.gather(
            self._block_timestamp_ms(l1_client, log["blockNumber"]),
            self._block_number_for_hash(l2_client, l2_block_hash),
        )
        if l2_block_number is None:
            logger.warning(f"Could not resolve L2 block number for hash {l2_block_hash}")
            return None

        return Checkpoint(
            block_number=l2_block_number,
            block_hash=l2_block_hash,
            send_root=to_hex(args["outputRoot"]),
            timestamp=timestamp,
            tx_hash=to_hex(log["transactionHash"]),
        )

    async def _block_number_for_hash(self, client: ChainClient, block_hash: str) -> int | None:
        try:
            block = await client.get_block(block_hash)
        except ChainClientError as e:
            logger.debug(f"Block {block_hash} not found: {e}")
            return None
        number = block.get("number")
        return int(number) if number is not None else None

    # l1ToL2: accessibility window

    async def _accessible_checkpoints(self, limit: int) -> list[Checkpoint]:
        l1_client = self.get_l1_client()
        current_block = await l1_client.get_block_number()

        count = min(limit, self.monitoring.max_accessible_checkpoints)
        numbers = [n for n in range(current_block, current_block - count, -1) if n >= 0]
        blocks = await asyncio.gather(
            *(l1_client.get_block(n) for n in numbers),
            return_exceptions=True,
        )

        checkpoints: list[Checkpoint] = []
        for number, block in zip(numbers, blocks):
            # Stop at the first gap so the list stays contiguous
            if isinstance(block, BaseException):
                logger.debug(f"Stopping accessible block listing at {number}: {block}")
                break
            checkpoints.append(
                Checkpoint(
                    block_number=number,
                    block_hash=to_hex(block["hash"]),
                    state_root=to_hex(block["stateRoot"]),
                    timestamp=int(block["timestamp"]) * 1000,
                )
            )
        return checkpoints

    async def _check_accessible(self, block_number: int) -> ProofResult:
        l1_client = self.get_l1_client()
        current_block = await l1_client.get_block_number()
        window = self.monitoring.accessibility_window

        if current_block - window < block_number <= current_block:
            block = await l1_client.get_block(block_number)
            return ProofResult(
                exists=True,
                block_number=block_number,
                block_hash=to_hex(block["hash"]),
                state_root=to_hex(block["stateRoot"]),
            )

        earliest = max(0, current_block - window + 1)
        return ProofResult(
            exists=False,
            block_number=block_number,
            error=(
                f"L1 block {block_number} is outside the accessible range. "
                f"Current L1 block: {current_block}, earliest accessible: {earliest}"
            ),
        )
