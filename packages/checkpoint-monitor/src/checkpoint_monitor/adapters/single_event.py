"""
Single-event-anchor chain adapter.

For chains whose target-side contract emits one canonical event per anchored
block, e.g. Taiko's SignalService:

    event CheckpointSaved(uint48 indexed blockNumber, bytes32 blockHash, bytes32 stateRoot)

L1 state is anchored on L2 (l1ToL2) and L2 state on L1 (l2ToL1); in both
cases the event is read from the target layer.
"""

import asyncio
import logging
from typing import ClassVar

from web3.types import EventData

from ..client import ChainClient
from ..config import ChainConfig, MonitoringConfig
from ..models import ChainFamily, Checkpoint, Direction, ProofResult
from ..utils.contract_utility import get_contract_abi
from .base import ChainAdapter, order_checkpoints, to_hex

logger = logging.getLogger(__name__)

CHECKPOINT_SAVED_EVENT = "CheckpointSaved"


class SingleEventAnchorAdapter(ChainAdapter):
    """Adapter for chains anchoring checkpoints through a single event."""

    family: ClassVar[ChainFamily] = ChainFamily.SINGLE_EVENT_ANCHOR

    def __init__(self, config: ChainConfig, monitoring: MonitoringConfig | None = None):
        super().__init__(config, monitoring)
        self.abi = get_contract_abi("SignalService")

    def read_client(self, direction: Direction) -> ChainClient:
        """Client of the layer hosting the anchoring contract."""
        return self.client_for(direction.target_layer)

    async def _fetch_checkpoints(self, direction: Direction, limit: int) -> list[Checkpoint]:
        client = self.read_client(direction)
        contract_address = self.contract_address(direction)

        current_block = await client.get_block_number()
        from_block = max(0, current_block - self.monitoring.checkpoint_lookback_blocks)

        logs = await client.get_logs(
            contract_address,
            self.abi,
            CHECKPOINT_SAVED_EVENT,
            from_block,
            current_block,
        )
        logger.debug(
            f"Found {len(logs)} {CHECKPOINT_SAVED_EVENT} events on {contract_address} "
            f"in blocks {from_block}-{current_block}"
        )

        # Headroom over the limit for duplicate anchors of the same block
        recent_logs = logs[-limit * 2:]
        checkpoints = await asyncio.gather(
            *(self._to_checkpoint(client, log) for log in recent_logs)
        )
        return order_checkpoints(checkpoints, limit)

    async def _to_checkpoint(self, client: ChainClient, log: EventData) -> Checkpoint:
        args = log["args"]
        timestamp = await self._block_timestamp_ms(client, log["blockNumber"])
        return Checkpoint(
            block_number=int(args["blockNumber"]),
            block_hash=to_hex(args["blockHash"]),
            state_root=to_hex(args["stateRoot"]),
            timestamp=timestamp,
            tx_hash=to_hex(log["transactionHash"]),
        )

    async def _check_proof(self, direction: Direction, block_number: int) -> ProofResult:
        # Bounded to the most recent checkpoints; older anchors are not searched
        checkpoints = await self.get_checkpoints(direction, self.monitoring.proof_scan_limit)
        return self._match_checkpoint(
            checkpoints,
            block_number,
            next_message="Block not checkpointed. Next available",
            missing_message="Block not checkpointed. No future checkpoints found.",
        )
