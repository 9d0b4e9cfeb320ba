"""
Common chain adapter contract.

Every chain family exposes the same three operations (status, checkpoint
listing and proof lookup) and never raises across this boundary: remote
failures are logged and turned into disconnected statuses, empty lists or
ProofResult errors.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from collections.abc import Iterable
from typing import Any, ClassVar

from web3 import Web3

from ..client import ChainClient, ChainClientError
from ..config import ChainConfig, MonitoringConfig
from ..models import ChainFamily, ChainStatus, Checkpoint, Direction, ProofResult

logger = logging.getLogger(__name__)

DEFAULT_CHECKPOINT_LIMIT = 20


def to_hex(value: Any) -> str:
    """Normalize bytes/HexBytes/str values to a 0x-prefixed hex string."""
    if isinstance(value, (bytes, bytearray)):
        return Web3.to_hex(value)
    value = str(value)
    return value if value.startswith("0x") else "0x" + value


def order_checkpoints(checkpoints: Iterable[Checkpoint | None], limit: int) -> list[Checkpoint]:
    """
    Deduplicate, sort most-recent-first and truncate.

    Checkpoints are expected in chain order, so a later entry for the same
    block number replaces an earlier one. None entries are skipped.
    """
    by_number: dict[int, Checkpoint] = {}
    for checkpoint in checkpoints:
        if checkpoint is not None:
            by_number[checkpoint.block_number] = checkpoint

    ordered = sorted(by_number.values(), key=lambda cp: cp.block_number, reverse=True)
    return ordered[:limit]


def error_message(error: BaseException) -> str:
    return str(error) or type(error).__name__


class ChainAdapter(ABC):
    """
    Base class for the chain family adapters.

    Owns the two per-layer RPC clients, created on first use and reused for
    the adapter's lifetime, and implements status aggregation and the
    exact-match / next-available checkpoint lookup shared by all families.
    """

    family: ClassVar[ChainFamily]

    def __init__(self, config: ChainConfig, monitoring: MonitoringConfig | None = None):
        """
        Initialize the adapter.

        Args:
            config: Resolved configuration of the chain pair
            monitoring: Timeouts and scan windows (defaults if omitted)
        """
        self.config = config
        self.monitoring = monitoring or MonitoringConfig()
        self._l1_client: ChainClient | None = None
        self._l2_client: ChainClient | None = None

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(chain={self.config.id!r})"

    # Client handles

    def get_l1_client(self) -> ChainClient:
        if self._l1_client is None:
            self._l1_client = ChainClient(self.config.contracts.l1.rpc, self.monitoring.request_timeout)
        return self._l1_client

    def get_l2_client(self) -> ChainClient:
        if self._l2_client is None:
            self._l2_client = ChainClient(self.config.contracts.l2.rpc, self.monitoring.request_timeout)
        return self._l2_client

    def client_for(self, layer: str) -> ChainClient:
        match layer:
            case "l1":
                return self.get_l1_client()
            case "l2":
                return self.get_l2_client()
            case _:
                raise ValueError(f"Unknown layer: {layer}")

    def source_client(self, direction: Direction) -> ChainClient:
        """Client of the chain whose blocks are being committed."""
        return self.client_for(direction.source_layer)

    def contract_address(self, direction: Direction) -> str:
        """Address of the contract observed for a direction (on the target layer)."""
        return self.config.target_layer(direction).address

    # Public operations

    async def get_status(self, direction: Direction) -> ChainStatus:
        """
        Snapshot the anchoring state for a direction.

        Fetches the latest checkpoint and the source chain height
        concurrently. Never raises: on failure a disconnected status carrying
        the error and the observed contract address is returned.
        """
        contract_address = self.contract_address(direction)

        if not self.config.directions.supports(direction):
            return self._disconnected_status(
                direction, contract_address, f"Direction {direction.value} not supported by {self.config.name}"
            )

        try:
            source_client = self.source_client(direction)
            checkpoints, current_block = await asyncio.gather(
                self.get_checkpoints(direction, 1),
                source_client.get_block_number(),
            )
        except Exception as e:
            logger.error(f"Error fetching {self.config.id} status ({direction.value}): {e}")
            return self._disconnected_status(direction, contract_address, error_message(e))

        latest_checkpoint = checkpoints[0] if checkpoints else None
        blocks_behind = (
            current_block - latest_checkpoint.block_number
            if latest_checkpoint is not None
            else None
        )

        return ChainStatus(
            chain_name=self.config.name,
            direction=direction,
            is_connected=True,
            latest_checkpoint=latest_checkpoint,
            total_checkpoints=len(checkpoints),
            contract_address=contract_address,
            current_block=current_block,
            blocks_behind=blocks_behind,
        )

    async def get_checkpoints(
        self, direction: Direction, limit: int = DEFAULT_CHECKPOINT_LIMIT
    ) -> list[Checkpoint]:
        """
        List anchored checkpoints, most recent first, at most ``limit``.

        Returns an empty list when nothing is found or any critical read
        fails; the failure is logged, never raised.
        """
        if limit <= 0 or not self.config.directions.supports(direction):
            return []

        try:
            return await self._fetch_checkpoints(direction, limit)
        except Exception as e:
            logger.error(f"Error fetching {self.config.id} checkpoints ({direction.value}): {e}")
            return []

    async def check_proof(self, direction: Direction, block_number: int) -> ProofResult:
        """Report whether a proof rooted at ``block_number`` is verifiable now."""
        if not self.config.directions.supports(direction):
            return ProofResult(
                exists=False,
                block_number=block_number,
                error=f"Direction {direction.value} not supported by {self.config.name}",
            )

        try:
            return await self._check_proof(direction, block_number)
        except Exception as e:
            logger.error(f"Error checking {self.config.id} proof for block {block_number} ({direction.value}): {e}")
            return ProofResult(exists=False, block_number=block_number, error=error_message(e))

    # Family hooks

    @abstractmethod
    async def _fetch_checkpoints(self, direction: Direction, limit: int) -> list[Checkpoint]:
        """Scan for checkpoints. May raise; the caller absorbs failures."""

    @abstractmethod
    async def _check_proof(self, direction: Direction, block_number: int) -> ProofResult:
        """Answer a proof lookup. May raise; the caller absorbs failures."""

    # Shared helpers

    def _disconnected_status(self, direction: Direction, contract_address: str, error: str) -> ChainStatus:
        return ChainStatus(
            chain_name=self.config.name,
            direction=direction,
            is_connected=False,
            latest_checkpoint=None,
            total_checkpoints=0,
            contract_address=contract_address,
            error=error,
        )

    @staticmethod
    def _match_checkpoint(
        checkpoints: list[Checkpoint],
        block_number: int,
        next_message: str,
        missing_message: str,
    ) -> ProofResult:
        """
        Exact-match lookup with next-available fallback.

        Args:
            checkpoints: Known checkpoints, any order
            block_number: Queried source block
            next_message: Prefix reported when a later checkpoint exists
            missing_message: Reported when no later checkpoint exists
        """
        for checkpoint in checkpoints:
            if checkpoint.block_number == block_number:
                return ProofResult(
                    exists=True,
                    block_number=block_number,
                    block_hash=checkpoint.block_hash,
                    state_root=checkpoint.state_root,
                    send_root=checkpoint.send_root,
                )

        later = [cp.block_number for cp in checkpoints if cp.block_number > block_number]
        if later:
            next_available = min(later)
            return ProofResult(
                exists=False,
                block_number=block_number,
                error=f"{next_message}: {next_available}",
                next_available=next_available,
            )

        return ProofResult(exists=False, block_number=block_number, error=missing_message)

    async def _block_timestamp_ms(self, client: ChainClient, block_number: int) -> int | None:
        """Best-effort block timestamp in milliseconds; None if unresolvable."""
        try:
            block = await client.get_block(block_number)
        except ChainClientError as e:
            logger.debug(f"Could not resolve timestamp of block {block_number}: {e}")
            return None
        return int(block["timestamp"]) * 1000
