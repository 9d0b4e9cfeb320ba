"""
Remote chain client.

Thin per-endpoint RPC handle used by the chain adapters. Each read is
bounded by its own timeout so that a slow secondary lookup cannot stall
the whole operation.
"""

import asyncio
import logging
from collections.abc import Awaitable
from typing import Any, TypeVar

from hexbytes import HexBytes
from web3 import AsyncWeb3, Web3
from web3.types import BlockData, EventData

from .utils.contract_utility import has_event

T = TypeVar("T")


class ChainClientError(Exception):
    """A remote read failed or timed out."""


class ChainClient:
    """
    Async RPC handle for a single chain endpoint.

    Provides the current block height, block lookup by number or hash and
    ranged event-log queries.
    """

    def __init__(self, rpc_url: str, request_timeout: float = 30):
        """
        Initialize the chain client.

        Args:
            rpc_url: HTTP RPC endpoint URL
            request_timeout: Timeout in seconds applied to every read
        """
        self.rpc_url = rpc_url
        self.request_timeout = request_timeout

        self.w3 = AsyncWeb3(AsyncWeb3.AsyncHTTPProvider(rpc_url))

        # Setup logging
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    async def _call(self, awaitable: Awaitable[T], description: str) -> T:
        try:
            return await asyncio.wait_for(awaitable, timeout=self.request_timeout)
        except asyncio.TimeoutError as e:
            raise ChainClientError(
                f"{description} timed out after {self.request_timeout}s ({self.rpc_url})"
            ) from e
        except ChainClientError:
            raise
        except Exception as e:
            raise ChainClientError(f"{description} failed: {e}") from e

    async def get_block_number(self) -> int:
        """Return the current block height."""
        block_number = await self._call(self.w3.eth.block_number, "eth_blockNumber")
        return int(block_number)

    async def get_block(self, block_identifier: int | str | bytes) -> BlockData:
        """
        Fetch a block by number or by hash.

        Args:
            block_identifier: Block number, or block hash as hex string or bytes

        Raises:
            ChainClientError: If the block cannot be fetched in time
        """
        if isinstance(block_identifier, bytes):
            block_identifier = HexBytes(block_identifier)
            label = Web3.to_hex(block_identifier)
        else:
            label = str(block_identifier)
        return await self._call(self.w3.eth.get_block(block_identifier), f"eth_getBlock({label})")

    async def get_logs(
        self,
        contract_address: str,
        abi: list[dict[str, Any]],
        event_name: str,
        from_block: int,
        to_block: int,
    ) -> list[EventData]:
        """
        Query decoded event logs of one contract event in a block range.

        Args:
            contract_address: Address of the emitting contract
            abi: Contract ABI containing the event
            event_name: Name of the event to query
            from_block: First block of the range (inclusive)
            to_block: Last block of the range (inclusive)

        Returns:
            Decoded events in chain order

        Raises:
            ValueError: If the event is not part of the ABI
            ChainClientError: If the query fails or times out
        """
        contract = self.w3.eth.contract(
            address=Web3.to_checksum_address(contract_address),
            abi=abi
        )

        if not has_event(abi, event_name):
            raise ValueError(f"Event {event_name} not found in contract ABI")
        event_obj = getattr(contract.events, event_name)

        self.logger.debug(
            f"Querying {event_name} on {contract_address} "
            f"from block {from_block} to {to_block}"
        )
        logs = await self._call(
            event_obj.get_logs(from_block=from_block, to_block=to_block),
            f"eth_getLogs({event_name})",
        )
        return list(logs)
