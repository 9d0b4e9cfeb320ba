"""
Block header encoding for storage-proof verification.

Recomputes a block hash from the header fields returned by the RPC so that
a proof can be tied to the exact block it was generated against. Supports
header layouts up to Prague.
"""

import logging
from typing import Any

import rlp
from hexbytes import HexBytes
from web3 import Web3
from web3.types import BlockData

logger = logging.getLogger(__name__)


class HeaderEncoder:
    """RLP encoding of Ethereum-style block headers."""

    # Optional trailing fields in hardfork order: (key, is_bytes)
    HARDFORK_FIELDS: tuple[tuple[str, bool], ...] = (
        ("baseFeePerGas", False),          # London, EIP-1559
        ("withdrawalsRoot", True),         # Shanghai, EIP-4895
        ("blobGasUsed", False),            # Cancun, EIP-4844
        ("excessBlobGas", False),          # Cancun, EIP-4844
        ("parentBeaconBlockRoot", True),   # Cancun, EIP-4788
        ("requestsHash", True),            # Prague, EIP-7685
    )

    @staticmethod
    def to_bytes_safe(value: HexBytes | bytes | str) -> bytes:
        """
        Convert HexBytes, bytes or a hex string to bytes.

        Args:
            value: Value to convert

        Returns:
            Bytes representation
        """
        if isinstance(value, HexBytes):
            return bytes(value)
        elif isinstance(value, bytes):
            return value
        else:
            return Web3.to_bytes(hexstr=value)

    @classmethod
    def header_fields(cls, block: BlockData) -> list[Any]:
        """
        Collect the header fields of a block in canonical order.

        Args:
            block: Block data from Web3

        Returns:
            List of RLP-encodable header fields
        """
        to_bytes = cls.to_bytes_safe
        fields: list[Any] = [
            to_bytes(block['parentHash']),
            to_bytes(block['sha3Uncles']),
            to_bytes(block['miner']),
            to_bytes(block['stateRoot']),
            to_bytes(block['transactionsRoot']),
            to_bytes(block['receiptsRoot']),
            to_bytes(block['logsBloom']),
            block['difficulty'],
            block['number'],
            block['gasLimit'],
            block['gasUsed'],
            block['timestamp'],
            to_bytes(block['extraData']),
            to_bytes(block['mixHash']),
            to_bytes(block['nonce']),
        ]

        for key, is_bytes in cls.HARDFORK_FIELDS:
            value = block.get(key)
            if key == "requestsHash" and value is None:
                # Older clients report the Prague field as requestsRoot
                value = block.get("requestsRoot")
            if value is None:
                # Fields are positional, nothing after a missing one applies
                break
            fields.append(to_bytes(value) if is_bytes else value)

        return fields

    @classmethod
    def encode_block_header(cls, block: BlockData) -> bytes:
        """RLP-encode the header of a block."""
        return rlp.encode(cls.header_fields(block))

    @classmethod
    def compute_block_hash(cls, block: BlockData) -> str:
        """Keccak-256 of the encoded header as a 0x-prefixed hex string."""
        return Web3.to_hex(Web3.keccak(cls.encode_block_header(block)))

    @classmethod
    def block_hash_matches(cls, block: BlockData) -> bool:
        """
        Whether the recomputed header hash equals the hash the RPC reported.

        Args:
            block: Block data including its 'hash'
        """
        calculated = cls.compute_block_hash(block)
        expected = Web3.to_hex(cls.to_bytes_safe(block['hash']))

        if calculated != expected:
            logger.warning(f"Header hash mismatch. Calculated: {calculated}, Expected: {expected}")
            logger.debug(f"Block fields present: {list(block.keys())}")
            return False
        return True
