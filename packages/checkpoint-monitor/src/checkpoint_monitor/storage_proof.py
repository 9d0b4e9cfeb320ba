"""
Default storage-proof collaborator.

Fetches an ``eth_getProof`` account/storage proof at a given block and checks
it against that block before handing it out: the header is re-hashed to
detect a changed block, and both Merkle-Patricia proofs are walked to detect
a state root that no longer matches.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Sequence

import rlp
from trie import HexaryTrie
from trie.constants import BLANK_NODE_HASH
from trie.exceptions import BadTrieProof
from web3 import AsyncWeb3, Web3

from .exceptions import BlockHashMismatchError, StateRootMismatchError
from .utils.header_encoder import HeaderEncoder

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class StorageProofRequest:
    """Which storage slot of which account to prove, and at which block."""
    rpc: str
    account: str
    slot: int
    block_number: int


@dataclass(frozen=True, slots=True)
class StorageProof:
    """
    A verified storage proof.

    Attributes:
        block_hash: Hash of the block the proof is rooted at
        account_proof: RLP-encoded account trie nodes, root first
        storage_proof: RLP-encoded storage trie nodes, root first
        storage_value: Value stored in the slot
    """
    block_hash: str
    account_proof: list[str]
    storage_proof: list[str]
    storage_value: int

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "blockHash": self.block_hash,
            "accountProof": list(self.account_proof),
            "storageProof": list(self.storage_proof),
            "storageValue": hex(self.storage_value),
        }


def _as_int(value: Any) -> int:
    if isinstance(value, (bytes, bytearray)):
        return int.from_bytes(value, "big")
    if isinstance(value, str):
        return int(value, 16) if value.startswith("0x") else int(value)
    return int(value)


def _decode_nodes(nodes: Sequence[Any]) -> list[Any]:
    return [rlp.decode(HeaderEncoder.to_bytes_safe(node)) for node in nodes]


def verify_account_proof(state_root: bytes, account: str, account_proof: Sequence[Any]) -> bytes:
    """
    Walk an account proof and return the account's storage root.

    Args:
        state_root: State root of the block
        account: Account address
        account_proof: RLP-encoded trie nodes from eth_getProof

    Raises:
        StateRootMismatchError: If the proof does not verify against the root
    """
    key = Web3.keccak(hexstr=account)
    try:
        encoded_account = HexaryTrie.get_from_proof(state_root, key, _decode_nodes(account_proof))
    except BadTrieProof as e:
        raise StateRootMismatchError(
            f"Account proof for {account} does not match state root {Web3.to_hex(state_root)}"
        ) from e

    if not encoded_account:
        # Account not in the state trie: empty storage
        return BLANK_NODE_HASH

    _nonce, _balance, storage_root, _code_hash = rlp.decode(encoded_account)
    return storage_root


def verify_storage_proof(storage_root: bytes, slot: int, storage_proof: Sequence[Any]) -> int:
    """
    Walk a storage proof and return the slot's value.

    Raises:
        StateRootMismatchError: If the proof does not verify against the root
    """
    if storage_root == BLANK_NODE_HASH and not storage_proof:
        return 0

    key = Web3.keccak(slot.to_bytes(32, "big"))
    try:
        encoded_value = HexaryTrie.get_from_proof(storage_root, key, _decode_nodes(storage_proof))
    except BadTrieProof as e:
        raise StateRootMismatchError(
            f"Storage proof for slot {slot} does not match storage root {Web3.to_hex(storage_root)}"
        ) from e

    if not encoded_value:
        return 0
    return int.from_bytes(rlp.decode(encoded_value), "big")


async def generate_storage_proof(request: StorageProofRequest, timeout: float = 30) -> StorageProof:
    """
    Generate and verify a storage proof for one slot at one block.

    Args:
        request: Endpoint, account, slot and block to prove
        timeout: Timeout in seconds for each RPC read

    Returns:
        The verified proof

    Raises:
        BlockHashMismatchError: If the header no longer hashes to the block hash
        StateRootMismatchError: If the proofs do not verify against the block
    """
    w3 = AsyncWeb3(AsyncWeb3.AsyncHTTPProvider(request.rpc))
    account = Web3.to_checksum_address(request.account)

    block = await asyncio.wait_for(w3.eth.get_block(request.block_number), timeout=timeout)
    block_hash = Web3.to_hex(HeaderEncoder.to_bytes_safe(block["hash"]))
    if not HeaderEncoder.block_hash_matches(block):
        raise BlockHashMismatchError(
            f"Header of block {request.block_number} does not hash to {block_hash}"
        )

    proof = await asyncio.wait_for(
        w3.eth.get_proof(account, [request.slot], request.block_number),
        timeout=timeout,
    )

    state_root = HeaderEncoder.to_bytes_safe(block["stateRoot"])
    storage_root = verify_account_proof(state_root, account, proof["accountProof"])
    reported_storage_root = HeaderEncoder.to_bytes_safe(proof["storageHash"])
    if storage_root != reported_storage_root:
        raise StateRootMismatchError(
            f"Storage root of {account} at block {request.block_number} is "
            f"{Web3.to_hex(storage_root)}, RPC reported {Web3.to_hex(reported_storage_root)}"
        )

    entry = proof["storageProof"][0]
    value = verify_storage_proof(storage_root, request.slot, entry["proof"])
    reported_value = _as_int(entry["value"])
    if value != reported_value:
        raise StateRootMismatchError(
            f"Slot {request.slot} of {account} proves value {value}, RPC reported {reported_value}"
        )

    logger.info(
        f"Storage proof verified for {account} slot {request.slot} at block {request.block_number} "
        f"({len(proof['accountProof'])} account nodes, {len(entry['proof'])} storage nodes)"
    )

    return StorageProof(
        block_hash=block_hash,
        account_proof=[Web3.to_hex(HeaderEncoder.to_bytes_safe(node)) for node in proof["accountProof"]],
        storage_proof=[Web3.to_hex(HeaderEncoder.to_bytes_safe(node)) for node in entry["proof"]],
        storage_value=value,
    )
