"""
Exception types raised at the proof-generation boundary.

Adapter operations never raise; these are the only failures signalled
outward, and chain-state mismatches keep their own types so callers can
report them separately from generic I/O errors.
"""


class ProofGenerationError(Exception):
    """Generating a storage proof failed."""


class BlockHashMismatchError(ProofGenerationError):
    """The block at the requested height no longer hashes to the reported value."""


class StateRootMismatchError(ProofGenerationError):
    """The account or storage proof does not verify against the block's state root."""


class ProofRequestError(ValueError):
    """The proof request cannot be served with the current chain configuration."""
