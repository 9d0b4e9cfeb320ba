#!/usr/bin/env python3
"""Configuration management for the Checkpoint Monitor.

This module provides type-safe configuration dataclasses with validation
for the chain pairs the monitor observes. Endpoints and contract addresses
are resolved from environment variables with public defaults, so the rest
of the system only ever sees fully populated, immutable ChainConfig objects.
"""

import logging
import os
from dataclasses import dataclass
from typing import ClassVar
from urllib.parse import urlparse

from web3 import Web3

from .models import ChainFamily, Direction, NetworkType

# Get logger for this module
logger = logging.getLogger(__name__)

DEFAULT_CHECKPOINTS_SLOT = 254


def _checksum(value: str, label: str) -> str:
    """Validate an address and return its checksummed form."""
    if not value:
        raise ValueError(f"{label} is required")
    if not Web3.is_address(value.lower()):
        raise ValueError(f"Invalid {label}: {value}")
    return Web3.to_checksum_address(value)


@dataclass(frozen=True, slots=True)
class LayerConfig:
    """Connection facts for one chain layer.
    
    Attributes:
        address: Checksummed address of the contract observed on this layer
        rpc: HTTP(S) RPC endpoint
        chain_id: Numeric chain identifier
        explorer_url: Block explorer base URL
        broadcaster: Account whose storage is proven (optional)
        checkpoints_slot: Default storage slot for checkpoint data (optional)
    """
    
    address: str
    rpc: str
    chain_id: int
    explorer_url: str
    broadcaster: str | None = None
    checkpoints_slot: int | None = None
    
    def __post_init__(self) -> None:
        """Validate layer configuration."""
        if not self.rpc:
            raise ValueError("RPC URL is required")
        
        parsed = urlparse(self.rpc)
        if parsed.scheme not in ('http', 'https'):
            raise ValueError(
                f"Invalid RPC URL scheme: {parsed.scheme}. "
                "Expected http or https"
            )
        
        if self.chain_id <= 0:
            raise ValueError(f"Chain ID must be positive, got {self.chain_id}")
        
        # Use object.__setattr__ since dataclass is frozen
        object.__setattr__(self, 'address', _checksum(self.address, "contract address"))
        if self.broadcaster:
            object.__setattr__(self, 'broadcaster', _checksum(self.broadcaster, "broadcaster address"))
        else:
            object.__setattr__(self, 'broadcaster', None)
        
        if self.checkpoints_slot is not None and self.checkpoints_slot < 0:
            raise ValueError(f"Checkpoints slot must be non-negative, got {self.checkpoints_slot}")


@dataclass(frozen=True, slots=True)
class DirectionSupport:
    """Which anchoring directions a chain pair supports."""
    l1_to_l2: bool = True
    l2_to_l1: bool = True
    
    def supports(self, direction: Direction) -> bool:
        if direction is Direction.L1_TO_L2:
            return self.l1_to_l2
        return self.l2_to_l1


@dataclass(frozen=True, slots=True)
class ChainContracts:
    """The two layers of a chain pair. l1 is the source-of-truth layer."""
    l1: LayerConfig
    l2: LayerConfig
    
    def layer(self, name: str) -> LayerConfig:
        """Return the layer called ``"l1"`` or ``"l2"``."""
        match name:
            case "l1":
                return self.l1
            case "l2":
                return self.l2
            case _:
                raise ValueError(f"Unknown layer: {name}")


@dataclass(frozen=True, slots=True)
class ChainConfig:
    """A logical chain pair observed by one adapter.
    
    Attributes:
        id: Chain identifier used by the registry (e.g. 'taiko')
        name: Display name
        short_name: Short display name
        family: Anchoring mechanism, selects the adapter variant
        directions: Supported anchoring directions
        contracts: Per-layer connection and contract metadata
        supports_proof_generation: Whether storage proofs can be generated
        logo: Optional logo URL
    """
    
    id: str
    name: str
    short_name: str
    family: ChainFamily
    directions: DirectionSupport
    contracts: ChainContracts
    supports_proof_generation: bool = False
    logo: str | None = None
    
    def __post_init__(self) -> None:
        """Validate chain configuration."""
        if not self.id:
            raise ValueError("Chain id is required")
        if not (self.directions.l1_to_l2 or self.directions.l2_to_l1):
            raise ValueError(f"Chain {self.id} must support at least one direction")
    
    def source_layer(self, direction: Direction) -> LayerConfig:
        """Layer whose state is being proven in the given direction."""
        return self.contracts.layer(direction.source_layer)
    
    def target_layer(self, direction: Direction) -> LayerConfig:
        """Layer on which the commitment is recorded in the given direction."""
        return self.contracts.layer(direction.target_layer)


@dataclass(frozen=True, slots=True)
class MonitoringConfig:
    """Configuration for remote reads and scan windows."""
    # Sensible defaults for public RPC providers
    request_timeout: int = 30  # seconds per remote read
    checkpoint_lookback_blocks: int = 10000  # single-event scan window
    confirmation_lookback_blocks: int = 900  # confirmation-event scan window
    accessibility_window: int = 256  # recent source blocks readable on target
    max_accessible_checkpoints: int = 20  # pseudo-checkpoints per listing
    proof_scan_limit: int = 50  # checkpoints scanned by check_proof
    
    MAX_LOOKBACK: ClassVar[int] = 100000
    
    def __post_init__(self) -> None:
        """Validate monitoring configuration."""
        if self.request_timeout <= 0:
            raise ValueError(f"Request timeout must be positive, got {self.request_timeout}")
        if self.request_timeout > 120:
            raise ValueError(f"Request timeout too long (max 120s), got {self.request_timeout}")
        
        for name in ("checkpoint_lookback_blocks", "confirmation_lookback_blocks"):
            value = getattr(self, name)
            if value <= 0:
                raise ValueError(f"{name} must be positive, got {value}")
            if value > self.MAX_LOOKBACK:
                raise ValueError(f"{name} too high (max {self.MAX_LOOKBACK}), got {value}")
        
        if self.accessibility_window <= 0:
            raise ValueError(f"Accessibility window must be positive, got {self.accessibility_window}")
        if self.max_accessible_checkpoints <= 0:
            raise ValueError(
                f"Max accessible checkpoints must be positive, got {self.max_accessible_checkpoints}"
            )
        if not 1 <= self.proof_scan_limit <= 1000:
            raise ValueError(f"Proof scan limit must be between 1 and 1000, got {self.proof_scan_limit}")
    
    @classmethod
    def from_env(cls) -> "MonitoringConfig":
        """Load monitoring settings from environment variables.
        
        Returns:
            MonitoringConfig instance with loaded values
            
        Raises:
            ValueError: If a variable is not an integer or out of bounds
        """
        return cls(
            request_timeout=int(os.environ.get("REQUEST_TIMEOUT", "30")),
            checkpoint_lookback_blocks=int(os.environ.get("CHECKPOINT_LOOKBACK_BLOCKS", "10000")),
            confirmation_lookback_blocks=int(os.environ.get("CONFIRMATION_LOOKBACK_BLOCKS", "900")),
            accessibility_window=int(os.environ.get("ACCESSIBILITY_WINDOW", "256")),
            proof_scan_limit=int(os.environ.get("PROOF_SCAN_LIMIT", "50")),
        )
    
    def log_config(self) -> None:
        """Log the monitoring settings in a readable format."""
        logger.info("Monitoring Settings:")
        logger.info(f"  Request Timeout: {self.request_timeout} seconds")
        logger.info(f"  Checkpoint Lookback: {self.checkpoint_lookback_blocks} blocks")
        logger.info(f"  Confirmation Lookback: {self.confirmation_lookback_blocks} blocks")
        logger.info(f"  Accessibility Window: {self.accessibility_window} blocks")
        logger.info(f"  Proof Scan Limit: {self.proof_scan_limit} checkpoints")


def _env(*names: str, default: str | None = None) -> str | None:
    """Return the first non-empty environment variable among ``names``."""
    for name in names:
        if value := os.environ.get(name):
            return value
    return default


def _taiko_testnet() -> ChainConfig:
    return ChainConfig(
        id="taiko",
        name="Taiko (Testnet)",
        short_name="Taiko",
        family=ChainFamily.SINGLE_EVENT_ANCHOR,
        directions=DirectionSupport(l1_to_l2=True, l2_to_l1=True),
        supports_proof_generation=True,
        contracts=ChainContracts(
            l1=LayerConfig(
                address=_env(
                    "TAIKO_TESTNET_L1_SIGNAL_SERVICE",
                    "TAIKO_L1_SIGNAL_SERVICE",
                    default="0x53789e39E3310737E8C8cED483032AAc25B39ded",
                ),
                rpc=_env("TAIKO_TESTNET_L1_RPC", "TAIKO_L1_RPC", default="https://l1rpc.internal.taiko.xyz"),
                chain_id=32382,
                explorer_url="https://l1explorer.internal.taiko.xyz",
                broadcaster=_env(
                    "TAIKO_TESTNET_L1_BROADCASTER",
                    default="0x6BdBb69660E6849b98e8C524d266a0005D3655F7",
                ),
                checkpoints_slot=DEFAULT_CHECKPOINTS_SLOT,
            ),
            l2=LayerConfig(
                address=_env(
                    "TAIKO_TESTNET_L2_SIGNAL_SERVICE",
                    "TAIKO_L2_SIGNAL_SERVICE",
                    default="0x1670010000000000000000000000000000000005",
                ),
                rpc=_env("TAIKO_TESTNET_L2_RPC", "TAIKO_L2_RPC", default="https://rpc.internal.taiko.xyz"),
                chain_id=167001,
                explorer_url="https://blockscout.internal.taiko.xyz",
                broadcaster=_env(
                    "TAIKO_TESTNET_L2_BROADCASTER",
                    default="0x6BdBb69660E6849b98e8C524d266a0005D3655F7",
                ),
                checkpoints_slot=DEFAULT_CHECKPOINTS_SLOT,
            ),
        ),
    )


def _arbitrum_testnet() -> ChainConfig:
    return ChainConfig(
        id="arbitrum",
        name="Arbitrum (Sepolia)",
        short_name="Arbitrum",
        family=ChainFamily.DUAL_MECHANISM,
        directions=DirectionSupport(l1_to_l2=True, l2_to_l1=True),
        contracts=ChainContracts(
            # Outbox on Sepolia
            l1=LayerConfig(
                address=_env(
                    "ARBITRUM_SEPOLIA_L1_OUTBOX",
                    default="0x65f07C7D521164a4d5DaC6eB8Fac8DA067A3B78F",
                ),
                rpc=_env("ARBITRUM_SEPOLIA_L1_RPC", default="https://sepolia.drpc.org"),
                chain_id=11155111,
                explorer_url="https://sepolia.etherscan.io",
            ),
            # ArbSys precompile
            l2=LayerConfig(
                address="0x0000000000000000000000000000000000000064",
                rpc=_env("ARBITRUM_SEPOLIA_L2_RPC", default="https://sepolia-rollup.arbitrum.io/rpc"),
                chain_id=421614,
                explorer_url="https://sepolia.arbiscan.io",
            ),
        ),
    )


def _taiko_mainnet() -> ChainConfig:
    return ChainConfig(
        id="taiko",
        name="Taiko",
        short_name="Taiko",
        family=ChainFamily.SINGLE_EVENT_ANCHOR,
        directions=DirectionSupport(l1_to_l2=True, l2_to_l1=True),
        supports_proof_generation=True,
        contracts=ChainContracts(
            l1=LayerConfig(
                address=_env(
                    "TAIKO_MAINNET_L1_SIGNAL_SERVICE",
                    default="0x9e0a24964e5397B566c1ed39258e21aB5E35C77C",
                ),
                rpc=_env("TAIKO_MAINNET_L1_RPC", default="https://eth.llamarpc.com"),
                chain_id=1,
                explorer_url="https://etherscan.io",
                broadcaster=_env("TAIKO_MAINNET_L1_BROADCASTER"),
                checkpoints_slot=DEFAULT_CHECKPOINTS_SLOT,
            ),
            l2=LayerConfig(
                address=_env(
                    "TAIKO_MAINNET_L2_SIGNAL_SERVICE",
                    default="0x1670000000000000000000000000000000000005",
                ),
                rpc=_env("TAIKO_MAINNET_L2_RPC", default="https://rpc.mainnet.taiko.xyz"),
                chain_id=167000,
                explorer_url="https://taikoscan.io",
                broadcaster=_env("TAIKO_MAINNET_L2_BROADCASTER"),
                checkpoints_slot=DEFAULT_CHECKPOINTS_SLOT,
            ),
        ),
    )


def _arbitrum_mainnet() -> ChainConfig:
    return ChainConfig(
        id="arbitrum",
        name="Arbitrum One",
        short_name="Arbitrum",
        family=ChainFamily.DUAL_MECHANISM,
        directions=DirectionSupport(l1_to_l2=True, l2_to_l1=True),
        contracts=ChainContracts(
            l1=LayerConfig(
                address=_env(
                    "ARBITRUM_L1_OUTBOX",
                    default="0x0B9857ae2D4A3DBe74ffE1d7DF045bb7F96E4840",
                ),
                rpc=_env("ARBITRUM_L1_RPC", default="https://eth.llamarpc.com"),
                chain_id=1,
                explorer_url="https://etherscan.io",
            ),
            l2=LayerConfig(
                address="0x0000000000000000000000000000000000000064",
                rpc=_env("ARBITRUM_L2_RPC", default="https://arb1.arbitrum.io/rpc"),
                chain_id=42161,
                explorer_url="https://arbiscan.io",
            ),
        ),
    )


def load_chain_configs(network: NetworkType) -> dict[str, ChainConfig]:
    """Resolve every chain pair registered for a network.
    
    Args:
        network: Network partition to load
        
    Returns:
        Mapping of chain id to ChainConfig, in display order
        
    Raises:
        ValueError: If an environment override holds an invalid value
    """
    match network:
        case NetworkType.TESTNET:
            configs = [_taiko_testnet(), _arbitrum_testnet()]
        case NetworkType.MAINNET:
            configs = [_taiko_mainnet(), _arbitrum_mainnet()]
        case _:
            raise ValueError(f"Unsupported network: {network}")
    
    return {config.id: config for config in configs}
