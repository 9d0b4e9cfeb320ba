"""
Checkpoint Monitor package.

Tracks checkpoint anchoring between rollup layers and answers whether a
block is currently provable on the other layer.
"""

from .adapters import ChainAdapter, DualMechanismAdapter, SingleEventAnchorAdapter
from .config import ChainConfig, LayerConfig, MonitoringConfig
from .factory import AdapterFactory, get_chain_adapter
from .models import ChainStatus, Checkpoint, Direction, NetworkType, ProofResult
from .registry import ChainRegistry

__all__ = [
    "AdapterFactory",
    "ChainAdapter",
    "ChainConfig",
    "ChainRegistry",
    "ChainStatus",
    "Checkpoint",
    "Direction",
    "DualMechanismAdapter",
    "LayerConfig",
    "MonitoringConfig",
    "NetworkType",
    "ProofResult",
    "SingleEventAnchorAdapter",
    "get_chain_adapter",
]
__version__ = "0.1.0"
