"""
Chain adapters, one per anchoring family.
"""

from .base import ChainAdapter
from .dual_mechanism import DualMechanismAdapter
from .single_event import SingleEventAnchorAdapter

__all__ = ["ChainAdapter", "DualMechanismAdapter", "SingleEventAnchorAdapter"]
