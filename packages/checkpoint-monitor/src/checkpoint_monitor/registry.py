"""
Chain configuration registry.

Static, network-partitioned lookup table of the chain pairs the monitor
knows about. Lookups never perform I/O and a miss is reported as None.
"""

import logging
from collections.abc import Iterable, Mapping

from .config import ChainConfig, load_chain_configs
from .models import NetworkType

logger = logging.getLogger(__name__)


class ChainRegistry:
    """Maps (network, chain id) to a resolved ChainConfig."""

    def __init__(self, tables: Mapping[NetworkType, Mapping[str, ChainConfig]]):
        """
        Initialize the registry.

        Args:
            tables: Per-network mapping of chain id to configuration
        """
        self._tables: dict[NetworkType, dict[str, ChainConfig]] = {
            network: dict(chains) for network, chains in tables.items()
        }

    @classmethod
    def from_env(cls, networks: Iterable[NetworkType] | None = None) -> "ChainRegistry":
        """
        Build the registry from environment variables.

        Args:
            networks: Networks to load, all of them if omitted. Overrides of
                networks not listed are neither read nor validated.

        Raises:
            ValueError: If an environment override holds an invalid value
        """
        selected = NetworkType if networks is None else networks
        tables = {network: load_chain_configs(network) for network in selected}
        for network, chains in tables.items():
            logger.debug(f"Registered {network.value} chains: {', '.join(chains)}")
        return cls(tables)

    def lookup(self, network: NetworkType, chain_id: str) -> ChainConfig | None:
        """Return the configuration for a chain, or None if not registered."""
        return self._tables.get(network, {}).get(chain_id)

    def list_chains(self, network: NetworkType) -> list[str]:
        """Return registered chain ids for a network in declaration order."""
        return list(self._tables.get(network, {}))

    def supported(self, network: NetworkType, chain_id: str) -> bool:
        return chain_id in self._tables.get(network, {})
