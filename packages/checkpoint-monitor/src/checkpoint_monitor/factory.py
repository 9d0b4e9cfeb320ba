"""
Adapter factory.

Builds chain adapters on first use and keeps one instance per
(network, chain id) for the lifetime of the process, so the RPC clients
each adapter owns are reused across requests.
"""

import logging

from .adapters import ChainAdapter, DualMechanismAdapter, SingleEventAnchorAdapter
from .config import MonitoringConfig
from .models import ChainFamily, NetworkType
from .registry import ChainRegistry

logger = logging.getLogger(__name__)

# Adding a chain family means adding one adapter class and one entry here
ADAPTER_FAMILIES: dict[ChainFamily, type[ChainAdapter]] = {
    ChainFamily.SINGLE_EVENT_ANCHOR: SingleEventAnchorAdapter,
    ChainFamily.DUAL_MECHANISM: DualMechanismAdapter,
}


class AdapterFactory:
    """Memoizing factory for chain adapters."""

    def __init__(self, registry: ChainRegistry, monitoring: MonitoringConfig | None = None):
        """
        Initialize the factory.

        Args:
            registry: Source of chain configurations
            monitoring: Timeouts and scan windows passed to every adapter
        """
        self.registry = registry
        self.monitoring = monitoring or MonitoringConfig()
        # Concurrent first calls may both construct, last writer wins
        self._adapters: dict[tuple[NetworkType, str], ChainAdapter] = {}

    def get_adapter(
        self, chain_id: str, network: NetworkType = NetworkType.TESTNET
    ) -> ChainAdapter | None:
        """
        Return the adapter for a chain, creating it on first use.

        Args:
            chain_id: Registered chain identifier (e.g. 'taiko')
            network: Network partition

        Returns:
            The cached adapter, or None if the chain is not registered for
            the network or has no adapter family
        """
        key = (network, chain_id)
        if (adapter := self._adapters.get(key)) is not None:
            return adapter

        if not self.registry.supported(network, chain_id):
            return None

        config = self.registry.lookup(network, chain_id)
        if config is None:
            return None

        adapter_cls = ADAPTER_FAMILIES.get(config.family)
        if adapter_cls is None:
            logger.warning(f"No adapter for chain family {config.family} ({chain_id})")
            return None

        adapter = adapter_cls(config, self.monitoring)
        self._adapters[key] = adapter
        logger.debug(f"Created {adapter!r} for {network.value}")
        return adapter

    def get_all_adapters(self, network: NetworkType = NetworkType.TESTNET) -> list[ChainAdapter]:
        """Return adapters for every chain registered on a network."""
        adapters = (self.get_adapter(chain_id, network) for chain_id in self.registry.list_chains(network))
        return [adapter for adapter in adapters if adapter is not None]

    def cached_count(self) -> int:
        return len(self._adapters)


_default_factory: AdapterFactory | None = None


def default_factory() -> AdapterFactory:
    """Process-wide factory backed by the environment configuration."""
    global _default_factory
    if _default_factory is None:
        _default_factory = AdapterFactory(ChainRegistry.from_env(), MonitoringConfig.from_env())
    return _default_factory


def get_chain_adapter(chain_id: str, network: NetworkType = NetworkType.TESTNET) -> ChainAdapter | None:
    """Shortcut for ``default_factory().get_adapter(chain_id, network)``."""
    return default_factory().get_adapter(chain_id, network)
