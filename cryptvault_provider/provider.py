"""
Provider — registry of resources and data sources for the host.

The host builds one :class:`Provider` per configuration and looks
reconcilers up by type name (``<prefix>_vault``, ``<prefix>_identity``,
``<prefix>_value``, ``<prefix>_keypair``). Every reconciler receives the
configured timeout.
"""
import logging
from typing import Any, Optional

from .api import CryptVaultApi
from .datasources import (
    IdentityDataSource,
    PublicKeyDataSource,
    ValueDataSource,
    VaultDataSource,
)
from .resources import IdentityResource, KeyPairResource, ValueResource, VaultResource
from .vault.config import ProviderConfig
from .version import __version__

logger = logging.getLogger("cryptvault.provider")

RESOURCES = {
    "vault": VaultResource,
    "identity": IdentityResource,
    "value": ValueResource,
    "keypair": KeyPairResource,
}

DATA_SOURCES = {
    "vault": VaultDataSource,
    "identity": IdentityDataSource,
    "value": ValueDataSource,
    "public_key": PublicKeyDataSource,
}


class Provider:
    """Entry point handed to the orchestrating host.

    Args:
        api: CryptVault client talking to ``config.endpoint``.
        config: Provider configuration (defaults to the environment).
        version: Provider version reported to the host.
    """

    def __init__(
        self,
        api: CryptVaultApi,
        config: Optional[ProviderConfig] = None,
        version: str = __version__,
    ):
        self.api = api
        self.config = config or ProviderConfig.from_env()
        self.version = version
        logger.debug(
            "Provider %s configured for endpoint %s", version, self.config.endpoint,
        )

    @property
    def type_name(self) -> str:
        return self.config.type_prefix

    def _build(self, registry: dict[str, type]) -> dict[str, Any]:
        built = {}
        for suffix, cls in registry.items():
            name = f"{self.config.type_prefix}_{suffix}"
            built[name] = cls(self.api, timeout=self.config.timeout, type_name=name)
        return built

    def resources(self) -> dict[str, Any]:
        """Fresh reconcilers keyed by resource type name."""
        return self._build(RESOURCES)

    def data_sources(self) -> dict[str, Any]:
        """Fresh data sources keyed by data source type name."""
        return self._build(DATA_SOURCES)

    def resource(self, type_name: str) -> Any:
        """Look up one reconciler by type name.

        Raises:
            KeyError: If no resource with that name exists.
        """
        resources = self.resources()
        if type_name not in resources:
            raise KeyError(f"Unknown resource type: {type_name}")
        return resources[type_name]
