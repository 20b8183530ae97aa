"""
Data Sources — read-only lookups of existing remote objects.

- identity:   private key + vault id → id, name, public key
- value:      id or name (+ creator key, vault id) → decrypted passframe
- vault:      echoes a known vault id
- public_key: validates a public key handed over by another party
"""
import logging
from typing import Optional

from pydantic import BaseModel

from .api import CryptVaultApi
from .diagnostics import Diagnostics
from .exceptions import ValidationError
from .models import Identity, Value, Vault, utcnow
from .resources.base import ReconcileResult, capture_errors, require_fields
from .vault.crypto import decode_public_key
from .vault.session import open_session

logger = logging.getLogger("cryptvault.provider")


class PublicKey(BaseModel):
    public_key: Optional[str] = None


class IdentityDataSource:
    """Load an identity by the private key that belongs to it."""

    def __init__(self, api: CryptVaultApi, timeout: Optional[float] = None,
                 type_name: str = "cryptvault_cloud_identity"):
        self._api = api
        self._timeout = timeout
        self.type_name = type_name

    async def read(self, config: Identity) -> ReconcileResult[Identity]:
        diagnostics = Diagnostics()
        with capture_errors(diagnostics, "read identity data source"):
            data = config.model_copy(deep=True)
            session = open_session(self._api, data.private_key, data.vault_id, self._timeout)
            identity = await session.get_identity(session.identity_id)
            data.id = identity.id
            data.name = identity.name
            data.public_key = identity.public_key or session.public_key
            data.last_updated = utcnow()
            return ReconcileResult(data, diagnostics)
        return ReconcileResult(None, diagnostics)


class ValueDataSource:
    """Read a value by id or by name and decrypt it locally."""

    def __init__(self, api: CryptVaultApi, timeout: Optional[float] = None,
                 type_name: str = "cryptvault_cloud_value"):
        self._api = api
        self._timeout = timeout
        self.type_name = type_name

    async def read(self, config: Value) -> ReconcileResult[Value]:
        diagnostics = Diagnostics()
        with capture_errors(diagnostics, "read value data source"):
            data = config.model_copy(deep=True)
            session = open_session(self._api, data.creator_key, data.vault_id, self._timeout)
            if data.id:
                remote = await session.get_value_by_id(data.id)
            elif data.name:
                remote = await session.get_value_by_name(data.name)
            else:
                raise ValidationError("id", "id or name has to be set to read a value")
            data.passframe = await session.get_decrypted_passframe(remote.value)
            data.id = remote.id
            data.name = remote.name
            data.type = remote.type
            data.last_updated = utcnow()
            logger.debug("Value data source read id=%s", data.id)
            return ReconcileResult(data, diagnostics)
        return ReconcileResult(None, diagnostics)


class VaultDataSource:
    def __init__(self, api: CryptVaultApi, timeout: Optional[float] = None,
                 type_name: str = "cryptvault_cloud_vault"):
        self._api = api
        self._timeout = timeout
        self.type_name = type_name

    async def read(self, config: Vault) -> ReconcileResult[Vault]:
        diagnostics = Diagnostics()
        with capture_errors(diagnostics, "read vault data source"):
            require_fields(config, {"id": "vault id is required"})
            return ReconcileResult(config.model_copy(deep=True), diagnostics)
        return ReconcileResult(None, diagnostics)


class PublicKeyDataSource:
    """Hold a public key created on another device (private key unknown)."""

    def __init__(self, api: Optional[CryptVaultApi] = None, timeout: Optional[float] = None,
                 type_name: str = "cryptvault_cloud_public_key"):
        self.type_name = type_name

    async def read(self, config: PublicKey) -> ReconcileResult[PublicKey]:
        diagnostics = Diagnostics()
        with capture_errors(diagnostics, "read public key data source"):
            require_fields(config, {"public_key": "public key is required"})
            decode_public_key(config.public_key)
            return ReconcileResult(config.model_copy(deep=True), diagnostics)
        return ReconcileResult(None, diagnostics)
