"""
Vault Reconciler — vaults and their operator identity.

A vault is created together with an operator identity that owns full
rights on it. The operator key pair is returned once, at creation; its
id is derived locally from the operator public key and the vault id.

Security Note:
    Never log the vault token or the operator private key.
"""
import logging
from typing import Optional

from ..api import CryptVaultApi
from ..diagnostics import Diagnostics
from ..exceptions import ConsistencyError, RemoteNotFoundError
from ..models import ResourceState, Vault, utcnow
from ..vault.crypto import derive_identity_id, encode_private_key, encode_public_key
from ..vault.session import ProtectedSession, open_session, remote_call
from .base import (
    ReconcileResult,
    capture_errors,
    require_fields,
    require_import_id,
    resolve_identity_id,
)

logger = logging.getLogger("cryptvault.provider")

_CREATE_REQUIRED = {
    "name": "name is required for creating a new vault",
    "token": "token is required for creating a new vault",
}


class VaultResource:
    """Reconciler for vaults.

    Args:
        api: CryptVault client.
        timeout: Per-call timeout (seconds) threaded into every remote call.
        type_name: Resource type name exposed to the host.
    """

    def __init__(
        self,
        api: CryptVaultApi,
        timeout: Optional[float] = None,
        type_name: str = "cryptvault_cloud_vault",
    ):
        self._api = api
        self._timeout = timeout
        self.type_name = type_name

    def _session(self, data: Vault) -> ProtectedSession:
        return open_session(self._api, data.operator_private_key, data.id, self._timeout)

    async def create(self, desired: Vault) -> ReconcileResult[Vault]:
        """Create a vault and record its operator identity."""
        diagnostics = Diagnostics()
        with capture_errors(diagnostics, "create vault"):
            data = desired.model_copy(deep=True)
            require_fields(data, _CREATE_REQUIRED)
            private_key, public_key, vault_id = await remote_call(
                "NewVault",
                self._api.new_vault,
                data.name,
                data.token,
                timeout=self._timeout,
                resource_id=data.name,
            )
            data.id = vault_id
            data.operator_public_key = encode_public_key(public_key)
            data.operator_private_key = encode_private_key(private_key)
            data.operator_id = derive_identity_id(data.operator_public_key, vault_id)
            data.state = ResourceState.CREATED
            logger.info("Vault created: id=%s name=%s", vault_id, data.name)

            session = self._session(data)
            operator = await session.get_identity(data.operator_id)
            data.operator_name = operator.name
            data.last_updated = utcnow()
            data.state = ResourceState.SYNCED
            return ReconcileResult(data, diagnostics)
        return ReconcileResult(None, diagnostics)

    async def read(self, current: Vault) -> ReconcileResult[Vault]:
        """Refresh vault name, operator name and timestamp."""
        diagnostics = Diagnostics()
        with capture_errors(diagnostics, "read vault"):
            data = current.model_copy(deep=True)
            session = self._session(data)
            try:
                remote = await session.get_vault()
            except RemoteNotFoundError:
                logger.info("Vault id=%s no longer exists remotely", data.id)
                return ReconcileResult(None, diagnostics, removed=True)

            if data.state is ResourceState.DELETED:
                raise ConsistencyError(
                    f"vault {remote.id} was deleted but still resolves remotely"
                )

            data.id = remote.id
            data.name = remote.name
            data.operator_id = resolve_identity_id(
                data.operator_id, data.operator_public_key, data.id,
            )
            operator = await session.get_identity(data.operator_id)
            data.operator_name = operator.name
            data.last_updated = remote.updated_at or utcnow()
            data.state = ResourceState.SYNCED
            return ReconcileResult(data, diagnostics)
        return ReconcileResult(None, diagnostics)

    async def update(self, desired: Vault) -> ReconcileResult[Vault]:
        """Rename the vault."""
        diagnostics = Diagnostics()
        with capture_errors(diagnostics, "update vault"):
            data = desired.model_copy(deep=True)
            require_fields(data, {"name": "name is required for updating a vault"})
            session = self._session(data)
            remote = await session.update_vault(data.name)
            data.id = remote.id
            data.name = remote.name
            data.last_updated = remote.updated_at or utcnow()
            data.state = ResourceState.SYNCED
            logger.info("Vault updated: id=%s name=%s", data.id, data.name)
            return ReconcileResult(data, diagnostics)
        return ReconcileResult(None, diagnostics)

    async def delete(self, current: Vault) -> Diagnostics:
        """Delete the vault; on success ``current`` is marked deleted."""
        diagnostics = Diagnostics()
        with capture_errors(diagnostics, "delete vault"):
            session = self._session(current)
            await session.delete_vault(current.id)
            current.state = ResourceState.DELETED
            logger.info("Vault deleted: id=%s", current.id)
        return diagnostics

    def import_state(self, resource_id: str) -> Vault:
        return Vault(id=require_import_id(resource_id, "vault"), state=ResourceState.CREATED)
