"""
Identity Reconciler — identities, their key pairs and their rights.

Create flow:
    validate → compile rights → open session (creator key) → new key pair
    → AddIdentity → encode keys → cross-check derived id
    → GetAllRelatedValues → sync each value (failures are warnings)

An identity id is never taken as free text: it is either returned by
the server or recomputed from (public key, vault id).

Security Note:
    Never log private keys or creator keys. Only log ids, names and
    vault ids.
"""
import logging
from typing import Optional

from ..api import CryptVaultApi
from ..diagnostics import Diagnostics
from ..exceptions import (
    ConsistencyError,
    PartialSyncError,
    RemoteError,
    RemoteNotFoundError,
)
from ..models import Identity, ResourceState, utcnow
from ..rights import compile_rights
from ..vault.crypto import derive_identity_id, encode_private_key, encode_public_key
from ..vault.session import ProtectedSession, open_session, remote_call
from ..vault.sync import sync_values
from .base import (
    ReconcileResult,
    capture_errors,
    require_fields,
    require_import_id,
    resolve_identity_id,
)

logger = logging.getLogger("cryptvault.provider")

_CREATE_REQUIRED = {
    "name": "name is required for creating a new identity",
    "vault_id": "vault id is required for creating a new identity",
    "creator_key": "creator private key is required for creating a new identity",
    "rights": "at least one right is required for creating a new identity",
}

_UPDATE_REQUIRED = {
    "name": "name is required for updating an identity",
    "vault_id": "vault id is required for updating an identity",
    "creator_key": "creator private key is required for updating an identity",
}


class IdentityResource:
    """Reconciler for identities inside a vault.

    Args:
        api: CryptVault client.
        timeout: Per-call timeout (seconds) threaded into every remote call.
        type_name: Resource type name exposed to the host.
    """

    def __init__(
        self,
        api: CryptVaultApi,
        timeout: Optional[float] = None,
        type_name: str = "cryptvault_cloud_identity",
    ):
        self._api = api
        self._timeout = timeout
        self.type_name = type_name

    def _session(self, data: Identity) -> ProtectedSession:
        return open_session(self._api, data.creator_key, data.vault_id, self._timeout)

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    async def create(self, desired: Identity) -> ReconcileResult[Identity]:
        """Create a new identity with a fresh key pair and the desired rights."""
        diagnostics = Diagnostics()
        with capture_errors(diagnostics, "create identity"):
            return await self._create(desired.model_copy(deep=True), diagnostics)
        return ReconcileResult(None, diagnostics)

    async def _create(self, data: Identity, diagnostics: Diagnostics) -> ReconcileResult[Identity]:
        require_fields(data, _CREATE_REQUIRED)
        grants = compile_rights(data.rights).raise_for_errors()
        session = self._session(data)

        private_key, public_key = await remote_call(
            "GetNewIdentityKeyPair",
            self._api.get_new_identity_key_pair,
            timeout=self._timeout,
        )
        identity_id = await session.add_identity(data.name, public_key, grants)

        data.id = identity_id
        data.public_key = encode_public_key(public_key)
        data.private_key = encode_private_key(private_key)
        data.grants = grants
        data.last_updated = utcnow()
        data.state = ResourceState.CREATED
        logger.info(
            "Identity created: id=%s name=%s vault=%s (%d grant(s))",
            identity_id, data.name, data.vault_id, len(grants),
        )

        expected = derive_identity_id(data.public_key, data.vault_id)
        if expected != identity_id:
            logger.warning(
                "Identity id mismatch: server=%s derived=%s", identity_id, expected,
            )
            diagnostics.add_warning(
                "Identity Id Mismatch",
                f"server returned id {identity_id} but the public key derives {expected}",
            )

        diagnostics.extend(await self._sync_related(session, identity_id))
        if not diagnostics:
            data.state = ResourceState.SYNCED
        return ReconcileResult(data, diagnostics)

    async def _sync_related(self, session: ProtectedSession, identity_id: str) -> Diagnostics:
        """Give a new identity its shares of every value its rights cover."""
        try:
            value_ids = await session.get_all_related_values(identity_id)
        except RemoteError as err:
            diagnostics = Diagnostics()
            diagnostics.add_warning(
                PartialSyncError.category,
                f"related values of identity {identity_id} could not be listed: {err}",
            )
            return diagnostics
        logger.debug("Identity id=%s has %d related value(s)", identity_id, len(value_ids))
        return await sync_values(session, value_ids)

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    async def read(self, current: Identity) -> ReconcileResult[Identity]:
        """Refresh server-authoritative fields; flag removal if gone remotely."""
        diagnostics = Diagnostics()
        with capture_errors(diagnostics, "read identity"):
            return await self._read(current.model_copy(deep=True), diagnostics)
        return ReconcileResult(None, diagnostics)

    async def _read(self, data: Identity, diagnostics: Diagnostics) -> ReconcileResult[Identity]:
        identity_id = resolve_identity_id(data.id, data.public_key, data.vault_id)
        session = self._session(data)
        try:
            remote = await session.get_identity(identity_id)
        except RemoteNotFoundError:
            logger.info("Identity id=%s no longer exists remotely", identity_id)
            return ReconcileResult(None, diagnostics, removed=True)

        if data.state is ResourceState.DELETED:
            raise ConsistencyError(
                f"identity {identity_id} was deleted but still resolves remotely"
            )

        data.id = remote.id
        if remote.name is not None:
            data.name = remote.name
        if remote.vault_id:
            data.vault_id = remote.vault_id
        if remote.public_key and not data.public_key:
            data.public_key = remote.public_key
        data.last_updated = utcnow()
        data.state = ResourceState.SYNCED
        return ReconcileResult(data, diagnostics)

    # ------------------------------------------------------------------
    # Update
    # ------------------------------------------------------------------

    async def update(self, desired: Identity) -> ReconcileResult[Identity]:
        """Push the desired name and rights to the remote identity."""
        diagnostics = Diagnostics()
        with capture_errors(diagnostics, "update identity"):
            return await self._update(desired.model_copy(deep=True), diagnostics)
        return ReconcileResult(None, diagnostics)

    async def _update(self, data: Identity, diagnostics: Diagnostics) -> ReconcileResult[Identity]:
        require_fields(data, _UPDATE_REQUIRED)
        identity_id = resolve_identity_id(data.id, data.public_key, data.vault_id)
        grants = compile_rights(data.rights).raise_for_errors()
        session = self._session(data)

        remote = await session.update_identity(identity_id, data.name, grants)

        data.id = identity_id
        if remote is not None:
            data.id = remote.id
            if remote.name is not None:
                data.name = remote.name
        data.grants = grants
        data.last_updated = utcnow()
        data.state = ResourceState.SYNCED
        logger.info("Identity updated: id=%s (%d grant(s))", data.id, len(grants))
        return ReconcileResult(data, diagnostics)

    # ------------------------------------------------------------------
    # Delete / Import
    # ------------------------------------------------------------------

    async def delete(self, current: Identity) -> Diagnostics:
        """Delete the remote identity; on success ``current`` is marked deleted."""
        diagnostics = Diagnostics()
        with capture_errors(diagnostics, "delete identity"):
            identity_id = resolve_identity_id(current.id, current.public_key, current.vault_id)
            session = self._session(current)
            await session.delete_identity(identity_id)
            current.id = identity_id
            current.state = ResourceState.DELETED
            logger.info("Identity deleted: id=%s", identity_id)
        return diagnostics

    def import_state(self, resource_id: str) -> Identity:
        """Adopt an existing identity by id; fields are filled on next read."""
        return Identity(
            id=require_import_id(resource_id, "identity"),
            state=ResourceState.CREATED,
        )
