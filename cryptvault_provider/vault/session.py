"""
ProtectedSession — per-operation capability bound to one identity key.

Provides the Protected Session Factory:
- ``open_session(api, private_key, vault_id)`` — decode the key and bind
  a protected API handle to it
- ``ProtectedSession.<remote operation>(...)`` — call the remote API with
  the caller timeout applied and failures wrapped in ``RemoteError``

Sessions are minted fresh for every Create/Read/Update/Delete and are
never cached or shared between resources. Opening a session does not
contact the remote system.

Security Note:
    Never log private key material. Only log vault ids, resource ids
    and operation names.
"""
import asyncio
import logging
from typing import Any, Optional
from collections.abc import Awaitable, Callable

from cryptography.hazmat.primitives.asymmetric import ec

from ..api import (
    CryptVaultApi,
    EncryptedValue,
    ProtectedApi,
    RemoteIdentity,
    RemoteValue,
    RemoteVault,
)
from ..exceptions import (
    MissingCredentialError,
    MissingVaultError,
    RemoteError,
    RemoteNotFoundError,
)
from ..models import RightGrant, ValueType
from .crypto import decode_private_key, derive_identity_id, encode_public_key

logger = logging.getLogger("cryptvault.provider.vault")


async def remote_call(
    operation: str,
    call: Callable[..., Awaitable[Any]],
    *args: Any,
    timeout: Optional[float] = None,
    resource_id: Optional[str] = None,
) -> Any:
    """Await one remote operation with timeout and error context.

    Args:
        operation: Remote operation name, used in error messages.
        call: Coroutine function of the API client.
        *args: Positional arguments for ``call``.
        timeout: Seconds before the call is abandoned (None = no limit).
        resource_id: Id the operation targets, if any.

    Returns:
        Whatever the remote call returns.

    Raises:
        RemoteNotFoundError: If the remote reports a missing resource.
        RemoteError: On any other remote failure or timeout.
    """
    try:
        return await asyncio.wait_for(call(*args), timeout)
    except RemoteNotFoundError as err:
        if err.operation == operation and err.resource_id == resource_id:
            raise
        raise RemoteNotFoundError(operation, resource_id=resource_id) from err
    except RemoteError:
        raise
    except asyncio.TimeoutError as err:
        logger.error("Remote %s timed out after %ss", operation, timeout)
        raise RemoteError(
            operation, f"timed out after {timeout}s", resource_id,
        ) from err
    except Exception as err:
        logger.error("Remote %s failed for id=%s: %s", operation, resource_id, err)
        raise RemoteError(
            operation, str(err) or type(err).__name__, resource_id,
        ) from err


class ProtectedSession:
    """Protected API handle bound to one private key and one vault.

    Every public coroutine maps one-to-one onto a remote protected
    operation and goes through :func:`remote_call`.
    """

    def __init__(
        self,
        api: ProtectedApi,
        private_key: ec.EllipticCurvePrivateKey,
        vault_id: str,
        timeout: Optional[float] = None,
    ):
        self._api = api
        self._private_key = private_key
        self._vault_id = vault_id
        self._timeout = timeout

    def __repr__(self) -> str:
        return f"<ProtectedSession vault={self._vault_id}>"

    @property
    def vault_id(self) -> str:
        return self._vault_id

    @property
    def timeout(self) -> Optional[float]:
        return self._timeout

    @property
    def public_key(self) -> str:
        """Base64 PEM public key of the bound identity."""
        return encode_public_key(self._private_key.public_key())

    @property
    def identity_id(self) -> str:
        """Derived id of the identity this session acts as."""
        return derive_identity_id(self.public_key, self._vault_id)

    async def _call(
        self,
        operation: str,
        method: str,
        *args: Any,
        resource_id: Optional[str] = None,
    ) -> Any:
        return await remote_call(
            operation,
            getattr(self._api, method),
            *args,
            timeout=self._timeout,
            resource_id=resource_id,
        )

    # ------------------------------------------------------------------
    # Identities
    # ------------------------------------------------------------------

    async def get_identity(self, identity_id: str) -> RemoteIdentity:
        return await self._call(
            "GetIdentity", "get_identity", identity_id, resource_id=identity_id,
        )

    async def add_identity(
        self,
        name: str,
        public_key: ec.EllipticCurvePublicKey,
        rights: list[RightGrant],
    ) -> str:
        return await self._call("AddIdentity", "add_identity", name, public_key, rights)

    async def update_identity(
        self,
        identity_id: str,
        name: str,
        rights: list[RightGrant],
    ) -> Optional[RemoteIdentity]:
        return await self._call(
            "UpdateIdentity", "update_identity", identity_id, name, rights,
            resource_id=identity_id,
        )

    async def delete_identity(self, identity_id: str) -> None:
        await self._call(
            "DeleteIdentity", "delete_identity", identity_id, resource_id=identity_id,
        )

    # ------------------------------------------------------------------
    # Values
    # ------------------------------------------------------------------

    async def get_value_by_id(self, value_id: str) -> RemoteValue:
        return await self._call(
            "GetValueById", "get_value_by_id", value_id, resource_id=value_id,
        )

    async def get_value_by_name(self, name: str) -> RemoteValue:
        return await self._call(
            "GetValueByName", "get_value_by_name", name, resource_id=name,
        )

    async def add_value(self, name: str, passframe: str, value_type: ValueType) -> str:
        return await self._call(
            "AddValue", "add_value", name, passframe, value_type, resource_id=name,
        )

    async def update_value(
        self,
        value_id: str,
        name: str,
        passframe: str,
        value_type: ValueType,
    ) -> str:
        return await self._call(
            "UpdateValue", "update_value", value_id, name, passframe, value_type,
            resource_id=value_id,
        )

    async def delete_value(self, value_id: str) -> None:
        await self._call(
            "DeleteValue", "delete_value", value_id, resource_id=value_id,
        )

    async def sync_value(self, value_id: str) -> None:
        await self._call("SyncValue", "sync_value", value_id, resource_id=value_id)

    async def get_all_related_values(self, identity_id: str) -> list[str]:
        return await self._call(
            "GetAllRelatedValues", "get_all_related_values", identity_id,
            resource_id=identity_id,
        )

    async def get_decrypted_passframe(self, values: list[EncryptedValue]) -> str:
        return await self._call(
            "GetDecryptedPassframe", "get_decrypted_passframe", values,
        )

    # ------------------------------------------------------------------
    # Vault
    # ------------------------------------------------------------------

    async def get_vault(self) -> RemoteVault:
        return await self._call("GetVault", "get_vault", resource_id=self._vault_id)

    async def update_vault(self, name: str) -> RemoteVault:
        return await self._call(
            "UpdateVault", "update_vault", name, resource_id=self._vault_id,
        )

    async def delete_vault(self, vault_id: str) -> None:
        await self._call("DeleteVault", "delete_vault", vault_id, resource_id=vault_id)


def open_session(
    api: CryptVaultApi,
    private_key: Optional[str],
    vault_id: Optional[str],
    timeout: Optional[float] = None,
) -> ProtectedSession:
    """Mint a fresh protected session.

    Args:
        api: CryptVault client.
        private_key: Base64 PEM private key of the acting identity.
        vault_id: Vault the session operates on.
        timeout: Per-call timeout in seconds threaded into every remote call.

    Returns:
        New ProtectedSession; nothing is sent to the remote system.

    Raises:
        MissingCredentialError: If private_key is empty.
        MissingVaultError: If vault_id is empty.
        KeyDecodeError: If private_key is not a decodable EC private key.
    """
    if not private_key:
        raise MissingCredentialError("private key is required to open a protected session")
    if not vault_id:
        raise MissingVaultError("vault id is required to open a protected session")
    key = decode_private_key(private_key)
    logger.debug("Opening protected session for vault=%s", vault_id)
    return ProtectedSession(
        api.get_protected_api(key, vault_id),
        key,
        vault_id,
        timeout=timeout,
    )
