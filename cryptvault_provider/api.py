"""
Remote API contract — what the provider needs from a CryptVault client.

The transport is not part of this package: any object implementing
:class:`CryptVaultApi` (and returning :class:`ProtectedApi` handles) can
be plugged into the :class:`~cryptvault_provider.provider.Provider`.

Clients must raise :class:`~cryptvault_provider.exceptions.RemoteNotFoundError`
when a requested resource does not exist; any other exception is treated
as an opaque remote failure.
"""
from typing import Optional, Protocol, runtime_checkable
from datetime import datetime

from cryptography.hazmat.primitives.asymmetric import ec
from pydantic import BaseModel, Field

from .models import RightGrant, ValueType


class EncryptedValue(BaseModel):
    """One encrypted share of a value, readable by a single identity."""

    identity_id: str
    passframe: str = Field(repr=False)


class RemoteIdentity(BaseModel):
    id: str
    name: Optional[str] = None
    public_key: Optional[str] = None
    vault_id: Optional[str] = None


class RemoteVault(BaseModel):
    id: str
    name: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class RemoteValue(BaseModel):
    id: str
    name: str
    type: ValueType
    value: list[EncryptedValue] = Field(default_factory=list)


@runtime_checkable
class ProtectedApi(Protocol):
    """Operations authorized by one identity's private key in one vault."""

    async def get_identity(self, identity_id: str) -> RemoteIdentity: ...

    async def add_identity(
        self,
        name: str,
        public_key: ec.EllipticCurvePublicKey,
        rights: list[RightGrant],
    ) -> str: ...

    async def update_identity(
        self,
        identity_id: str,
        name: str,
        rights: list[RightGrant],
    ) -> Optional[RemoteIdentity]: ...

    async def delete_identity(self, identity_id: str) -> None: ...

    async def get_value_by_id(self, value_id: str) -> RemoteValue: ...

    async def get_value_by_name(self, name: str) -> RemoteValue: ...

    async def add_value(self, name: str, passframe: str, value_type: ValueType) -> str: ...

    async def update_value(
        self,
        value_id: str,
        name: str,
        passframe: str,
        value_type: ValueType,
    ) -> str: ...

    async def delete_value(self, value_id: str) -> None: ...

    async def sync_value(self, value_id: str) -> None: ...

    async def get_all_related_values(self, identity_id: str) -> list[str]: ...

    async def get_decrypted_passframe(self, values: list[EncryptedValue]) -> str: ...

    async def get_vault(self) -> RemoteVault: ...

    async def update_vault(self, name: str) -> RemoteVault: ...

    async def delete_vault(self, vault_id: str) -> None: ...


@runtime_checkable
class CryptVaultApi(Protocol):
    """Unauthenticated entry point of a CryptVault client."""

    def get_protected_api(
        self,
        private_key: ec.EllipticCurvePrivateKey,
        vault_id: str,
    ) -> ProtectedApi: ...

    async def new_vault(
        self,
        name: str,
        token: str,
    ) -> tuple[ec.EllipticCurvePrivateKey, ec.EllipticCurvePublicKey, str]: ...

    async def get_new_identity_key_pair(
        self,
    ) -> tuple[ec.EllipticCurvePrivateKey, ec.EllipticCurvePublicKey]: ...
