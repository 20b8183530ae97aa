"""Shared test fixtures: an in-memory CryptVault remote store."""
import uuid
from datetime import datetime, timezone
from typing import Optional

import pytest

from cryptvault_provider.api import (
    EncryptedValue,
    RemoteIdentity,
    RemoteValue,
    RemoteVault,
)
from cryptvault_provider.exceptions import RemoteNotFoundError
from cryptvault_provider.models import Permission, RightGrant, ValueType
from cryptvault_provider.rights import compile_rights, grant_matches
from cryptvault_provider.vault.crypto import (
    derive_identity_id,
    encode_private_key,
    encode_public_key,
    generate_key_pair,
)

VALID_TOKEN = "vault-creation-token"


class FakeStore:
    """Remote state shared by every API handle of one fake server."""

    def __init__(self):
        self.vaults: dict[str, dict] = {}
        self.identities: dict[str, dict] = {}
        self.values: dict[str, dict] = {}
        self.calls: list[str] = []
        self.synced: list[str] = []
        self.fail_sync: set[str] = set()
        self.fail_related = False
        self.fail_decrypt = False
        self.identity_id_override: Optional[str] = None


class FakeProtectedApi:
    """Protected API bound to one key and vault, backed by FakeStore."""

    def __init__(self, store: FakeStore, private_key, vault_id: str):
        self.store = store
        self.private_key = private_key
        self.vault_id = vault_id

    def _log(self, operation: str) -> None:
        self.store.calls.append(operation)

    def _identity(self, identity_id: str) -> dict:
        record = self.store.identities.get(identity_id)
        if record is None or record["vault_id"] != self.vault_id:
            raise RemoteNotFoundError("GetIdentity", resource_id=identity_id)
        return record

    def _value(self, value_id: str) -> dict:
        record = self.store.values.get(value_id)
        if record is None or record["vault_id"] != self.vault_id:
            raise RemoteNotFoundError("GetValueById", resource_id=value_id)
        return record

    def _remote_value(self, value_id: str, record: dict) -> RemoteValue:
        return RemoteValue(
            id=value_id,
            name=record["name"],
            type=record["type"],
            value=[EncryptedValue(identity_id="operator", passframe=record["passframe"])],
        )

    async def get_identity(self, identity_id):
        self._log("GetIdentity")
        record = self._identity(identity_id)
        return RemoteIdentity(
            id=identity_id,
            name=record["name"],
            public_key=record["public_key"],
            vault_id=record["vault_id"],
        )

    async def add_identity(self, name, public_key, rights):
        self._log("AddIdentity")
        encoded = encode_public_key(public_key)
        identity_id = self.store.identity_id_override or derive_identity_id(encoded, self.vault_id)
        self.store.identities[identity_id] = {
            "name": name,
            "public_key": encoded,
            "vault_id": self.vault_id,
            "rights": list(rights),
        }
        return identity_id

    async def update_identity(self, identity_id, name, rights):
        self._log("UpdateIdentity")
        record = self._identity(identity_id)
        record["name"] = name
        record["rights"] = list(rights)
        return RemoteIdentity(id=identity_id, name=name, vault_id=self.vault_id)

    async def delete_identity(self, identity_id):
        self._log("DeleteIdentity")
        self._identity(identity_id)
        del self.store.identities[identity_id]

    async def get_value_by_id(self, value_id):
        self._log("GetValueById")
        return self._remote_value(value_id, self._value(value_id))

    async def get_value_by_name(self, name):
        self._log("GetValueByName")
        for value_id, record in self.store.values.items():
            if record["name"] == name and record["vault_id"] == self.vault_id:
                return self._remote_value(value_id, record)
        raise RemoteNotFoundError("GetValueByName", resource_id=name)

    async def add_value(self, name, passframe, value_type):
        self._log("AddValue")
        value_id = uuid.uuid4().hex
        self.store.values[value_id] = {
            "name": name,
            "passframe": passframe,
            "type": ValueType(value_type),
            "vault_id": self.vault_id,
        }
        return value_id

    async def update_value(self, value_id, name, passframe, value_type):
        self._log("UpdateValue")
        record = self._value(value_id)
        record.update(name=name, passframe=passframe, type=ValueType(value_type))
        return value_id

    async def delete_value(self, value_id):
        self._log("DeleteValue")
        self._value(value_id)
        del self.store.values[value_id]

    async def sync_value(self, value_id):
        self._log("SyncValue")
        if value_id in self.store.fail_sync:
            raise RuntimeError("value is locked")
        self.store.synced.append(value_id)

    async def get_all_related_values(self, identity_id):
        self._log("GetAllRelatedValues")
        if self.store.fail_related:
            raise ConnectionError("connection reset")
        grants: list[RightGrant] = self._identity(identity_id)["rights"]
        return [
            value_id
            for value_id, record in self.store.values.items()
            if record["vault_id"] == self.vault_id
            and any(grant_matches(g, Permission.READ, record["name"]) for g in grants)
        ]

    async def get_decrypted_passframe(self, values):
        self._log("GetDecryptedPassframe")
        if self.store.fail_decrypt:
            raise ValueError("no share for this identity")
        return values[0].passframe

    async def get_vault(self):
        self._log("GetVault")
        record = self.store.vaults.get(self.vault_id)
        if record is None:
            raise RemoteNotFoundError("GetVault", resource_id=self.vault_id)
        return RemoteVault(
            id=self.vault_id,
            name=record["name"],
            created_at=record["created_at"],
            updated_at=record["updated_at"],
        )

    async def update_vault(self, name):
        self._log("UpdateVault")
        record = self.store.vaults[self.vault_id]
        record["name"] = name
        record["updated_at"] = datetime.now(timezone.utc)
        return await self.get_vault()

    async def delete_vault(self, vault_id):
        self._log("DeleteVault")
        if vault_id not in self.store.vaults:
            raise RemoteNotFoundError("DeleteVault", resource_id=vault_id)
        del self.store.vaults[vault_id]


class FakeCryptVault:
    """In-memory CryptVault client."""

    def __init__(self):
        self.store = FakeStore()

    def get_protected_api(self, private_key, vault_id):
        return FakeProtectedApi(self.store, private_key, vault_id)

    async def new_vault(self, name, token):
        self.store.calls.append("NewVault")
        if token != VALID_TOKEN:
            raise PermissionError("token is not allowed to create vaults")
        return self._new_vault(name)

    async def get_new_identity_key_pair(self):
        self.store.calls.append("GetNewIdentityKeyPair")
        return generate_key_pair()

    def _new_vault(self, name):
        private_key, public_key = generate_key_pair()
        vault_id = uuid.uuid4().hex
        now = datetime.now(timezone.utc)
        self.store.vaults[vault_id] = {"name": name, "created_at": now, "updated_at": now}
        encoded = encode_public_key(public_key)
        self.store.identities[derive_identity_id(encoded, vault_id)] = {
            "name": "operator",
            "public_key": encoded,
            "vault_id": vault_id,
            "rights": compile_rights(["(rwd)VALUES.>", "(rwd)IDENTITY.>", "(rwd)SYSTEM.>"]).grants,
        }
        return private_key, public_key, vault_id

    def seed_vault(self, name: str = "seeded") -> tuple[str, str]:
        """Create a vault without going through the API; returns (vault_id, operator key)."""
        private_key, _, vault_id = self._new_vault(name)
        return vault_id, encode_private_key(private_key)

    def seed_value(self, vault_id: str, name: str, passframe: str = "secret",
                   value_type: ValueType = ValueType.STRING) -> str:
        value_id = uuid.uuid4().hex
        self.store.values[value_id] = {
            "name": name,
            "passframe": passframe,
            "type": value_type,
            "vault_id": vault_id,
        }
        return value_id


@pytest.fixture
def api() -> FakeCryptVault:
    """Fresh in-memory CryptVault server."""
    return FakeCryptVault()


@pytest.fixture
def vault(api: FakeCryptVault) -> tuple[str, str]:
    """A seeded vault: (vault_id, operator private key)."""
    return api.seed_vault("team-vault")


@pytest.fixture
def key_pair() -> tuple[str, str]:
    """Encoded (private key, public key) pair."""
    private_key, public_key = generate_key_pair()
    return encode_private_key(private_key), encode_public_key(public_key)
