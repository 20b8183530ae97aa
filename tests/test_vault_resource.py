"""Tests for the Vault reconciler."""
import pytest

from cryptvault_provider.models import ResourceState, Vault
from cryptvault_provider.resources import VaultResource
from cryptvault_provider.vault.crypto import derive_identity_id

VALID_TOKEN = "vault-creation-token"


@pytest.fixture
def vaults(api) -> VaultResource:
    return VaultResource(api)


class TestVaultCreate:
    """Tests for VaultResource.create."""

    @pytest.mark.asyncio
    async def test_create(self, api, vaults):
        desired = Vault(name="payments", token=VALID_TOKEN)
        result = await vaults.create(desired)

        assert result.ok
        state = result.state
        assert state.id in api.store.vaults
        assert state.operator_private_key and state.operator_public_key
        assert state.operator_id == derive_identity_id(state.operator_public_key, state.id)
        assert state.operator_name == "operator"
        assert state.state is ResourceState.SYNCED
        assert state.last_updated is not None
        assert desired.id is None

    @pytest.mark.asyncio
    async def test_missing_token(self, api, vaults):
        result = await vaults.create(Vault(name="payments"))
        assert result.state is None
        assert result.diagnostics[0].detail.startswith("token:")
        assert api.store.calls == []

    @pytest.mark.asyncio
    async def test_rejected_token(self, api, vaults):
        result = await vaults.create(Vault(name="payments", token="wrong"))
        assert result.state is None
        assert result.diagnostics[0].summary == "Remote Error"
        assert "NewVault" in result.diagnostics[0].detail
        assert api.store.vaults == {}


class TestVaultLifecycle:
    """Read, update, delete and import."""

    @pytest.mark.asyncio
    async def test_read_refreshes(self, api, vaults):
        created = (await vaults.create(Vault(name="payments", token=VALID_TOKEN))).state
        api.store.vaults[created.id]["name"] = "payments-renamed"

        result = await vaults.read(created)
        assert result.ok
        assert result.state.name == "payments-renamed"
        assert result.state.last_updated == api.store.vaults[created.id]["updated_at"]

    @pytest.mark.asyncio
    async def test_read_derives_operator_id(self, vaults):
        created = (await vaults.create(Vault(name="payments", token=VALID_TOKEN))).state
        result = await vaults.read(created.model_copy(update={"operator_id": None}))
        assert result.state.operator_id == created.operator_id

    @pytest.mark.asyncio
    async def test_update_renames(self, api, vaults):
        created = (await vaults.create(Vault(name="payments", token=VALID_TOKEN))).state
        result = await vaults.update(created.model_copy(update={"name": "billing"}))
        assert result.ok
        assert result.state.name == "billing"
        assert api.store.vaults[created.id]["name"] == "billing"

    @pytest.mark.asyncio
    async def test_delete_then_read_removes(self, vaults):
        created = (await vaults.create(Vault(name="payments", token=VALID_TOKEN))).state
        assert await vaults.delete(created) == []
        assert created.state is ResourceState.DELETED

        result = await vaults.read(created)
        assert result.removed
        assert not result.diagnostics.has_error()

    @pytest.mark.asyncio
    async def test_read_without_operator_key(self, api, vaults, vault):
        vault_id, _ = vault
        result = await vaults.read(Vault(id=vault_id))
        assert result.state is None
        assert result.diagnostics[0].summary == "Credential Error"
        assert api.store.calls == []

    def test_import(self, vaults):
        record = vaults.import_state("vault-42")
        assert record.id == "vault-42"
        assert record.state is ResourceState.CREATED
