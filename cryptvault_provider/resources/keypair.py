"""
KeyPair Reconciler — a P-521 identity key pair generated locally.

The key pair exists only in the host's state: read and update leave it
untouched, delete forgets it. Its public key can be handed to a vault
owner to create an identity for it.
"""
import logging
from typing import Optional

from ..api import CryptVaultApi
from ..diagnostics import Diagnostics
from ..exceptions import ValidationError
from ..models import KeyPair, ResourceState, utcnow
from ..vault.crypto import encode_private_key, encode_public_key
from ..vault.session import remote_call
from .base import ReconcileResult, capture_errors

logger = logging.getLogger("cryptvault.provider")


class KeyPairResource:
    def __init__(
        self,
        api: CryptVaultApi,
        timeout: Optional[float] = None,
        type_name: str = "cryptvault_cloud_keypair",
    ):
        self._api = api
        self._timeout = timeout
        self.type_name = type_name

    async def create(self, desired: KeyPair) -> ReconcileResult[KeyPair]:
        diagnostics = Diagnostics()
        with capture_errors(diagnostics, "create keypair"):
            private_key, public_key = await remote_call(
                "GetNewIdentityKeyPair",
                self._api.get_new_identity_key_pair,
                timeout=self._timeout,
            )
            data = desired.model_copy(deep=True)
            data.private_key = encode_private_key(private_key)
            data.public_key = encode_public_key(public_key)
            data.last_updated = utcnow()
            data.state = ResourceState.CREATED
            logger.info("Key pair created")
            return ReconcileResult(data, diagnostics)
        return ReconcileResult(None, diagnostics)

    async def read(self, current: KeyPair) -> ReconcileResult[KeyPair]:
        return ReconcileResult(current.model_copy(deep=True))

    async def update(self, desired: KeyPair) -> ReconcileResult[KeyPair]:
        return ReconcileResult(desired.model_copy(deep=True))

    async def delete(self, current: KeyPair) -> Diagnostics:
        current.private_key = None
        current.public_key = None
        current.state = ResourceState.DELETED
        return Diagnostics()

    def import_state(self, resource_id: str) -> KeyPair:
        raise ValidationError("id", "key pairs are generated locally and cannot be imported")
