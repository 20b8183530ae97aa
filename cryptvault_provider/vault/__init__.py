"""Vault access layer — key handling, protected sessions and value sync.

Security Note (Threat Model):
    Private keys passed to a session are decoded in process memory for
    the lifetime of one operation only. Sessions are never cached, so a
    key is not retained once the operation returns.
"""

from .config import ProviderConfig
from .crypto import (
    decode_private_key,
    decode_public_key,
    derive_identity_id,
    encode_private_key,
    encode_public_key,
    generate_key_pair,
)
from .session import ProtectedSession, open_session, remote_call
from .sync import sync_values

__all__ = [
    "ProviderConfig",
    "decode_private_key",
    "decode_public_key",
    "derive_identity_id",
    "encode_private_key",
    "encode_public_key",
    "generate_key_pair",
    "ProtectedSession",
    "open_session",
    "remote_call",
    "sync_values",
]
