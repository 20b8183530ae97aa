"""CryptVault Provider.

Declarative lifecycle of CryptVault vaults, identities and encrypted
values: reconcilers converge a desired-state record with the remote
protected store and report diagnostics.
"""
from .version import __version__
from .diagnostics import Diagnostic, Diagnostics, Severity
from .models import (
    Identity,
    KeyPair,
    Permission,
    ResourceState,
    RightGrant,
    Target,
    Value,
    ValueType,
    Vault,
)
from .rights import compile_pattern, compile_rights, grant_matches, validate_value_name
from .resources import (
    IdentityResource,
    KeyPairResource,
    ReconcileResult,
    ValueResource,
    VaultResource,
)
from .provider import Provider
from .vault import ProviderConfig, derive_identity_id, open_session, sync_values

__all__ = [
    "__version__",
    "Diagnostic",
    "Diagnostics",
    "Severity",
    "Identity",
    "KeyPair",
    "Permission",
    "ResourceState",
    "RightGrant",
    "Target",
    "Value",
    "ValueType",
    "Vault",
    "compile_pattern",
    "compile_rights",
    "grant_matches",
    "validate_value_name",
    "IdentityResource",
    "KeyPairResource",
    "ReconcileResult",
    "ValueResource",
    "VaultResource",
    "Provider",
    "ProviderConfig",
    "derive_identity_id",
    "open_session",
    "sync_values",
]
