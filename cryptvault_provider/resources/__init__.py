"""Resource reconcilers, one per resource kind."""
from .base import ReconcileResult, ResourceReconciler
from .identity import IdentityResource
from .keypair import KeyPairResource
from .value import ValueResource
from .vault import VaultResource

__all__ = [
    "ReconcileResult",
    "ResourceReconciler",
    "IdentityResource",
    "KeyPairResource",
    "ValueResource",
    "VaultResource",
]
