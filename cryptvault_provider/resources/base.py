"""
Reconciler contract shared by every resource kind.

Each resource kind (vault, identity, value, keypair) is an independent
class implementing :class:`ResourceReconciler`; they share helpers from
this module but not a base class.

Operations never raise provider errors to the host: failures are caught
at the boundary by :func:`capture_errors` and returned as diagnostics.
"""
import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Generic, Optional, Protocol, TypeVar
from collections.abc import Iterator

from pydantic import BaseModel

from ..diagnostics import Diagnostics
from ..exceptions import (
    InvalidConfigError,
    MissingPublicKeyError,
    ProviderError,
    ValidationError,
)
from ..vault.crypto import derive_identity_id

logger = logging.getLogger("cryptvault.provider")

T = TypeVar("T", bound=BaseModel)


@dataclass
class ReconcileResult(Generic[T]):
    """Outcome of Create/Read/Update.

    Attributes:
        state: Updated record, or None if the operation failed or the
            resource vanished remotely.
        diagnostics: Errors and warnings raised along the way.
        removed: True when the remote resource no longer exists and the
            host should drop it from its state (not an error).
    """

    state: Optional[T]
    diagnostics: Diagnostics = field(default_factory=Diagnostics)
    removed: bool = False

    @property
    def ok(self) -> bool:
        return not self.diagnostics.has_error()


class ResourceReconciler(Protocol[T]):
    """Create/Read/Update/Delete/Import for one resource kind."""

    type_name: str

    async def create(self, desired: T) -> ReconcileResult[T]: ...

    async def read(self, current: T) -> ReconcileResult[T]: ...

    async def update(self, desired: T) -> ReconcileResult[T]: ...

    async def delete(self, current: T) -> Diagnostics: ...

    def import_state(self, resource_id: str) -> T: ...


@contextmanager
def capture_errors(diagnostics: Diagnostics, operation: str) -> Iterator[None]:
    """Convert provider errors raised inside the block into diagnostics."""
    try:
        yield
    except ProviderError as err:
        logger.error("%s failed: %s", operation, err)
        diagnostics.add_exception(err)


def _is_missing(value: Any) -> bool:
    return value is None or value == "" or value == []


def require_fields(record: BaseModel, fields: dict[str, str]) -> None:
    """Check that every listed field of ``record`` is set.

    Args:
        record: Desired-state record.
        fields: Mapping of field name to the message used when missing.

    Raises:
        InvalidConfigError: Listing every missing field at once.
    """
    error = InvalidConfigError.join(
        ValidationError(name, message)
        for name, message in fields.items()
        if _is_missing(getattr(record, name))
    )
    if error is not None:
        raise error


def require_import_id(resource_id: str, resource: str) -> str:
    if not resource_id or not resource_id.strip():
        raise ValidationError("id", f"an id is required to import a {resource}")
    return resource_id.strip()


def resolve_identity_id(
    identity_id: Optional[str],
    public_key: Optional[str],
    vault_id: Optional[str],
) -> str:
    """Return the known identity id or recompute it from the public key.

    Raises:
        MissingPublicKeyError: If the id is unknown and so is the public key.
        MissingVaultError: If the id must be derived without a vault id.
        KeyDecodeError: If the public key cannot be decoded.
    """
    if identity_id:
        return identity_id
    if not public_key:
        raise MissingPublicKeyError(
            "identity id is unknown and there is no public key to derive it from"
        )
    derived = derive_identity_id(public_key, vault_id)
    logger.debug("Derived identity id=%s for vault=%s", derived, vault_id)
    return derived
