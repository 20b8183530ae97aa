"""
Resource Models — desired/actual state records handled by the reconcilers.

Secret fields (private keys, creator keys, tokens, passframes) are kept
out of ``repr`` so they never end up in logs or tracebacks.
"""
from enum import Enum
from typing import Optional
from datetime import datetime, timezone

from pydantic import BaseModel, Field


class Target(str, Enum):
    """Top-level permission namespace of a rights path."""

    VALUES = "VALUES"
    IDENTITY = "IDENTITY"
    SYSTEM = "SYSTEM"


class Permission(str, Enum):
    READ = "read"
    WRITE = "write"
    DELETE = "delete"


class ValueType(str, Enum):
    """Content type of a stored value (case-sensitive)."""

    STRING = "String"
    JSON = "JSON"


class ResourceState(str, Enum):
    """Reconciliation state of one resource instance."""

    PLANNED = "planned"
    CREATED = "created"
    SYNCED = "synced"
    DELETED = "deleted"


SINGLE_WILDCARD = "*"
DEEP_WILDCARD = ">"

_PERMISSION_LETTERS = {
    Permission.READ: "r",
    Permission.WRITE: "w",
    Permission.DELETE: "d",
}


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RightGrant(BaseModel):
    """One permission on a target and hierarchical path pattern."""

    target: Target
    permission: Permission
    path: tuple[str, ...]

    model_config = {"frozen": True}

    @property
    def right_value_pattern(self) -> str:
        """Path pattern without direction, e.g. ``VALUES.foo.>``."""
        return ".".join((self.target.value, *self.path))

    def __str__(self) -> str:
        return f"({_PERMISSION_LETTERS[self.permission]}){self.right_value_pattern}"


class Identity(BaseModel):
    """An identity inside a vault, holding a key pair and a set of rights."""

    id: Optional[str] = None
    name: Optional[str] = None
    public_key: Optional[str] = None
    private_key: Optional[str] = Field(default=None, repr=False)
    vault_id: Optional[str] = None
    creator_key: Optional[str] = Field(default=None, repr=False)
    rights: list[str] = Field(default_factory=list)
    grants: list[RightGrant] = Field(default_factory=list)
    last_updated: Optional[datetime] = None
    state: ResourceState = ResourceState.PLANNED


class Vault(BaseModel):
    """A vault together with its operator identity."""

    id: Optional[str] = None
    name: Optional[str] = None
    token: Optional[str] = Field(default=None, repr=False)
    operator_id: Optional[str] = None
    operator_public_key: Optional[str] = None
    operator_private_key: Optional[str] = Field(default=None, repr=False)
    operator_name: Optional[str] = None
    last_updated: Optional[datetime] = None
    state: ResourceState = ResourceState.PLANNED


class Value(BaseModel):
    """A named encrypted value stored under a vault."""

    id: Optional[str] = None
    vault_id: Optional[str] = None
    name: Optional[str] = None
    passframe: Optional[str] = Field(default=None, repr=False)
    type: Optional[ValueType] = None
    creator_key: Optional[str] = Field(default=None, repr=False)
    last_updated: Optional[datetime] = None
    state: ResourceState = ResourceState.PLANNED


class KeyPair(BaseModel):
    """A locally generated identity key pair."""

    public_key: Optional[str] = None
    private_key: Optional[str] = Field(default=None, repr=False)
    last_updated: Optional[datetime] = None
    state: ResourceState = ResourceState.PLANNED
