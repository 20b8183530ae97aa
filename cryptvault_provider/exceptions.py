"""
Provider Exceptions — error taxonomy for reconcilers and their helpers.

Every error carries a short ``category`` label, used as the diagnostic
summary when the error reaches the reconciler boundary.

Aggregates (``AggregateError`` subclasses) collect a whole batch of
failures; ``AggregateError.join`` returns ``None`` for an empty batch so
callers can treat "no failures" as "no error".
"""
from typing import Optional
from collections.abc import Iterable


class ProviderError(Exception):
    """Base class for every error raised by the provider."""

    category = "Provider Error"

    def __init__(self, message: str = "", *args) -> None:
        super().__init__(message, *args)
        self.message = message

    def __str__(self) -> str:
        return self.message


# ---------------------------------------------------------------------------
# Aggregates
# ---------------------------------------------------------------------------

class AggregateError(ProviderError):
    """A batch of errors reported together."""

    category = "Multiple Errors"

    def __init__(self, errors: Iterable[Exception], message: str = "") -> None:
        self.errors: list[Exception] = list(errors)
        if not message:
            message = "; ".join(str(err) for err in self.errors)
        super().__init__(message)

    def __len__(self) -> int:
        return len(self.errors)

    def __iter__(self):
        return iter(self.errors)

    @classmethod
    def join(cls, errors: Iterable[Exception], message: str = "") -> Optional["AggregateError"]:
        """Build an aggregate, or return None when there is nothing to report.

        Args:
            errors: Underlying errors, in the order they happened.
            message: Optional summary message.

        Returns:
            Aggregate instance, or None for an empty batch.
        """
        collected = [err for err in errors if err is not None]
        if not collected:
            return None
        return cls(collected, message)


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

class ValidationError(ProviderError):
    """A required field is missing or invalid before any remote call."""

    category = "Validation Error"

    def __init__(self, field: str, message: str) -> None:
        super().__init__(message)
        self.field = field


class InvalidConfigError(AggregateError):
    """Several fields of one record failed validation."""

    category = "Validation Error"


# ---------------------------------------------------------------------------
# Grammar
# ---------------------------------------------------------------------------

class GrammarError(ProviderError, ValueError):
    """A rights pattern or value path does not match its grammar."""

    category = "Grammar Error"


class InvalidPatternError(GrammarError):
    """A single pattern failed to compile."""

    def __init__(self, pattern: str, reason: str) -> None:
        super().__init__(f"invalid pattern {pattern!r}: {reason}")
        self.pattern = pattern
        self.reason = reason


class InvalidRightsError(AggregateError, GrammarError):
    """Every rights pattern that failed to compile in one batch."""

    category = "Grammar Error"


# ---------------------------------------------------------------------------
# Credentials
# ---------------------------------------------------------------------------

class CredentialError(ProviderError):
    """Missing or malformed key or session material."""

    category = "Credential Error"


class MissingCredentialError(CredentialError):
    """No private key material was supplied."""


class MissingVaultError(CredentialError):
    """No vault id was supplied."""


class KeyDecodeError(CredentialError):
    """Key material could not be decoded into the expected key type."""


class MissingPublicKeyError(CredentialError):
    """An id has to be derived but the public key is unknown."""


# ---------------------------------------------------------------------------
# Remote
# ---------------------------------------------------------------------------

class RemoteError(ProviderError):
    """Failure reported by the remote protected API."""

    category = "Remote Error"

    def __init__(
        self,
        operation: str,
        message: str,
        resource_id: Optional[str] = None,
    ) -> None:
        target = f" {resource_id}" if resource_id else ""
        super().__init__(f"{operation}{target}: {message}")
        self.operation = operation
        self.resource_id = resource_id


class RemoteNotFoundError(RemoteError):
    """The remote API has no resource with the requested id.

    API clients raise this for a missing resource; reconcilers turn it
    into a removal signal instead of an error.
    """

    category = "Not Found"

    def __init__(
        self,
        operation: str,
        message: str = "resource not found",
        resource_id: Optional[str] = None,
    ) -> None:
        super().__init__(operation, message, resource_id)


class PartialSyncError(AggregateError):
    """Value synchronization failures attached to a successful operation."""

    category = "Partial Sync"


class ConsistencyError(ProviderError):
    """Remote state contradicts an operation that already succeeded."""

    category = "Consistency Error"
