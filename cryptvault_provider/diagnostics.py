"""
Diagnostics — structured findings returned to the orchestrating host.

A diagnostic is a (severity, summary, detail) triple. Errors mean the
operation failed and its state must not be persisted; warnings are
attached to an otherwise successful operation (e.g. partial value sync).
"""
from enum import Enum
from typing import Any

import orjson
from pydantic import BaseModel

from .exceptions import AggregateError, ProviderError, ValidationError


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"


class Diagnostic(BaseModel):
    """One finding reported by a reconciler."""

    severity: Severity
    summary: str
    detail: str = ""

    model_config = {"frozen": True}


class Diagnostics(list):
    """Ordered list of :class:`Diagnostic` with helpers for building it."""

    def add_error(self, summary: str, detail: str = "") -> None:
        self.append(Diagnostic(severity=Severity.ERROR, summary=summary, detail=detail))

    def add_warning(self, summary: str, detail: str = "") -> None:
        self.append(Diagnostic(severity=Severity.WARNING, summary=summary, detail=detail))

    def add_exception(
        self,
        err: Exception,
        severity: Severity = Severity.ERROR,
    ) -> None:
        """Record an exception, one entry per underlying error of an aggregate.

        Args:
            err: Raised error. Aggregates are expanded recursively.
            severity: Severity to record the error(s) with.
        """
        if isinstance(err, AggregateError):
            for inner in err.errors:
                self.add_exception(inner, severity)
            return
        summary = getattr(err, "category", None) or type(err).__name__
        detail = str(err)
        if isinstance(err, ValidationError):
            detail = f"{err.field}: {detail}"
        self.append(Diagnostic(severity=severity, summary=summary, detail=detail))

    def has_error(self) -> bool:
        return any(d.severity is Severity.ERROR for d in self)

    @property
    def errors(self) -> list[Diagnostic]:
        return [d for d in self if d.severity is Severity.ERROR]

    @property
    def warnings(self) -> list[Diagnostic]:
        return [d for d in self if d.severity is Severity.WARNING]

    def to_list(self) -> list[dict[str, Any]]:
        return [d.model_dump(mode="json") for d in self]

    def to_json(self) -> bytes:
        """Serialize all diagnostics as a JSON array."""
        return orjson.dumps(self.to_list())

    @classmethod
    def from_exception(cls, err: ProviderError) -> "Diagnostics":
        diagnostics = cls()
        diagnostics.add_exception(err)
        return diagnostics
