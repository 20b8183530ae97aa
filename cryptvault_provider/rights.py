"""
Rights Pattern Compiler — turns textual rights into structured grants.

A rights pattern looks like ``(rwd)VALUES.foo.bar``:

- ``r`` / ``w`` / ``d`` = read / write / delete (at least one)
- ``VALUES`` / ``IDENTITY`` / ``SYSTEM`` = target namespace
- each ``.segment`` is a literal, ``*`` (exactly one segment) or
  ``>`` (one or more remaining segments, final position only)

Examples::

    (rwd)VALUES.foo.bar   -> read, write, delete on VALUES [foo, bar]
    (rd)VALUES.foo.*      -> read, delete on VALUES [foo, *]
    (r)IDENTITY.>         -> read on IDENTITY [>]

The compiled regular expressions and the direction table below are
module-level constants built at import time and never mutated.
"""
import re
import logging
from types import MappingProxyType
from typing import NamedTuple, Optional
from collections.abc import Iterable

from .exceptions import InvalidPatternError, InvalidRightsError
from .models import (
    DEEP_WILDCARD,
    SINGLE_WILDCARD,
    Permission,
    RightGrant,
    Target,
)

logger = logging.getLogger("cryptvault.provider.rights")

RIGHT_PATTERN_REGEX = (
    r"^\((?P<directions>(r|w|d)+)\)"
    r"(?P<target>(VALUES|IDENTITY|SYSTEM))"
    r"(?P<pattern>(\.[a-z0-9_\->\*]+)+)$"
)
VALUE_PATTERN_REGEX = r"^(VALUES|IDENTITY|SYSTEM)(\.[a-z0-9_\-]+)+$"

RIGHT_PATTERN = re.compile(RIGHT_PATTERN_REGEX)
VALUE_PATTERN = re.compile(VALUE_PATTERN_REGEX)

_LITERAL_SEGMENT = re.compile(r"^[a-z0-9_\-]+$")

DIRECTIONS = MappingProxyType({
    "r": Permission.READ,
    "w": Permission.WRITE,
    "d": Permission.DELETE,
})


class CompiledRights(NamedTuple):
    """Result of compiling a batch of rights patterns."""

    grants: list[RightGrant]
    errors: list[InvalidPatternError]

    @property
    def error(self) -> Optional[InvalidRightsError]:
        """Aggregate of every failed pattern, or None if all compiled."""
        return InvalidRightsError.join(self.errors)

    def raise_for_errors(self) -> list[RightGrant]:
        """Return the grants, raising the aggregate if anything failed."""
        error = self.error
        if error is not None:
            raise error
        return self.grants


def _parse_path(pattern: str, raw_path: str) -> tuple[str, ...]:
    """Split and validate the ``.a.b.c`` part of a rights pattern."""
    segments = tuple(raw_path[1:].split("."))
    last = len(segments) - 1
    for index, segment in enumerate(segments):
        if segment == DEEP_WILDCARD:
            if index != last:
                raise InvalidPatternError(
                    pattern, f"'{DEEP_WILDCARD}' is only allowed as the last segment"
                )
        elif segment == SINGLE_WILDCARD:
            continue
        elif not _LITERAL_SEGMENT.fullmatch(segment):
            raise InvalidPatternError(
                pattern, f"illegal characters in segment {segment!r}"
            )
    return segments


def compile_pattern(pattern: str) -> list[RightGrant]:
    """Compile one rights pattern into one grant per direction letter.

    Args:
        pattern: Pattern such as ``(rw)VALUES.foo.*``.

    Returns:
        Grants sharing target and path, in direction-letter order.
        Repeated letters yield a single grant.

    Raises:
        InvalidPatternError: If the pattern does not match the grammar.
    """
    if not isinstance(pattern, str) or not pattern:
        raise InvalidPatternError(str(pattern), "pattern is empty")
    match = RIGHT_PATTERN.fullmatch(pattern)
    if match is None:
        raise InvalidPatternError(
            pattern, f"does not match {RIGHT_PATTERN_REGEX}"
        )
    target = Target(match.group("target"))
    path = _parse_path(pattern, match.group("pattern"))
    permissions = dict.fromkeys(DIRECTIONS[letter] for letter in match.group("directions"))
    return [
        RightGrant(target=target, permission=permission, path=path)
        for permission in permissions
    ]


def compile_rights(patterns: Iterable[str]) -> CompiledRights:
    """Compile every pattern of a batch, collecting all failures.

    Never stops at the first invalid pattern so every bad rule can be
    reported in one pass.

    Args:
        patterns: Rights patterns, e.g. all rights of one identity.

    Returns:
        CompiledRights with the union of grants and the union of errors.
    """
    grants: list[RightGrant] = []
    errors: list[InvalidPatternError] = []
    for pattern in patterns:
        try:
            grants.extend(compile_pattern(pattern))
        except InvalidPatternError as err:
            errors.append(err)
    if errors:
        logger.debug(
            "Compiled %d grant(s), %d invalid pattern(s)", len(grants), len(errors)
        )
    return CompiledRights(grants, errors)


def validate_value_name(name: str) -> str:
    """Check a value path such as ``VALUES.foo.bar``.

    Raises:
        InvalidPatternError: If the name does not match the value grammar.
    """
    if not isinstance(name, str) or not VALUE_PATTERN.fullmatch(name):
        raise InvalidPatternError(
            str(name), f"does not match {VALUE_PATTERN_REGEX}"
        )
    return name


def grant_matches(grant: RightGrant, permission: Permission, name: str) -> bool:
    """Structural check whether ``grant`` allows ``permission`` on ``name``.

    ``*`` matches exactly one segment; ``>`` matches one or more
    remaining segments.

    Args:
        grant: Compiled grant.
        permission: Requested permission.
        name: Concrete value path, e.g. ``VALUES.foo.bar``.

    Returns:
        True if the grant covers the request.
    """
    if grant.permission is not Permission(permission):
        return False
    validate_value_name(name)
    target, *segments = name.split(".")
    if target != grant.target.value:
        return False
    for index, expected in enumerate(grant.path):
        if expected == DEEP_WILDCARD:
            return len(segments) > index
        if index >= len(segments):
            return False
        if expected != SINGLE_WILDCARD and expected != segments[index]:
            return False
    return len(segments) == len(grant.path)
