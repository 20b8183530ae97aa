"""
Tests for the rights pattern compiler.

Tests cover:
- Compiling single patterns into grants
- Direction letter order and duplicates
- Rejection of malformed patterns
- Batch compilation collecting every error
- Value path grammar
- Structural matching of grants against value paths
"""
import pytest

from cryptvault_provider.exceptions import InvalidPatternError, InvalidRightsError
from cryptvault_provider.models import Permission, RightGrant, Target
from cryptvault_provider.rights import (
    RIGHT_PATTERN,
    compile_pattern,
    compile_rights,
    grant_matches,
    validate_value_name,
)


def _triples(grants):
    return {(g.permission, g.target, g.path) for g in grants}


class TestCompilePattern:
    """Tests for compile_pattern."""

    def test_all_directions(self):
        """(rwd) yields read, write and delete on the same path."""
        grants = compile_pattern("(rwd)VALUES.foo.bar")
        assert len(grants) == 3
        assert [g.permission for g in grants] == [
            Permission.READ, Permission.WRITE, Permission.DELETE,
        ]
        for grant in grants:
            assert grant.target is Target.VALUES
            assert grant.path == ("foo", "bar")

    def test_deep_wildcard_first_segment(self):
        """(r)IDENTITY.> is a single read grant on [>]."""
        grants = compile_pattern("(r)IDENTITY.>")
        assert grants == [
            RightGrant(target=Target.IDENTITY, permission=Permission.READ, path=(">",))
        ]

    def test_single_wildcard(self):
        grants = compile_pattern("(rd)VALUES.foo.*")
        assert _triples(grants) == {
            (Permission.READ, Target.VALUES, ("foo", "*")),
            (Permission.DELETE, Target.VALUES, ("foo", "*")),
        }

    def test_direction_order_is_irrelevant(self):
        """(rwd) and (wdr) compile to the same permission set."""
        assert _triples(compile_pattern("(rwd)SYSTEM.ops.>")) == _triples(
            compile_pattern("(wdr)SYSTEM.ops.>")
        )

    def test_duplicate_directions_collapse(self):
        grants = compile_pattern("(rrw)VALUES.a")
        assert [g.permission for g in grants] == [Permission.READ, Permission.WRITE]

    def test_grant_renders_back(self):
        """A grant renders as a single-direction pattern that compiles to itself."""
        grant = compile_pattern("(w)VALUES.foo-bar.baz_1")[0]
        assert str(grant) == "(w)VALUES.foo-bar.baz_1"
        assert grant.right_value_pattern == "VALUES.foo-bar.baz_1"
        assert compile_pattern(str(grant)) == [grant]

    @pytest.mark.parametrize("pattern", [
        "(r)VALUES.>.foo",        # deep wildcard not final
        "(x)VALUES.foo",          # unknown direction
        "()VALUES.foo",           # empty directions
        "(r)SECRETS.foo",         # unknown target
        "(r)VALUES",              # no path
        "(r)VALUES.Foo",          # uppercase literal
        "(r)VALUES.foo>",         # wildcard glued to a literal
        "(r)VALUES.**",           # double wildcard
        "(r VALUES.foo",          # malformed bracket
        "",
        "(r)VALUES.foo\n",       # trailing newline
    ])
    def test_rejects_invalid(self, pattern):
        with pytest.raises(InvalidPatternError) as exc:
            compile_pattern(pattern)
        assert exc.value.pattern == pattern

    def test_regex_is_exact(self):
        assert RIGHT_PATTERN.pattern == (
            r"^\((?P<directions>(r|w|d)+)\)(?P<target>(VALUES|IDENTITY|SYSTEM))"
            r"(?P<pattern>(\.[a-z0-9_\->\*]+)+)$"
        )


class TestCompileRights:
    """Tests for batch compilation."""

    def test_union_of_grants(self):
        result = compile_rights(["(r)VALUES.a", "(wd)IDENTITY.>"])
        assert len(result.grants) == 3
        assert result.errors == []
        assert result.error is None
        assert result.raise_for_errors() == result.grants

    def test_collects_every_error(self):
        """Both invalid patterns are reported, not just the first."""
        result = compile_rights([
            "(r)VALUES.>.foo",
            "(rw)VALUES.ok",
            "(q)VALUES.foo",
        ])
        assert len(result.grants) == 2
        assert [e.pattern for e in result.errors] == ["(r)VALUES.>.foo", "(q)VALUES.foo"]
        error = result.error
        assert isinstance(error, InvalidRightsError)
        assert len(error) == 2

    def test_raise_for_errors(self):
        with pytest.raises(InvalidRightsError):
            compile_rights(["(z)VALUES.a"]).raise_for_errors()

    def test_empty_batch(self):
        result = compile_rights([])
        assert result.grants == []
        assert result.error is None


class TestValueNames:
    """Tests for the value path grammar."""

    @pytest.mark.parametrize("name", ["VALUES.foo", "IDENTITY.a.b-c", "SYSTEM.x_1"])
    def test_valid(self, name):
        assert validate_value_name(name) == name

    @pytest.mark.parametrize("name", ["VALUES", "VALUES.*", "VALUES.>", "values.foo", "VALUES.a b",
                                      "VALUES.foo\n"])
    def test_invalid(self, name):
        with pytest.raises(InvalidPatternError):
            validate_value_name(name)


class TestGrantMatches:
    """Tests for structural grant matching."""

    def test_literal(self):
        grant = compile_pattern("(r)VALUES.foo.bar")[0]
        assert grant_matches(grant, Permission.READ, "VALUES.foo.bar")
        assert not grant_matches(grant, Permission.READ, "VALUES.foo.baz")
        assert not grant_matches(grant, Permission.READ, "VALUES.foo.bar.baz")
        assert not grant_matches(grant, Permission.WRITE, "VALUES.foo.bar")

    def test_single_wildcard_matches_one_segment(self):
        grant = compile_pattern("(r)VALUES.foo.*")[0]
        assert grant_matches(grant, Permission.READ, "VALUES.foo.bar")
        assert not grant_matches(grant, Permission.READ, "VALUES.foo")
        assert not grant_matches(grant, Permission.READ, "VALUES.foo.bar.baz")

    def test_deep_wildcard_matches_any_depth(self):
        grant = compile_pattern("(r)VALUES.foo.>")[0]
        assert grant_matches(grant, Permission.READ, "VALUES.foo.bar")
        assert grant_matches(grant, Permission.READ, "VALUES.foo.bar.baz.qux")
        assert not grant_matches(grant, Permission.READ, "VALUES.foo")
        assert not grant_matches(grant, Permission.READ, "VALUES.other.bar")

    def test_target_must_match(self):
        grant = compile_pattern("(r)IDENTITY.>")[0]
        assert not grant_matches(grant, Permission.READ, "VALUES.foo")
