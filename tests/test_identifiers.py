"""
tests/test_identifiers.py
Unit tests for routegen.identifiers.
"""

from __future__ import annotations

from helpers import ident, make_registry, model, scalar, to_many, to_one
from routegen.identifiers import has_identifier, identifier_fields, resolve_identifiers
from routegen.models import ModelInfo


def _model(*fields) -> ModelInfo:
    registry = make_registry([model("Thing", *fields), model("Other", ident())])
    found = registry.get_model("Thing")
    assert found is not None
    return found


class TestResolveIdentifiers:
    """Explicit, composite, unique-fallback and missing identifiers."""

    def test_single_identifier(self) -> None:
        assert resolve_identifiers(_model(ident(), scalar("title"))) == ("id",)

    def test_composite_keeps_declaration_order(self) -> None:
        thing = _model(ident("userId"), scalar("role"), ident("orgId"))
        assert resolve_identifiers(thing) == ("userId", "orgId")

    def test_explicit_identifier_beats_unique(self) -> None:
        thing = _model(scalar("slug", isUnique=True), ident())
        assert resolve_identifiers(thing) == ("id",)

    def test_first_unique_field_is_fallback(self) -> None:
        thing = _model(
            scalar("title"),
            scalar("slug", isUnique=True),
            scalar("code", isUnique=True),
        )
        assert resolve_identifiers(thing) == ("slug",)

    def test_no_identifier(self) -> None:
        thing = _model(scalar("title"), to_many("others", "Other"))
        assert resolve_identifiers(thing) == ()
        assert not has_identifier(thing)

    def test_relations_are_ignored(self) -> None:
        thing = _model(to_one("other", "Other"), scalar("title"))
        assert resolve_identifiers(thing) == ()

    def test_identifier_fields_returns_field_objects(self) -> None:
        thing = _model(ident("a"), ident("b"))
        assert [f.name for f in identifier_fields(thing)] == ["a", "b"]
        assert has_identifier(thing)

    def test_stable_across_calls(self) -> None:
        thing = _model(ident("a"), ident("b"))
        assert resolve_identifiers(thing) == resolve_identifiers(thing)
