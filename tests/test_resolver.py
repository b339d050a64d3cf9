"""Tests for schema search and target resolution."""

import os

import pytest

from json_schema_manager.exceptions import (
    InvalidSchemaFilenameError,
    InvalidSearchScopeError,
    InvalidTargetArgumentError,
    LocationOutsideRootDirectoryError,
    NoSchemaTargetsError,
    NotASchemaFileError,
    NotFoundError,
    TargetArgumentTargetsMultipleSchemasError,
)
from json_schema_manager.schema.key import Key
from json_schema_manager.schema.resolver import (
    ResolvedTarget,
    TargetResolver,
    resolve_scope_to_single_key,
)
from json_schema_manager.schema.searcher import Searcher

PERSON_100 = Key.parse("people_person_1_0_0")
PERSON_110 = Key.parse("people_person_1_1_0")


@pytest.fixture
def populated(person_registry, writer):
    writer.schema("places_address_1_0_0")
    return person_registry


class TestSearcher:
    def test_whole_registry_in_path_order(self, populated):
        keys = list(Searcher(populated).schemas())
        assert keys == [PERSON_100, PERSON_110, Key.parse("places_address_1_0_0")]

    def test_scope(self, populated):
        assert list(Searcher(populated, "people/person/1/1").schemas()) == [PERSON_110]

    def test_missing_scope(self, populated):
        with pytest.raises(NotFoundError):
            Searcher(populated, "nothing/here")

    def test_invalid_scope(self, populated):
        with pytest.raises(InvalidSearchScopeError):
            Searcher(populated, "People")

    def test_hidden_directories_are_skipped(self, populated, registry_root):
        hidden = registry_root / "people" / ".jsm-stage" / "home"
        hidden.mkdir(parents=True)
        (hidden / "people_ghost_1_0_0.schema.json").write_text("{}")
        assert Key.parse("people_ghost_1_0_0") not in list(Searcher(populated).schemas())

    def test_invalid_schema_filename(self, populated, registry_root):
        (registry_root / "people" / "Bad_Name_1_0_0.schema.json").write_text("{}")
        with pytest.raises(InvalidSchemaFilenameError):
            list(Searcher(populated).schemas())


class TestTargetResolver:
    def test_key(self, populated):
        assert TargetResolver(populated, "people_person_1_0_0").resolve() == ResolvedTarget(key=PERSON_100)

    def test_all(self, populated):
        target = TargetResolver(populated, "all").resolve()
        assert target == ResolvedTarget(scope="")
        assert str(target) == "all"

    def test_scope(self, populated):
        assert TargetResolver(populated, "people/person/").resolve() == ResolvedTarget(scope="people/person")
        assert TargetResolver(populated, "people").resolve() == ResolvedTarget(scope="people")

    def test_canonical_id(self, populated):
        arg = "https://json-schemas.example.com/people_person_1_1_0.schema.json"
        assert TargetResolver(populated, arg).resolve() == ResolvedTarget(key=PERSON_110)

    def test_url_that_is_not_a_schema(self, populated):
        with pytest.raises(NotASchemaFileError):
            TargetResolver(populated, "https://example.com/people/person").resolve()

    def test_schema_file_path(self, populated, writer):
        path = writer.home("people_person_1_1_0") / "people_person_1_1_0.schema.json"
        assert TargetResolver(populated, str(path)).resolve() == ResolvedTarget(key=PERSON_110)

    def test_relative_directory_path(self, populated, registry_root, monkeypatch):
        monkeypatch.chdir(registry_root)
        target = TargetResolver(populated, "./people/person").resolve()
        assert target == ResolvedTarget(scope="people/person")

    def test_directory_outside_root(self, populated, tmp_path):
        outside = tmp_path / "outside"
        outside.mkdir()
        with pytest.raises(LocationOutsideRootDirectoryError):
            TargetResolver(populated, str(outside)).resolve()

    def test_missing_path(self, populated):
        with pytest.raises(NotFoundError):
            TargetResolver(populated, "./does/not/exist").resolve()
        with pytest.raises(NotFoundError):
            TargetResolver(populated, "missing.json").resolve()

    def test_nothing_given(self, populated):
        with pytest.raises(NoSchemaTargetsError):
            TargetResolver(populated).resolve()

    def test_explicit_options_take_priority(self, populated):
        resolver = TargetResolver(populated, "all")
        resolver.set_scope("places").set_id(
            "https://json-schemas.example.com/people_person_1_0_0.schema.json"
        ).set_key("people_person_1_1_0")
        assert resolver.resolve() == ResolvedTarget(key=PERSON_110)

        resolver = TargetResolver(populated, "all").set_scope("places").set_id(
            "https://json-schemas.example.com/people_person_1_0_0.schema.json"
        )
        assert resolver.resolve() == ResolvedTarget(key=PERSON_100)

        assert TargetResolver(populated, "all").set_scope("places").resolve() == ResolvedTarget(
            scope="places"
        )

    def test_id_must_be_a_url(self, populated):
        with pytest.raises(InvalidTargetArgumentError):
            TargetResolver(populated).set_id("people_person_1_0_0").resolve()

    def test_resolve_single_key(self, populated):
        assert TargetResolver(populated, "places").resolve_single_key() == Key.parse("places_address_1_0_0")
        with pytest.raises(TargetArgumentTargetsMultipleSchemasError):
            TargetResolver(populated, "people").resolve_single_key()

    def test_scope_without_schemas(self, populated, registry_root):
        os.makedirs(registry_root / "empty" / "family")
        with pytest.raises(NotFoundError):
            resolve_scope_to_single_key(populated, "empty")

    def test_target_matches(self):
        assert ResolvedTarget(key=PERSON_100).matches(PERSON_100)
        assert not ResolvedTarget(key=PERSON_100).matches(PERSON_110)
        assert ResolvedTarget(scope="people").matches(PERSON_110)
        assert ResolvedTarget(scope="").matches(PERSON_110)
        assert not ResolvedTarget(scope="places").matches(PERSON_110)
