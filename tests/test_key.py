"""Tests for schema keys and semantic versions."""

from pathlib import Path

import pytest

from json_schema_manager.exceptions import (
    InvalidDomainError,
    InvalidKeyStringError,
    InvalidMajorVersionError,
    InvalidMinorVersionError,
    InvalidPatchVersionError,
    InvalidReleaseTypeError,
    InvalidSchemaKeyCharactersError,
    NoDomainError,
)
from json_schema_manager.schema.key import Key, PathType
from json_schema_manager.schema.semver import (
    ReleaseType,
    SemVer,
    bump_version,
    earlier_versions,
    future_versions,
)


class TestKey:
    def test_parse_and_format(self):
        key = Key.parse("payments_card_charge_1_2_3")

        assert key.domain == ("payments", "card")
        assert key.family == "charge"
        assert key.version == SemVer(1, 2, 3)
        assert str(key) == "payments_card_charge_1_2_3"
        assert key.filename == "payments_card_charge_1_2_3.schema.json"

    def test_hyphens_are_allowed_in_segments(self):
        key = Key.parse("my-domain_my-family_2_0_0")
        assert key.domain == ("my-domain",)
        assert key.family == "my-family"

    @pytest.mark.parametrize("value", ["Payments_card_1_0_0", "a.b_c_1_0_0", "a b_c_1_0_0", ""])
    def test_rejects_invalid_characters(self, value):
        with pytest.raises(InvalidSchemaKeyCharactersError):
            Key.parse(value)

    def test_too_few_segments(self):
        with pytest.raises(InvalidKeyStringError):
            Key.parse("family_1_0")

    def test_missing_domain(self):
        with pytest.raises(NoDomainError):
            Key.parse("family_1_0_0")

    def test_empty_domain_segment(self):
        with pytest.raises(InvalidDomainError):
            Key.parse("a__family_1_0_0")

    def test_version_errors(self):
        with pytest.raises(InvalidMajorVersionError):
            Key.parse("d_f_0_1_0")
        with pytest.raises(InvalidMajorVersionError):
            Key.parse("d_f_x_1_0")
        with pytest.raises(InvalidMinorVersionError):
            Key.parse("d_f_1_x_0")
        with pytest.raises(InvalidPatchVersionError):
            Key.parse("d_f_1_0_x")

    @pytest.mark.parametrize(
        "value, error",
        [
            ("people_person_01_0_0", InvalidMajorVersionError),
            ("people_person_1_00_0", InvalidMinorVersionError),
            ("people_person_1_0_007", InvalidPatchVersionError),
        ],
    )
    def test_leading_zeros_are_rejected(self, value, error):
        with pytest.raises(error):
            Key.parse(value)

    def test_paths(self):
        key = Key.parse("payments_charge_1_0_2")
        root = Path("/reg")

        assert key.path(PathType.FAMILY_DIR, root) == Path("/reg/payments/charge")
        assert key.path(PathType.HOME_DIR, root) == Path("/reg/payments/charge/1/0/2")
        assert key.path(PathType.FILE_PATH, root) == Path(
            "/reg/payments/charge/1/0/2/payments_charge_1_0_2.schema.json"
        )

    def test_in_scope(self):
        key = Key.parse("payments_card_charge_1_0_0")

        assert key.in_scope("")
        assert key.in_scope("payments")
        assert key.in_scope("payments/card/")
        assert key.in_scope("payments/card/charge/1")
        assert not key.in_scope("pay")
        assert not key.in_scope("payments/card/charge/2")

    def test_keys_are_hashable_values(self):
        assert Key.parse("a_b_1_0_0") == Key.parse("a_b_1_0_0")
        assert len({Key.parse("a_b_1_0_0"), Key.parse("a_b_1_0_0")}) == 1


def lister(tree):
    """Version lister over a nested dict of major -> minor -> [patch]."""

    def list_versions(prefix):
        if len(prefix) == 0:
            return sorted(tree)
        if len(prefix) == 1:
            return sorted(tree.get(prefix[0], {}))
        return sorted(tree.get(prefix[0], {}).get(prefix[1], []))

    return list_versions


class TestSemVer:
    def test_ordering(self):
        assert SemVer(1, 0, 0) < SemVer(1, 0, 1) < SemVer(1, 1, 0) < SemVer(2, 0, 0)
        assert str(SemVer(1, 10, 3)) == "1.10.3"

    def test_release_type_from_string(self):
        assert ReleaseType.from_string("Minor") is ReleaseType.MINOR
        with pytest.raises(InvalidReleaseTypeError):
            ReleaseType.from_string("huge")

    def test_bump_uses_highest_sibling(self):
        tree = {1: {0: [0, 1], 1: [0]}, 2: {0: [0]}}
        list_versions = lister(tree)
        current = SemVer(1, 0, 0)

        assert bump_version(current, ReleaseType.PATCH, list_versions) == SemVer(1, 0, 2)
        assert bump_version(current, ReleaseType.MINOR, list_versions) == SemVer(1, 2, 0)
        assert bump_version(current, ReleaseType.MAJOR, list_versions) == SemVer(3, 0, 0)

    def test_bump_from_middle_of_family(self):
        tree = {
            1: {0: [0, 1, 2], 1: [0, 1, 2, 3, 4], 2: [0, 1, 2, 3]},
            2: {0: [0, 1, 2]},
        }
        list_versions = lister(tree)
        current = SemVer(1, 2, 3)

        assert bump_version(current, ReleaseType.MAJOR, list_versions) == SemVer(3, 0, 0)
        assert bump_version(current, ReleaseType.MINOR, list_versions) == SemVer(1, 3, 0)
        assert bump_version(current, ReleaseType.PATCH, list_versions) == SemVer(1, 2, 4)

    def test_bump_with_empty_listing(self):
        assert bump_version(SemVer(1, 2, 3), ReleaseType.PATCH, lambda prefix: []) == SemVer(1, 2, 4)

    def test_bump_propagates_listing_errors(self):
        def failing(prefix):
            raise OSError("unreadable")

        with pytest.raises(OSError):
            bump_version(SemVer(1, 0, 0), ReleaseType.MINOR, failing)

    def test_future_and_earlier_stay_in_major(self):
        tree = {1: {0: [0, 1], 1: [0, 2]}, 2: {0: [0]}}
        list_versions = lister(tree)
        current = SemVer(1, 0, 1)

        assert future_versions(current, list_versions) == [
            SemVer(1, 1, 0),
            SemVer(1, 1, 2),
        ]
        assert earlier_versions(current, list_versions) == [SemVer(1, 0, 0)]
        assert earlier_versions(SemVer(1, 0, 0), list_versions) == []
