"""Tests for version parsing and comparison."""

import pytest

from pagebridge.compat.versions import compare_versions, parse_version, version_family


class TestParseVersion:
    """Tests for parse_version()."""

    def test_full(self) -> None:
        version = parse_version("3.5.2")
        assert version is not None
        assert version.as_tuple() == (3, 5, 2)
        assert version.family == "3.x"
        assert version.full == "3.5.2"

    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("3", (3, 0, 0)),
            ("3.5", (3, 5, 0)),
            ("v3.5.1", (3, 5, 1)),
            ("3.5.0-beta2", (3, 5, 0)),
            ("3.x", (3, 0, 0)),
            (" 4.1.0 ", (4, 1, 0)),
            ("garbage", (0, 0, 0)),
        ],
    )
    def test_lenient(self, text: str, expected: tuple[int, int, int]) -> None:
        version = parse_version(text)
        assert version is not None
        assert version.as_tuple() == expected

    @pytest.mark.parametrize("text", [None, "", "  ", "unknown", "None", "null"])
    def test_missing(self, text: str | None) -> None:
        assert parse_version(text) is None


class TestVersionHelpers:
    """Tests for version_family() and compare_versions()."""

    def test_family(self) -> None:
        assert version_family("2.9.14") == "2.x"
        assert version_family(None) is None

    @pytest.mark.parametrize(
        ("a", "b", "expected"),
        [
            ("3.5.0", "3.5.0", 0),
            ("3.5", "3.5.0", 0),
            ("3.4.9", "3.5.0", -1),
            ("3.10.0", "3.9.2", 1),
            ("4.0.0", "3.99.99", 1),
        ],
    )
    def test_compare(self, a: str, b: str, expected: int) -> None:
        assert compare_versions(a, b) == expected
