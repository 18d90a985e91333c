"""Builder version parsing and comparison."""

from __future__ import annotations

import re
from dataclasses import dataclass

_LEADING_DIGITS = re.compile(r"^\s*(\d+)")
_UNKNOWN = {"", "unknown", "none", "null"}


@dataclass(frozen=True)
class Version:
    """A dotted version. Missing or non-numeric parts count as 0."""

    major: int
    minor: int
    patch: int
    full: str

    @property
    def family(self) -> str:
        return f"{self.major}.x"

    def as_tuple(self) -> tuple[int, int, int]:
        return (self.major, self.minor, self.patch)


def _part(text: str) -> int:
    match = _LEADING_DIGITS.match(text)
    return int(match.group(1)) if match else 0


def parse_version(text: str | None) -> Version | None:
    """Parse "3.5.0" style versions. Returns None when no version is given."""
    if text is None or text.strip().lower() in _UNKNOWN:
        return None
    full = text.strip()
    parts = full.lstrip("vV").split(".")
    parts += ["0"] * (3 - len(parts))
    return Version(
        major=_part(parts[0]),
        minor=_part(parts[1]),
        patch=_part(parts[2]),
        full=full,
    )


def version_family(text: str | None) -> str | None:
    """Family of a version string, e.g. "3.5.0" -> "3.x". None when no version is given."""
    version = parse_version(text)
    return version.family if version else None


def compare_versions(a: str, b: str) -> int:
    """Return -1, 0 or 1 as a is older than, equal to or newer than b."""
    va = parse_version(a) or Version(0, 0, 0, "")
    vb = parse_version(b) or Version(0, 0, 0, "")
    if va.as_tuple() < vb.as_tuple():
        return -1
    if va.as_tuple() > vb.as_tuple():
        return 1
    return 0
