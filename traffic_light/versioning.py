"""
Version planner: next semantic version from the latest tag and an approval.

Tags are compared as numeric triples, never as strings: v10.0.0 sorts above
v9.0.0. The planner never reads tag history itself; callers pass the tags in.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable

from .errors import MalformedTagError
from .models import ApprovalTags, Bump

__all__ = [
    "Version",
    "next_version",
    "parse_version",
    "select_latest_tag",
]

_VERSION_RE = re.compile(r"^[vV]?(\d+)\.(\d+)\.(\d+)$")


@dataclass(frozen=True, order=True)
class Version:
    major: int
    minor: int
    patch: int

    def bump(self, bump: Bump) -> Version:
        if bump == Bump.MAJOR:
            return Version(self.major + 1, 0, 0)
        if bump == Bump.MINOR:
            return Version(self.major, self.minor + 1, 0)
        return Version(self.major, self.minor, self.patch + 1)

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}.{self.patch}"


ZERO = Version(0, 0, 0)


def parse_version(tag: str) -> Version:
    """
    Parse `vMAJOR.MINOR.PATCH` (the `v` is optional).

    Raises:
        MalformedTagError: If the tag is not a numeric triple
    """
    match = _VERSION_RE.match(tag.strip())
    if not match:
        raise MalformedTagError(tag)
    major, minor, patch = (int(part) for part in match.groups())
    return Version(major, minor, patch)


def select_latest_tag(tags: Iterable[str]) -> str | None:
    """
    Pick the numerically greatest valid version tag.

    Tags that are not numeric triples (pre-releases, `latest`, ...) are skipped.
    Returns None when no valid tag exists.
    """
    best: tuple[Version, str] | None = None
    for tag in tags:
        tag = tag.strip()
        if not tag:
            continue
        try:
            version = parse_version(tag)
        except MalformedTagError:
            continue
        if best is None or version > best[0]:
            best = (version, tag)
    return best[1] if best else None


def next_version(latest_tag: str | None, approval: ApprovalTags | None = None) -> str:
    """
    Compute the next version string (without the `v` prefix).

    A missing tag counts as 0.0.0. The bump defaults to patch.

    Raises:
        MalformedTagError: If latest_tag is present but not a numeric triple
    """
    base = parse_version(latest_tag) if latest_tag and latest_tag.strip() else ZERO
    bump = approval.bump if approval is not None else Bump.PATCH
    return str(base.bump(bump))
