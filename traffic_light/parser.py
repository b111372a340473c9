"""
Tag parser for commit and approval messages.

Routing grammar:  [repo] [cloud] [ci-tool] [action] <description>
Approval grammar: [APPROVED] [MAJOR|MINOR|PATCH] [ci-tool] <description>

Bracket tokens are order-independent and case-insensitive. Tokens are matched
whole, so `[gh_actions_legacy]` never counts as `[gh_actions]`. Parsing is
total: any string (or None) yields a CommitTags, possibly untagged.
"""

from __future__ import annotations

import re
from typing import Iterator

from .models import (
    Action,
    ApprovalTags,
    Bump,
    CiTool,
    CloudProvider,
    CommitTags,
    RepoPlatform,
    parse_enum,
)

__all__ = [
    "APPROVED_TOKEN",
    "iter_bracket_tokens",
    "parse_approval",
    "parse_commit_message",
]

APPROVED_TOKEN = "approved"

# Largest first: with several bump tokens the largest one applies
_BUMP_PRECEDENCE = (Bump.MAJOR, Bump.MINOR, Bump.PATCH)

# One bracket pair, no nesting, never spanning lines
_BRACKET_RE = re.compile(r"\[([^\[\]\r\n]*)\]")

# Category name -> vocabulary, in the order the grammar lists them
_ROUTING_VOCABULARIES: dict[str, type] = {
    "repo_platform": RepoPlatform,
    "cloud_provider": CloudProvider,
    "ci_tool": CiTool,
    "action": Action,
}


def iter_bracket_tokens(message: str | None) -> Iterator[str]:
    """Yield the stripped, lower-cased content of every `[...]` in a message."""
    if not message:
        return
    for match in _BRACKET_RE.finditer(message):
        token = match.group(1).strip().lower()
        if token:
            yield token


def _is_approval_token(token: str) -> bool:
    return token == APPROVED_TOKEN or parse_enum(Bump, token) is not None


def parse_approval(message: str | None) -> ApprovalTags:
    """
    Parse an approval message.

    `approved` is true only when the literal `[APPROVED]` token is present.
    The bump defaults to patch when absent or unrecognized; when several bump
    tokens appear, the largest wins (`[MINOR] [MAJOR]` is a major bump).
    """
    approved = False
    bumps: set[Bump] = set()
    ci_tool: CiTool | None = None

    for token in iter_bracket_tokens(message):
        if token == APPROVED_TOKEN:
            approved = True
            continue
        bump = parse_enum(Bump, token)
        if bump is not None:
            bumps.add(bump)
            continue
        if ci_tool is None:
            ci_tool = parse_enum(CiTool, token)

    bump = next((b for b in _BUMP_PRECEDENCE if b in bumps), Bump.PATCH)
    return ApprovalTags(approved=approved, bump=bump, ci_tool=ci_tool)


def parse_commit_message(message: str | None) -> CommitTags:
    """
    Parse routing tags from a commit message.

    The first recognized value of each category wins; a later, different
    value for the same category is kept in `conflicts`. Tokens outside every
    vocabulary are kept in `unrecognized`. Approval tokens are not routing
    tags, but when present the approval is parsed into `approval`.
    """
    found: dict[str, object] = {}
    unrecognized: list[str] = []
    conflicts: list[str] = []
    has_approval = False

    for token in iter_bracket_tokens(message):
        if _is_approval_token(token):
            has_approval = True
            continue

        for category, vocabulary in _ROUTING_VOCABULARIES.items():
            value = parse_enum(vocabulary, token)
            if value is None:
                continue
            if category not in found:
                found[category] = value
            elif found[category] != value:
                conflicts.append(f"[{token}]")
            break
        else:
            unrecognized.append(f"[{token}]")

    return CommitTags(
        repo_platform=found.get("repo_platform"),
        cloud_provider=found.get("cloud_provider"),
        ci_tool=found.get("ci_tool"),
        action=found.get("action"),
        approval=parse_approval(message) if has_approval else None,
        unrecognized=tuple(unrecognized),
        conflicts=tuple(conflicts),
    )
