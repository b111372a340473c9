"""
Payloads for the delegated release actions.

The engine never opens pull requests or pushes tags. These helpers render what
the PR-creator and tag-pusher steps need so every platform sends the same
title, body and tag annotation.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any

from .models import Bump, CiTool, CloudProvider, Decision

PR_TITLE_TEMPLATE = "Release: {cloud_provider} module updates"
PR_BODY_TEMPLATE = "Automated release PR\n\nApprove with: [APPROVED] [{bump}] [{ci_tool}]"


@dataclass(frozen=True)
class ReleasePullRequest:
    title: str
    body: str
    head: str
    base: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class ReleaseTag:
    name: str
    message: str
    user_name: str
    user_email: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def release_pull_request(
    cloud_provider: CloudProvider,
    ci_tool: CiTool,
    head: str,
    base: str = "main",
    bump: Bump = Bump.PATCH,
) -> ReleasePullRequest:
    """Render the release PR request for a release branch."""
    if head.startswith("refs/heads/"):
        head = head[len("refs/heads/"):]
    return ReleasePullRequest(
        title=PR_TITLE_TEMPLATE.format(cloud_provider=cloud_provider.value),
        body=PR_BODY_TEMPLATE.format(bump=bump.value.upper(), ci_tool=ci_tool.value),
        head=head,
        base=base,
    )


def release_tag(decision: Decision, ci_tool: CiTool, user_email: str) -> ReleaseTag:
    """
    Render the annotated tag the publish step pushes.

    Raises:
        ValueError: If the decision does not make publish eligible
    """
    if not decision.stages.publish or not decision.next_version:
        raise ValueError("Decision does not allow publishing")
    return ReleaseTag(
        name=f"v{decision.next_version}",
        message=f"Release v{decision.next_version}",
        user_name=ci_tool.value,
        user_email=user_email,
    )
