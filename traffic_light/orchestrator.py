"""
Orchestrator: the one entry point calling pipelines use.

decide() runs the parser, the resolvers, the stage gate and the version
planner once, in that order, and returns a Decision. It performs no I/O and
raises nothing for the engine's fatal conditions: an unresolvable cloud or a
malformed version tag become `status=error` decisions the pipeline can alert on.
"""

from __future__ import annotations

from dataclasses import replace

from .cloud import explain_cloud, resolve_cloud
from .errors import CloudUnresolvedError, MalformedTagError
from .gate import approval_for, gate
from .models import (
    CommitTags,
    Decision,
    DecisionStatus,
    ErrorKind,
    InvocationContext,
    Reason,
    ReasonCode,
    StageSet,
)
from .ownership import explain_ownership, should_run
from .parser import parse_commit_message
from .versioning import next_version


def _tag_reasons(tags: CommitTags) -> list[Reason]:
    reasons = [
        Reason(ReasonCode.UNRECOGNIZED_TAG, f"ignored unrecognized tag {token}")
        for token in tags.unrecognized
    ]
    reasons.extend(
        Reason(ReasonCode.CONFLICTING_TAG, f"ignored conflicting tag {token}")
        for token in tags.conflicts
    )
    return reasons


def decide(
    ctx: InvocationContext,
    latest_tag: str | None = None,
    prior_stages_succeeded: bool = True,
) -> Decision:
    """
    Decide what this platform should do for this invocation.

    Args:
        ctx: Invocation context supplied by the calling platform
        latest_tag: Numerically greatest `v*` tag, or None if there is none
        prior_stages_succeeded: Outcome of plan/test when re-evaluating after them

    Returns:
        A fresh, immutable Decision
    """
    tags = parse_commit_message(ctx.commit_message)
    reasons = _tag_reasons(tags)

    owned = should_run(tags, ctx)
    reasons.append(explain_ownership(tags, ctx))

    cloud = resolve_cloud(tags, ctx)
    reasons.append(explain_cloud(tags, ctx))
    if cloud is None:
        error = CloudUnresolvedError()
        return Decision(
            should_run=owned,
            cloud_provider=None,
            stages=StageSet(),
            status=DecisionStatus.ERROR,
            error=ErrorKind.CLOUD_UNRESOLVED,
            error_message=str(error),
            reasons=tuple(reasons),
        )

    stages = gate(tags, ctx, prior_stages_succeeded)
    reasons.extend(stages.reasons)

    if not stages.publish:
        return Decision(
            should_run=owned,
            cloud_provider=cloud,
            stages=stages,
            status=DecisionStatus.RUN if stages.any else DecisionStatus.SKIP,
            reasons=tuple(reasons),
        )

    approval = approval_for(ctx)
    try:
        version = next_version(latest_tag, approval)
    except MalformedTagError as e:
        reasons.append(Reason(ReasonCode.MALFORMED_TAG, f"publish blocked: {e}"))
        blocked = replace(stages, publish=False)
        return Decision(
            should_run=owned,
            cloud_provider=cloud,
            stages=blocked,
            status=DecisionStatus.ERROR,
            version_bump=approval.bump,
            error=ErrorKind.MALFORMED_TAG,
            error_message=str(e),
            reasons=tuple(reasons),
        )

    return Decision(
        should_run=owned,
        cloud_provider=cloud,
        stages=stages,
        status=DecisionStatus.RUN,
        version_bump=approval.bump,
        next_version=version,
        reasons=tuple(reasons),
    )
