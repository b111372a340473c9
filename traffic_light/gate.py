"""
Stage gate: which pipeline stages are eligible for this invocation.

Rules, in precedence order:

1. plan and test are eligible iff this platform owns the message.
2. create_pr is eligible iff plan and test are, the message carries
   `[release]`, and the branch is not a main branch.
3. publish is eligible iff the branch is a main branch and the approval
   parsed from the merge message names this platform's ci tool.

create_pr and publish are computed independently. The branch keeps them apart
in practice, but a malformed context still gets an explainable answer for
each stage instead of a short-circuit.
"""

from __future__ import annotations

from .models import (
    Action,
    ApprovalTags,
    CommitTags,
    InvocationContext,
    Reason,
    ReasonCode,
    StageSet,
)
from .ownership import should_run
from .parser import parse_approval


def approval_for(ctx: InvocationContext) -> ApprovalTags:
    """
    Parse the approval that governs publishing.

    The merge message wins; without one the triggering commit message is used,
    since on main the head commit is the merge commit.
    """
    message = ctx.merge_message if ctx.merge_message is not None else ctx.commit_message
    return parse_approval(message)


def _create_pr(
    tags: CommitTags, ctx: InvocationContext, owned: bool, prior_ok: bool
) -> tuple[bool, Reason | None]:
    if not owned:
        return False, None
    if tags.action != Action.RELEASE:
        return False, Reason(ReasonCode.CREATE_PR_NOT_RELEASE, "no [release] tag, no release PR")
    if ctx.on_main_branch:
        return False, Reason(
            ReasonCode.CREATE_PR_ON_MAIN,
            f"release PRs are never opened from {ctx.branch_name}",
        )
    if not prior_ok:
        return False, Reason(ReasonCode.PRIOR_STAGES_FAILED, "plan/test failed, no release PR")
    return True, Reason(
        ReasonCode.CREATE_PR_ELIGIBLE, f"release PR from {ctx.branch_name} is eligible"
    )


def _publish(ctx: InvocationContext, prior_ok: bool) -> tuple[bool, Reason]:
    me = ctx.ci_tool.value
    if not ctx.on_main_branch:
        return False, Reason(
            ReasonCode.PUBLISH_NOT_MAIN, f"publish only runs on main, not {ctx.branch_name}"
        )

    approval = approval_for(ctx)
    if approval.ci_tool != ctx.ci_tool:
        return False, Reason(ReasonCode.APPROVAL_MISSING, f"merge message has no [{me}] approval")
    if ctx.require_approval_token and not approval.approved:
        return False, Reason(
            ReasonCode.APPROVAL_MISSING, "merge message names this platform but lacks [APPROVED]"
        )
    if not prior_ok:
        return False, Reason(ReasonCode.PRIOR_STAGES_FAILED, "plan/test failed, not publishing")
    return True, Reason(
        ReasonCode.PUBLISH_ELIGIBLE,
        f"approved for {me} with a {approval.bump.value} bump",
    )


def gate(
    tags: CommitTags, ctx: InvocationContext, prior_stages_succeeded: bool = True
) -> StageSet:
    """Derive stage eligibility from tags, branch, and prior stage outcome."""
    owned = should_run(tags, ctx)
    reasons: list[Reason] = []

    if owned:
        reasons.append(Reason(ReasonCode.PLAN_TEST_ELIGIBLE, "plan and test are eligible"))

    create_pr, pr_reason = _create_pr(tags, ctx, owned, prior_stages_succeeded)
    if pr_reason is not None:
        reasons.append(pr_reason)

    publish, publish_reason = _publish(ctx, prior_stages_succeeded)
    reasons.append(publish_reason)

    return StageSet(
        plan=owned,
        test=owned,
        create_pr=create_pr,
        publish=publish,
        reasons=tuple(reasons),
    )
