"""
Ownership resolver: should this CI platform act on the message at all?

Every platform evaluates the same message with its own identity. With one
`[ci-tool]` tag per message at most one platform answers yes. The engine
cannot see the other platforms, so that uniqueness is a convention for commit
authors, not something checked here.
"""

from __future__ import annotations

from .models import CommitTags, InvocationContext, Reason, ReasonCode


def explain_ownership(tags: CommitTags, ctx: InvocationContext) -> Reason:
    """Return the rule that decides ownership, with a readable message."""
    me = ctx.ci_tool.value

    if tags.ci_tool is not None:
        if tags.ci_tool == ctx.ci_tool:
            return Reason(ReasonCode.OWNER_MATCHED, f"[{me}] tag matches this platform")
        return Reason(
            ReasonCode.NO_OWNER_MATCHED,
            f"not a {me} job: message is tagged [{tags.ci_tool.value}]",
        )

    if not ctx.treat_untagged_as_default:
        return Reason(
            ReasonCode.NO_OWNER_MATCHED,
            f"not a {me} job: no ci-tool tag and untagged messages are not routed",
        )

    if ctx.default_ci_tool is None:
        return Reason(
            ReasonCode.NO_OWNER_MATCHED,
            f"not a {me} job: no ci-tool tag and no default ci tool configured",
        )

    if ctx.default_ci_tool == ctx.ci_tool:
        return Reason(
            ReasonCode.UNTAGGED_DEFAULT_OWNER,
            f"no ci-tool tag; {me} is the default ci tool",
        )

    return Reason(
        ReasonCode.NO_OWNER_MATCHED,
        f"not a {me} job: no ci-tool tag and the default ci tool is {ctx.default_ci_tool.value}",
    )


def should_run(tags: CommitTags, ctx: InvocationContext) -> bool:
    """True iff this platform owns the message."""
    reason = explain_ownership(tags, ctx)
    return reason.code in (ReasonCode.OWNER_MATCHED, ReasonCode.UNTAGGED_DEFAULT_OWNER)
