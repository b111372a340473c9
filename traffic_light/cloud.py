"""Cloud resolver: tagged provider first, configured default second."""

from __future__ import annotations

from .models import CloudProvider, CommitTags, InvocationContext, Reason, ReasonCode


def resolve_cloud(tags: CommitTags, ctx: InvocationContext) -> CloudProvider | None:
    """
    Return the target cloud provider.

    None means neither a `[cloud]` tag nor a default exists. That is a
    configuration error, reported by the orchestrator rather than raised here.
    """
    if tags.cloud_provider is not None:
        return tags.cloud_provider
    return ctx.default_cloud_provider


def explain_cloud(tags: CommitTags, ctx: InvocationContext) -> Reason:
    if tags.cloud_provider is not None:
        return Reason(
            ReasonCode.CLOUD_FROM_TAG,
            f"target cloud {tags.cloud_provider.value} from [{tags.cloud_provider.value}] tag",
        )
    if ctx.default_cloud_provider is not None:
        return Reason(
            ReasonCode.CLOUD_FROM_DEFAULT,
            f"target cloud {ctx.default_cloud_provider.value} from default",
        )
    return Reason(ReasonCode.CLOUD_UNRESOLVED, "no cloud tag and no default cloud provider")
