"""
Vocabulary and data model for the traffic-light decision engine.

Every value here is created, consumed and discarded within one pipeline
invocation. Nothing is persisted by the engine itself.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, TypeVar


class RepoPlatform(str, Enum):
    """Source-hosting platform named by the `[repo]` tag."""

    GITHUB = "github"
    GITLAB = "gitlab"
    BITBUCKET = "bitbucket"
    AZURE_REPOS = "azure_repos"
    CODECOMMIT = "codecommit"
    OCI_DEVOPS = "oci_devops"


class CloudProvider(str, Enum):
    """Target cloud named by the `[cloud]` tag."""

    AZURE = "azure"
    AWS = "aws"
    CIVO = "civo"
    OCI = "oci"


class CiTool(str, Enum):
    """CI platform identity named by the `[ci-tool]` tag."""

    ADO = "ado"
    GH_ACTIONS = "gh_actions"
    AWS_PIPELINE = "aws_pipeline"
    OCI_PIPELINE = "oci_pipeline"


class Action(str, Enum):
    """Pipeline action named by the `[action]` tag."""

    BUILD = "build"
    RELEASE = "release"


class Bump(str, Enum):
    """Semantic version component selected by an approval message."""

    MAJOR = "major"
    MINOR = "minor"
    PATCH = "patch"


class DecisionStatus(str, Enum):
    RUN = "run"  # at least one stage is eligible
    SKIP = "skip"  # nothing to do, every reason is a normal outcome
    ERROR = "error"  # fatal condition the pipeline must alert on


class ErrorKind(str, Enum):
    """Fatal decision states, reported distinctly from a normal skip."""

    CLOUD_UNRESOLVED = "cloud_unresolved"
    MALFORMED_TAG = "malformed_tag"


class ReasonCode(str, Enum):
    """Rules that can fire while deciding, in audit-trail form."""

    UNRECOGNIZED_TAG = "unrecognized_tag"
    CONFLICTING_TAG = "conflicting_tag"
    OWNER_MATCHED = "owner_matched"
    UNTAGGED_DEFAULT_OWNER = "untagged_default_owner"
    NO_OWNER_MATCHED = "no_owner_matched"
    CLOUD_FROM_TAG = "cloud_from_tag"
    CLOUD_FROM_DEFAULT = "cloud_from_default"
    CLOUD_UNRESOLVED = "cloud_unresolved"
    PLAN_TEST_ELIGIBLE = "plan_test_eligible"
    CREATE_PR_ELIGIBLE = "create_pr_eligible"
    CREATE_PR_NOT_RELEASE = "create_pr_not_release"
    CREATE_PR_ON_MAIN = "create_pr_on_main"
    PUBLISH_ELIGIBLE = "publish_eligible"
    PUBLISH_NOT_MAIN = "publish_not_main"
    APPROVAL_MISSING = "approval_missing"
    PRIOR_STAGES_FAILED = "prior_stages_failed"
    MALFORMED_TAG = "malformed_tag"


E = TypeVar("E", bound=Enum)


def parse_enum(enum_cls: type[E], value: Any) -> E | None:
    """Case-insensitive lookup of an enum member by value; None if unknown."""
    if value is None:
        return None
    if isinstance(value, enum_cls):
        return value
    token = str(value).strip().lower()
    for member in enum_cls:
        if member.value == token:
            return member
    return None


@dataclass(frozen=True)
class Reason:
    """One entry of a decision's audit trail."""

    code: ReasonCode
    message: str

    def to_dict(self) -> dict[str, str]:
        return {"code": self.code.value, "message": self.message}


@dataclass(frozen=True)
class ApprovalTags:
    """Parsed `[APPROVED] [BUMP] [ci-tool]` approval message."""

    approved: bool = False
    bump: Bump = Bump.PATCH
    ci_tool: CiTool | None = None


@dataclass(frozen=True)
class CommitTags:
    """
    Routing tags parsed from one commit message.

    At most one value per category. `unrecognized` and `conflicts` hold the
    bracket tokens that did not contribute, for reporting only.
    """

    repo_platform: RepoPlatform | None = None
    cloud_provider: CloudProvider | None = None
    ci_tool: CiTool | None = None
    action: Action | None = None
    approval: ApprovalTags | None = None
    unrecognized: tuple[str, ...] = ()
    conflicts: tuple[str, ...] = ()

    @property
    def is_untagged(self) -> bool:
        """True when no routing tag at all was recognized."""
        return (
            self.repo_platform is None
            and self.cloud_provider is None
            and self.ci_tool is None
            and self.action is None
        )


@dataclass(frozen=True)
class InvocationContext:
    """What the calling platform knows about this invocation."""

    ci_tool: CiTool
    branch_ref: str
    commit_message: str
    default_cloud_provider: CloudProvider | None = None
    merge_message: str | None = None

    # Ownership policy for untagged messages
    default_ci_tool: CiTool | None = None
    treat_untagged_as_default: bool = False

    main_branches: tuple[str, ...] = ("main", "master")
    require_approval_token: bool = False

    @property
    def branch_name(self) -> str:
        """Branch ref without the `refs/heads/` prefix CI platforms add."""
        ref = self.branch_ref.strip()
        if ref.startswith("refs/heads/"):
            return ref[len("refs/heads/"):]
        return ref

    @property
    def on_main_branch(self) -> bool:
        return self.branch_name in self.main_branches


@dataclass(frozen=True)
class StageSet:
    """Eligibility of each pipeline stage, with the rules that produced it."""

    plan: bool = False
    test: bool = False
    create_pr: bool = False
    publish: bool = False
    reasons: tuple[Reason, ...] = ()

    @property
    def any(self) -> bool:
        return self.plan or self.test or self.create_pr or self.publish


@dataclass(frozen=True)
class Decision:
    """
    The single output record of one invocation.

    Pipelines act on `stages`; `status`, `error` and `reasons` explain why.
    """

    should_run: bool
    cloud_provider: CloudProvider | None
    stages: StageSet
    status: DecisionStatus
    version_bump: Bump | None = None
    next_version: str | None = None
    error: ErrorKind | None = None
    error_message: str | None = None
    reasons: tuple[Reason, ...] = field(default_factory=tuple)

    @property
    def next_tag(self) -> str | None:
        return f"v{self.next_version}" if self.next_version else None

    def to_flat(self) -> dict[str, str]:
        """Flat key/value form consumable by any pipeline DSL's conditionals."""

        def _bool(value: bool) -> str:
            return "true" if value else "false"

        return {
            "should_run": _bool(self.should_run),
            "cloud_provider": self.cloud_provider.value if self.cloud_provider else "",
            "stage_plan": _bool(self.stages.plan),
            "stage_test": _bool(self.stages.test),
            "stage_create_pr": _bool(self.stages.create_pr),
            "stage_publish": _bool(self.stages.publish),
            "version_bump": self.version_bump.value if self.version_bump else "",
            "next_version": self.next_version or "",
            "next_tag": self.next_tag or "",
            "status": self.status.value,
            "error": self.error.value if self.error else "",
            "error_message": self.error_message or "",
            "reason": "; ".join(r.message for r in self.reasons),
        }

    def to_dict(self) -> dict[str, Any]:
        """Structured form for JSON output and the decision log."""
        return {
            "should_run": self.should_run,
            "cloud_provider": self.cloud_provider.value if self.cloud_provider else None,
            "stages": {
                "plan": self.stages.plan,
                "test": self.stages.test,
                "create_pr": self.stages.create_pr,
                "publish": self.stages.publish,
            },
            "status": self.status.value,
            "version_bump": self.version_bump.value if self.version_bump else None,
            "next_version": self.next_version,
            "next_tag": self.next_tag,
            "error": self.error.value if self.error else None,
            "error_message": self.error_message,
            "reasons": [r.to_dict() for r in self.reasons],
        }
