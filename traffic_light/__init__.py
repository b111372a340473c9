"""
Traffic-light decision engine for multi-platform CI/CD.

Several CI platforms share one repository of infrastructure-module pipelines.
Each evaluates the same commit with its own identity; tags in the commit
message decide which single platform runs, which cloud it targets, which
stages are eligible, and what version a publish produces.

Components:
 - parse_commit_message / parse_approval: bracket-tag parsing
 - should_run: ownership of a message by one CI platform
 - resolve_cloud: tagged or default cloud provider
 - gate: plan/test, create_pr and publish eligibility
 - next_version: semantic version bump from the latest tag
 - decide: all of the above, once, as a Decision

Usage:
 from traffic_light import CiTool, InvocationContext, decide

 ctx = InvocationContext(
     ci_tool=CiTool.GH_ACTIONS,
     branch_ref="feature/x",
     commit_message="[github] [aws] [gh_actions] [build] fix: x",
 )
 decision = decide(ctx, latest_tag="v1.0.0")
 decision.to_flat()  # {"should_run": "true", "stage_plan": "true", ...}
"""

from .cloud import resolve_cloud
from .errors import (
    CloudUnresolvedError,
    ConfigError,
    GitSourceError,
    MalformedTagError,
    TrafficLightError,
)
from .gate import gate
from .models import (
    Action,
    ApprovalTags,
    Bump,
    CiTool,
    CloudProvider,
    CommitTags,
    Decision,
    DecisionStatus,
    ErrorKind,
    InvocationContext,
    Reason,
    ReasonCode,
    RepoPlatform,
    StageSet,
)
from .orchestrator import decide
from .ownership import should_run
from .parser import parse_approval, parse_commit_message
from .versioning import next_version, select_latest_tag

__version__ = "0.1.0"

__all__ = [
    "Action",
    "ApprovalTags",
    "Bump",
    "CiTool",
    "CloudProvider",
    "CloudUnresolvedError",
    "CommitTags",
    "ConfigError",
    "Decision",
    "DecisionStatus",
    "ErrorKind",
    "GitSourceError",
    "InvocationContext",
    "MalformedTagError",
    "Reason",
    "ReasonCode",
    "RepoPlatform",
    "StageSet",
    "TrafficLightError",
    "decide",
    "gate",
    "next_version",
    "parse_approval",
    "parse_commit_message",
    "resolve_cloud",
    "select_latest_tag",
    "should_run",
]
