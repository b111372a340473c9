#!/usr/bin/env python3
"""
traffic-light command line.

Every CI platform's template calls the same command and maps the flat output
back onto its own conditional syntax.

Usage:
    traffic-light decide --ci-tool gh_actions --branch-ref "$GITHUB_REF" --from-git \\
        --output-file "$GITHUB_OUTPUT"
    traffic-light parse "[github] [aws] [gh_actions] [release] feat: y"
    traffic-light next-version --latest-tag v1.2.3 --bump minor
    traffic-light release-pr --cloud aws --ci-tool gh_actions --head feature/y

Exit codes:
    0  decision made (run or skip)
    1  fatal decision state or configuration error
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Optional

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .audit import DecisionLog
from .config import TrafficLightSettings, build_context, load_policy_config, load_settings
from .errors import ConfigError, GitSourceError, MalformedTagError
from .git_source import GitRepository
from .models import (
    ApprovalTags,
    Bump,
    CiTool,
    CloudProvider,
    Decision,
    DecisionStatus,
    parse_enum,
)
from .orchestrator import decide
from .parser import parse_approval, parse_commit_message
from .release import release_pull_request, release_tag
from .versioning import next_version, select_latest_tag

# Human-readable output goes to stderr; stdout stays machine-readable
console = Console(stderr=True)


def _bool_flag(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in ("true", "1", "yes", "on"):
        return True
    if lowered in ("false", "0", "no", "off"):
        return False
    raise argparse.ArgumentTypeError(f"expected true/false, got '{value}'")


def render_env(flat: dict[str, str]) -> str:
    """KEY=value lines, the format of $GITHUB_OUTPUT and dotenv files."""
    return "\n".join(f"{key}={value}" for key, value in flat.items())


def render_table(decision: Decision) -> Table:
    table = Table(title="Traffic light decision")
    table.add_column("Key", style="cyan")
    table.add_column("Value")
    for key, value in decision.to_flat().items():
        if key == "reason":
            continue
        table.add_row(key, value)
    return table


def print_summary(decision: Decision) -> None:
    """Explain the decision on stderr, one line per rule that fired."""
    if decision.status == DecisionStatus.ERROR:
        console.print(f"[red]Error: {escape(decision.error_message or '')}[/red]")
    elif decision.status == DecisionStatus.SKIP:
        console.print("[yellow]Skipping: nothing to do for this platform[/yellow]")
    else:
        stages = [
            name
            for name, eligible in (
                ("plan", decision.stages.plan),
                ("test", decision.stages.test),
                ("create_pr", decision.stages.create_pr),
                ("publish", decision.stages.publish),
            )
            if eligible
        ]
        console.print(f"[green]Running:[/green] {', '.join(stages)}")
        if decision.cloud_provider:
            console.print(f" Target cloud: {decision.cloud_provider.value}")
        if decision.next_version:
            console.print(f" Next version: v{decision.next_version}")

    for reason in decision.reasons:
        console.print(f" - {escape(reason.message)}", style="dim")


def _resolve_latest_tag(
    args: argparse.Namespace,
    settings: TrafficLightSettings,
    repo: Optional[GitRepository],
) -> Optional[str]:
    if args.latest_tag:
        return args.latest_tag
    if args.tag:
        return select_latest_tag(args.tag)
    if settings.latest_tag:
        return settings.latest_tag
    if repo is not None:
        if args.fetch_tags:
            repo.fetch_tags()
        return repo.latest_version_tag()
    return None


def cmd_decide(args: argparse.Namespace) -> int:
    settings = load_settings()
    config_path = args.config or settings.traffic_light_config
    policy = load_policy_config(Path(config_path) if config_path else None)

    overrides: dict[str, Any] = {
        "ci_tool": args.ci_tool,
        "default_cloud_provider": args.default_cloud_provider,
        "default_ci_tool": args.default_ci_tool,
        "treat_untagged_as_default": args.treat_untagged_as_default,
        "branch_ref": args.branch_ref,
        "commit_message": args.commit_message,
        "merge_message": args.merge_message,
    }

    repo = GitRepository(args.repo_path) if args.from_git else None
    if repo is not None and args.commit_message is None and settings.commit_message is None:
        overrides["commit_message"] = repo.head_commit_message()

    ctx = build_context(settings, policy, overrides)
    latest_tag = _resolve_latest_tag(args, settings, repo)

    decision_log = DecisionLog()
    decision = decide(ctx, latest_tag, prior_stages_succeeded=not args.prior_stages_failed)

    if args.format == "json":
        payload = decision.to_dict()
        if decision.stages.publish:
            payload["release_tag"] = release_tag(
                decision, ctx.ci_tool, policy.pipeline_email
            ).to_dict()
        print(json.dumps(payload, indent=2))
    elif args.format == "table":
        Console().print(render_table(decision))
    else:
        print(render_env(decision.to_flat()))

    if args.output_file:
        with open(args.output_file, "a") as f:
            f.write(render_env(decision.to_flat()) + "\n")

    if not args.quiet:
        print_summary(decision)

    decision_log.log_decision(ctx, decision)

    return 1 if decision.status == DecisionStatus.ERROR else 0


def cmd_parse(args: argparse.Namespace) -> int:
    tags = parse_commit_message(args.message)
    approval = parse_approval(args.message)

    def _value(member: Any) -> Optional[str]:
        return member.value if member is not None else None

    print(
        json.dumps(
            {
                "repo_platform": _value(tags.repo_platform),
                "cloud_provider": _value(tags.cloud_provider),
                "ci_tool": _value(tags.ci_tool),
                "action": _value(tags.action),
                "untagged": tags.is_untagged,
                "unrecognized": list(tags.unrecognized),
                "conflicts": list(tags.conflicts),
                "approval": {
                    "approved": approval.approved,
                    "bump": approval.bump.value,
                    "ci_tool": _value(approval.ci_tool),
                },
            },
            indent=2,
        )
    )
    return 0


def cmd_next_version(args: argparse.Namespace) -> int:
    latest = args.latest_tag or (select_latest_tag(args.tag) if args.tag else None)
    if args.approval is not None:
        approval = parse_approval(args.approval)
    else:
        approval = ApprovalTags(bump=Bump(args.bump))
    try:
        version = next_version(latest, approval)
    except MalformedTagError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        return 1
    print(version)
    return 0


def cmd_release_pr(args: argparse.Namespace) -> int:
    request = release_pull_request(
        cloud_provider=parse_enum(CloudProvider, args.cloud),
        ci_tool=parse_enum(CiTool, args.ci_tool),
        head=args.head,
        base=args.base,
        bump=parse_enum(Bump, args.bump),
    )
    print(json.dumps(request.to_dict(), indent=2))
    return 0


def _choices(enum_cls: type) -> list[str]:
    return [m.value for m in enum_cls]


def _enum_arg(enum_cls: type):
    """argparse type: case-insensitive enum value, returned lower-cased."""

    def convert(value: str) -> str:
        member = parse_enum(enum_cls, value)
        if member is None:
            raise argparse.ArgumentTypeError(
                f"invalid choice '{value}' (choose from {', '.join(_choices(enum_cls))})"
            )
        return member.value

    return convert


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="traffic-light",
        description="Decide which CI platform runs which pipeline stages for a commit",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("decide", help="Decide ownership, cloud and stages for this invocation")
    p.add_argument("--ci-tool", type=_enum_arg(CiTool), help="This platform's identity (CI_TOOL)")
    p.add_argument(
        "--default-cloud-provider",
        type=_enum_arg(CloudProvider),
        help="Cloud used when the message has no cloud tag (DEFAULT_CLOUD_PROVIDER)",
    )
    p.add_argument(
        "--default-ci-tool",
        type=_enum_arg(CiTool),
        help="Platform that owns untagged messages (DEFAULT_CI_TOOL)",
    )
    p.add_argument(
        "--treat-untagged-as-default",
        type=_bool_flag,
        default=None,
        help="Route untagged messages to the default ci tool (true/false)",
    )
    p.add_argument("--branch-ref", help="Branch being built, e.g. refs/heads/main (BRANCH_REF)")
    p.add_argument("--commit-message", help="Triggering commit message (COMMIT_MESSAGE)")
    p.add_argument("--merge-message", help="Merge/approval message on main (MERGE_MESSAGE)")
    p.add_argument("--latest-tag", help="Latest v* tag (LATEST_TAG)")
    p.add_argument(
        "--tag",
        action="append",
        help="A v* tag from the tag history; repeat to pass the whole list",
    )
    p.add_argument(
        "--from-git",
        action="store_true",
        help="Read the commit message and v* tags from the git checkout",
    )
    p.add_argument("--repo-path", default=".", help="Git checkout for --from-git (default: .)")
    p.add_argument("--fetch-tags", action="store_true", help="git fetch --tags before listing")
    p.add_argument(
        "--prior-stages-failed",
        action="store_true",
        help="Plan/test already ran and failed; blocks create_pr and publish",
    )
    p.add_argument("--config", help="Policy YAML file (default: config/traffic_light.yaml)")
    p.add_argument("--format", choices=["env", "json", "table"], default="env")
    p.add_argument("--output-file", help="Also append key=value lines here, e.g. $GITHUB_OUTPUT")
    p.add_argument("--quiet", action="store_true", help="No human-readable summary on stderr")
    p.set_defaults(func=cmd_decide)

    p = sub.add_parser("parse", help="Show the tags parsed from a message")
    p.add_argument("message")
    p.set_defaults(func=cmd_parse)

    p = sub.add_parser("next-version", help="Compute the next semantic version")
    p.add_argument("--latest-tag", help="Latest v* tag")
    p.add_argument("--tag", action="append", help="A v* tag; repeat to pass the whole list")
    group = p.add_mutually_exclusive_group()
    group.add_argument("--bump", type=_enum_arg(Bump), default=Bump.PATCH.value)
    group.add_argument("--approval", help="Approval message to take the bump from")
    p.set_defaults(func=cmd_next_version)

    p = sub.add_parser("release-pr", help="Print the release pull request payload")
    p.add_argument("--cloud", type=_enum_arg(CloudProvider), required=True)
    p.add_argument("--ci-tool", type=_enum_arg(CiTool), required=True)
    p.add_argument("--head", required=True, help="Release branch")
    p.add_argument("--base", default="main")
    p.add_argument("--bump", type=_enum_arg(Bump), default=Bump.PATCH.value)
    p.set_defaults(func=cmd_release_pr)

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        return args.func(args)
    except (ConfigError, FileNotFoundError, GitSourceError) as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        return 1


if __name__ == "__main__":
    sys.exit(main())
