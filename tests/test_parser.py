import pytest

from traffic_light.models import (
    Action,
    Bump,
    CiTool,
    CloudProvider,
    RepoPlatform,
)
from traffic_light.parser import iter_bracket_tokens, parse_approval, parse_commit_message


def test_full_routing_message():
    tags = parse_commit_message("[github] [aws] [gh_actions] [build] fix: x")

    assert tags.repo_platform == RepoPlatform.GITHUB
    assert tags.cloud_provider == CloudProvider.AWS
    assert tags.ci_tool == CiTool.GH_ACTIONS
    assert tags.action == Action.BUILD
    assert tags.approval is None
    assert tags.unrecognized == ()
    assert not tags.is_untagged


def test_order_and_case_do_not_matter():
    a = parse_commit_message("[GitHub] [AWS] [GH_ACTIONS] [Release] feat: y")
    b = parse_commit_message("feat: y [release]\n[gh_actions]   [aws] [github]")

    assert a == b
    assert a.action == Action.RELEASE


def test_shorthand_is_a_degenerate_routing_message():
    tags = parse_commit_message("[ado] [release] bump modules")

    assert tags.ci_tool == CiTool.ADO
    assert tags.action == Action.RELEASE
    assert tags.repo_platform is None
    assert tags.cloud_provider is None


@pytest.mark.parametrize("message", ["", None, "fix: plain message", "fix [wip] stuff"])
def test_untagged_messages(message):
    tags = parse_commit_message(message)

    assert tags.is_untagged
    assert tags.ci_tool is None


def test_unknown_tags_are_ignored_but_reported():
    tags = parse_commit_message("[github] [wip] [oci] [skip-ci] docs")

    assert tags.repo_platform == RepoPlatform.GITHUB
    assert tags.cloud_provider == CloudProvider.OCI
    assert tags.unrecognized == ("[wip]", "[skip-ci]")


def test_tokens_match_whole_words_only():
    tags = parse_commit_message("[gh_actions_legacy] [awsx] refactor")

    assert tags.ci_tool is None
    assert tags.cloud_provider is None
    assert tags.is_untagged
    assert tags.unrecognized == ("[gh_actions_legacy]", "[awsx]")


def test_first_value_per_category_wins():
    tags = parse_commit_message("[aws] [azure] [gh_actions] [ado] [aws] x")

    assert tags.cloud_provider == CloudProvider.AWS
    assert tags.ci_tool == CiTool.GH_ACTIONS
    assert tags.conflicts == ("[azure]", "[ado]")


def test_brackets_do_not_span_lines_or_nest():
    tokens = list(iter_bracket_tokens("[aws\n] [[oci]] [ ] [ civo ]"))

    assert tokens == ["oci", "civo"]


def test_approval_tokens_are_not_unrecognized():
    tags = parse_commit_message("[APPROVED] [MINOR] [gh_actions] ok")

    assert tags.unrecognized == ()
    assert tags.ci_tool == CiTool.GH_ACTIONS
    assert tags.approval is not None
    assert tags.approval.approved
    assert tags.approval.bump == Bump.MINOR


def test_parse_approval():
    approval = parse_approval("[APPROVED] [MAJOR] [oci_pipeline] ship it")

    assert approval.approved
    assert approval.bump == Bump.MAJOR
    assert approval.ci_tool == CiTool.OCI_PIPELINE


def test_approval_requires_literal_approved_token():
    approval = parse_approval("[MINOR] [ado] looks good, approved")

    assert not approval.approved
    assert approval.bump == Bump.MINOR
    assert approval.ci_tool == CiTool.ADO


@pytest.mark.parametrize(
    "message",
    ["[APPROVED] [gh_actions] ok", "[APPROVED] [HUGE] [gh_actions] ok", None],
)
def test_approval_bump_defaults_to_patch(message):
    assert parse_approval(message).bump == Bump.PATCH


def test_approval_is_case_insensitive():
    approval = parse_approval("[approved] [Minor] [AWS_PIPELINE]")

    assert approval.approved
    assert approval.bump == Bump.MINOR
    assert approval.ci_tool == CiTool.AWS_PIPELINE


@pytest.mark.parametrize(
    "message, expected",
    [
        ("[APPROVED] [MINOR] [MAJOR] [ado] ok", Bump.MAJOR),
        ("[APPROVED] [PATCH] [MINOR] [ado] ok", Bump.MINOR),
        ("[APPROVED] [PATCH] [patch] [ado] ok", Bump.PATCH),
    ],
)
def test_largest_bump_wins(message, expected):
    approval = parse_approval(message)

    assert approval.bump == expected
    assert approval.ci_tool == CiTool.ADO
