import pytest

from traffic_light.models import CiTool, CloudProvider, InvocationContext

ENV_VARS = [
    "CI_TOOL",
    "DEFAULT_CLOUD_PROVIDER",
    "DEFAULT_CI_TOOL",
    "TREAT_UNTAGGED_AS_DEFAULT",
    "BRANCH_REF",
    "COMMIT_MESSAGE",
    "MERGE_MESSAGE",
    "LATEST_TAG",
    "TRAFFIC_LIGHT_CONFIG",
    "ENABLE_DECISION_LOG",
    "DECISION_LOG_MODE",
    "DECISION_LOG_FILE",
]


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    """Run every test in an empty directory with no traffic-light env vars."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)


def make_ctx(
    message: str = "",
    ci_tool: CiTool = CiTool.GH_ACTIONS,
    branch: str = "feature/x",
    default_cloud: CloudProvider | None = CloudProvider.AZURE,
    **kwargs,
) -> InvocationContext:
    return InvocationContext(
        ci_tool=ci_tool,
        branch_ref=branch,
        commit_message=message,
        default_cloud_provider=default_cloud,
        **kwargs,
    )
