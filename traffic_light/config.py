"""
Configuration for the traffic-light CLI.

Two layers, merged by build_context():

  - Policy: a YAML file (config/traffic_light.yaml by default) shared by every
    platform, validated with Pydantic. Holds the default cloud, the default
    ci tool for untagged messages, and the main branch names.
  - Settings: per-invocation environment variables (and .env), named after the
    variables the platform templates already export: CI_TOOL, BRANCH_REF,
    COMMIT_MESSAGE, MERGE_MESSAGE, DEFAULT_CLOUD_PROVIDER, ...

Precedence: CLI flag > environment > policy file > built-in default.

Usage:
    from traffic_light.config import TrafficLightSettings, build_context, load_policy_config

    policy = load_policy_config()
    ctx = build_context(TrafficLightSettings(), policy, {"ci_tool": "gh_actions"})
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings

from .errors import ConfigError
from .models import CiTool, CloudProvider, InvocationContext, parse_enum

__all__ = [
    "DEFAULT_CONFIG_PATH",
    "PolicyConfig",
    "TrafficLightSettings",
    "build_context",
    "load_policy_config",
    "load_settings",
]

# Relative to the working directory, which is the repo root in every pipeline
DEFAULT_CONFIG_PATH = Path("config") / "traffic_light.yaml"


def _coerce_enum(enum_cls: type, value: Any, name: str) -> Any:
    """Case-insensitive enum coercion; empty means unset."""
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    member = parse_enum(enum_cls, value)
    if member is None:
        known = ", ".join(m.value for m in enum_cls)
        raise ValueError(f"Unknown {name} '{value}'. Known: {known}")
    return member


class PolicyConfig(BaseModel):
    """Repository-wide routing policy, shared by every CI platform."""

    default_cloud_provider: Optional[CloudProvider] = None
    default_ci_tool: Optional[CiTool] = None
    treat_untagged_as_default: bool = False
    main_branches: list[str] = Field(default_factory=lambda: ["main", "master"])
    require_approval_token: bool = False

    # Git identity handed to the tag pusher
    pipeline_email: str = "pipeline@oracle.com"

    @field_validator("default_cloud_provider", mode="before")
    @classmethod
    def check_cloud(cls, v: Any) -> Any:
        return _coerce_enum(CloudProvider, v, "cloud provider")

    @field_validator("default_ci_tool", mode="before")
    @classmethod
    def check_ci_tool(cls, v: Any) -> Any:
        return _coerce_enum(CiTool, v, "ci tool")

    @field_validator("main_branches")
    @classmethod
    def check_main_branches(cls, v: list[str]) -> list[str]:
        branches = [b.strip() for b in v if b and b.strip()]
        if not branches:
            raise ValueError("main_branches must name at least one branch")
        return branches


class TrafficLightSettings(BaseSettings):
    """Per-invocation configuration from environment variables."""

    ci_tool: str = ""
    default_cloud_provider: str = ""
    default_ci_tool: str = ""
    treat_untagged_as_default: Optional[bool] = None
    branch_ref: str = ""
    commit_message: Optional[str] = None
    merge_message: Optional[str] = None
    latest_tag: str = ""

    # Path of the policy file
    traffic_light_config: str = ""

    class Config:
        env_file = ".env"
        extra = "ignore"

    @field_validator("treat_untagged_as_default", mode="before")
    @classmethod
    def empty_is_unset(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v


def load_settings() -> TrafficLightSettings:
    """
    Read TrafficLightSettings from the environment.

    Raises:
        ConfigError: If a variable holds a value of the wrong type
    """
    try:
        return TrafficLightSettings()
    except ValidationError as e:
        raise ConfigError(f"Invalid environment settings: {e}") from e


def load_policy_config(config_path: Optional[Path] = None) -> PolicyConfig:
    """
    Load and validate the policy file.

    Args:
        config_path: Explicit path. When omitted, DEFAULT_CONFIG_PATH is used
            if it exists and built-in defaults otherwise.

    Returns:
        Validated PolicyConfig

    Raises:
        FileNotFoundError: If an explicit config file doesn't exist
        ConfigError: If the file is not valid YAML or fails validation
    """
    if config_path is None:
        if not DEFAULT_CONFIG_PATH.exists():
            return PolicyConfig()
        config_path = DEFAULT_CONFIG_PATH

    if not config_path.exists():
        raise FileNotFoundError(f"Policy config not found: {config_path}")

    try:
        with open(config_path) as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {config_path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Policy config {config_path} must be a mapping")

    try:
        return PolicyConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid policy config {config_path}: {e}") from e


def _pick(*values: Any) -> Any:
    """First value that is set (not None, not an empty string)."""
    for value in values:
        if value is None:
            continue
        if isinstance(value, str) and value == "":
            continue
        return value
    return None


def build_context(
    settings: TrafficLightSettings,
    policy: PolicyConfig,
    overrides: Optional[dict[str, Any]] = None,
) -> InvocationContext:
    """
    Assemble an InvocationContext from CLI overrides, settings and policy.

    Raises:
        ConfigError: If a required field is missing or an enum value is unknown
    """
    o = overrides or {}

    try:
        ci_tool = _coerce_enum(CiTool, _pick(o.get("ci_tool"), settings.ci_tool), "ci tool")
        default_cloud = _coerce_enum(
            CloudProvider,
            _pick(
                o.get("default_cloud_provider"),
                settings.default_cloud_provider,
                policy.default_cloud_provider,
            ),
            "cloud provider",
        )
        default_ci_tool = _coerce_enum(
            CiTool,
            _pick(o.get("default_ci_tool"), settings.default_ci_tool, policy.default_ci_tool),
            "ci tool",
        )
    except ValueError as e:
        raise ConfigError(str(e)) from e

    if ci_tool is None:
        raise ConfigError("CI tool identity is required (--ci-tool or CI_TOOL)")

    branch_ref = _pick(o.get("branch_ref"), settings.branch_ref)
    if branch_ref is None:
        raise ConfigError("Branch ref is required (--branch-ref or BRANCH_REF)")

    # An empty commit message is valid input: it parses as untagged
    commit_message = o.get("commit_message")
    if commit_message is None:
        commit_message = settings.commit_message
    if commit_message is None:
        raise ConfigError("Commit message is required (--commit-message, COMMIT_MESSAGE or --from-git)")

    # An empty merge message means none was supplied
    merge_message = _pick(o.get("merge_message"), settings.merge_message)

    treat_untagged = _pick(
        o.get("treat_untagged_as_default"),
        settings.treat_untagged_as_default,
        policy.treat_untagged_as_default,
    )

    return InvocationContext(
        ci_tool=ci_tool,
        branch_ref=branch_ref,
        commit_message=commit_message,
        default_cloud_provider=default_cloud,
        merge_message=merge_message,
        default_ci_tool=default_ci_tool,
        treat_untagged_as_default=bool(treat_untagged),
        main_branches=tuple(policy.main_branches),
        require_approval_token=policy.require_approval_token,
    )
