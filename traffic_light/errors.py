"""
Exception hierarchy for traffic-light.

Only the engine's two fatal conditions are exceptions inside the core, and the
Orchestrator turns both into Decision error states. `ConfigError` and
`GitSourceError` belong to the adapters around the engine.
"""


class TrafficLightError(Exception):
    """Base class for all traffic-light errors."""


class MalformedTagError(TrafficLightError, ValueError):
    """The latest version tag is not a `vMAJOR.MINOR.PATCH` numeric triple."""

    def __init__(self, tag: str):
        self.tag = tag
        super().__init__(f"Version tag '{tag}' is not a valid MAJOR.MINOR.PATCH triple")


class CloudUnresolvedError(TrafficLightError):
    """Neither a `[cloud]` tag nor a default cloud provider is available."""

    def __init__(self) -> None:
        super().__init__(
            "No cloud provider tag in the commit message and no default cloud provider configured"
        )


class ConfigError(TrafficLightError):
    """Invalid configuration file, setting or CLI value."""


class GitSourceError(TrafficLightError, RuntimeError):
    """A git command needed to gather engine inputs failed."""
