"""
Decision log: an NDJSON audit trail of what each invocation decided and why.

Answers "why did nothing run?" after the fact. Disabled unless
ENABLE_DECISION_LOG is set; writing never fails the pipeline.

Settings (environment or .env):
    ENABLE_DECISION_LOG=true|false
    DECISION_LOG_MODE=full|minimal|off     minimal skips plain skips
    DECISION_LOG_FILE=.traffic-light/decisions.ndjson
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Literal, Optional

from pydantic import ValidationError, field_validator
from pydantic_settings import BaseSettings
from rich.console import Console
from rich.markup import escape

from .models import Decision, DecisionStatus, InvocationContext

EventType = Literal["decision_made", "decision_failed"]
LogMode = Literal["full", "minimal", "off"]

console = Console(stderr=True)


class DecisionLogSettings(BaseSettings):
    """Configuration from environment variables."""

    enable_decision_log: bool = False
    decision_log_mode: str = "minimal"
    decision_log_file: str = ".traffic-light/decisions.ndjson"

    class Config:
        env_file = ".env"
        extra = "ignore"

    @field_validator("enable_decision_log", mode="before")
    @classmethod
    def empty_is_disabled(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return False
        return v


class DecisionLog:
    """Appends one event per decision to an NDJSON file."""

    def __init__(
        self,
        log_file: Optional[str] = None,
        settings: Optional[DecisionLogSettings] = None,
    ):
        """
        Args:
            log_file: Path of the NDJSON file, overriding DECISION_LOG_FILE
            settings: Settings to use instead of reading the environment
        """
        self.settings = settings or self._load_settings()
        self.log_file = Path(log_file or self.settings.decision_log_file)
        self.enabled = self.settings.enable_decision_log
        self.mode = self._get_mode()

    @staticmethod
    def _load_settings() -> DecisionLogSettings:
        try:
            return DecisionLogSettings()
        except ValidationError as e:
            console.print(
                f"[yellow]Warning: Invalid decision log settings, logging disabled: {escape(str(e))}[/yellow]"
            )
            return DecisionLogSettings.model_construct(enable_decision_log=False)

    def _get_mode(self) -> LogMode:
        mode = self.settings.decision_log_mode.lower()
        if mode in ("full", "minimal", "off"):
            return mode
        return "minimal"

    def should_log(self, decision: Decision) -> bool:
        """Minimal mode keeps decisions that ran something or failed."""
        if not self.enabled or self.mode == "off":
            return False
        if self.mode == "full":
            return True
        return decision.status != DecisionStatus.SKIP

    def log_decision(
        self,
        ctx: InvocationContext,
        decision: Decision,
        timestamp: Optional[datetime] = None,
    ) -> bool:
        """
        Append a decision event.

        Returns:
            True if the event was written, False if disabled or the write failed
        """
        if not self.should_log(decision):
            return False

        event_type: EventType = (
            "decision_failed" if decision.status == DecisionStatus.ERROR else "decision_made"
        )
        event: dict[str, Any] = {
            "timestamp": (timestamp or datetime.now(timezone.utc)).isoformat(),
            "type": event_type,
            "ci_tool": ctx.ci_tool.value,
            "branch": ctx.branch_name,
            "commit_message": ctx.commit_message,
            **decision.to_dict(),
        }

        try:
            self.log_file.parent.mkdir(parents=True, exist_ok=True)
            with open(self.log_file, "a") as f:
                f.write(json.dumps(event) + "\n")
            return True
        except OSError as e:
            console.print(f"[yellow]Warning: Failed to write decision log: {e}[/yellow]")
            return False

    def get_status(self) -> dict[str, Any]:
        return {
            "enabled": self.enabled,
            "mode": self.mode,
            "log_file": str(self.log_file),
            "file_exists": self.log_file.exists(),
        }
