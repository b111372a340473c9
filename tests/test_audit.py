import json
from datetime import datetime, timezone

from traffic_light.audit import DecisionLog, DecisionLogSettings
from traffic_light.orchestrator import decide

from tests.conftest import make_ctx


def make_log(tmp_path, mode="minimal", enabled=True):
    settings = DecisionLogSettings(enable_decision_log=enabled, decision_log_mode=mode)
    return DecisionLog(log_file=str(tmp_path / "logs" / "decisions.ndjson"), settings=settings)


def read_events(log):
    return [json.loads(line) for line in log.log_file.read_text().splitlines()]


def test_disabled_by_default(tmp_path):
    log = DecisionLog()
    ctx = make_ctx("[gh_actions] x")

    assert not log.enabled
    assert not log.log_decision(ctx, decide(ctx))


def test_enabled_from_environment(monkeypatch, tmp_path):
    monkeypatch.setenv("ENABLE_DECISION_LOG", "true")
    monkeypatch.setenv("DECISION_LOG_MODE", "FULL")
    monkeypatch.setenv("DECISION_LOG_FILE", str(tmp_path / "d.ndjson"))

    log = DecisionLog()

    assert log.get_status() == {
        "enabled": True,
        "mode": "full",
        "log_file": str(tmp_path / "d.ndjson"),
        "file_exists": False,
    }


def test_logs_run_decision(tmp_path):
    log = make_log(tmp_path)
    ctx = make_ctx("[gh_actions] [build] x", branch="refs/heads/feature/x")
    when = datetime(2024, 1, 2, tzinfo=timezone.utc)

    assert log.log_decision(ctx, decide(ctx), timestamp=when)

    [event] = read_events(log)
    assert event["type"] == "decision_made"
    assert event["timestamp"] == when.isoformat()
    assert event["ci_tool"] == "gh_actions"
    assert event["branch"] == "feature/x"
    assert event["stages"]["plan"] is True


def test_minimal_mode_skips_plain_skips(tmp_path):
    log = make_log(tmp_path, mode="minimal")
    ctx = make_ctx("[ado] x")

    assert not log.log_decision(ctx, decide(ctx))
    assert not log.log_file.exists()


def test_full_mode_logs_skips(tmp_path):
    log = make_log(tmp_path, mode="full")
    ctx = make_ctx("[ado] x")

    assert log.log_decision(ctx, decide(ctx))
    assert read_events(log)[0]["status"] == "skip"


def test_errors_are_logged_as_failures(tmp_path):
    log = make_log(tmp_path)
    ctx = make_ctx("[gh_actions] x", default_cloud=None)

    log.log_decision(ctx, decide(ctx))

    [event] = read_events(log)
    assert event["type"] == "decision_failed"
    assert event["error"] == "cloud_unresolved"


def test_off_mode_and_unknown_mode(tmp_path):
    assert make_log(tmp_path, mode="off").mode == "off"
    assert make_log(tmp_path, mode="verbose").mode == "minimal"


def test_write_failure_does_not_raise(tmp_path):
    blocker = tmp_path / "file"
    blocker.write_text("")
    settings = DecisionLogSettings(enable_decision_log=True, decision_log_mode="full")
    log = DecisionLog(log_file=str(blocker / "decisions.ndjson"), settings=settings)
    ctx = make_ctx("[gh_actions] x")

    assert not log.log_decision(ctx, decide(ctx))


def test_empty_enable_flag_means_disabled(monkeypatch):
    monkeypatch.setenv("ENABLE_DECISION_LOG", "")

    assert not DecisionLog().enabled


def test_invalid_enable_flag_disables_logging(monkeypatch, capsys):
    monkeypatch.setenv("ENABLE_DECISION_LOG", "maybe")

    log = DecisionLog()

    assert not log.enabled
    assert log.mode == "minimal"
    assert "logging disabled" in capsys.readouterr().err
