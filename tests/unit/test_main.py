"""Unit tests for the command-line entrypoint."""

from __future__ import annotations

import json
import logging
from collections.abc import Iterator
from pathlib import Path

import pytest
from builders import NOW_MILLIS

from sonar_trigger_policy.policy import main as main_module
from sonar_trigger_policy.policy.main import main


@pytest.fixture(autouse=True)
def _isolated_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("LOG_LEVEL", raising=False)
    monkeypatch.delenv("SONAR_TRIGGER_ANALYSIS_MARKER", raising=False)

    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    # Drop the JSON handler installed by main(); it points at a closed capture stream.
    for handler in list(root.handlers):
        if handler not in handlers:
            root.removeHandler(handler)
    root.setLevel(level)


@pytest.fixture
def history(tmp_path: Path) -> Path:
    path = tmp_path / "history.json"
    path.write_text(
        json.dumps(
            {
                "builds": [
                    {
                        "number": 7,
                        "result": "SUCCESS",
                        "badges": ["sonar"],
                        "start_time_millis": NOW_MILLIS - 3 * 60_000,
                    },
                    {
                        "number": 8,
                        "result": "SUCCESS",
                        "causes": [{"kind": "scm", "description": "Started by an SCM change"}],
                        "start_time_millis": NOW_MILLIS,
                        "variables": {"SKIP_SONAR": "false"},
                    },
                ]
            }
        ),
        encoding="utf-8",
    )
    return path


@pytest.fixture(autouse=True)
def _fixed_clock(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("sonar_trigger_policy.policy.triggers.system_clock", lambda: NOW_MILLIS)


def _decision(capsys: pytest.CaptureFixture[str]) -> dict[str, object]:
    out = capsys.readouterr().out.strip().splitlines()
    return json.loads(out[-1])


def test_evaluate_proceeds(history: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["evaluate", "--history", str(history)]) == 0

    decision = _decision(capsys)
    assert decision == {"skip": False, "code": None, "reason": None, "build": 8}


def test_evaluate_flags_skip(history: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["evaluate", "--history", str(history), "--skip-scm-cause"]) == 0

    decision = _decision(capsys)
    assert decision["skip"] is True
    assert decision["code"] == "skipping_analysis"


def test_evaluate_timeout_from_config_file(
    tmp_path: Path, history: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    config = tmp_path / "triggers.json"
    config.write_text(json.dumps({"skipTimeout": "5", "envVarName": ""}), encoding="utf-8")

    assert main(["evaluate", "--history", str(history), "--config", str(config)]) == 0

    decision = _decision(capsys)
    assert decision["code"] == "timeout_not_elapsed"
    assert "180 s" in str(decision["reason"])


def test_flags_override_config_file(
    tmp_path: Path, history: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    config = tmp_path / "triggers.json"
    config.write_text(json.dumps({"skipTimeout": "5"}), encoding="utf-8")

    argv = ["evaluate", "--history", str(history), "--config", str(config), "--skip-timeout", "2"]
    assert main(argv) == 0

    assert _decision(capsys)["skip"] is False


def test_marker_option(history: Path, capsys: pytest.CaptureFixture[str]) -> None:
    argv = ["evaluate", "--history", str(history), "--skip-timeout", "5", "--marker", "other"]
    assert main(argv) == 0

    # No build carries the "other" badge, so the timeout baseline is the epoch.
    assert _decision(capsys)["skip"] is False


def test_invalid_history_exit_code(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    path = tmp_path / "history.json"
    path.write_text(json.dumps({"builds": []}), encoding="utf-8")

    assert main(["evaluate", "--history", str(path)]) == 2
    assert "no builds" in capsys.readouterr().err


def test_missing_history_exit_code(tmp_path: Path) -> None:
    assert main(["evaluate", "--history", str(tmp_path / "missing.json")]) == 2


def test_invalid_config_exit_code(tmp_path: Path, history: Path) -> None:
    config = tmp_path / "triggers.json"
    config.write_text(json.dumps({"skipOnScmCause": "maybe"}), encoding="utf-8")

    assert main(["evaluate", "--history", str(history), "--config", str(config)]) == 2


def test_invalid_settings_exit_code(history: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SONAR_TRIGGER_ANALYSIS_MARKER", " ")

    assert main(["evaluate", "--history", str(history)]) == 2


def test_unexpected_failure_exit_code(
    history: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    def _boom(*_args: object, **_kwargs: object) -> None:
        raise RuntimeError("boom")

    monkeypatch.setattr(main_module.TriggerPolicy, "evaluate", _boom)

    assert main(["evaluate", "--history", str(history)]) == 1


def test_version(capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(SystemExit) as exc:
        main(["--version"])

    assert exc.value.code == 0
    assert "sonar-trigger-policy" in capsys.readouterr().out


def test_float_timeout_in_config_file_is_ignored(
    tmp_path: Path, history: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    config = tmp_path / "triggers.json"
    config.write_text(json.dumps({"skipTimeout": 12.5}), encoding="utf-8")

    assert main(["evaluate", "--history", str(history), "--config", str(config)]) == 0

    assert _decision(capsys)["skip"] is False
