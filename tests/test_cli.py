from __future__ import annotations

import logging
from pathlib import Path

import pytest
import yaml

from emitter import __version__
from emitter.__main__ import main


@pytest.fixture(autouse=True)
def isolated_sources(monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
    for key in ("EMITTER_STRICT", "EMITTER_LOG_LEVEL", "EMITTER_LOG_FORMAT", "EMITTER_SETTINGS_FILE"):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(logging, "basicConfig", lambda **_: None)


def test_prints_effective_settings_as_yaml(capsys: pytest.CaptureFixture[str]) -> None:
    assert main([]) == 0

    out = yaml.safe_load(capsys.readouterr().out)
    assert out["emitter"]["strict"] is False
    assert out["emitter"]["log_level"] == "WARNING"


def test_config_file_sets_reported_values(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    fp = tmp_path / "custom.yaml"
    fp.write_text("strict: true\nlog_level: debug\n", encoding="utf-8")

    assert main(["--config", str(fp), "-v"]) == 0

    out = yaml.safe_load(capsys.readouterr().out)
    assert out["emitter"]["strict"] is True
    assert out["emitter"]["log_level"] == "DEBUG"


def test_strict_flag_is_not_accepted(capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(SystemExit) as exc:
        main(["--strict"])

    assert exc.value.code == 2
    assert "--strict" in capsys.readouterr().err


def test_missing_config_exits_with_usage_error(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["-c", str(tmp_path / "missing.yaml")]) == 2

    assert "not found" in capsys.readouterr().err


def test_version_flag(capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(SystemExit) as exc:
        main(["--version"])

    assert exc.value.code == 0
    assert __version__ in capsys.readouterr().out
