from __future__ import annotations

import os
from pathlib import Path

import pytest
from click.testing import CliRunner

from chat_governor import cli as cli_module
from chat_governor import config as governor_config


@pytest.fixture(autouse=True)
def _reset_dotenv_state() -> None:
    """Reset shared dotenv state around each test."""

    governor_config._reset_dotenv_state_for_testing()
    yield
    governor_config._reset_dotenv_state_for_testing()


def test_enable_dotenv_populates_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Loading the nearest .env injects values that settings then pick up."""

    nested = tmp_path / "nested"
    nested.mkdir()
    env_file = tmp_path / ".env"
    env_file.write_text("CHAT_RATE_LIMIT=7:15\n")
    monkeypatch.chdir(nested)
    monkeypatch.delenv("CHAT_RATE_LIMIT", raising=False)

    loaded = governor_config.enable_dotenv()

    assert loaded == env_file.resolve()
    assert os.environ["CHAT_RATE_LIMIT"] == "7:15"
    assert governor_config.build_settings().rate_limit == (7, 15.0)

    os.environ.pop("CHAT_RATE_LIMIT", None)


def test_enable_dotenv_respects_existing_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Existing environment variables keep precedence over .env entries."""

    nested = tmp_path / "nested"
    nested.mkdir()
    (tmp_path / ".env").write_text("CHAT_MODEL=dotenv/model\n")
    monkeypatch.chdir(nested)
    monkeypatch.setenv("CHAT_MODEL", "real/model")

    result = governor_config.enable_dotenv()

    assert result is not None
    assert os.environ["CHAT_MODEL"] == "real/model"


def test_enable_dotenv_runs_once(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    env_file = tmp_path / ".env"
    env_file.write_text("CHAT_MAX_MESSAGES=9\n")
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("CHAT_MAX_MESSAGES", raising=False)

    first = governor_config.enable_dotenv()
    env_file.write_text("CHAT_MAX_MESSAGES=3\n")
    os.environ.pop("CHAT_MAX_MESSAGES", None)
    second = governor_config.enable_dotenv()

    assert first == second == env_file.resolve()
    assert "CHAT_MAX_MESSAGES" not in os.environ


def test_enable_dotenv_without_file_returns_none(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(tmp_path)

    assert governor_config.enable_dotenv(tmp_path / "missing.env") is None


def test_cli_dotenv_toggle_precedence(monkeypatch: pytest.MonkeyPatch) -> None:
    """CLI flag wins over environment toggle when deciding whether to load .env."""

    runner = CliRunner()

    calls: list[tuple[tuple[object, ...], dict[str, object]]] = []

    def record_enable(*args: object, **kwargs: object) -> None:
        calls.append((args, kwargs))

    monkeypatch.setattr(governor_config, "enable_dotenv", record_enable)
    monkeypatch.delenv(governor_config.DOTENV_ENV_VAR, raising=False)

    result = runner.invoke(cli_module.cli, ["--use-dotenv", "info"])
    assert result.exit_code == 0
    assert len(calls) == 1

    calls.clear()
    env = {governor_config.DOTENV_ENV_VAR: "1"}
    result = runner.invoke(cli_module.cli, ["info"], env=env)
    assert result.exit_code == 0
    assert len(calls) == 1

    calls.clear()
    result = runner.invoke(cli_module.cli, ["--no-use-dotenv", "info"], env=env)
    assert result.exit_code == 0
    assert calls == []
