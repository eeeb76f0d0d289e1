from __future__ import annotations

import logging
import os
from pathlib import Path

import pytest

import shipyard_release.secrets as secrets


@pytest.fixture(autouse=True)
def isolated_sources(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(secrets, "_sources", [secrets.EnvResolver()])


def test_env_value_is_found(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TEST_SECRET", "value")

    info = secrets.resolve_secret_info("TEST_SECRET")

    assert info.value == "value"
    assert info.source == "env"
    assert info.summary() == "env (found)"


def test_dotenv_is_read_without_exporting(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("DOT_SECRET", raising=False)
    env_file = tmp_path / ".env"
    env_file.write_text("DOT_SECRET=\"abc123\"  # inline comment\n")
    secrets.use_dotenv(env_file)

    info = secrets.resolve_secret_info("DOT_SECRET")

    assert info.value == "abc123"
    assert info.source == f"dotenv@{env_file.resolve()}"
    assert [attempt.found for attempt in info.attempts] == [False, True]
    assert "DOT_SECRET" not in os.environ


def test_env_wins_over_dotenv(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("GITHUB_TOKEN", "from-env")
    env_file = tmp_path / ".env"
    env_file.write_text("GITHUB_TOKEN=from-file\n")
    secrets.use_dotenv(env_file)

    assert secrets.resolve_secret("GITHUB_TOKEN") == "from-env"


def test_same_dotenv_is_registered_once(tmp_path: Path) -> None:
    env_file = tmp_path / ".env"
    env_file.write_text("A=1\n")

    secrets.use_dotenv(env_file)
    secrets.use_dotenv(tmp_path / "." / ".env")

    assert len(secrets._sources) == 2


def test_malformed_line_is_logged(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture
) -> None:
    monkeypatch.delenv("UNKNOWN_SECRET", raising=False)
    env_file = tmp_path / ".env"
    env_file.write_text("MALFORMED_LINE\n")
    secrets.use_dotenv(env_file)

    with caplog.at_level(logging.WARNING, logger="shipyard_release.secrets"):
        info = secrets.resolve_secret_info("UNKNOWN_SECRET")

    assert info.value is None
    assert "MALFORMED_LINE" in caplog.text
    assert info.summary() == f"env (missing), dotenv@{env_file.resolve()} (missing)"


def test_missing_dotenv_file_is_harmless(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("NOPE", raising=False)
    secrets.use_dotenv(tmp_path / "absent.env")

    assert secrets.resolve_secret("NOPE") is None
