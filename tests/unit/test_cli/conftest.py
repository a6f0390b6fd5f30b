"""Shared fixtures for CLI command tests."""

import logging
from datetime import datetime, timedelta, timezone

import pytest
from click.testing import CliRunner

from chatreview.core.records import ChatRecord


@pytest.fixture
def cli_runner():
    return CliRunner()


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    """Keep the developer's config files and variables out of CLI runs."""
    for name in (
        "CONFIG_FILE",
        "ENDPOINTS",
        "API_KEY",
        "RECORDS",
        "DEADLINE_SECONDS",
        "TOKEN_PER_REQUEST",
        "MAX_CONCURRENT",
        "MAX_ITERATIONS",
        "MAX_STALLED_ITERATIONS",
        "DEFAULT_HOURS",
    ):
        monkeypatch.delenv(f"CHATREVIEW_{name}", raising=False)
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / ".config"))
    monkeypatch.chdir(tmp_path)


@pytest.fixture(autouse=True)
def reset_cli_logging():
    """Drop handlers bound to the runner's captured streams."""
    yield
    logger = logging.getLogger("chatreview")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "chatreview-test.toml"
    path.write_text(
        "[[endpoints]]\n"
        'url = "https://api.example/v1"\n'
        'model = "test-model"\n'
        'key = "test-key"\n'
        "\n"
        "[dispatch]\n"
        "cooldown_seconds = 0\n"
    )
    return path


@pytest.fixture
def records_file(tmp_path):
    """Recent records so they fall inside the default look-back window."""
    now = datetime.now(timezone.utc)
    rows = [
        ChatRecord(uid=1, user_name="alice", content="shipping today?", timestamp=now - timedelta(minutes=30), channel_id="dev"),
        ChatRecord(uid=2, user_name="bob", content="after the tests pass", timestamp=now - timedelta(minutes=20), channel_id="dev"),
    ]
    path = tmp_path / "records.jsonl"
    path.write_text("\n".join(r.model_dump_json() for r in rows) + "\n", encoding="utf-8")
    return path
