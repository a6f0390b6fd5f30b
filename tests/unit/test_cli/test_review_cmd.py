"""Unit tests for the chatreview review command.

Tests cover:
- JSON success envelope with the report on stdout
- Progress notices on stderr
- Empty scope reported as success with no report
- Scope errors and missing configuration exit non-zero
- Ctrl-C reported as CANCELLED with exit status 130
"""

import json
from unittest.mock import AsyncMock, patch

from chatreview.cli.main import cli

SEND = "chatreview.core.dispatch.dispatcher.Dispatcher.send"


def invoke(cli_runner, config_file, records_file, *args):
    return cli_runner.invoke(
        cli,
        ["--config", str(config_file), "review", *args, "--records", str(records_file)],
    )


class TestReviewSuccess:
    def test_prints_report(self, cli_runner, config_file, records_file):
        with patch(SEND, new=AsyncMock(return_value="Bob wants tests first.")) as send:
            result = invoke(cli_runner, config_file, records_file, "Will we ship?", "--channel", "dev")

        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["success"] is True
        assert data["data"]["report"] == "Bob wants tests first."
        assert data["data"]["record_count"] == 2
        assert send.await_count == 1

        payload = send.await_args.args[0]
        assert "Will we ship?" in payload.system_instructions
        assert "Users: [A:alice,B:bob]" in payload.content

    def test_progress_goes_to_stderr(self, cli_runner, config_file, records_file):
        with patch(SEND, new=AsyncMock(return_value="ok")):
            result = invoke(cli_runner, config_file, records_file, "Summarize", "--channel", "dev")

        assert "Analyzing..." in result.stderr
        assert "Analyzing..." not in result.stdout

    def test_single_user(self, cli_runner, config_file, records_file):
        with patch(SEND, new=AsyncMock(return_value="ok")):
            result = invoke(cli_runner, config_file, records_file, "Summarize", "--channel", "dev", "--user", "bob")

        data = json.loads(result.stdout)
        assert data["data"]["record_count"] == 1


class TestReviewEmptyAndErrors:
    def test_no_records_in_window(self, cli_runner, config_file, records_file):
        with patch(SEND, new=AsyncMock(return_value="unused")) as send:
            result = invoke(cli_runner, config_file, records_file, "Summarize", "--channel", "dev", "--hours", "0.1")

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["data"]["report"] is None
        assert send.await_count == 0

    def test_unknown_user(self, cli_runner, config_file, records_file):
        result = invoke(cli_runner, config_file, records_file, "Summarize", "--channel", "dev", "--user", "zed")

        assert result.exit_code == 1
        data = json.loads(result.stdout)
        assert data["success"] is False
        assert data["data"]["error_code"] == "SCOPE_RESOLUTION_FAILED"
        assert data["error"] == "User not found: zed"

    def test_missing_endpoints(self, cli_runner, tmp_path, records_file):
        empty = tmp_path / "empty.toml"
        empty.write_text("")
        result = invoke(cli_runner, empty, records_file, "Summarize")

        assert result.exit_code == 1
        data = json.loads(result.stdout)
        assert data["data"]["error_code"] == "CONFIG_ERROR"

    def test_invalid_config_file(self, cli_runner, tmp_path, records_file):
        bad = tmp_path / "bad.toml"
        bad.write_text("[[endpoints]\n")
        result = invoke(cli_runner, bad, records_file, "Summarize")

        assert result.exit_code == 1
        assert json.loads(result.stdout)["data"]["error_code"] == "CONFIG_ERROR"

    def test_keyboard_interrupt(self, cli_runner, config_file, records_file):
        with patch(SEND, new=AsyncMock(side_effect=KeyboardInterrupt)):
            result = invoke(cli_runner, config_file, records_file, "Summarize", "--channel", "dev")

        assert result.exit_code == 130
        data = json.loads(result.stdout)
        assert data["data"]["error_code"] == "CANCELLED"
