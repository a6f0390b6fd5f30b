"""Unit tests for the chatreview estimate command."""

import json

from chatreview.cli.main import cli


class TestEstimate:
    def test_reports_cost_and_chunks(self, cli_runner, config_file, tmp_path):
        text_file = tmp_path / "log.txt"
        text_file.write_text("a" * 9 + "\n" + "b" * 9 + "\n" + "c" * 9 + "\n")

        result = cli_runner.invoke(cli, ["--config", str(config_file), "estimate", str(text_file), "--budget", "10"])

        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)["data"]
        assert data["lines"] == 3
        assert data["tokens"] == 17  # ceil(29 characters / 1.8)
        assert data["fits"] is False
        assert data["chunks"] == [{"lines": 2, "tokens": 10}, {"lines": 1, "tokens": 5}]

    def test_default_budget_from_config(self, cli_runner, config_file, tmp_path):
        text_file = tmp_path / "log.txt"
        text_file.write_text("short\n")

        result = cli_runner.invoke(cli, ["--config", str(config_file), "estimate", str(text_file)])

        data = json.loads(result.stdout)["data"]
        assert data["budget"] == 8000
        assert data["fits"] is True
        assert len(data["chunks"]) == 1

    def test_rejects_non_positive_budget(self, cli_runner, config_file, tmp_path):
        text_file = tmp_path / "log.txt"
        text_file.write_text("x\n")

        result = cli_runner.invoke(cli, ["--config", str(config_file), "estimate", str(text_file), "--budget", "0"])

        assert result.exit_code == 1
        assert json.loads(result.stdout)["data"]["error_code"] == "VALIDATION_ERROR"
