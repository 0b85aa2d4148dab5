"""Unit tests for the Portfolio Critic CLI."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING
from unittest.mock import AsyncMock, patch

import pytest
import respx
import structlog
from httpx import ConnectError, Response
from typer.testing import CliRunner

from portfolio_critic.cli import app, configure_logging
from portfolio_critic.content.prompts import USER_QUERY_PREFIX
from portfolio_critic.core.config import LoggingConfig
from portfolio_critic.critique.controller import FAILURE_MESSAGE, FALLBACK_TEXT

if TYPE_CHECKING:
    from click.testing import Result

runner = CliRunner()


@pytest.fixture
def quiet_config(tmp_path: Path) -> Path:
    path = tmp_path / "config.yaml"
    path.write_text(
        "gemini:\n  api_key: cli-key\nlogging:\n  level: ERROR\n",
        encoding="utf-8",
    )
    return path


class TestConfigureLogging:
    def test_json_and_console(self) -> None:
        configure_logging(LoggingConfig(format="console", level="DEBUG"))
        configure_logging(LoggingConfig(format="json", level="WARNING"))
        assert structlog.is_configured()

    def test_defaults(self) -> None:
        configure_logging()
        assert structlog.is_configured()


class TestHelp:
    def test_help_lists_commands(self) -> None:
        result: Result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "critique" in result.output
        assert "resume" in result.output


class TestConfigOption:
    def test_missing_config_file(self, tmp_path: Path) -> None:
        result = runner.invoke(app, ["--config", str(tmp_path / "nope.yaml"), "resume"])
        assert result.exit_code == 1
        assert "not found" in result.output

    def test_invalid_config_file(self, tmp_path: Path) -> None:
        path = tmp_path / "config.yaml"
        path.write_text("retry:\n  max_attempts: zero\n", encoding="utf-8")
        result = runner.invoke(app, ["--config", str(path), "resume"])
        assert result.exit_code == 1
        assert "Error loading config" in result.output


class TestResumeCommand:
    def test_prints_default_resume(self) -> None:
        result = runner.invoke(app, ["resume"])
        assert result.exit_code == 0
        assert USER_QUERY_PREFIX in result.output
        assert "--- TECHNICAL SKILLS ---" in result.output

    def test_system_flag(self) -> None:
        result = runner.invoke(app, ["resume", "--system"])
        assert result.exit_code == 0
        assert "world-class HR Recruiter" in result.output

    def test_resume_path_from_config(self, tmp_path: Path, fixtures_dir: Path) -> None:
        path = tmp_path / "config.yaml"
        resume = fixtures_dir / "resumes" / "backend_engineer.yaml"
        path.write_text(f"resume_path: {resume}\n", encoding="utf-8")

        result = runner.invoke(app, ["--config", str(path), "resume"])

        assert result.exit_code == 0
        assert "payment systems" in result.output

    def test_tags_flag(self) -> None:
        result = runner.invoke(app, ["resume", "--tags"])
        assert result.exit_code == 0
        assert "Skill tags: [Python]" in result.output

    def test_tags_hidden_by_default(self) -> None:
        result = runner.invoke(app, ["resume"])
        assert "Skill tags:" not in result.output

    def test_relative_resume_path_follows_config_dir(
        self, tmp_path: Path, fixtures_dir: Path, monkeypatch
    ) -> None:
        config_dir = tmp_path / "conf"
        (config_dir / "resumes").mkdir(parents=True)
        (config_dir / "resumes" / "mine.yaml").write_text(
            (fixtures_dir / "resumes" / "backend_engineer.yaml").read_text(encoding="utf-8"),
            encoding="utf-8",
        )
        path = config_dir / "config.yaml"
        path.write_text("resume_path: resumes/mine.yaml\n", encoding="utf-8")
        monkeypatch.chdir(tmp_path)

        result = runner.invoke(app, ["--config", str(path), "resume"])

        assert result.exit_code == 0
        assert "payment systems" in result.output

    def test_bad_resume_path(self, tmp_path: Path) -> None:
        path = tmp_path / "config.yaml"
        path.write_text(f"resume_path: {tmp_path / 'gone.yaml'}\n", encoding="utf-8")

        result = runner.invoke(app, ["--config", str(path), "resume"])

        assert result.exit_code == 1
        assert "Resume file not found" in result.output


class TestCritiqueCommand:
    @respx.mock
    def test_success_prints_text(self, quiet_config, gemini_url, gemini_response) -> None:
        route = respx.post(url__startswith=gemini_url).mock(
            return_value=Response(200, json=gemini_response("### Impact\nGood use of metrics."))
        )

        result = runner.invoke(app, ["--config", str(quiet_config), "critique"])

        assert result.exit_code == 0
        assert "### Impact\nGood use of metrics." in result.output
        assert route.calls.last.request.url.params["key"] == "cli-key"

    @respx.mock
    def test_html_output(self, quiet_config, gemini_url, gemini_response) -> None:
        respx.post(url__startswith=gemini_url).mock(
            return_value=Response(200, json=gemini_response("### Impact\nGood use of metrics."))
        )

        result = runner.invoke(app, ["--config", str(quiet_config), "critique", "--html"])

        assert result.exit_code == 0
        assert "<h4>Impact</h4><br/>Good use of metrics." in result.output

    @respx.mock
    def test_no_content_prints_fallback(self, quiet_config, gemini_url) -> None:
        respx.post(url__startswith=gemini_url).mock(
            return_value=Response(200, json={"candidates": []})
        )

        result = runner.invoke(app, ["--config", str(quiet_config), "critique"])

        assert result.exit_code == 0
        assert FALLBACK_TEXT in result.output

    @respx.mock
    def test_failure_exits_nonzero(self, quiet_config, gemini_url) -> None:
        route = respx.post(url__startswith=gemini_url).mock(side_effect=ConnectError("dns"))

        with patch("asyncio.sleep", new_callable=AsyncMock):
            result = runner.invoke(app, ["--config", str(quiet_config), "critique"])

        assert result.exit_code == 1
        assert FAILURE_MESSAGE in result.output
        assert route.call_count == 3

    @respx.mock
    def test_bad_request_is_not_retried(self, quiet_config, gemini_url) -> None:
        route = respx.post(url__startswith=gemini_url).mock(return_value=Response(400))

        result = runner.invoke(app, ["--config", str(quiet_config), "critique"])

        assert result.exit_code == 1
        assert route.call_count == 1
