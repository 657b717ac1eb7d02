"""Unit tests for the CLI commands and provider wiring."""
import pytest
from typer.testing import CliRunner

from vibedeck.agent import AgentLoop
from vibedeck.cli.app import app
from vibedeck.cli.providers import build_loop
from vibedeck.config import Settings, read_system_instruction
from vibedeck.errors import ConfigurationError

runner = CliRunner()


@pytest.fixture
def no_credentials(monkeypatch):
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    monkeypatch.delenv("API_KEY", raising=False)


class TestSettings:
    """Tests for environment settings."""

    def test_defaults(self, monkeypatch, no_credentials):
        monkeypatch.delenv("VIBEDECK_MAX_ROUNDS", raising=False)
        monkeypatch.delenv("GEMINI_MODEL", raising=False)

        settings = Settings.from_env()

        assert settings.api_key is None
        assert settings.model == "gemini-2.5-flash"
        assert settings.max_rounds == 25

    def test_fallback_key_and_unbounded_rounds(self, monkeypatch, no_credentials):
        monkeypatch.setenv("API_KEY", "fallback")
        monkeypatch.setenv("VIBEDECK_MAX_ROUNDS", "0")

        settings = Settings.from_env()

        assert settings.api_key == "fallback"
        assert settings.max_rounds is None

    @pytest.mark.parametrize("name", ["VIBEDECK_MAX_ROUNDS", "VIBEDECK_BROWSER_LATENCY"])
    def test_malformed_number_names_variable(self, monkeypatch, name):
        monkeypatch.setenv(name, "lots")

        with pytest.raises(ConfigurationError, match=name):
            Settings.from_env()

    def test_negative_latency_rejected(self, monkeypatch):
        monkeypatch.setenv("VIBEDECK_BROWSER_LATENCY", "-1")

        with pytest.raises(ConfigurationError, match="VIBEDECK_BROWSER_LATENCY"):
            Settings.from_env()


class TestSystemInstruction:
    """Tests for loading the system instruction."""

    def test_packaged_instruction(self):
        text = read_system_instruction()

        assert "computer_click" in text
        assert Settings(api_key=None).system_instruction() == text

    def test_override_file(self, monkeypatch, tmp_path):
        override = tmp_path / "instruction.txt"
        override.write_text("Be terse.", encoding="utf-8")
        monkeypatch.setenv("VIBEDECK_SYSTEM_INSTRUCTION", str(override))

        assert Settings.from_env().system_instruction() == "Be terse."

    def test_unreadable_override(self, tmp_path):
        with pytest.raises(ConfigurationError):
            read_system_instruction(tmp_path / "missing.txt")


class TestProviders:
    """Tests for loop construction."""

    def test_missing_key_raises(self):
        with pytest.raises(ConfigurationError):
            build_loop(Settings(api_key=None))

    def test_loop_wired(self):
        loop = build_loop(Settings(api_key="test-key", max_rounds=3, browser_latency=0))

        assert isinstance(loop, AgentLoop)
        assert len(loop.dispatcher.tools) == 6
        assert not loop.is_running


class TestCommands:
    """Tests for the Typer commands."""

    def test_tools_lists_declared_tools(self):
        result = runner.invoke(app, ["tools"])

        assert result.exit_code == 0
        assert "update_vibe_preview" in result.output
        assert "terminal_execute" in result.output

    def test_health_without_key_fails(self, no_credentials):
        result = runner.invoke(app, ["health"])

        assert result.exit_code == 1
        assert "NOT SET" in result.output

    def test_health_with_key(self, monkeypatch):
        monkeypatch.setenv("GEMINI_API_KEY", "test-key")

        result = runner.invoke(app, ["health"])

        assert result.exit_code == 0

    def test_run_without_key_exits(self, no_credentials):
        result = runner.invoke(app, ["run", "hello"])

        assert result.exit_code == 1
        assert "GEMINI_API_KEY" in result.output

    def test_malformed_setting_exits_cleanly(self, monkeypatch):
        monkeypatch.setenv("VIBEDECK_MAX_ROUNDS", "many")

        result = runner.invoke(app, ["health"])

        assert result.exit_code == 1
        assert "VIBEDECK_MAX_ROUNDS" in result.output
        assert not isinstance(result.exception, ValueError)
