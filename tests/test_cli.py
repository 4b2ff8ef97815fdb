"""Tests for the command-line interface."""

import pytest
from click.testing import CliRunner

from kora_tutor.cli import cli
from kora_tutor.tutor import TutorConfig


@pytest.fixture
def runner():
    return CliRunner()


class TestCli:
    """Tests for kora-tutor commands that need no network."""

    def test_providers(self, runner):
        result = runner.invoke(cli, ["providers"])

        assert result.exit_code == 0
        assert "openai" in result.output
        assert "dummy" in result.output

    def test_classify(self, runner):
        result = runner.invoke(cli, ["classify", "Résoudre 3x + 8 = 9"])

        assert result.exit_code == 0
        assert "math" in result.output
        assert "yes" in result.output

    def test_init_config(self, runner, tmp_path):
        path = tmp_path / "tutor.yaml"

        result = runner.invoke(cli, ["init-config", str(path)])

        assert result.exit_code == 0
        assert TutorConfig.from_file(path) == TutorConfig()

    def test_init_config_refuses_overwrite(self, runner, tmp_path):
        path = tmp_path / "tutor.yaml"
        path.write_text("personality:\n  name: Nova\n")

        result = runner.invoke(cli, ["init-config", str(path)])

        assert result.exit_code == 1
        assert "Nova" in path.read_text()

    def test_ask_with_dummy_provider(self, runner):
        result = runner.invoke(cli, ["ask", "-p", "dummy", "What is photosynthesis?"])

        assert result.exit_code == 0
        assert "dummy response" in result.output
