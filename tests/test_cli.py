"""Tests for the command line interface."""

from pathlib import Path

import pytest
import yaml
from typer.testing import CliRunner

from aura_tournament import __version__
from aura_tournament.cli import app
from aura_tournament.core.config import DATABASE_URL_ENV

runner = CliRunner()


@pytest.fixture
def database(tmp_path: Path, monkeypatch) -> Path:
    path = tmp_path / "cli.db"
    monkeypatch.setenv(DATABASE_URL_ENV, f"sqlite:///{path}")
    return path


def invoke(*args: str):
    return runner.invoke(app, [str(a) for a in args])


class TestBasics:
    """Tests for commands that need no database."""

    def test_version(self):
        """Test --version prints the package version."""
        result = invoke("--version")
        assert result.exit_code == 0
        assert __version__ in result.stdout

    def test_info(self):
        """Test info lists example commands."""
        result = invoke("info")
        assert result.exit_code == 0
        assert "generate-round" in result.stdout

    def test_validate(self, tmp_path: Path):
        """Test a valid config file is accepted."""
        path = tmp_path / "config.yaml"
        path.write_text(yaml.safe_dump({"scoring": {"points_to_win": 15}}))
        result = invoke("validate", path)
        assert result.exit_code == 0
        assert "to 15" in result.stdout

    def test_validate_missing_file(self, tmp_path: Path):
        """Test a missing config file exits with an error."""
        result = invoke("validate", tmp_path / "missing.yaml")
        assert result.exit_code == 1


class TestMatchFlow:
    """Tests for a tournament driven entirely from the CLI."""

    def test_full_flow(self, database: Path):
        """Test setup, pairing, scoring and standings commands."""
        assert invoke("init-db").exit_code == 0
        assert database.exists()

        result = invoke("create-tournament", "Club Night", "--rounds", 2)
        assert result.exit_code == 0
        assert "Created tournament 1" in result.stdout

        for name in ("ann", "bob", "cat", "dan"):
            assert invoke("add-player", name).exit_code == 0
        result = invoke("register", 1, 1, 2, 3, 4)
        assert "Registered 4" in result.stdout

        result = invoke("generate-round", 1)
        assert result.exit_code == 0
        assert "# Round 1" in result.stdout

        result = invoke("start", 1, "--serving", 1, "--positions", 1, 2, 3, 4)
        assert result.exit_code == 0
        assert "0 - 0" in result.stdout

        result = invoke("point", 1, 1)
        assert result.exit_code == 0
        assert "1 - 0" in result.stdout
        assert "win probability" in result.stdout

        result = invoke("undo", 1)
        assert result.exit_code == 0
        assert "0 - 0" in result.stdout

        result = invoke("state", 1)
        assert result.exit_code == 0
        assert "serving: team 1" in result.stdout

        result = invoke("leaderboard", 1, "--partners")
        assert result.exit_code == 0
        assert "# Leaderboard" in result.stdout
        assert "# Teammate History" in result.stdout

    def test_domain_error_exits_nonzero(self, database: Path):
        """Test a rejected operation prints the error and exits with 1."""
        invoke("create-tournament", "Club Night", "--rounds", 1)
        result = invoke("generate-round", 1)
        assert result.exit_code == 1
        assert "Validation Error" in result.stdout

    def test_unknown_match(self, database: Path):
        """Test reading a missing match exits with 1."""
        result = invoke("state", 42)
        assert result.exit_code == 1
        assert "Not Found" in result.stdout
