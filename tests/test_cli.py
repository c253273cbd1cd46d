"""
CLI interface tests for cargo-temp.
Tests the command-line interface and main entry points.
"""

from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from click.testing import CliRunner

from cargo_temp.error_handling import ErrorCategory, get_error_handler
from cargo_temp.main import cli, main, route_arguments
from cargo_temp.session import SessionError
from conftest import fake_cargo_init


@pytest.fixture
def projects_dir(temp_dir, monkeypatch):
    path = temp_dir / "projects"
    monkeypatch.setenv("CARGO_TEMP_DIR", str(path))
    return path


def keep_project(config, project_dir):
    """Session that removes the TO_DELETE marker, like a user would."""
    (Path(project_dir) / "TO_DELETE").unlink()
    return 0


class TestCLIBasics:
    """Test basic CLI functionality."""

    def test_cli_help(self):
        """Test CLI help message."""
        runner = CliRunner()
        result = runner.invoke(cli, ["--help"])

        assert result.exit_code == 0
        assert "cargo-temp" in result.output.lower()

    def test_cli_version(self):
        """Test CLI version display."""
        runner = CliRunner()
        result = runner.invoke(cli, ["--version"])

        assert result.exit_code == 0
        assert "0.3.3" in result.output

    def test_info_command(self):
        """Test the info command."""
        runner = CliRunner()
        result = runner.invoke(cli, ["info"])

        assert result.exit_code == 0
        assert "cargo-temp" in result.output.lower()

    def test_completion_command(self):
        runner = CliRunner()
        result = runner.invoke(cli, ["completion", "bash"])

        assert result.exit_code == 0
        assert "complete -F _cargo_temp_completion cargo-temp" in result.output

    def test_completion_rejects_unknown_shell(self):
        runner = CliRunner()
        result = runner.invoke(cli, ["completion", "tcsh"])

        assert result.exit_code == 2


class TestRenderCommand:
    """Test printing manifest entries without creating a project."""

    def test_render_inline_entries_first(self):
        runner = CliRunner()
        result = runner.invoke(
            cli,
            [
                "render",
                "serde=1.0+derive+rc+no-default-features",
                "anyhow",
                "tokio+full",
            ],
        )

        assert result.exit_code == 0
        assert result.output.splitlines() == [
            'anyhow = "*"',
            'tokio = { version = "*", features = ["full"] }',
            "[dependencies.serde]",
            'version = "1.0"',
            'features = ["derive", "rc"]',
            "default-features = false",
        ]

    def test_render_malformed_token(self):
        """Test that an unparsable token is a usage error."""
        runner = CliRunner()
        result = runner.invoke(cli, ["render", "anyhow", "any@how"])

        assert result.exit_code == 2
        assert "any@how" in result.output

    def test_render_unguessable_name(self):
        runner = CliRunner()
        result = runner.invoke(cli, ["render", "http://localhost"])

        assert result.exit_code == 2
        assert "NAME=URL" in result.output


class TestNewCommand:
    """Test creating a temporary project."""

    @patch("cargo_temp.main.start_session", return_value=0)
    @patch("cargo_temp.project.subprocess.run")
    def test_malformed_dependency_creates_nothing(
        self, mock_run, mock_session, projects_dir
    ):
        """Test that a bad token aborts before any scaffolding."""
        runner = CliRunner()
        result = runner.invoke(cli, ["new", "anyhow", "any@how"])

        assert result.exit_code == 2
        mock_run.assert_not_called()
        mock_session.assert_not_called()
        assert not projects_dir.exists()

    @patch("cargo_temp.main.start_session", return_value=0)
    @patch("cargo_temp.project.subprocess.run", side_effect=fake_cargo_init())
    def test_project_deleted_on_exit(self, mock_run, mock_session, projects_dir):
        runner = CliRunner()
        result = runner.invoke(cli, ["new", "anyhow"])

        assert result.exit_code == 0
        mock_session.assert_called_once()
        assert list(projects_dir.iterdir()) == []

    @patch("cargo_temp.main.start_session", side_effect=keep_project)
    @patch("cargo_temp.project.subprocess.run", side_effect=fake_cargo_init())
    def test_project_preserved_with_name(self, mock_run, mock_session, projects_dir):
        runner = CliRunner()
        result = runner.invoke(
            cli, ["new", "--name", "playground", "--bench", "speed", "anyhow=1.0"]
        )

        assert result.exit_code == 0
        preserved = projects_dir / "playground"
        assert preserved.is_dir()
        assert (preserved / "benches" / "speed.rs").exists()
        assert not (preserved / "TO_DELETE").exists()
        manifest = (preserved / "Cargo.toml").read_text()
        assert 'anyhow = "1.0"' in manifest

    @patch("cargo_temp.main.start_session", return_value=0)
    def test_cargo_init_arguments(self, mock_session, projects_dir):
        mock_run = MagicMock(side_effect=fake_cargo_init())
        with patch("cargo_temp.project.subprocess.run", mock_run):
            runner = CliRunner()
            result = runner.invoke(
                cli, ["new", "--lib", "-n", "demo", "-e", "21", "serde"]
            )

        assert result.exit_code == 0
        command = mock_run.call_args[0][0]
        assert command == [
            "cargo",
            "init",
            "--name",
            "demo",
            "--lib",
            "--edition",
            "2021",
        ]

    @patch("cargo_temp.main.start_session", return_value=0)
    @patch("cargo_temp.project.subprocess.run", side_effect=fake_cargo_init(101))
    def test_cargo_failure(self, mock_run, mock_session, projects_dir):
        runner = CliRunner()
        result = runner.invoke(cli, ["new", "anyhow"])

        assert result.exit_code == 1
        assert "cargo command failed" in result.output
        mock_session.assert_not_called()
        assert list(projects_dir.iterdir()) == []

    @patch(
        "cargo_temp.main.start_session",
        side_effect=SessionError("cannot spawn `nope`"),
    )
    @patch("cargo_temp.project.subprocess.run", side_effect=fake_cargo_init())
    def test_session_failure_still_cleans_up(
        self, mock_run, mock_session, projects_dir
    ):
        runner = CliRunner()
        result = runner.invoke(cli, ["new"])

        assert result.exit_code == 1
        assert "cannot spawn" in result.output
        assert list(projects_dir.iterdir()) == []


class TestConfigCommands:
    """Test configuration commands."""

    def test_config_show(self):
        runner = CliRunner()
        result = runner.invoke(cli, ["config", "show"])

        assert result.exit_code == 0
        assert "temporary_project_dir" in result.output

    def test_config_validate_valid(self, temp_dir):
        config_file = temp_dir / "config.toml"
        config_file.write_text('[project]\nprompt = true\nvcs = "git"\n')

        runner = CliRunner()
        result = runner.invoke(cli, ["config", "validate", str(config_file)])

        assert result.exit_code == 0
        assert "valid" in result.output

    def test_config_validate_flat_layout(self, temp_dir):
        config_file = temp_dir / "config.toml"
        config_file.write_text('editor = "code"\neditor_args = ["--wait"]\n')

        runner = CliRunner()
        result = runner.invoke(cli, ["config", "validate", str(config_file)])

        assert result.exit_code == 0

    def test_config_validate_invalid(self, temp_dir):
        config_file = temp_dir / "config.toml"
        config_file.write_text('[project]\nvcs = "svn"\n')

        runner = CliRunner()
        result = runner.invoke(cli, ["config", "validate", str(config_file)])

        assert result.exit_code == 1
        assert "vcs" in result.output

    @pytest.mark.parametrize(
        "content,key",
        [
            ('[project]\nprompt = true\ncolour = "auto"\n', "colour"),
            ('editor = "vim"\nshell = "zsh"\n', "shell"),
            ('[[subprocess]]\ncommand = "cargo build"\n', "subprocess"),
        ],
    )
    def test_config_validate_ignored_keys(self, temp_dir, content, key):
        """Test that keys the tool would ignore fail validation."""
        config_file = temp_dir / "config.toml"
        config_file.write_text(content)

        runner = CliRunner()
        result = runner.invoke(cli, ["config", "validate", str(config_file)])

        assert result.exit_code == 1
        assert "validation failed" in result.output
        assert key in result.output
        handler = get_error_handler()
        assert handler.error_callbacks.get(ErrorCategory.CONFIGURATION, []) == []


class TestEntryPoint:
    """Test argument routing of the console script."""

    @pytest.mark.parametrize(
        "args,expected",
        [
            ([], ["new"]),
            (["temp"], ["new"]),
            (["temp", "anyhow"], ["new", "anyhow"]),
            (["anyhow", "serde+derive"], ["new", "anyhow", "serde+derive"]),
            (["-l", "anyhow"], ["new", "-l", "anyhow"]),
            (["render", "anyhow"], ["render", "anyhow"]),
            (["temp", "config", "show"], ["config", "show"]),
            (["config", "validate", "cfg.toml"], ["config", "validate", "cfg.toml"]),
            (["config", "--help"], ["config", "--help"]),
            (["info"], ["info"]),
            (["completion", "zsh"], ["completion", "zsh"]),
            (["new", "info"], ["new", "info"]),
            (["config"], ["new", "config"]),
            (["config", "serde"], ["new", "config", "serde"]),
            (["info", "serde"], ["new", "info", "serde"]),
            (["completion"], ["new", "completion"]),
            (["completion", "bash", "anyhow"], ["new", "completion", "bash", "anyhow"]),
            (["render"], ["new", "render"]),
            (["--version"], ["--version"]),
            (["-h"], ["-h"]),
        ],
    )
    def test_route_arguments(self, args, expected):
        assert route_arguments(args) == expected

    def test_main_runs_render(self, capsys):
        with pytest.raises(SystemExit) as excinfo:
            main(["temp", "render", "anyhow=1"])

        assert excinfo.value.code == 0
        assert 'anyhow = "1"' in capsys.readouterr().out

    @pytest.mark.parametrize(
        "args,crate",
        [(["config"], "config"), (["info", "serde"], "info")],
    )
    @patch("cargo_temp.main.start_session", side_effect=keep_project)
    @patch("cargo_temp.project.subprocess.run", side_effect=fake_cargo_init())
    def test_main_treats_command_names_as_crates(
        self, mock_run, mock_session, args, crate, projects_dir
    ):
        """Test that a crate named like a sub-command creates a project."""
        with pytest.raises(SystemExit) as excinfo:
            main(args)

        assert excinfo.value.code == 0
        mock_session.assert_called_once()
        (project,) = list(projects_dir.iterdir())
        manifest = (project / "Cargo.toml").read_text()
        assert f'{crate} = "*"' in manifest
