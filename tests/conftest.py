"""
Shared fixtures for cargo-temp tests.
"""

import shutil
import subprocess
import tempfile
from pathlib import Path

import pytest

from cargo_temp.cli_config import reset_config

CARGO_INIT_MANIFEST = """[package]
name = "{name}"
version = "0.1.0"
edition = "2021"

[dependencies]
"""

ENV_VARS = [
    "CARGO_TEMP_DIR",
    "CARGO_TEMP_PRESERVED_DIR",
    "CARGO_TEMP_TARGET_DIR",
    "CARGO_TEMP_EDITOR",
    "CARGO_TEMP_PROMPT",
    "CARGO_TEMP_VCS",
    "CARGO_TEMP_LOG_LEVEL",
    "CARGO_TEMP_LOG_FILE",
    "CARGO_TARGET_DIR",
]


@pytest.fixture
def temp_dir():
    """Temporary directory removed after the test."""
    path = Path(tempfile.mkdtemp())
    yield path
    shutil.rmtree(path, ignore_errors=True)


@pytest.fixture(autouse=True)
def isolated_environment(temp_dir, monkeypatch):
    """Keep config files and env vars of the machine out of the tests."""
    for var in ENV_VARS:
        monkeypatch.delenv(var, raising=False)

    home = temp_dir / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(home / ".config"))
    monkeypatch.setenv("XDG_CACHE_HOME", str(home / ".cache"))
    monkeypatch.chdir(temp_dir)

    reset_config()
    yield
    reset_config()


@pytest.fixture
def cargo_project(temp_dir):
    """Directory looking like the output of `cargo init`."""
    project = temp_dir / "project"
    project.mkdir()
    (project / "Cargo.toml").write_text(
        CARGO_INIT_MANIFEST.format(name="project"), encoding="utf-8"
    )
    return project


def fake_cargo_init(returncode=0):
    """Build a `subprocess.run` replacement that acts like `cargo init`."""

    def run(command, cwd=None, **kwargs):
        if returncode == 0:
            name = command[command.index("--name") + 1]
            (Path(cwd) / "Cargo.toml").write_text(
                CARGO_INIT_MANIFEST.format(name=name), encoding="utf-8"
            )
        return subprocess.CompletedProcess(command, returncode)

    return run
