"""
Hand the temporary project over to the user's editor or shell.
"""

import os
import subprocess
from pathlib import Path
from typing import List, Mapping, Optional, Union

from .cli_config import CargoTempConfig
from .error_handling import log_process_error
from .structured_logging import log_session

DEFAULT_SHELL = "/bin/sh"


class SessionError(RuntimeError):
    """Raised when the editor or shell cannot be started."""


def build_session_command(
    config: CargoTempConfig,
    project_dir: Union[str, Path],
    environ: Optional[Mapping[str, str]] = None,
) -> List[str]:
    """
    Build the command line of the interactive session.

    With an editor configured the project directory is passed as its last
    argument; otherwise the user's `$SHELL` is started inside it.
    """
    environ = os.environ if environ is None else environ

    if config.editor.editor:
        return [config.editor.editor, *config.editor.editor_args, str(project_dir)]

    return [environ.get("SHELL") or DEFAULT_SHELL]


def session_environment(
    config: CargoTempConfig, environ: Optional[Mapping[str, str]] = None
) -> dict:
    """Environment of the session, with `CARGO_TARGET_DIR` unless already set."""
    env = dict(os.environ if environ is None else environ)
    if "CARGO_TARGET_DIR" not in env and config.project.cargo_target_dir:
        env["CARGO_TARGET_DIR"] = config.project.cargo_target_dir
    return env


def start_session(config: CargoTempConfig, project_dir: Union[str, Path]) -> int:
    """
    Run the editor or shell in the project directory and wait for it.

    Returns:
        int: Exit code of the session

    Raises:
        SessionError: If the program cannot be started
    """
    command = build_session_command(config, project_dir)
    log_session("session_started", command, project_dir=str(project_dir))

    try:
        result = subprocess.run(
            command, cwd=str(project_dir), env=session_environment(config)
        )
    except OSError as e:
        log_process_error(
            f"Cannot start {command[0]}: {e}",
            "session",
            "start_session",
            command=command,
            exception=e,
        )
        raise SessionError(f"cannot spawn `{command[0]}`: {e}") from e

    log_session("session_finished", command, returncode=result.returncode)
    return result.returncode
