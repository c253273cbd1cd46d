"""
Lifecycle of a temporary Cargo project.

A project is created in the temporary project directory, handed to the user,
then deleted on exit unless the `TO_DELETE` marker file was removed.
"""

import shutil
import subprocess
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional

import click

from .benchmarking import generate_benchmarking
from .cli_config import CargoTempConfig
from .dependency import Dependency
from .error_handling import (
    ErrorCategory,
    get_error_handler,
    log_filesystem_error,
    log_process_error,
)
from .manifest import add_dependencies_to_project
from .structured_logging import (
    log_project_created,
    log_project_deleted,
    log_project_preserved,
)

DELETE_MARKER = "TO_DELETE"
DELETE_MARKER_TEXT = "Delete this file if you want to preserve this project"

EDITIONS = {
    15: "2015",
    18: "2018",
    21: "2021",
    24: "2024",
    2015: "2015",
    2018: "2018",
    2021: "2021",
    2024: "2024",
}


class ProjectError(RuntimeError):
    """Raised when a temporary project cannot be created or cleaned up."""


@dataclass
class ProjectOptions:
    """What to put in a new temporary project."""

    dependencies: List[Dependency] = field(default_factory=list)
    lib: bool = False
    project_name: Optional[str] = None
    # None: no benchmark, "": benchmark with the default name
    bench: Optional[str] = None
    edition: Optional[int] = None


@dataclass
class TemporaryProject:
    path: Path
    project_name: Optional[str] = None

    @property
    def delete_marker(self) -> Path:
        return self.path / DELETE_MARKER

    @property
    def marked_for_deletion(self) -> bool:
        return self.delete_marker.exists()


def normalize_edition(edition: Optional[int]) -> Optional[str]:
    """Map `21` or `2021` to `"2021"`; unknown editions fall back to cargo's latest."""
    if edition is None:
        return None
    if edition not in EDITIONS:
        get_error_handler().warning(
            ErrorCategory.VALIDATION,
            f"cannot find the {edition} edition, using the latest",
            "project",
            "normalize_edition",
        )
        return None
    return EDITIONS[edition]


def cargo_init_command(
    project_name: str,
    lib: bool = False,
    vcs: Optional[str] = None,
    edition: Optional[str] = None,
) -> List[str]:
    command = ["cargo", "init", "--name", project_name]
    if lib:
        command.append("--lib")
    if vcs:
        command.extend(["--vcs", vcs])
    if edition:
        command.extend(["--edition", edition])
    return command


def _make_project_dir(root: Path, project_name: Optional[str]) -> Path:
    try:
        root.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        log_filesystem_error(
            f"Cannot create temporary project directory: {e}",
            "project",
            "create_project",
            path=str(root),
            exception=e,
        )
        raise ProjectError(f"cannot create temporary project's directory: {e}") from e

    suffix = f"-{project_name}" if project_name else ""
    return Path(tempfile.mkdtemp(prefix="tmp-", suffix=suffix, dir=str(root)))


def create_project(
    options: ProjectOptions, config: CargoTempConfig
) -> TemporaryProject:
    """
    Scaffold a new temporary project.

    Args:
        options: Dependencies, kind and name of the project
        config: Loaded configuration

    Returns:
        TemporaryProject: The created project, marked for deletion

    Raises:
        ProjectError: If the directory cannot be created or `cargo init` fails
    """
    project_dir = _make_project_dir(
        Path(config.project.temporary_project_dir), options.project_name
    )
    project_name = options.project_name or project_dir.name.lower()

    command = cargo_init_command(
        project_name,
        lib=options.lib,
        vcs=config.project.vcs,
        edition=normalize_edition(options.edition),
    )

    try:
        try:
            result = subprocess.run(command, cwd=str(project_dir))
        except OSError as e:
            log_process_error(
                f"Could not start cargo: {e}",
                "project",
                "create_project",
                command=command,
                exception=e,
            )
            raise ProjectError(f"could not start cargo: {e}") from e

        if result.returncode != 0:
            log_process_error(
                "cargo command failed",
                "project",
                "create_project",
                command=command,
                returncode=result.returncode,
            )
            raise ProjectError("cargo command failed")

        add_dependencies_to_project(project_dir, options.dependencies)

        if options.bench is not None:
            generate_benchmarking(project_dir, options.bench or None)

        (project_dir / DELETE_MARKER).write_text(DELETE_MARKER_TEXT, encoding="utf-8")
    except Exception:
        shutil.rmtree(project_dir, ignore_errors=True)
        raise

    log_project_created(project_dir.name, str(project_dir), len(options.dependencies))
    return TemporaryProject(path=project_dir, project_name=options.project_name)


def confirm_deletion() -> bool:
    return click.confirm("Are you sure you want to delete this project?", default=True)


def preserve_project(
    project: TemporaryProject, preserved_project_dir: Optional[Path] = None
) -> Path:
    """
    Keep the project directory, moving and renaming it as configured.

    Returns:
        Path: Where the project now lives
    """
    final_dir = project.path

    if preserved_project_dir is not None:
        preserved_project_dir = Path(preserved_project_dir)
        preserved_project_dir.mkdir(parents=True, exist_ok=True)
        final_dir = preserved_project_dir / project.path.name

    if project.project_name:
        final_dir = final_dir.with_name(project.project_name)

    if final_dir != project.path:
        if final_dir.exists():
            raise ProjectError(f"cannot preserve project: {final_dir} already exists")
        shutil.move(str(project.path), str(final_dir))

    return final_dir


def clean_up(
    project: TemporaryProject,
    config: CargoTempConfig,
    confirm: Callable[[], bool] = confirm_deletion,
) -> Optional[Path]:
    """
    Delete or preserve the project once the session is over.

    The project is deleted while its `TO_DELETE` marker exists. With
    `prompt` enabled the user is asked first and answering no keeps it.

    Returns:
        Optional[Path]: Location of the preserved project, None if deleted
    """
    delete = project.marked_for_deletion
    if delete and config.project.prompt:
        delete = confirm()

    if delete:
        try:
            shutil.rmtree(project.path)
        except OSError as e:
            log_filesystem_error(
                f"Cannot delete temporary project: {e}",
                "project",
                "clean_up",
                path=str(project.path),
                exception=e,
            )
            raise ProjectError(f"cannot delete {project.path}: {e}") from e
        log_project_deleted(str(project.path))
        return None

    if project.delete_marker.exists():
        project.delete_marker.unlink()

    try:
        final_dir = preserve_project(project, config.project.preserved_project_dir)
    except OSError as e:
        log_filesystem_error(
            f"Cannot preserve temporary project: {e}",
            "project",
            "clean_up",
            path=str(project.path),
            exception=e,
        )
        raise ProjectError(f"cannot preserve {project.path}: {e}") from e

    log_project_preserved(str(final_dir))
    return final_dir
