"""
Reading and appending to a project's `Cargo.toml`.

Dependencies are appended to the manifest `cargo init` produced rather than
rewriting it, so whatever cargo put there is kept byte for byte.
"""

from pathlib import Path
from typing import Any, Dict, List, Sequence, Union

import toml

from .dependency import Dependency
from .error_handling import ErrorCategory, get_error_handler, log_filesystem_error
from .formatter import BLOCK_HEADER_PREFIX, format_dependency, is_block_form
from .structured_logging import log_dependencies_written

MANIFEST_NAME = "Cargo.toml"
DEPENDENCY_TABLES = ("dependencies", "dev-dependencies", "build-dependencies")


class ManifestError(RuntimeError):
    """Raised when a `Cargo.toml` cannot be read, parsed or written."""


def manifest_path(project_dir: Union[str, Path]) -> Path:
    return Path(project_dir) / MANIFEST_NAME


def render_dependencies(dependencies: Sequence[Dependency]) -> List[str]:
    """
    Render dependencies in the order they must be written.

    Inline entries come first so they land in the `[dependencies]` table;
    each block entry opens its own `[dependencies.<name>]` table after them.
    """
    inline = [format_dependency(dep) for dep in dependencies if not is_block_form(dep)]
    blocks = [format_dependency(dep) for dep in dependencies if is_block_form(dep)]
    return inline + blocks


def add_dependencies_to_project(
    project_dir: Union[str, Path], dependencies: Sequence[Dependency]
) -> None:
    """
    Append dependencies to the project's `Cargo.toml`.

    Args:
        project_dir: Directory holding a `Cargo.toml` with a trailing
            `[dependencies]` table, as created by `cargo init`
        dependencies: Parsed dependencies, written as `render_dependencies`
            orders them, with a blank line before each table

    Raises:
        ManifestError: If the manifest cannot be opened for writing
    """
    if not dependencies:
        return

    path = manifest_path(project_dir)
    entries = render_dependencies(dependencies)
    blocks = sum(1 for entry in entries if entry.startswith(BLOCK_HEADER_PREFIX))

    try:
        with open(path, "a", encoding="utf-8") as manifest:
            for entry in entries:
                if entry.startswith(BLOCK_HEADER_PREFIX):
                    manifest.write("\n")
                manifest.write(entry + "\n")
    except OSError as e:
        log_filesystem_error(
            f"Cannot write dependencies to {MANIFEST_NAME}: {e}",
            "manifest",
            "add_dependencies_to_project",
            path=str(path),
            exception=e,
        )
        raise ManifestError(f"cannot write {path}: {e}") from e

    log_dependencies_written(str(path), len(entries) - blocks, blocks)


def load_manifest(path: Union[str, Path]) -> Dict[str, Any]:
    """
    Parse a `Cargo.toml` file.

    Raises:
        ManifestError: If the file is missing or is not valid TOML
    """
    path = Path(path)
    if path.is_dir():
        path = path / MANIFEST_NAME

    try:
        content = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ManifestError(f"cannot read {path}: {e}") from e

    try:
        return toml.loads(content)
    except toml.TomlDecodeError as e:
        get_error_handler().error(
            ErrorCategory.VALIDATION,
            f"Invalid TOML format in {MANIFEST_NAME}: {e}",
            "manifest",
            "load_manifest",
            exception=e,
            details={"file_path": path.name},
        )
        raise ManifestError(f"invalid TOML in {path}: {e}") from e


def list_manifest_dependencies(path: Union[str, Path]) -> Dict[str, str]:
    """
    Collect the dependencies declared in a manifest.

    Cargo.toml files declare dependencies in three tables:
    - [dependencies] - Runtime dependencies
    - [dev-dependencies] - Development dependencies
    - [build-dependencies] - Build-time dependencies

    Returns:
        Dict[str, str]: Crate name to version requirement, `*` when the
        entry has none (git and path dependencies usually)
    """
    data = load_manifest(path)
    dependencies: Dict[str, str] = {}

    for table in DEPENDENCY_TABLES:
        for name, spec in data.get(table, {}).items():
            if isinstance(spec, str):
                dependencies[name] = spec
            elif isinstance(spec, dict):
                dependencies[name] = spec.get("version", "*")

    return dependencies
