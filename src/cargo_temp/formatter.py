"""
Render dependencies as `Cargo.toml` entries.

Short entries stay on one line under `[dependencies]`:

    anyhow = "*"
    tokio = { git = "https://github.com/tokio-rs/tokio.git", branch = "compat" }

Entries with many attributes get their own table:

    [dependencies.tokio]
    git = "https://github.com/tokio-rs/tokio.git"
    version = "1.48"
    branch = "compat"
    features = ["io_std", "io_util"]
"""

import re
from typing import List, Sequence, Tuple

from .dependency import Dependency, GitRepository, LocalPath, RegistryPackage

# Number of attributes (besides name and git/path source) from which an
# entry is written as a `[dependencies.<name>]` table.
BLOCK_FORM_MIN_ATTRIBUTES = 3
BLOCK_HEADER_PREFIX = "[dependencies."

_BARE_KEY = re.compile(r"^[A-Za-z0-9_\-]+$")


def quote_string(value: str) -> str:
    """Quote a value as a TOML basic string."""
    escaped = []
    for char in value:
        if char == "\\":
            escaped.append("\\\\")
        elif char == '"':
            escaped.append('\\"')
        elif char == "\n":
            escaped.append("\\n")
        elif char == "\t":
            escaped.append("\\t")
        elif char == "\r":
            escaped.append("\\r")
        elif ord(char) < 0x20 or ord(char) == 0x7F:
            escaped.append(f"\\u{ord(char):04X}")
        else:
            escaped.append(char)
    return '"' + "".join(escaped) + '"'


def quote_key(key: str) -> str:
    """Leave bare keys alone, quote everything else."""
    return key if _BARE_KEY.match(key) else quote_string(key)


def _format_list(values: Sequence[str]) -> str:
    return "[" + ", ".join(quote_string(value) for value in values) + "]"


def dependency_attributes(dependency: Dependency) -> List[Tuple[str, str]]:
    """
    List the rendered `key = value` pairs of a dependency, in manifest order.

    Order is fixed: git/path, version, branch, rev, features, default-features.
    Registry packages always carry a version, `*` when none was requested.
    """
    attributes: List[Tuple[str, str]] = []

    if isinstance(dependency, GitRepository):
        attributes.append(("git", quote_string(dependency.url)))
    elif isinstance(dependency, LocalPath):
        attributes.append(("path", quote_string(dependency.path)))

    if isinstance(dependency, RegistryPackage):
        attributes.append(("version", quote_string(dependency.version or "*")))
    elif dependency.version is not None:
        attributes.append(("version", quote_string(dependency.version)))

    if isinstance(dependency, GitRepository):
        if dependency.branch is not None:
            attributes.append(("branch", quote_string(dependency.branch)))
        if dependency.rev is not None:
            attributes.append(("rev", quote_string(dependency.rev)))

    if dependency.features:
        attributes.append(("features", _format_list(dependency.features)))

    if not dependency.default_features:
        attributes.append(("default-features", "false"))

    return attributes


def attribute_count(dependency: Dependency) -> int:
    """Count the attributes that decide between inline and block form."""
    count = 0
    if dependency.version is not None:
        count += 1
    if isinstance(dependency, GitRepository):
        count += dependency.branch is not None
        count += dependency.rev is not None
    if dependency.features:
        count += 1
    if not dependency.default_features:
        count += 1
    return count


def is_block_form(dependency: Dependency) -> bool:
    return attribute_count(dependency) >= BLOCK_FORM_MIN_ATTRIBUTES


def format_inline(dependency: Dependency) -> str:
    key = quote_key(dependency.name)

    if (
        isinstance(dependency, RegistryPackage)
        and not dependency.features
        and dependency.default_features
    ):
        return f"{key} = {quote_string(dependency.version or '*')}"

    pairs = ", ".join(
        f"{name} = {value}" for name, value in dependency_attributes(dependency)
    )
    return f"{key} = {{ {pairs} }}"


def format_block(dependency: Dependency) -> str:
    lines = [f"{BLOCK_HEADER_PREFIX}{quote_key(dependency.name)}]"]
    lines.extend(
        f"{name} = {value}" for name, value in dependency_attributes(dependency)
    )
    return "\n".join(lines)


def format_dependency(dependency: Dependency) -> str:
    """
    Render a dependency as a `Cargo.toml` entry.

    Args:
        dependency: Parsed dependency

    Returns:
        str: Single inline line, or a `[dependencies.<name>]` table
    """
    if is_block_form(dependency):
        return format_block(dependency)
    return format_inline(dependency)
