"""
Configuration management for cargo-temp.

Settings come from built-in defaults, then the first config file found, then
`CARGO_TEMP_*` environment variables. Config files are only ever read.
"""

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import toml
from rich.console import Console

from .error_handling import ErrorCategory, get_error_handler

console = Console(stderr=True)

APP_NAME = "cargo-temp"
LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
VCS_CHOICES = ["git", "hg", "pijul", "fossil", "none"]


def _xdg_dir(variable: str, fallback: str) -> Path:
    base = os.environ.get(variable)
    return Path(base) if base else Path.home() / fallback


def default_temporary_project_dir() -> Path:
    return _xdg_dir("XDG_CACHE_HOME", ".cache") / APP_NAME


@dataclass
class ProjectConfig:
    """Where temporary projects live and how they are created."""

    temporary_project_dir: Path = field(default_factory=default_temporary_project_dir)
    preserved_project_dir: Optional[Path] = None
    cargo_target_dir: Optional[str] = None
    vcs: Optional[str] = None
    prompt: bool = False
    welcome_message: bool = True


@dataclass
class EditorConfig:
    """Program that takes over once the project is ready."""

    editor: Optional[str] = None
    editor_args: List[str] = field(default_factory=list)


@dataclass
class LoggingConfig:
    """Logging configuration."""

    log_level: str = "WARNING"
    enable_json: bool = True
    log_file_path: Optional[str] = None


@dataclass
class CargoTempConfig:
    """Main configuration containing all subsections."""

    project: ProjectConfig = field(default_factory=ProjectConfig)
    editor: EditorConfig = field(default_factory=EditorConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


# Top-level keys of the flat `config.toml` layout and the section they belong to.
LEGACY_KEYS = {
    "temporary_project_dir": "project",
    "preserved_project_dir": "project",
    "cargo_target_dir": "project",
    "vcs": "project",
    "prompt": "project",
    "welcome_message": "project",
    "editor": "editor",
    "editor_args": "editor",
}

_PATH_KEYS = {"temporary_project_dir", "preserved_project_dir"}

# Global configuration instance
_global_config: Optional[CargoTempConfig] = None


def validate_config_values(config: CargoTempConfig) -> List[str]:
    """
    Validate configuration values and return any errors.

    Args:
        config: Configuration to validate

    Returns:
        List[str]: List of validation errors (empty if valid)
    """
    errors = []

    if not str(config.project.temporary_project_dir).strip():
        errors.append("project.temporary_project_dir must not be empty")
    if (
        config.project.preserved_project_dir is not None
        and Path(config.project.preserved_project_dir)
        == Path(config.project.temporary_project_dir)
    ):
        errors.append(
            "project.preserved_project_dir must differ from temporary_project_dir"
        )
    if config.project.vcs is not None and config.project.vcs not in VCS_CHOICES:
        errors.append(f"project.vcs must be one of: {', '.join(VCS_CHOICES)}")

    if config.editor.editor is not None and not config.editor.editor.strip():
        errors.append("editor.editor must not be empty")
    if not all(isinstance(arg, str) for arg in config.editor.editor_args):
        errors.append("editor.editor_args must be a list of strings")

    if config.logging.log_level.upper() not in LOG_LEVELS:
        errors.append(f"logging.log_level must be one of: {', '.join(LOG_LEVELS)}")

    return errors


def load_config_file(config_path: Path) -> Optional[Dict[str, Any]]:
    """Load a TOML or JSON config file, None if missing or unreadable."""
    if not config_path.exists():
        return None

    try:
        with open(config_path, encoding="utf-8") as f:
            if config_path.suffix.lower() == ".json":
                return json.load(f)
            return toml.load(f)
    except (OSError, ValueError, toml.TomlDecodeError) as e:
        get_error_handler().warning(
            ErrorCategory.CONFIGURATION,
            f"Error loading config from {config_path}: {e}",
            "cli_config",
            "load_config_file",
            exception=e,
        )
        console.print(
            f"⚠️  Error loading config from {config_path}: {e}", style="yellow"
        )

    return None


def config_file_locations() -> List[Path]:
    config_home = _xdg_dir("XDG_CONFIG_HOME", ".config")
    return [
        Path.cwd() / ".cargo-temp.toml",
        Path.cwd() / ".cargo-temp.json",
        config_home / APP_NAME / "config.toml",
        Path.home() / ".cargo-temp.toml",
    ]


def find_config_file() -> Optional[Path]:
    """Find config file in standard locations."""
    for location in config_file_locations():
        if location.exists():
            return location
    return None


def load_environment_overrides(config: CargoTempConfig) -> None:
    """Apply `CARGO_TEMP_*` environment variable overrides."""

    def get_env_bool(key: str, default: bool) -> bool:
        value = os.environ.get(key, "").lower()
        return value in ["true", "1", "yes", "on"] if value else default

    if temporary_dir := os.environ.get("CARGO_TEMP_DIR"):
        config.project.temporary_project_dir = Path(temporary_dir).expanduser()
    if preserved_dir := os.environ.get("CARGO_TEMP_PRESERVED_DIR"):
        config.project.preserved_project_dir = Path(preserved_dir).expanduser()
    if target_dir := os.environ.get("CARGO_TEMP_TARGET_DIR"):
        config.project.cargo_target_dir = target_dir
    if vcs := os.environ.get("CARGO_TEMP_VCS"):
        config.project.vcs = vcs
    config.project.prompt = get_env_bool("CARGO_TEMP_PROMPT", config.project.prompt)

    if editor := os.environ.get("CARGO_TEMP_EDITOR"):
        config.editor.editor = editor

    if log_level := os.environ.get("CARGO_TEMP_LOG_LEVEL"):
        config.logging.log_level = log_level.upper()
    if log_file := os.environ.get("CARGO_TEMP_LOG_FILE"):
        config.logging.log_file_path = log_file


def apply_config_section(
    config: Any, section_data: Dict[str, Any], section_name: str
) -> None:
    """Apply configuration from dictionary to config section."""
    for key, value in section_data.items():
        if hasattr(config, key):
            if key in _PATH_KEYS and value is not None:
                value = Path(str(value)).expanduser()
            setattr(config, key, value)
        else:
            get_error_handler().warning(
                ErrorCategory.CONFIGURATION,
                f"Unknown config key in {section_name}: {key}",
                "cli_config",
                "apply_config_section",
            )
            console.print(
                f"⚠️  Unknown config key in {section_name}: {key}", style="yellow"
            )


def _warn_ignored_key(message: str) -> None:
    get_error_handler().warning(
        ErrorCategory.CONFIGURATION, message, "cli_config", "apply_file_config"
    )
    console.print(f"⚠️  {message}", style="yellow")


def apply_file_config(config: CargoTempConfig, file_config: Dict[str, Any]) -> None:
    """Apply a loaded config file, sectioned or in the flat legacy layout."""
    legacy: Dict[str, Dict[str, Any]] = {}

    for key, value in file_config.items():
        if key in ("project", "editor", "logging") and isinstance(value, dict):
            apply_config_section(getattr(config, key), value, key)
        elif key in LEGACY_KEYS:
            legacy.setdefault(LEGACY_KEYS[key], {})[key] = value
        elif key == "subprocess":
            _warn_ignored_key(f"Unsupported config key ignored: {key}")
        else:
            _warn_ignored_key(f"Unknown config key: {key}")

    for section_name, section_data in legacy.items():
        apply_config_section(getattr(config, section_name), section_data, section_name)


def load_config(config_path: Optional[Path] = None) -> CargoTempConfig:
    """Load configuration from file and environment."""
    global _global_config

    if _global_config is not None and config_path is None:
        return _global_config

    config = CargoTempConfig()

    config_file = config_path or find_config_file()
    if config_file:
        file_config = load_config_file(config_file)
        if file_config:
            apply_file_config(config, file_config)

    load_environment_overrides(config)

    validation_errors = validate_config_values(config)
    if validation_errors:
        console.print("⚠️  Configuration validation errors:", style="red")
        for error in validation_errors:
            console.print(f"  • {error}", style="red")
        console.print("Using default values for invalid settings.", style="yellow")
        _reset_invalid_values(config, validation_errors)

    _global_config = config
    return config


def _reset_invalid_values(config: CargoTempConfig, errors: List[str]) -> None:
    defaults = CargoTempConfig()
    for error in errors:
        section_name, _, rest = error.partition(".")
        key = rest.split(" ", 1)[0]
        section = getattr(config, section_name, None)
        if section is not None and hasattr(section, key):
            setattr(section, key, getattr(getattr(defaults, section_name), key))


def get_config() -> CargoTempConfig:
    """Get the global configuration instance."""
    global _global_config
    if _global_config is None:
        _global_config = load_config()
    return _global_config


def reset_config() -> None:
    """Reset the global configuration (useful for testing)."""
    global _global_config
    _global_config = None


def describe_config(config: CargoTempConfig) -> Dict[str, Dict[str, Any]]:
    """Flatten the configuration into printable sections."""
    return {
        "project": {
            "temporary_project_dir": str(config.project.temporary_project_dir),
            "preserved_project_dir": (
                str(config.project.preserved_project_dir)
                if config.project.preserved_project_dir
                else None
            ),
            "cargo_target_dir": config.project.cargo_target_dir,
            "vcs": config.project.vcs,
            "prompt": config.project.prompt,
            "welcome_message": config.project.welcome_message,
        },
        "editor": {
            "editor": config.editor.editor,
            "editor_args": list(config.editor.editor_args),
        },
        "logging": {
            "log_level": config.logging.log_level,
            "enable_json": config.logging.enable_json,
            "log_file_path": config.logging.log_file_path,
        },
    }
