import sys
from pathlib import Path
from typing import List, Optional, Sequence

import click
from rich.console import Console
from rich.panel import Panel

from .cli_config import (
    CargoTempConfig,
    apply_file_config,
    describe_config,
    get_config,
    load_config_file,
    validate_config_values,
)
from .completion import get_completion_scripts
from .dependency import Dependency, DependencyParseError
from .error_handling import ErrorCategory, ErrorContext, ErrorLevel, get_error_handler
from .manifest import ManifestError, render_dependencies
from .parsers import parse_dependency
from .project import ProjectError, ProjectOptions, clean_up, create_project
from .session import SessionError, start_session
from .structured_logging import configure_logging

__version__ = "0.3.3"

console = Console()

CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}

WELCOME_MESSAGE = (
    "\nTo preserve the project when exiting the shell, don't forget to delete the "
    "`TO_DELETE` file.\nTo exit the project, you can type \"exit\" or use `Ctrl+D`"
)


class DependencyType(click.ParamType):
    """Click parameter type turning a command-line token into a Dependency."""

    name = "dependency"

    def convert(self, value, param, ctx) -> Dependency:
        if not isinstance(value, str):
            return value
        try:
            return parse_dependency(value)
        except DependencyParseError as e:
            self.fail(str(e), param, ctx)


DEPENDENCY = DependencyType()


@click.group(invoke_without_command=True, context_settings=CONTEXT_SETTINGS)
@click.option("--version", is_flag=True, help="Show version information")
@click.pass_context
def cli(ctx, version):
    """
    🦀 cargo-temp: create temporary Rust projects with dependencies

    Scaffolds a throwaway Cargo project, opens your shell or editor in it and
    deletes it on exit unless you removed the TO_DELETE file.
    """
    if version:
        console.print(f"cargo-temp version {__version__}", style="bold blue")
        ctx.exit()

    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())
        return

    current_config = get_config()
    configure_logging(
        current_config.logging.log_level,
        current_config.logging.enable_json,
        current_config.logging.log_file_path,
    )


@cli.command(context_settings=CONTEXT_SETTINGS)
@click.argument("dependencies", nargs=-1, type=DEPENDENCY)
@click.option("--lib", "-l", is_flag=True, help="Create a library instead of a binary")
@click.option("--name", "-n", "project_name", help="Name of the temporary crate")
@click.option(
    "--bench",
    "-b",
    is_flag=False,
    flag_value="",
    default=None,
    help="Add a criterion benchmark, optionally with its name",
)
@click.option("--edition", "-e", type=int, help="Rust edition (15, 18, 21, 24 or 20xx)")
def new(
    dependencies: Sequence[Dependency],
    lib: bool,
    project_name: Optional[str],
    bench: Optional[str],
    edition: Optional[int],
):
    """Create a temporary project and open a shell in it.

    Examples:

      cargo-temp anyhow tokio+full

      cargo-temp --lib serde=1.0+derive

      cargo-temp https://github.com/tokio-rs/tokio.git#branch=compat

      cargo-temp new config info
    """
    current_config = get_config()
    options = ProjectOptions(
        dependencies=list(dependencies),
        lib=lib,
        project_name=project_name,
        bench=bench,
        edition=edition,
    )

    try:
        project = create_project(options, current_config)
    except (ProjectError, ManifestError) as e:
        raise click.ClickException(str(e))

    console.print(f"📁 Temporary project created at: {project.path}", style="blue")
    if current_config.project.welcome_message:
        console.print(WELCOME_MESSAGE, markup=False, highlight=False)

    session_error = None
    try:
        start_session(current_config, project.path)
    except SessionError as e:
        session_error = e

    try:
        preserved_at = clean_up(project, current_config)
    except ProjectError as e:
        raise click.ClickException(str(e))

    if preserved_at is not None:
        console.print(f"✅ Project preserved at: {preserved_at}", style="green")

    if session_error is not None:
        raise click.ClickException(str(session_error))


@cli.command(context_settings=CONTEXT_SETTINGS)
@click.argument("dependencies", nargs=-1, type=DEPENDENCY)
def render(dependencies: Sequence[Dependency]):
    """Print the Cargo.toml entries of dependencies without creating a project."""
    for entry in render_dependencies(list(dependencies)):
        print(entry)


@cli.command()
def info():
    """Show dependency syntax, configuration files and environment variables."""
    info_text = """
[bold blue]📦 Dependency Syntax:[/bold blue]

• [green]anyhow[/green] - crates.io package, any version
• [green]anyhow=1.0[/green] - crates.io package with a version requirement
• [green]tokio+full+tracing[/green] - enable features
• [green]serde+no-default-features[/green] - disable default features
• [green]https://github.com/user/repo.git#branch=dev[/green] - git repository on a branch
• [green]name=https://host/repo.git#rev=556820f[/green] - git repository pinned to a commit
• [green]./path/to/crate[/green] or [green]name=../crate=0.2[/green] - local path

[bold blue]🌍 Environment Variables:[/bold blue]

• [cyan]CARGO_TEMP_DIR[/cyan] - Where temporary projects are created
• [cyan]CARGO_TEMP_PRESERVED_DIR[/cyan] - Where preserved projects are moved
• [cyan]CARGO_TEMP_TARGET_DIR[/cyan] - CARGO_TARGET_DIR for the session
• [cyan]CARGO_TEMP_EDITOR[/cyan] - Open an editor instead of a shell
• [cyan]CARGO_TEMP_PROMPT[/cyan] - Ask before deleting a project
• [cyan]CARGO_TEMP_VCS[/cyan] - Version control passed to cargo init
• [cyan]CARGO_TEMP_LOG_LEVEL[/cyan] - Log level of the JSON logs on stderr

[bold blue]📄 Configuration Files:[/bold blue]

• [green].cargo-temp.toml[/green] / [green].cargo-temp.json[/green] - Project-level config
• [green]~/.config/cargo-temp/config.toml[/green] - User-level config
• [green]~/.cargo-temp.toml[/green] - User home config

[bold blue]💡 Usage Examples:[/bold blue]

  # Binary project with two dependencies
  cargo-temp anyhow tokio+full

  # Library project named `playground` on the 2021 edition
  cargo-temp --lib -n playground -e 21 serde+derive

  # Preview the manifest entries
  cargo-temp render clap=4+derive+cargo+env

  # A crate named like a sub-command
  cargo-temp new config
"""
    console.print(
        Panel(
            info_text,
            title="[bold]cargo-temp Information[/bold]",
            border_style="blue",
        )
    )


@cli.group()
def config():
    """Configuration management commands."""
    pass


@config.command("show")
def config_show():
    """Show current configuration settings."""
    current_config = get_config()

    console.print(Panel("[bold blue]🔧 Configuration[/bold blue]", border_style="blue"))

    titles = {
        "project": "📁 Project Settings",
        "editor": "📝 Editor Settings",
        "logging": "📜 Logging Settings",
    }
    for section, values in describe_config(current_config).items():
        console.print(f"\n[bold cyan]{titles[section]}:[/bold cyan]")
        for key, value in values.items():
            console.print(f"  {key}: {value}", markup=False, highlight=False)


@config.command("validate")
@click.argument("config_file", type=click.Path(exists=True, dir_okay=False))
def config_validate(config_file: str):
    """Validate a configuration file."""
    ignored_keys: List[str] = []

    def collect(context: ErrorContext) -> None:
        if context.level == ErrorLevel.WARNING:
            ignored_keys.append(context.message)

    error_handler = get_error_handler()
    error_handler.register_callback(collect, ErrorCategory.CONFIGURATION)
    try:
        config_data = load_config_file(Path(config_file))
        candidate = CargoTempConfig()
        if config_data is not None:
            apply_file_config(candidate, config_data)
    finally:
        error_handler.unregister_callback(collect, ErrorCategory.CONFIGURATION)

    if config_data is None:
        console.print(f"❌ Could not load config from {config_file}", style="red")
        sys.exit(1)

    errors = ignored_keys + validate_config_values(candidate)

    if errors:
        console.print("❌ Configuration validation failed:", style="red")
        for error in errors:
            console.print(f"  • {error}", style="red")
        sys.exit(1)

    console.print(f"✅ Configuration file {config_file} is valid", style="green")


@cli.command()
@click.argument(
    "shell", type=click.Choice(["bash", "zsh", "fish"], case_sensitive=False)
)
def completion(shell: str):
    """Generate shell completion scripts.

    Examples:

      cargo-temp completion bash > ~/.cargo-temp-completion.bash
    """
    print(get_completion_scripts()[shell.lower()])


_PASSTHROUGH_OPTIONS = {"-h", "--help", "--version"}
_HELP_OPTIONS = {"-h", "--help"}


def _fits_subcommand(name: str, rest: Sequence[str]) -> bool:
    """Whether the arguments after `name` are ones that sub-command accepts."""
    if name == "new":
        return True
    if rest and rest[0] in _HELP_OPTIONS:
        return True
    if name == "render":
        return bool(rest)
    if name == "info":
        return not rest
    if name == "completion":
        return len(rest) == 1 and rest[0].lower() in ("bash", "zsh", "fish")
    if name == "config":
        return bool(rest) and rest[0] in config.commands
    return False


def route_arguments(args: Sequence[str]) -> List[str]:
    """
    Map a raw command line onto the click group.

    `cargo temp ...` passes `temp` as first argument, which is dropped.
    Anything that is not a sub-command is given to `new`, so that
    `cargo-temp anyhow` creates a project. A crate sharing a sub-command's
    name is a dependency unless the following arguments fit that
    sub-command: `cargo-temp config` and `cargo-temp info serde` both create
    a project, while `cargo-temp new <dependency>` is never ambiguous.
    """
    args = list(args)
    if args and args[0] == "temp":
        args = args[1:]

    if not args:
        return ["new"]
    if args[0] in _PASSTHROUGH_OPTIONS:
        return args
    if args[0] in cli.commands and _fits_subcommand(args[0], args[1:]):
        return args
    return ["new", *args]


def main(argv: Optional[Sequence[str]] = None):
    """Console script entry point."""
    args = sys.argv[1:] if argv is None else argv
    cli.main(args=route_arguments(args), prog_name="cargo-temp")


if __name__ == "__main__":
    main()
