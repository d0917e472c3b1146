from __future__ import annotations

import importlib
import logging
from typing import TypedDict, override

import click

# Command categories for organized help output
COMMAND_CATEGORIES = {
    "Filesystem": ["mkdir", "rmdir", "ls", "hash"],
    "Other": ["run-once", "config"],
}

# Lazy command registry: command_name -> (module_path, attr_name, help_text)
_LAZY_COMMANDS: dict[str, tuple[str, str, str]] = {
    "mkdir": ("shimmer.cli.fs", "mkdir", "Create directories and all missing parents."),
    "rmdir": ("shimmer.cli.fs", "rmdir", "Delete directory trees, including read-only files."),
    "ls": ("shimmer.cli.fs", "ls", "List every file under a directory."),
    "hash": ("shimmer.cli.hash", "hash_cmd", "Print SHA-1 digests of files in parallel."),
    "run-once": (
        "shimmer.cli.run_once",
        "run_once",
        "Run a command unless another instance holds the same key.",
    ),
    "config": ("shimmer.cli.config", "config_cmd", "Show the merged configuration."),
}


class CliContext(TypedDict):
    """Context object for CLI commands."""

    verbose: bool
    quiet: bool


class ShimmerGroup(click.Group):
    """Custom Group with lazy command loading and categorized help."""

    @override
    def list_commands(self, ctx: click.Context) -> list[str]:
        """Return all available command names."""
        return sorted(_LAZY_COMMANDS.keys())

    @override
    def get_command(self, ctx: click.Context, cmd_name: str) -> click.Command | None:
        """Lazily load and return a command by name."""
        if cmd_name not in _LAZY_COMMANDS:
            return None

        module_path, attr_name, _help = _LAZY_COMMANDS[cmd_name]
        module = importlib.import_module(module_path)
        return getattr(module, attr_name)

    @override
    def format_commands(self, ctx: click.Context, formatter: click.HelpFormatter) -> None:
        """Format commands grouped by category using cached help strings."""
        for category, cmd_names in COMMAND_CATEGORIES.items():
            rows = [(name, _LAZY_COMMANDS[name][2]) for name in cmd_names]
            with formatter.section(f"{category} Commands"):
                formatter.write_dl(rows)


def _setup_logging(verbose: bool, quiet: bool) -> None:
    """Configure logging for CLI output."""
    if quiet:
        level = logging.WARNING
    elif verbose:
        level = logging.DEBUG
    else:
        level = logging.INFO
    logging.basicConfig(level=level, format="%(message)s", force=True)


@click.group(cls=ShimmerGroup)
@click.option("--verbose", "-v", is_flag=True, help="Show detailed output")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output")
@click.pass_context
def cli(ctx: click.Context, verbose: bool, quiet: bool) -> None:
    """Resilient filesystem and single-instance helpers for installers."""
    if verbose and quiet:
        raise click.UsageError("--verbose and --quiet are mutually exclusive")
    ctx.obj = CliContext(verbose=verbose, quiet=quiet)
    _setup_logging(verbose, quiet)


def main() -> None:
    """Console script entry point."""
    cli()
