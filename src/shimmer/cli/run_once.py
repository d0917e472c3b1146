from __future__ import annotations

import logging
import subprocess
import sys

import click

from shimmer import instance
from shimmer.cli import decorators as cli_decorators

logger = logging.getLogger(__name__)


@cli_decorators.shimmer_command("run-once", context_settings={"ignore_unknown_options": True})
@click.argument("key")
@click.argument("command", nargs=-1, required=True, type=click.UNPROCESSED)
@click.option(
    "--timeout-ms",
    type=int,
    default=0,
    show_default=True,
    help="How long to wait for another instance (<= 0 waits forever)",
)
@click.option("--no-wait", is_flag=True, help="Fail immediately if another instance is running")
def run_once(key: str, command: tuple[str, ...], timeout_ms: int, no_wait: bool) -> None:
    """Run COMMAND while holding the single-instance lock for KEY.

    Exits with COMMAND's exit code.

    Examples:

        shimmer run-once my-updater -- ./update.sh --channel stable

        shimmer run-once --no-wait my-watcher -- ./watch.sh
    """
    with instance.single_instance(key, timeout_ms, blocking=not no_wait) as guard:
        if guard.recovered_from_abandoned:
            logger.warning(f"Previous holder of '{key}' exited without releasing it")
        logger.debug(f"Running {list(command)} under '{key}'")
        completed = subprocess.run(list(command), check=False)
    sys.exit(completed.returncode)
