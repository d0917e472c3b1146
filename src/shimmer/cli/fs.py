from __future__ import annotations

import logging

import click

from shimmer.cli import decorators as cli_decorators
from shimmer.fs import delete, directories, walk

logger = logging.getLogger(__name__)


@cli_decorators.shimmer_command("mkdir")
@click.argument("paths", nargs=-1, required=True, type=click.Path(file_okay=False))
def mkdir(paths: tuple[str, ...]) -> None:
    """Create directories and all missing parents.

    Existing directories are left alone, so this is safe to re-run.

    Examples:

        shimmer mkdir /opt/app/current/bin
    """
    for path in paths:
        created = directories.create_recursive(path)
        logger.info(f"Ensured {created}")


@cli_decorators.shimmer_command("rmdir")
@click.argument("paths", nargs=-1, required=True, type=click.Path(file_okay=False))
def rmdir(paths: tuple[str, ...]) -> None:
    """Delete directory trees, including read-only files.

    Locked files are retried briefly. If a file stays locked the command
    fails and leaves the rest of the tree in place; run it again later.
    """
    for path in paths:
        delete.delete_directory_recursive(path)
        logger.info(f"Deleted {path}")


@cli_decorators.shimmer_command("ls")
@click.argument("root", type=click.Path(file_okay=False))
def ls(root: str) -> None:
    """List every file under ROOT, one path per line.

    Files in subdirectories are listed before a directory's own files.
    """
    for file_path in walk.list_all_files_recursively(root):
        click.echo(str(file_path))
