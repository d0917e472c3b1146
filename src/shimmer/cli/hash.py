from __future__ import annotations

import json
import pathlib

import anyio.to_thread
import click

from shimmer import concurrency, hashing
from shimmer.cli import decorators as cli_decorators


async def _hash_one(path: pathlib.Path) -> tuple[str, str]:
    digest = await anyio.to_thread.run_sync(hashing.hash_file, path)
    return str(path), digest


@cli_decorators.shimmer_command("hash")
@click.argument("files", nargs=-1, required=True, type=click.Path(dir_okay=False))
@click.option(
    "--jobs",
    "-j",
    type=click.IntRange(min=1),
    default=None,
    help="Files hashed concurrently (default: concurrency.parallelism)",
)
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def hash_cmd(files: tuple[str, ...], jobs: int | None, as_json: bool) -> None:
    """Print SHA-1 digests of FILES.

    Output is sorted by path. Any unreadable file fails the whole command.
    """
    paths = [pathlib.Path(f) for f in files]
    digests = dict(concurrency.run_map_reduce(paths, _hash_one, jobs))

    if as_json:
        click.echo(json.dumps(dict(sorted(digests.items())), indent=2))
        return
    for path in sorted(digests):
        click.echo(f"{digests[path]}  {path}")
