from __future__ import annotations

import click

from shimmer import config
from shimmer.cli import decorators as cli_decorators


@cli_decorators.shimmer_command("config")
@click.option("--temp-root", "show_temp_root", is_flag=True, help="Print only the resolved temp root")
def config_cmd(show_temp_root: bool) -> None:
    """Show the merged configuration (defaults < global < local)."""
    if show_temp_root:
        click.echo(str(config.get_temp_root()))
        return
    click.echo(config.dump_merged_config(), nl=False)
