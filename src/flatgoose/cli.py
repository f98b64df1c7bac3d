"""Root CLI group for flatgoose with global flags and command registration."""

from __future__ import annotations

from pathlib import Path

import click

from flatgoose import __version__
from flatgoose.commands import register_commands
from flatgoose.commands._context import AppContext
from flatgoose.config.settings import FlatgooseSettings


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="flatgoose")
@click.option(
    "--root",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Storage root directory.",
)
@click.option("-c", "--config", "config_path", default=None, help="Override config file path.")
@click.option("--json", "json_output", is_flag=True, help="Structured JSON output.")
@click.option("-v", "--verbose", is_flag=True, help="Detailed output with debug info.")
@click.option("--log-json", is_flag=True, help="Structured JSON log output to stderr.")
@click.pass_context
def cli(
    ctx: click.Context,
    root: Path | None,
    config_path: str | None,
    json_output: bool,
    verbose: bool,
    log_json: bool,
) -> None:
    """flatgoose — inspect flat-file document collections."""
    ctx.ensure_object(dict)
    settings = FlatgooseSettings.load(
        config_path=config_path,
        root=root,
        json_output=json_output,
        verbose=verbose,
        log_json=log_json,
    )
    ctx.obj = AppContext(settings)
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


register_commands(cli)
