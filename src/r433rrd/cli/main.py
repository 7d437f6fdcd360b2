# Copyright © 2025 Sierra Labs LLC
# SPDX-License-Identifier: AGPL-3.0-only
# License-Filename: LICENSE

"""
Main CLI entry point for the r433rrd relay.
"""

import os
import sys

import click
from rich.console import Console

from .. import __version__
from ..processing.server import main as run_relay, setup_logging
from ..shared.config import Config
from .commands import config, graph, parse

# Create console for rich output
console = Console()

# Pass context through Click
pass_config = click.make_pass_decorator(Config, ensure=True)


@click.group(invoke_without_command=True)
@click.option(
    "--version",
    is_flag=True,
    help="Show version and exit"
)
@click.option(
    "--config", "config_path",
    envvar="R433RRD_CONFIG",
    type=click.Path(dir_okay=False),
    default=None,
    help="Path to the YAML configuration file"
)
@click.option(
    "--debug",
    envvar="R433RRD_DEBUG",
    is_flag=True,
    help="Enable debug logging"
)
@click.pass_context
def cli(ctx, version: bool, config_path: str, debug: bool):
    """
    r433rrd - relay rtl_433 sensor readings into rrdtool.

    Listens for syslog-framed JSON readings over UDP, stores temperature and
    humidity in one RRD file per sensor, and renders graphs periodically.

    Examples:
        r433rrd serve
        r433rrd --config /etc/r433rrd.yaml serve
        r433rrd parse '<134>1 - host app - - {"model":"Foo","id":1,"temperature_C":20}'
        r433rrd graph Acurite-5n1.ID12.rrd
    """
    if version:
        click.echo(f"r433rrd version {__version__}")
        ctx.exit()

    # Initialize configuration
    app_config = Config(config_path=config_path)
    if debug:
        app_config.log_level = "DEBUG"
        setup_logging("DEBUG")

    # Store in context
    ctx.obj = app_config

    # If no subcommand, show help
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


# Add commands
cli.add_command(parse.parse)
cli.add_command(graph.graph)
cli.add_command(config.config)


@cli.command()
@pass_config
def serve(config: Config):
    """Run the relay server until interrupted."""
    errors = config.validate()
    if errors:
        for error in errors:
            console.print(f"[red]Configuration error:[/red] {error}")
        sys.exit(1)

    run_relay(config)


@cli.command()
@pass_config
def doctor(config: Config):
    """Check configuration, rrdtool and directories."""
    from .utils.doctor import run_diagnostics
    if not run_diagnostics(config):
        sys.exit(1)


def main():
    """Main entry point for the CLI."""
    try:
        cli()
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted by user[/yellow]")
        sys.exit(130)
    except Exception as e:
        if os.environ.get("R433RRD_DEBUG"):
            console.print_exception()
        else:
            console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
