# Copyright © 2025 Sierra Labs LLC
# SPDX-License-Identifier: AGPL-3.0-only
# License-Filename: LICENSE

"""
Config command implementation for inspecting the relay configuration.
"""

import sys
from pathlib import Path

import click
import yaml
from rich.console import Console
from rich.syntax import Syntax

from ...shared.config import Config as AppConfig

console = Console()


@click.command()
@click.option(
    "--validate",
    is_flag=True,
    help="Validate configuration"
)
@click.option(
    "--export",
    type=click.Path(dir_okay=False),
    help="Write the effective configuration to a file"
)
@click.pass_obj
def config(config: AppConfig, validate: bool, export: str):
    """
    Show the effective configuration.

    Values are merged from defaults, the config file and R433RRD_*
    environment variables.

    Examples:
        r433rrd config                        # Show settings as YAML
        r433rrd config --validate             # Check for problems
        r433rrd config --export r433rrd.yaml  # Write a starter config file
    """
    text = yaml.safe_dump(config.to_dict(), default_flow_style=False, sort_keys=False)

    if export:
        Path(export).write_text(text)
        console.print(f"[green]Configuration exported to {export}[/green]")
        return

    if validate:
        errors = config.validate()
        if errors:
            for error in errors:
                console.print(f"[red]✗[/red] {error}")
            sys.exit(1)
        console.print("[green]✓ Configuration is valid[/green]")
        return

    source = config.config_path if config.config_path.exists() else "defaults"
    console.print(f"[dim]# Source: {source}[/dim]")
    console.print(Syntax(text, "yaml", theme="monokai"))
