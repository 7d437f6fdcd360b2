# Copyright © 2025 Sierra Labs LLC
# SPDX-License-Identifier: AGPL-3.0-only
# License-Filename: LICENSE

"""
Parse command: show how one syslog line would be ingested.
"""

import sys

import click
from rich.console import Console
from rich.table import Table

from ...errors import ParseError
from ...processing.parser import parse_line
from ...shared.config import Config

console = Console()


@click.command()
@click.argument("line")
@click.pass_obj
def parse(config: Config, line: str):
    """
    Parse a syslog line without touching rrdtool.

    Examples:
        r433rrd parse '<134>1 - host app - - {"model":"Acurite-5n1","id":12,"temperature_C":21.5}'
    """
    try:
        sample = parse_line(line, config.rrd_path)
    except ParseError as e:
        console.print(f"[red]Rejected ({type(e).__name__}):[/red] {e}")
        sys.exit(1)

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Field", style="cyan", no_wrap=True)
    table.add_column("Value")

    table.add_row("Label", sample.label)
    table.add_row("RRD file", sample.store_path)
    table.add_row("Temperature", sample.temperature)
    table.add_row("Humidity", sample.humidity)

    console.print(table)
