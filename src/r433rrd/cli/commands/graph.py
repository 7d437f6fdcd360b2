# Copyright © 2025 Sierra Labs LLC
# SPDX-License-Identifier: AGPL-3.0-only
# License-Filename: LICENSE

"""
Graph command: render a sensor's graphs immediately.
"""

import sys

import click
from rich.console import Console

from ...errors import RRDToolError
from ...processing.orchestrator import IngestionOrchestrator
from ...processing.rrdtool.gateway import RRDToolGateway
from ...processing.rrdtool.schema import graph_output_path
from ...processing.schedule import GraphSchedule
from ...shared.config import Config

console = Console()


@click.command()
@click.argument("labels", nargs=-1, required=True)
@click.pass_obj
def graph(config: Config, labels: tuple):
    """
    Render every scheduled graph for the given sensor labels.

    A label is the RRD file name inside rrd_path, e.g. Acurite-5n1.ID12.rrd.
    The running server's graph schedule is not affected.

    Examples:
        r433rrd graph Acurite-5n1.ID12.rrd
        r433rrd graph LaCrosse_TX.CH1.rrd Oregon-THGR122N.CH2.rrd
    """
    backend = RRDToolGateway(binary=config.rrdtool_binary, timeout=config.rrdtool_timeout)
    orchestrator = IngestionOrchestrator.from_config(config, backend, GraphSchedule())

    failed = False
    for label in labels:
        store_path = f"{config.rrd_path}{label}"
        try:
            backend.exists(store_path)
            orchestrator.render_graphs(label, store_path)
        except RRDToolError as e:
            console.print(f"[red]✗[/red] {label}: {e}")
            failed = True
            continue

        for token in config.graph_schedule:
            console.print(f"[green]✓[/green] {graph_output_path(config.graph_path, token, label)}")

    if failed:
        sys.exit(1)
