# Copyright © 2025 Sierra Labs LLC
# SPDX-License-Identifier: AGPL-3.0-only
# License-Filename: LICENSE

"""
System diagnostics and health check utilities.
"""

import os
import sys
from pathlib import Path
from typing import List, Tuple

import redis
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from ...processing.rrdtool.gateway import RRDToolGateway
from ...shared.config import Config

console = Console()


def run_diagnostics(config: Config) -> bool:
    """
    Run relay diagnostics.

    Returns:
        True if all checks pass, False otherwise
    """
    console.print(Panel("[bold cyan]r433rrd Diagnostics[/bold cyan]", border_style="blue"))

    checks = [
        _check_configuration(config),
        _check_rrdtool(config),
        _check_directory("RRD Directory", config.rrd_path),
        _check_directory("Graph Directory", config.graph_path),
        _check_schedule_backend(config),
        _check_environment(),
    ]

    _display_results(checks)

    return all(status for _, status, _ in checks)


def _check_configuration(config: Config) -> Tuple[str, bool, str]:
    """Check configuration validity."""
    errors = config.validate()
    if errors:
        return ("Configuration", False, "; ".join(errors))
    return ("Configuration", True, f"Valid configuration ({config.config_path})")


def _check_rrdtool(config: Config) -> Tuple[str, bool, str]:
    """Check that the rrdtool binary can be run."""
    banner = RRDToolGateway(binary=config.rrdtool_binary).version()
    if banner:
        return ("rrdtool", True, banner)
    return ("rrdtool", False, f"Cannot run {config.rrdtool_binary}")


def _check_directory(name: str, prefix: str) -> Tuple[str, bool, str]:
    """Check that files can be written under a path prefix."""
    # Prefixes are concatenated with file names, so "dir/" and "dir/pre-" both work
    directory = Path(prefix) if prefix.endswith("/") else Path(prefix).parent
    try:
        if not directory.exists():
            return (name, False, f"{directory} does not exist")

        test_file = directory / ".r433rrd_permission"
        test_file.write_text("test")
        test_file.unlink()

        return (name, True, f"{directory} is writable")
    except OSError as e:
        return (name, False, f"Permission error: {e}")


def _check_schedule_backend(config: Config) -> Tuple[str, bool, str]:
    """Check the graph schedule backend."""
    if config.schedule_backend != "redis":
        return ("Graph Schedule", True, "In-memory (resets on restart)")

    try:
        client = redis.Redis(
            host=config.redis_host,
            port=config.redis_port,
            db=config.redis_db,
            socket_connect_timeout=2,
        )
        client.ping()
        entries = client.hlen(config.redis_key)
        return ("Graph Schedule", True, f"Redis {config.redis_host}:{config.redis_port}, {entries} sensors")
    except redis.RedisError as e:
        return ("Graph Schedule", False, f"Redis error: {e}")


def _check_environment() -> Tuple[str, bool, str]:
    """Check environment variables and system info."""
    info = []

    python_version = f"{sys.version_info.major}.{sys.version_info.minor}.{sys.version_info.micro}"
    info.append(f"Python {python_version}")
    info.append(f"{sys.platform}")

    env_vars = ["R433RRD_CONFIG", "R433RRD_LISTEN_ADDR", "R433RRD_RRD_PATH",
                "R433RRD_GRAPH_PATH", "R433RRD_LOG_LEVEL", "R433RRD_DEBUG"]
    set_vars = [var for var in env_vars if os.environ.get(var)]

    if set_vars:
        info.append(f"Env vars: {', '.join(set_vars)}")

    return ("Environment", True, " | ".join(info))


def _display_results(checks: List[Tuple[str, bool, str]]):
    """Display diagnostic results in a table."""
    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Check", style="cyan", no_wrap=True)
    table.add_column("Status", justify="center")
    table.add_column("Details")

    all_passed = True

    for check_name, passed, details in checks:
        if passed:
            status = "[green]✓ PASS[/green]"
        else:
            status = "[red]✗ FAIL[/red]"
            all_passed = False

        table.add_row(check_name, status, details)

    console.print(table)
    console.print()

    if all_passed:
        console.print("[green]All diagnostics passed![/green]")
    else:
        console.print("[yellow]Some diagnostics failed. Please check the details above.[/yellow]")
        console.print("\nTroubleshooting tips:")
        console.print("• rrdtool: Install it with your package manager or set rrdtool.binary")
        console.print("• Directories: Create rrd_path and graph_path and check ownership")
        console.print("• Redis: Start Redis or set schedule.backend to memory")
