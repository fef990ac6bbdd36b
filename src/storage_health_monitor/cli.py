# Author: PB & Claude
# Maintainer: PB
# Original date: 2026.10.17
# Copyright (C) 2026 HRDAG https://hrdag.org
#
# This program is free software; you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation; either version 2 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License along
# with this program; if not, see <https://www.gnu.org/licenses/>.
#
# ------
# storage-health-monitor/src/storage_health_monitor/cli.py

"""Command-line interface for the storage health monitor."""

import json
import sys

import typer
from loguru import logger
from rich.console import Console

from .commands import CommandRunner
from .config import Settings
from .display import display_report
from .monitor import RunStatus, run_once
from .report import build_report, collect

app = typer.Typer(help="Detect and report storage health problems.")


def configure_logging(verbose: bool):
    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if verbose else "WARNING")


@app.command()
def run(
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        help="Build and print the report without sending or saving state"
    ),
    force: bool = typer.Option(
        False,
        "--force",
        help="Send the report even if it matches the last one sent"
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Print the report as JSON"
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose logging output"
    ),
):
    """Run every check once and alert if the report changed."""
    configure_logging(verbose)

    try:
        settings = Settings.from_env()
        outcome = run_once(settings, force=force, dry_run=dry_run)
    except Exception as e:
        logger.error(f"Storage health run failed: {e}")
        raise typer.Exit(1)

    if json_output:
        output = outcome.report.to_dict()
        output['status'] = outcome.status.value
        typer.echo(json.dumps(output, indent=2))
    elif outcome.status is RunStatus.DRY_RUN:
        if outcome.report.warranted:
            typer.echo(outcome.report.to_text())
        else:
            typer.echo("No storage health issues detected.")

    if outcome.status is RunStatus.UNDELIVERED:
        raise typer.Exit(1)


@app.command()
def status(
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Output results as JSON"
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose logging output"
    ),
):
    """Show current storage health without sending anything."""
    configure_logging(verbose)

    try:
        settings = Settings.from_env()
        results, scan = collect(settings,
                                CommandRunner(settings.command_timeout))
        report = build_report(results)
    except Exception as e:
        logger.error(f"Status check failed: {e}")
        raise typer.Exit(1)

    if json_output:
        output = report.to_dict()
        output['disks'] = [o.to_dict() for o in scan.observations]
        typer.echo(json.dumps(output, indent=2))
    else:
        display_report(report, list(scan.observations), Console())


if __name__ == "__main__":
    app()
