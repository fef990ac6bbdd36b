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
# storage-health-monitor/src/storage_health_monitor/display.py

"""Rich tabular display for storage health results."""

from rich.console import Console
from rich.table import Table
from rich.text import Text

from .models import CheckResult, DiskObservation, Severity
from .report import Report


def get_severity_style(severity: Severity) -> tuple[str, str]:
    """Get status emoji and color for a severity."""
    if severity is Severity.FAIL:
        return "🔴", "red"
    elif severity is Severity.WARN:
        return "🟡", "yellow"
    elif severity is Severity.SKIPPED:
        return "⚪", "dim"
    else:
        return "🟢", "green"


def format_severity(severity: Severity, label: str | None = None) -> Text:
    emoji, color = get_severity_style(severity)
    text = Text(f"{emoji} ", style=color)
    text.append(label or severity.value, style=color)
    return text


def create_checks_table(results: list[CheckResult]) -> Table:
    """Create one-row-per-check summary table."""
    table = Table(title="Storage Health Checks")

    table.add_column("Check", style="cyan")
    table.add_column("Status")
    table.add_column("Summary")

    for result in results:
        row_style = "bold" if result.severity is Severity.FAIL else None
        table.add_row(
            result.source.value,
            format_severity(result.severity),
            result.summary,
            style=row_style
        )

    return table


def create_disks_table(observations: list[DiskObservation]) -> Table:
    """Create per-disk SMART verdict table."""
    table = Table(title="SMART/NVMe Disks", show_edge=True)

    table.add_column("Device", style="cyan")
    table.add_column("Type")
    table.add_column("Transport", style="dim")
    table.add_column("Status", justify="center")
    table.add_column("Findings")

    for obs in observations:
        findings = Text("\n".join(obs.findings) or "-",
                        style="dim" if not obs.findings else "")
        table.add_row(
            obs.device_path,
            "NVMe" if obs.is_nvme else "ATA/SCSI",
            obs.transport or "-",
            format_severity(obs.severity, obs.severity.disk_label),
            findings
        )

    return table


def display_report(report: Report, observations: list[DiskObservation],
                   console: Console | None = None):
    """Display check results and disk verdicts using rich tables."""
    if console is None:
        console = Console()

    console.print(create_checks_table(list(report.results)))
    console.print()

    if observations:
        console.print(create_disks_table(observations))
    else:
        console.print("[dim]No SMART-capable disks were probed.[/dim]")

    if report.warranted:
        console.print(f"\n[red]Alert warranted[/red] (digest {report.digest()[:12]})")
    else:
        console.print("\n[green]No alert warranted.[/green]")

    # Legend
    console.print("\n[dim]Legend:[/dim]")
    console.print("[dim]  Status: 🟢 OK/PASS, 🟡 Warning, 🔴 Failure, ⚪ Skipped[/dim]")
