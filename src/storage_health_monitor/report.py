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
# storage-health-monitor/src/storage_health_monitor/report.py

"""Run every check and assemble the alert report."""

import hashlib
import socket
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Final

from loguru import logger

from .commands import CommandRunner
from .config import Settings
from .mdraid import MDSTAT_PATH, check_mdraid
from .models import CheckResult, Severity, Source
from .mounts import check_readonly_mounts
from .smart import SmartScan, scan_disks
from .zfs import check_zfs

HEADER_NOTE: Final[str] = (
    "This message is sent only when a storage health issue is detected."
)
TIME_FORMAT: Final[str] = "%Y-%m-%d %H:%M:%S UTC"

SECTION_TITLES: Final[dict[Source, str]] = {
    Source.ZFS: "=== ZFS ALERT ===",
    Source.MDRAID: "=== MDRAID ALERT ===",
    Source.MOUNT: "=== FILESYSTEM ALERT ===",
    Source.SMART: "=== SMART/NVMe PROACTIVE ALERT ===",
}
SMART_SUMMARY_TITLE: Final[str] = "=== SMART/NVMe Summary ==="
CHECK_ERRORS_TITLE: Final[str] = "=== CHECK ERRORS ==="

REPORT_ORDER: Final[tuple[Source, ...]] = (
    Source.ZFS, Source.MDRAID, Source.MOUNT, Source.SMART,
)


@dataclass(frozen=True)
class AlertSection:
    title: str
    body: str
    alert: bool = True

    def to_text(self) -> str:
        return f"{self.title}\n{self.body.rstrip()}\n"


@dataclass(frozen=True)
class Report:
    """One run's report; rebuilt from scratch every run."""
    host: str
    timestamp: datetime
    sections: tuple[AlertSection, ...] = field(default_factory=tuple)
    results: tuple[CheckResult, ...] = field(default_factory=tuple)

    @property
    def warranted(self) -> bool:
        return any(s.alert for s in self.sections)

    @property
    def subject(self) -> str:
        return f"STORAGE ALERT on {self.host}"

    def _body(self) -> str:
        return "\n".join(s.to_text() for s in self.sections)

    def to_text(self) -> str:
        return (
            f"Host: {self.host}\n"
            f"Time: {self.timestamp.strftime(TIME_FORMAT)}\n\n"
            f"{HEADER_NOTE}\n\n"
            f"{self._body()}"
        )

    def canonical_text(self) -> str:
        """Report text without the per-run timestamp, used for dedup."""
        return f"Host: {self.host}\n\n{HEADER_NOTE}\n\n{self._body()}"

    def digest(self) -> str:
        return hashlib.sha256(self.canonical_text().encode()).hexdigest()

    def to_dict(self) -> dict:
        """Convert to JSON-serializable dictionary."""
        return {
            'host': self.host,
            'timestamp': self.timestamp.isoformat(),
            'warranted': self.warranted,
            'digest': self.digest(),
            'sections': [
                {'title': s.title, 'alert': s.alert, 'body': s.body}
                for s in self.sections
            ],
            'results': [r.to_dict() for r in self.results],
        }


def run_isolated(source: Source, check: Callable[[], CheckResult]) -> CheckResult:
    """Run one checker; any exception degrades to a SKIPPED result."""
    try:
        return check()
    except Exception as e:
        logger.opt(exception=e).error(f"{source.value} check failed: {e}")
        return CheckResult(
            source,
            Severity.SKIPPED,
            f"{source.value} check skipped: {type(e).__name__}: {e}"
        )


def collect(settings: Settings, runner: CommandRunner | None = None,
            mdstat_path: Path = MDSTAT_PATH
            ) -> tuple[list[CheckResult], SmartScan]:
    """Run all four checkers independently, in report order.

    Also returns the SMART scan itself so callers can show per-disk
    verdicts; it is empty if the scan raised.
    """
    runner = runner or CommandRunner(settings.command_timeout)
    scans: list[SmartScan] = []

    def smart_check() -> CheckResult:
        scan = scan_disks(runner, settings)
        scans.append(scan)
        return scan.to_check_result()

    checks: dict[Source, Callable[[], CheckResult]] = {
        Source.ZFS: lambda: check_zfs(runner),
        Source.MDRAID: lambda: check_mdraid(runner, mdstat_path),
        Source.MOUNT: lambda: check_readonly_mounts(
            runner, settings.allow_ro_mounts),
        Source.SMART: smart_check,
    }
    results = [run_isolated(source, checks[source]) for source in REPORT_ORDER]
    return results, scans[0] if scans else SmartScan()


def collect_results(settings: Settings, runner: CommandRunner | None = None,
                    mdstat_path: Path = MDSTAT_PATH) -> list[CheckResult]:
    return collect(settings, runner, mdstat_path)[0]


def build_report(results: Sequence[CheckResult], host: str | None = None,
                 now: datetime | None = None) -> Report:
    """Assemble report sections in fixed order from checker results.

    ZFS, MD-RAID and mount results only appear when alertable. The SMART
    summary table is its own alert section when any disk is WARN/FAIL;
    otherwise it trails as a note, and only if something else alerted.
    """
    host = host or socket.getfqdn()
    now = now or datetime.now(timezone.utc)
    by_source = {r.source: r for r in results}

    sections = []
    for source in (Source.ZFS, Source.MDRAID, Source.MOUNT):
        result = by_source.get(source)
        if result is not None and result.alertable:
            sections.append(AlertSection(SECTION_TITLES[source],
                                         result.detail or result.summary))

    smart = by_source.get(Source.SMART)
    if smart is not None and smart.alertable:
        body = smart.table or ""
        if smart.detail:
            body = f"{body}\n{smart.detail}"
        sections.append(AlertSection(SECTION_TITLES[Source.SMART], body))
    elif (sections and smart is not None
          and smart.severity is not Severity.SKIPPED):
        sections.append(AlertSection(SMART_SUMMARY_TITLE,
                                     smart.table or smart.summary,
                                     alert=False))

    skipped = [r for r in results if r.severity is Severity.SKIPPED]
    if skipped and any(s.alert for s in sections):
        sections.append(AlertSection(
            CHECK_ERRORS_TITLE,
            "\n".join(r.summary for r in skipped),
            alert=False
        ))

    return Report(host=host, timestamp=now, sections=tuple(sections),
                  results=tuple(results))
