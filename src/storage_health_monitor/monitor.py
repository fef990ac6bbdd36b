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
# storage-health-monitor/src/storage_health_monitor/monitor.py

"""One monitoring pass: check, build report, dedup, notify."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path

from loguru import logger

from .commands import CommandRunner
from .config import Settings
from .dedup import DedupState
from .mdraid import MDSTAT_PATH
from .notify import Notifier
from .report import Report, build_report, collect_results


class RunStatus(str, Enum):
    QUIET = "quiet"  # nothing wrong
    SUPPRESSED = "suppressed"  # same report as last sent
    SENT = "sent"
    DRY_RUN = "dry_run"
    UNDELIVERED = "undelivered"  # a sink failed; retried next run


@dataclass(frozen=True)
class RunOutcome:
    status: RunStatus
    report: Report


def run_once(settings: Settings,
             runner: CommandRunner | None = None,
             notifier: Notifier | None = None,
             state: DedupState | None = None,
             force: bool = False,
             dry_run: bool = False,
             host: str | None = None,
             now: datetime | None = None,
             mdstat_path: Path = MDSTAT_PATH) -> RunOutcome:
    """Run every check and deliver the report if it changed.

    The local log file gets a record every time a report is warranted;
    syslog and mail only see reports whose digest differs from the last
    one sent. State is written only after every sink delivered, so a
    failed delivery is retried on the next run.
    """
    runner = runner or CommandRunner(settings.command_timeout)
    results = collect_results(settings, runner, mdstat_path)
    report = build_report(results, host=host, now=now)

    if dry_run:
        return RunOutcome(RunStatus.DRY_RUN, report)

    if not report.warranted:
        logger.info("No storage health issues detected")
        return RunOutcome(RunStatus.QUIET, report)

    notifier = notifier or Notifier.from_settings(settings, runner)
    state = state or DedupState(settings.state_file)
    digest = report.digest()

    if not force and not state.is_new(digest):
        logger.info(f"Report unchanged ({digest[:12]}); not re-sending")
        notifier.record(f"{report.subject} (unchanged, not re-sent)",
                        report.to_text())
        return RunOutcome(RunStatus.SUPPRESSED, report)

    delivered = notifier.send(report.subject, report.to_text())
    missed = notifier.undelivered(delivered)
    if missed:
        logger.error(f"Report not delivered via {', '.join(missed)}; "
                     "keeping previous state so the next run retries")
        return RunOutcome(RunStatus.UNDELIVERED, report)

    state.save(digest)
    return RunOutcome(RunStatus.SENT, report)
