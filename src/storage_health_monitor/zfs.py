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
# storage-health-monitor/src/storage_health_monitor/zfs.py

"""ZFS pool health check."""

from typing import Final

from loguru import logger

from .commands import CommandRunner
from .models import CheckResult, Severity, Source

ZPOOL: Final[str] = "zpool"
ALL_HEALTHY: Final[str] = "all pools are healthy"
NO_POOLS: Final[str] = "no pools available"
EVENTS_TIMEOUT: Final[float] = 2.0
EVENTS_MAX_LINES: Final[int] = 200


def _ok(summary: str) -> CheckResult:
    logger.info(f"ZFS: {summary}")
    return CheckResult(Source.ZFS, Severity.OK, summary)


def check_zfs(runner: CommandRunner) -> CheckResult:
    """Check ZFS pool health.

    Absence of the zpool tool or of any pool is never alertable; only a
    pool whose status is not healthy produces a FAIL result.
    """
    if not runner.exists(ZPOOL):
        return _ok("zpool not found; skipping.")

    listing = runner.run([ZPOOL, "list", "-H"])
    if (not listing.ok or not listing.stdout.strip()
            or NO_POOLS in listing.output.lower()):
        return _ok("no pools present; skipping.")

    status = runner.run([ZPOOL, "status", "-x"])
    summary = status.output.strip()
    if summary == ALL_HEALTHY:
        return _ok("all pools healthy.")
    if NO_POOLS in summary.lower():
        return _ok("no pools present; skipping.")

    details = runner.run([ZPOOL, "status", "-v"]).output.strip()
    pools = runner.run(
        [ZPOOL, "list", "-o", "name,size,alloc,free,health", "-p"]
    ).stdout.strip()
    events = runner.run([ZPOOL, "events", "-v"], timeout=EVENTS_TIMEOUT)
    recent = _tail(events.stdout, EVENTS_MAX_LINES)

    headline = (summary.splitlines()[0] if summary
                else "zpool status reported a problem")
    logger.warning(f"ZFS: {headline}")
    detail = (
        f"Summary (zpool status -x):\n{summary}\n\n"
        f"Pools (zpool list):\n{pools}\n\n"
        f"Details (zpool status -v):\n{details}\n\n"
        f"Recent events (zpool events -v, truncated):\n{recent}\n"
    )
    return CheckResult(Source.ZFS, Severity.FAIL, headline, detail)


def _tail(text: str, max_lines: int) -> str:
    lines = text.rstrip("\n").splitlines()
    return "\n".join(lines[-max_lines:])
