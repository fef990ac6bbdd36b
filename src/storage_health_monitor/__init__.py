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
# storage-health-monitor/src/storage_health_monitor/__init__.py

"""Storage health monitor.

Inspect ZFS pools, md RAID arrays, SMART/NVMe disk health and read-only
mounts, and send one deduplicated alert when something changed.
"""

from .commands import CommandResult, CommandRunner
from .config import Settings
from .dedup import DedupState, DedupStateError
from .mdraid import check_mdraid, parse_mdstat
from .models import CheckResult, DiskObservation, Severity, Source
from .monitor import RunOutcome, RunStatus, run_once
from .mounts import check_readonly_mounts, parse_findmnt
from .notify import Notifier
from .report import Report, build_report, collect, collect_results
from .smart import classify, scan_disks
from .zfs import check_zfs

__version__ = "0.1.0"

__all__ = [
    "CheckResult",
    "CommandResult",
    "CommandRunner",
    "DedupState",
    "DedupStateError",
    "DiskObservation",
    "Notifier",
    "Report",
    "RunOutcome",
    "RunStatus",
    "Settings",
    "Severity",
    "Source",
    "build_report",
    "check_mdraid",
    "check_readonly_mounts",
    "check_zfs",
    "classify",
    "collect",
    "collect_results",
    "parse_findmnt",
    "parse_mdstat",
    "run_once",
    "scan_disks",
]
