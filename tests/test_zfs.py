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
# storage-health-monitor/tests/test_zfs.py

import pytest

from conftest import FakeRunner
from storage_health_monitor.commands import CommandResult
from storage_health_monitor.models import Severity, Source
from storage_health_monitor.zfs import EVENTS_TIMEOUT, check_zfs

DEGRADED_STATUS = """  pool: tank
 state: DEGRADED
status: One or more devices could not be used because the label is missing or
        invalid.
config:

        NAME        STATE     READ WRITE CKSUM
        tank        DEGRADED     0     0     0
          mirror-0  DEGRADED     0     0     0
            sda     ONLINE       0     0     0
            sdb     UNAVAIL      0     0     0

errors: No known data errors
"""


def _zfs_runner(status_x, pools="tank\t3.62T\t1.20T\t2.42T\t-\t-\t3%\t33%\t1.00x\tDEGRADED\t-\n"):
    runner = FakeRunner(tools={"zpool"})
    runner.add(("zpool", "list", "-H"), pools)
    runner.add(("zpool", "status", "-x"), status_x)
    runner.add(("zpool", "status", "-v"), DEGRADED_STATUS)
    runner.add(("zpool", "list", "-o", "name,size,alloc,free,health", "-p"),
               "NAME  SIZE  ALLOC  FREE  HEALTH\ntank  3985729650688  1319413953331  2666315697357  DEGRADED\n")
    runner.add(("zpool", "events", "-v"),
               "TIME                           CLASS\nJun 12 2025 07:13:41.1 ereport.fs.zfs.vdev.open_failed\n")
    return runner


class TestZfsCheck:
    """Test ZFS checker outcomes."""

    def test_zpool_missing(self):
        runner = FakeRunner()
        result = check_zfs(runner)
        assert result.source is Source.ZFS
        assert result.severity is Severity.OK
        assert runner.calls == []

    @pytest.mark.parametrize("listing", [
        CommandResult(("zpool",), 0, "", ""),
        CommandResult(("zpool",), 0, "", "no pools available\n"),
        CommandResult(("zpool",), 1, "", "internal error\n"),
    ])
    def test_no_pools(self, listing):
        runner = FakeRunner(tools={"zpool"})
        runner.add(("zpool", "list", "-H"), listing)
        result = check_zfs(runner)
        assert result.severity is Severity.OK
        assert not runner.called("zpool", "status", "-x")

    def test_all_healthy(self):
        runner = _zfs_runner("all pools are healthy\n")
        result = check_zfs(runner)
        assert result.severity is Severity.OK
        assert not runner.called("zpool", "status", "-v")

    def test_degraded_pool(self):
        runner = _zfs_runner(DEGRADED_STATUS)
        result = check_zfs(runner)

        assert result.severity is Severity.FAIL
        assert result.summary == "pool: tank"
        assert "Summary (zpool status -x):" in result.detail
        assert "Pools (zpool list):\nNAME  SIZE" in result.detail
        assert "Details (zpool status -v):" in result.detail
        assert "ereport.fs.zfs.vdev.open_failed" in result.detail

    def test_events_query_is_bounded(self):
        runner = _zfs_runner(DEGRADED_STATUS)
        check_zfs(runner)
        timeouts = [t for args, t, _ in runner.calls
                    if args == ("zpool", "events", "-v")]
        assert timeouts == [EVENTS_TIMEOUT]

    def test_events_timeout_still_alerts(self):
        runner = _zfs_runner(DEGRADED_STATUS)
        runner.add(("zpool", "events", "-v"),
                   CommandResult(("zpool",), 124, "", ""))
        result = check_zfs(runner)
        assert result.severity is Severity.FAIL
        assert result.detail.endswith("Recent events (zpool events -v, truncated):\n\n")
