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
# storage-health-monitor/tests/test_mounts.py

from conftest import FakeRunner
from storage_health_monitor.config import DEFAULT_ALLOW_RO_MOUNTS
from storage_health_monitor.models import Severity
from storage_health_monitor.mounts import (
    check_readonly_mounts,
    find_unexpected_read_only,
    parse_findmnt,
)

FINDMNT_ARGS = ("findmnt", "-rn", "-o", "SOURCE,TARGET,FSTYPE,OPTIONS")

MOUNT_TABLE = """/dev/sdb1 /data ext4 rw,relatime
/dev/sdc1 /backup xfs ro,noatime
/dev/sda2 / ext4 rw,relatime,errors=remount-ro
proc /proc proc rw,nosuid,nodev,noexec,relatime
sysfs /sys sysfs ro,nosuid,nodev,noexec,relatime
/dev/loop0 /snap/core squashfs ro,nodev,relatime
/dev/sda1 /boot/efi vfat ro,relatime,fmask=0077
"""


def _runner(table):
    runner = FakeRunner(tools={"findmnt"})
    runner.add(FINDMNT_ARGS, table)
    return runner


class TestParseFindmnt:
    """Test parsing of findmnt raw output."""

    def test_parse(self):
        entries = parse_findmnt(MOUNT_TABLE)
        assert len(entries) == 7
        assert entries[1].target == "/backup"
        assert entries[1].options == ("ro", "noatime")

    def test_escaped_blanks(self):
        entries = parse_findmnt("/dev/sdd1 /media/My\\x20Disk vfat ro\n")
        assert entries[0].target == "/media/My Disk"
        assert entries[0].is_read_only

    def test_remount_ro_is_not_read_only(self):
        entry = parse_findmnt("/dev/sda2 / ext4 rw,errors=remount-ro\n")[0]
        assert not entry.is_read_only


class TestReadOnlyMountCheck:
    """Test read-only mount detection."""

    def test_flags_exactly_backup(self):
        flagged = find_unexpected_read_only(parse_findmnt(MOUNT_TABLE),
                                            DEFAULT_ALLOW_RO_MOUNTS)
        assert [e.target for e in flagged] == ["/backup"]

    def test_alert(self):
        result = check_readonly_mounts(_runner(MOUNT_TABLE),
                                       DEFAULT_ALLOW_RO_MOUNTS)
        assert result.severity is Severity.FAIL
        assert result.summary == "1 unexpected read-only mount(s)"
        assert ("Read-only mount: /dev/sdc1 on /backup (xfs) opts=ro,noatime"
                in result.detail)
        assert "/data" not in result.detail

    def test_allow_list(self):
        result = check_readonly_mounts(_runner(MOUNT_TABLE),
                                       ("/backup", "/boot/efi"))
        assert result.severity is Severity.OK

    def test_no_read_only_mounts(self):
        table = "/dev/sdb1 /data ext4 rw,relatime\n/dev/sda2 / ext4 rw,errors=remount-ro\n"
        result = check_readonly_mounts(_runner(table), ())
        assert result.severity is Severity.OK
        assert result.detail is None

    def test_findmnt_missing(self):
        runner = FakeRunner()
        result = check_readonly_mounts(runner, ())
        assert result.severity is Severity.OK
        assert runner.calls == []
