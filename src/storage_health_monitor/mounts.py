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
# storage-health-monitor/src/storage_health_monitor/mounts.py

"""Detect filesystems that are unexpectedly mounted read-only."""

import re
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Final

from loguru import logger

from .commands import CommandRunner
from .models import CheckResult, Severity, Source

FINDMNT: Final[str] = "findmnt"

PSEUDO_FSTYPES: Final[frozenset[str]] = frozenset({
    "proc", "sysfs", "tmpfs", "devtmpfs", "cgroup", "cgroup2", "overlay",
    "squashfs", "fusectl", "debugfs", "tracefs", "ramfs",
})

HEX_ESCAPE = re.compile(r"\\x([0-9a-fA-F]{2})")


@dataclass(frozen=True)
class MountEntry:
    source: str
    target: str
    fstype: str
    options: tuple[str, ...]

    @property
    def is_read_only(self) -> bool:
        # exact token: errors=remount-ro is not read-only
        return "ro" in self.options

    def describe(self) -> str:
        return (f"Read-only mount: {self.source or 'unknown'} on {self.target} "
                f"({self.fstype}) opts={','.join(self.options)}")


def _unescape(field: str) -> str:
    """findmnt -r encodes blanks and other unsafe bytes as \\xNN."""
    return HEX_ESCAPE.sub(lambda m: chr(int(m.group(1), 16)), field)


def parse_findmnt(output: str) -> list[MountEntry]:
    """Parse ``findmnt -rn -o SOURCE,TARGET,FSTYPE,OPTIONS`` output."""
    entries = []
    for line in output.splitlines():
        parts = line.split()
        if len(parts) != 4:
            if line.strip():
                logger.debug(f"Unexpected findmnt line: {line!r}")
            continue
        source, target, fstype, options = (_unescape(p) for p in parts)
        entries.append(MountEntry(source, target, fstype,
                                  tuple(options.split(","))))
    return entries


def find_unexpected_read_only(entries: Iterable[MountEntry],
                              allow: Iterable[str]) -> list[MountEntry]:
    allowed = set(allow)
    return [
        e for e in entries
        if e.fstype not in PSEUDO_FSTYPES
        and e.target not in allowed
        and e.is_read_only
    ]


def check_readonly_mounts(runner: CommandRunner,
                          allow: Iterable[str]) -> CheckResult:
    """Flag live mounts carrying the ``ro`` option."""
    if not runner.exists(FINDMNT):
        logger.info("MOUNT: findmnt not found; skipping.")
        return CheckResult(Source.MOUNT, Severity.OK,
                           "findmnt not found; skipping.")

    result = runner.run([FINDMNT, "-rn", "-o", "SOURCE,TARGET,FSTYPE,OPTIONS"])
    flagged = find_unexpected_read_only(parse_findmnt(result.stdout), allow)
    if not flagged:
        return CheckResult(Source.MOUNT, Severity.OK,
                           "no unexpected read-only mounts.")

    lines = [e.describe() for e in flagged]
    for line in lines:
        logger.warning(f"MOUNT: {line}")
    detail = ("One or more filesystems are mounted read-only:\n\n"
              + "\n".join(lines) + "\n")
    return CheckResult(
        Source.MOUNT,
        Severity.FAIL,
        f"{len(flagged)} unexpected read-only mount(s)",
        detail
    )
