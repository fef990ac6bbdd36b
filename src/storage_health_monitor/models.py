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
# storage-health-monitor/src/storage_health_monitor/models.py

"""Result types shared by the checkers and the report."""

from dataclasses import dataclass, field
from enum import Enum


class Source(str, Enum):
    ZFS = "ZFS"
    MDRAID = "MDRAID"
    SMART = "SMART"
    MOUNT = "MOUNT"


class Severity(str, Enum):
    OK = "OK"
    WARN = "WARN"
    FAIL = "FAIL"
    SKIPPED = "SKIPPED"

    @property
    def rank(self) -> int:
        return _RANK[self]

    @property
    def disk_label(self) -> str:
        """Label used in the SMART summary table."""
        return "PASS" if self in (Severity.OK, Severity.SKIPPED) else self.value

    @classmethod
    def worst(cls, *severities: "Severity") -> "Severity":
        return max(severities, key=lambda s: s.rank, default=cls.OK)


_RANK = {
    Severity.SKIPPED: 0,
    Severity.OK: 0,
    Severity.WARN: 1,
    Severity.FAIL: 2,
}


@dataclass(frozen=True)
class CheckResult:
    """Outcome of a single checker invocation."""
    source: Source
    severity: Severity
    summary: str
    detail: str | None = None
    table: str | None = None  # SMART summary table only

    @property
    def alertable(self) -> bool:
        return self.severity in (Severity.WARN, Severity.FAIL)

    def to_dict(self) -> dict:
        """Convert to JSON-serializable dictionary."""
        return {
            'source': self.source.value,
            'severity': self.severity.value,
            'summary': self.summary,
            'detail': self.detail,
            'table': self.table,
        }


@dataclass(frozen=True)
class DiskObservation:
    """SMART probe of one physical disk."""
    device_path: str
    transport: str | None
    is_nvme: bool
    output: str
    returncode: int
    severity: Severity
    findings: tuple[str, ...] = field(default_factory=tuple)

    def summary_line(self) -> str:
        return f"{self.device_path:<12} : {self.severity.disk_label}"

    def to_dict(self) -> dict:
        """Convert to JSON-serializable dictionary."""
        return {
            'device_path': self.device_path,
            'transport': self.transport,
            'drive_type': 'nvme' if self.is_nvme else 'ata',
            'status': self.severity.disk_label,
            'findings': list(self.findings),
            'smartctl_exit_code': self.returncode,
        }
