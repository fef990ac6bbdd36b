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
# storage-health-monitor/src/storage_health_monitor/mdraid.py

"""Linux software RAID (md) health check."""

import re
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Final

from loguru import logger

from .commands import CommandRunner
from .models import CheckResult, Severity, Source

MDADM: Final[str] = "mdadm"
MDSTAT_PATH: Final[Path] = Path("/proc/mdstat")

ARRAY_LINE = re.compile(r"^(md\w+)\s*:\s*(.*)$")
STATUS_TOKEN = re.compile(r"\[([U_]+)\]")
FAULTY_MEMBER = re.compile(r"(\S+?)\[\d+\]\(F\)")
NOTE_KEYWORDS = re.compile(r"resync|recovery|faulty|removed", re.IGNORECASE)
PARTITION_SUFFIX = re.compile(r"p\d+$")


@dataclass(frozen=True)
class MdArray:
    """One array block from /proc/mdstat."""
    name: str
    state: str
    member_status: str | None = None  # e.g. "UU_"
    faulty_members: tuple[str, ...] = field(default_factory=tuple)
    notes: tuple[str, ...] = field(default_factory=tuple)

    @property
    def device_path(self) -> str:
        return f"/dev/{self.name}"

    @property
    def degraded(self) -> bool:
        return self.member_status is not None and "_" in self.member_status

    @property
    def problems(self) -> list[str]:
        found = []
        if self.degraded:
            found.append(f"{self.name} degraded: [{self.member_status}]")
        for member in self.faulty_members:
            found.append(f"{self.name} faulty member: {member}")
        return found

    @property
    def implicated(self) -> bool:
        return bool(self.problems or self.notes)


@dataclass(frozen=True)
class MdStat:
    arrays: tuple[MdArray, ...]
    notes: tuple[str, ...]  # every note, in file order


def parse_mdstat(text: str) -> MdStat:
    """Tokenize /proc/mdstat into array records.

    An array block starts at an ``mdN : ...`` line and owns every following
    line up to the next array or a blank line. The per-member status bitmap
    (``[UU_]``) normally sits on the second line of the block. Notes found
    inside a block belong to that array.
    """
    arrays: list[MdArray] = []
    notes: list[str] = []
    current: dict | None = None

    def close():
        if current is not None:
            arrays.append(MdArray(
                name=current['name'],
                state=current['state'],
                member_status=current['status'],
                faulty_members=tuple(current['faulty']),
                notes=tuple(current['notes']),
            ))

    for line in text.splitlines():
        match = ARRAY_LINE.match(line)
        if match:
            close()
            current = {
                'name': match.group(1),
                'state': match.group(2).strip(),
                'status': None,
                'faulty': FAULTY_MEMBER.findall(match.group(2)),
                'notes': [],
            }
        elif not line.strip():
            close()
            current = None
            continue
        elif current is not None and current['status'] is None:
            token = STATUS_TOKEN.search(line)
            if token:
                current['status'] = token.group(1)

        if NOTE_KEYWORDS.search(line):
            note = f"mdstat note: {line.strip()}"
            notes.append(note)
            if current is not None:
                current['notes'].append(note)

    close()
    return MdStat(arrays=tuple(arrays), notes=tuple(notes))


def _ok(summary: str) -> CheckResult:
    logger.info(f"MDRAID: {summary}")
    return CheckResult(Source.MDRAID, Severity.OK, summary)


def check_mdraid(runner: CommandRunner,
                 mdstat_path: Path = MDSTAT_PATH,
                 is_block_device: Callable[[str], bool] | None = None
                 ) -> CheckResult:
    """Check md arrays listed in the kernel status table."""
    if not runner.exists(MDADM):
        return _ok("mdadm not found; skipping.")

    try:
        mdstat_text = Path(mdstat_path).read_text()
    except OSError as e:
        return _ok(f"cannot read {mdstat_path} ({e.strerror}); no arrays.")

    mdstat = parse_mdstat(mdstat_text)
    if not mdstat.arrays:
        return _ok("no arrays present; skipping.")

    problems = [p for array in mdstat.arrays for p in array.problems]
    problems.extend(mdstat.notes)
    if not problems:
        return _ok("arrays present, no degradation detected.")

    if is_block_device is None:
        is_block_device = _is_block_device

    # notes outside any block implicate every array
    implicated = ([a for a in mdstat.arrays if a.implicated]
                  or list(mdstat.arrays))

    details = []
    for array in implicated:
        if PARTITION_SUFFIX.search(array.name):
            continue
        if not is_block_device(array.device_path):
            logger.debug(f"{array.device_path} is not a block device")
            continue
        result = runner.run([MDADM, "--detail", array.device_path])
        details.append(
            f"--- mdadm --detail {array.device_path} ---\n"
            f"{result.output.rstrip()}\n"
        )

    for problem in problems:
        logger.warning(f"MDRAID: {problem}")

    detail = (
        "Issues detected from /proc/mdstat:\n"
        + "\n".join(problems) + "\n\n"
        + f"/proc/mdstat:\n{mdstat_text.rstrip()}\n\n"
        + "Array details:\n"
        + "\n".join(details)
    )
    return CheckResult(Source.MDRAID, Severity.FAIL, problems[0], detail)


def _is_block_device(path: str) -> bool:
    try:
        return Path(path).is_block_device()
    except OSError:
        return False
