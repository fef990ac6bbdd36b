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
# storage-health-monitor/tests/conftest.py

"""Shared fixtures: a scripted command runner and sample tool output."""

import json

import pytest

from storage_health_monitor.commands import CommandResult, CommandRunner

SATA_CLEAN = """smartctl 7.3 2022-02-28 r5338 [x86_64-linux-6.1.0] (local build)
Copyright (C) 2002-22, Bruce Allen, Christian Franke, www.smartmontools.org

=== START OF READ SMART DATA SECTION ===
SMART overall-health self-assessment test result: PASSED

SMART Attributes Data Structure revision number: 16
Vendor Specific SMART Attributes with Thresholds:
ID# ATTRIBUTE_NAME          FLAG     VALUE WORST THRESH TYPE      UPDATED  WHEN_FAILED RAW_VALUE
  1 Raw_Read_Error_Rate     0x002f   100   100   051    Pre-fail  Always       -       0
  5 Reallocated_Sector_Ct   0x0033   100   100   010    Pre-fail  Always       -       {realloc}
  9 Power_On_Hours          0x0032   099   099   000    Old_age   Always       -       1768
194 Temperature_Celsius     0x0022   036   045   000    Old_age   Always       -       {temp} (Min/Max 20/45)
197 Current_Pending_Sector  0x0012   100   100   000    Old_age   Always       -       0
198 Offline_Uncorrectable   0x0010   100   100   000    Old_age   Offline      -       0
199 UDMA_CRC_Error_Count    0x003e   200   200   000    Old_age   Always       -       {crc}
"""

NVME_CLEAN = """smartctl 7.3 2022-02-28 r5338 [x86_64-linux-6.1.0] (local build)
Copyright (C) 2002-22, Bruce Allen, Christian Franke, www.smartmontools.org

=== START OF SMART DATA SECTION ===
SMART overall-health self-assessment test result: PASSED

SMART/Health Information (NVMe Log 0x02)
Critical Warning:                   {critical}
Temperature:                        {temp} Celsius
Available Spare:                    100%
Available Spare Threshold:          10%
Percentage Used:                    {used}%
Data Units Read:                    1,234,567 [632 GB]
Media and Data Integrity Errors:    {media}
Error Information Log Entries:      12
Warning  Comp. Temperature Time:    0
Temperature Sensor 1:               35 Celsius
"""


def sata_output(realloc=0, temp=36, crc=0):
    return SATA_CLEAN.format(realloc=realloc, temp=temp, crc=crc)


def nvme_output(critical="0x00", temp=35, used=3, media=0):
    return NVME_CLEAN.format(critical=critical, temp=temp, used=used,
                             media=media)


def lsblk_json(*devices):
    return json.dumps({"blockdevices": list(devices)})


class FakeRunner(CommandRunner):
    """CommandRunner that answers from a script instead of running tools."""

    def __init__(self, tools=(), responses=None):
        super().__init__()
        self.tools = set(tools)
        self.responses = {}
        self.calls = []
        for args, response in (responses or {}).items():
            self.add(args, response)

    def add(self, args, response):
        if isinstance(response, str):
            response = CommandResult(tuple(args), 0, response, "")
        self.responses[tuple(args)] = response
        return self

    def exists(self, name):
        return name in self.tools

    def run(self, args, timeout=None, input=None):
        args = tuple(args)
        self.calls.append((args, timeout, input))
        if args in self.responses:
            return self.responses[args]
        return CommandResult(args, 1, "", f"{args[0]}: unexpected call")

    def called(self, *args):
        return any(call[0] == tuple(args) for call in self.calls)


@pytest.fixture
def runner():
    return FakeRunner()
