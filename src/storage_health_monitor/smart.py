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
# storage-health-monitor/src/storage_health_monitor/smart.py

"""SMART/NVMe disk health scan.

Enumerate physical disks with lsblk, probe each with ``smartctl -H -A`` and
classify the output into PASS/WARN/FAIL using per-metric rules. ATA
attribute tables are parsed into a polars DataFrame; NVMe and SAS health
logs are plain ``Key: value`` lines.
"""

import json
import operator
import re
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Final

import polars as pl
from loguru import logger

from .commands import CommandRunner
from .config import Settings
from .models import CheckResult, DiskObservation, Severity, Source

SMARTCTL: Final[str] = "smartctl"
LSBLK: Final[str] = "lsblk"

# zvols, loop, device-mapper, md, CD-ROM, zram and ramdisks
VIRTUAL_PREFIXES: Final[tuple[str, ...]] = (
    "zd", "loop", "dm-", "md", "sr", "zram", "ram",
)
SWAP_MOUNTPOINT: Final[str] = "[SWAP]"

NO_SMARTCTL_MESSAGE: Final[str] = (
    "smartctl not installed; skipping SMART/NVMe health."
)
NO_DISKS_MESSAGE: Final[str] = (
    "(no disks found after swap/virtual/transport filtering)"
)

UNKNOWN_USB_BRIDGE = re.compile(r"Unknown USB bridge", re.IGNORECASE)
NOT_APPLICABLE = re.compile(
    r"no medium present|A mandatory SMART command failed", re.IGNORECASE
)
FAILED_VERDICT = re.compile(
    r"overall-?health.*:\s*FAILED|SMART (Health|overall-health).*:\s*FAIL",
    re.IGNORECASE
)
NONZERO_CRITICAL_WARNING = re.compile(
    r"Critical Warning[^:\n]*:\s*(?:0x)?0*[1-9a-f]", re.IGNORECASE
)

ATTRIBUTE_ROW = re.compile(
    r"^\s*(?P<id>\d+)\s+(?P<name>\S+)\s+(?P<flag>0x[0-9a-fA-F]+)\s+"
    r"(?P<value>\d+)\s+(?P<worst>\d+)\s+(?P<thresh>\S+)\s+(?P<type>\S+)\s+"
    r"(?P<updated>\S+)\s+(?P<when_failed>\S+)\s+(?P<raw_value>.+?)\s*$"
)
KEY_VALUE = re.compile(r"^(?P<key>[A-Za-z][^:]*?)\s*:\s+(?P<value>\S.*?)\s*$")
LEADING_INT = re.compile(r"^(\d+)")

ATTRIBUTE_SCHEMA: Final[dict] = {
    'id': pl.Int64,
    'name': pl.Utf8,
    'flag': pl.Utf8,
    'value': pl.Int64,
    'worst': pl.Int64,
    'thresh': pl.Utf8,
    'type': pl.Utf8,
    'updated': pl.Utf8,
    'when_failed': pl.Utf8,
    'raw_value': pl.Utf8,
}

COMPARATORS: Final[dict[str, Callable[[int, int], bool]]] = {
    ">": operator.gt,
    ">=": operator.ge,
}


@dataclass(frozen=True)
class MetricRule:
    """metric -> comparator -> threshold -> resulting severity."""
    label: str
    names: tuple[str, ...]
    comparator: str
    threshold: int
    severity: Severity

    def matches(self, value: int) -> bool:
        return COMPARATORS[self.comparator](value, self.threshold)

    def describe(self, name: str, value: int) -> str:
        return f"{name} = {value} ({self.comparator} {self.threshold})"


def nvme_rules(settings: Settings) -> tuple[MetricRule, ...]:
    return (
        MetricRule("critical warning", ("Critical Warning",),
                   ">", 0, Severity.FAIL),
        MetricRule("media errors", ("Media and Data Integrity Errors",),
                   ">", 0, Severity.WARN),
        MetricRule("percentage used", ("Percentage Used",),
                   ">=", 100, Severity.WARN),
        MetricRule("temperature", ("Composite Temperature", "Temperature"),
                   ">=", settings.nvme_temp_warn, Severity.WARN),
    )


def sata_rules(settings: Settings) -> tuple[MetricRule, ...]:
    return (
        MetricRule("reallocated sectors", ("Reallocated_Sector_Ct",),
                   ">", 0, Severity.WARN),
        MetricRule("pending sectors", ("Current_Pending_Sector",),
                   ">", 0, Severity.WARN),
        MetricRule("offline uncorrectable", ("Offline_Uncorrectable",),
                   ">", 0, Severity.WARN),
        MetricRule("UDMA CRC errors", ("UDMA_CRC_Error_Count",),
                   ">=", 100, Severity.WARN),
        MetricRule("temperature",
                   ("Temperature_Celsius", "Airflow_Temperature_Cel",
                    "Current Drive Temperature"),
                   ">=", settings.sata_temp_warn, Severity.WARN),
    )


@dataclass(frozen=True)
class BlockDevice:
    """One node of the lsblk device tree."""
    name: str
    type: str
    transport: str | None = None
    mountpoint: str | None = None
    children: tuple["BlockDevice", ...] = field(default_factory=tuple)

    @property
    def path(self) -> str:
        return f"/dev/{self.name}"

    @property
    def is_nvme(self) -> bool:
        return self.name.startswith("nvme")

    @property
    def is_virtual(self) -> bool:
        return self.name.startswith(VIRTUAL_PREFIXES)

    def mountpoints(self) -> list[str]:
        found = [self.mountpoint] if self.mountpoint else []
        for child in self.children:
            found.extend(child.mountpoints())
        return found

    @property
    def swap_only(self) -> bool:
        """True when everything mounted from this disk is swap."""
        mounts = self.mountpoints()
        return bool(mounts) and all(m == SWAP_MOUNTPOINT for m in mounts)

    @classmethod
    def from_lsblk(cls, node: dict) -> "BlockDevice":
        mountpoint = node.get('mountpoint')
        if mountpoint is None and node.get('mountpoints'):
            mountpoint = next((m for m in node['mountpoints'] if m), None)
        return cls(
            name=node.get('name', ""),
            type=node.get('type', ""),
            transport=node.get('tran') or None,
            mountpoint=mountpoint or None,
            children=tuple(cls.from_lsblk(c) for c in node.get('children', [])),
        )


def parse_lsblk(output: str) -> list[BlockDevice]:
    """Parse ``lsblk -J`` output into a device tree."""
    if not output.strip():
        return []
    data = json.loads(output)
    return [BlockDevice.from_lsblk(n) for n in data.get('blockdevices', [])]


def list_block_devices(runner: CommandRunner) -> list[BlockDevice]:
    result = runner.run(
        [LSBLK, "-J", "-o", "NAME,TYPE,TRAN,MOUNTPOINT"]
    )
    if not result.ok:
        logger.warning(f"lsblk failed: {result.stderr.strip()}")
        return []
    return parse_lsblk(result.stdout)


def select_disks(devices: list[BlockDevice],
                 settings: Settings) -> list[BlockDevice]:
    """Keep the physical disks worth probing."""
    disks = []
    for dev in devices:
        if dev.type != "disk":
            continue
        if dev.is_virtual:
            continue
        if dev.swap_only:
            logger.debug(f"{dev.path}: swap only, skipping")
            continue
        if settings.is_transport_excluded(dev.transport):
            logger.debug(f"{dev.path}: transport {dev.transport} excluded")
            continue
        disks.append(dev)
    return disks


def parse_ata_attributes(output: str) -> pl.DataFrame:
    """Parse the ``smartctl -A`` vendor attribute table.

    Format: ID# ATTRIBUTE_NAME FLAG VALUE WORST THRESH TYPE UPDATED
    WHEN_FAILED RAW_VALUE
    """
    records = []
    for line in output.splitlines():
        match = ATTRIBUTE_ROW.match(line)
        if not match:
            continue
        row = match.groupdict()
        row['id'] = int(row['id'])
        row['value'] = int(row['value'])
        row['worst'] = int(row['worst'])
        records.append(row)

    return pl.DataFrame(
        {col: [r[col] for r in records] for col in ATTRIBUTE_SCHEMA},
        schema=ATTRIBUTE_SCHEMA
    )


def parse_key_values(output: str) -> dict[str, str]:
    """Collect ``Key: value`` lines (NVMe health log, SAS info)."""
    values = {}
    for line in output.splitlines():
        match = KEY_VALUE.match(line.strip())
        if match and match.group('key') not in values:
            values[match.group('key')] = match.group('value')
    return values


def parse_metric_value(raw: str) -> int | None:
    """Parse a reported metric: ``0x04``, ``3%``, ``1,024``, ``36 (Min/Max 20/45)``."""
    text = raw.strip().replace(",", "")
    if text.lower().startswith("0x"):
        try:
            return int(text.split()[0], 16)
        except ValueError:
            return None
    match = LEADING_INT.match(text)
    return int(match.group(1)) if match else None


def _lookup(rule: MetricRule, attributes: pl.DataFrame,
            values: dict[str, str]) -> tuple[str, str] | None:
    """Find the first reported metric a rule applies to."""
    for name in rule.names:
        hits = attributes.filter(pl.col('name') == name)
        if not hits.is_empty():
            return name, hits['raw_value'][0]
        if name in values:
            return name, values[name]
    return None


def evaluate_rules(rules: tuple[MetricRule, ...],
                   output: str) -> tuple[Severity, list[str]]:
    """Apply a rule set to raw probe output.

    Returns the worst resulting severity and the findings that produced
    it. A metric that is present but unparsable yields a WARN finding
    rather than a silent non-match.
    """
    attributes = parse_ata_attributes(output)
    values = parse_key_values(output)

    severity = Severity.OK
    findings = []
    for rule in rules:
        found = _lookup(rule, attributes, values)
        if found is None:
            continue
        name, raw = found
        value = parse_metric_value(raw)
        if value is None:
            findings.append(f"{name}: unparsable value {raw!r}")
            severity = Severity.worst(severity, Severity.WARN)
            continue
        if rule.matches(value):
            findings.append(rule.describe(name, value))
            severity = Severity.worst(severity, rule.severity)
    return severity, findings


def classify(output: str, is_nvme: bool,
             settings: Settings) -> tuple[Severity, list[str]]:
    """Classify one smartctl probe into OK/WARN/FAIL."""
    findings = []
    severity = Severity.OK
    if FAILED_VERDICT.search(output):
        findings.append("overall health self-assessment: FAILED")
        severity = Severity.FAIL

    rules = nvme_rules(settings) if is_nvme else sata_rules(settings)
    rule_severity, rule_findings = evaluate_rules(rules, output)
    severity = Severity.worst(severity, rule_severity)
    findings.extend(rule_findings)

    # Never page FAIL without a confirmed failure signature.
    if (severity is Severity.FAIL and not FAILED_VERDICT.search(output)
            and not NONZERO_CRITICAL_WARNING.search(output)):
        logger.debug("FAIL not confirmed by probe text; downgrading to WARN")
        severity = Severity.WARN
    return severity, findings


def probe_disk(runner: CommandRunner, disk: BlockDevice,
               settings: Settings) -> DiskObservation | None:
    """Run smartctl against one disk; None when the probe does not apply."""
    result = runner.run([SMARTCTL, "-H", "-A", disk.path])
    if (disk.transport == "usb" and not disk.is_nvme
            and UNKNOWN_USB_BRIDGE.search(result.output)):
        logger.debug(f"{disk.path}: unknown USB bridge, retrying with -d sat")
        result = runner.run([SMARTCTL, "-d", "sat", "-H", "-A", disk.path])

    if NOT_APPLICABLE.search(result.output):
        logger.debug(f"{disk.path}: no medium or SMART unsupported, skipping")
        return None

    severity, findings = classify(result.output, disk.is_nvme, settings)
    if severity is not Severity.OK:
        logger.warning(f"SMART: {disk.path} {severity.value}: {'; '.join(findings)}")
    return DiskObservation(
        device_path=disk.path,
        transport=disk.transport,
        is_nvme=disk.is_nvme,
        output=result.output,
        returncode=result.returncode,
        severity=severity,
        findings=tuple(findings),
    )


@dataclass(frozen=True)
class SmartScan:
    """All disk observations from one scan."""
    observations: tuple[DiskObservation, ...] = field(default_factory=tuple)
    available: bool = True

    @property
    def severity(self) -> Severity:
        return Severity.worst(*(o.severity for o in self.observations))

    def summary_text(self) -> str:
        if not self.available:
            return NO_SMARTCTL_MESSAGE
        if not self.observations:
            return NO_DISKS_MESSAGE
        return "\n".join(o.summary_line() for o in self.observations)

    def details_text(self) -> str:
        blocks = []
        for obs in self.observations:
            if obs.severity is Severity.OK:
                continue
            block = f"--- smartctl -H -A {obs.device_path} ---\n{obs.output.rstrip()}\n"
            if obs.returncode != 0:
                block += (f"--- note: smartctl exit code {obs.returncode} "
                          "(recorded; not treated as alert) ---\n")
            blocks.append(block)
        return "\n".join(blocks)

    def to_check_result(self) -> CheckResult:
        severity = self.severity
        if not self.available:
            summary = NO_SMARTCTL_MESSAGE
        else:
            flagged = sum(1 for o in self.observations
                          if o.severity is not Severity.OK)
            summary = (f"{len(self.observations)} disk(s) scanned, "
                       f"{flagged} flagged")
        table = f"SUMMARY:\n{self.summary_text()}\n"
        detail = f"DETAILS:\n{self.details_text()}"
        return CheckResult(Source.SMART, severity, summary, detail, table)


def scan_disks(runner: CommandRunner, settings: Settings) -> SmartScan:
    if not runner.exists(SMARTCTL):
        logger.info(f"SMART: {NO_SMARTCTL_MESSAGE}")
        return SmartScan(available=False)

    disks = select_disks(list_block_devices(runner), settings)
    logger.info(f"SMART: probing {len(disks)} disk(s)")
    observations = []
    for disk in disks:
        obs = probe_disk(runner, disk, settings)
        if obs is not None:
            observations.append(obs)
    return SmartScan(observations=tuple(observations))

