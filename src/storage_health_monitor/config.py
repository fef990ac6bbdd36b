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
# storage-health-monitor/src/storage_health_monitor/config.py

"""Runtime settings read from the environment."""

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Final

DEFAULT_EXCLUDE_TRAN: Final[tuple[str, ...]] = ("usb",)
DEFAULT_NVME_TEMP_WARN: Final[int] = 80  # °C
DEFAULT_SATA_TEMP_WARN: Final[int] = 60  # °C
DEFAULT_ALLOW_RO_MOUNTS: Final[tuple[str, ...]] = (
    "/sys", "/proc", "/run/credentials", "/snap", "/sysroot", "/boot/efi",
)
DEFAULT_STATE_DIR: Final[str] = "/var/lib/storage-health"
DEFAULT_LOG_FILE: Final[str] = "/var/log/storage-health.log"
DEFAULT_MAIL_TO: Final[str] = "root"
DEFAULT_COMMAND_TIMEOUT: Final[float] = 60.0

STATE_FILE_NAME: Final[str] = "last_alert_hash.txt"


@dataclass(frozen=True)
class Settings:
    """Monitor configuration."""
    exclude_transports: tuple[str, ...] = DEFAULT_EXCLUDE_TRAN
    nvme_temp_warn: int = DEFAULT_NVME_TEMP_WARN
    sata_temp_warn: int = DEFAULT_SATA_TEMP_WARN
    allow_ro_mounts: tuple[str, ...] = DEFAULT_ALLOW_RO_MOUNTS
    state_dir: Path = Path(DEFAULT_STATE_DIR)
    log_file: Path = Path(DEFAULT_LOG_FILE)
    mail_to: str = DEFAULT_MAIL_TO
    command_timeout: float = DEFAULT_COMMAND_TIMEOUT

    @property
    def state_file(self) -> Path:
        return self.state_dir / STATE_FILE_NAME

    def is_transport_excluded(self, transport: str | None) -> bool:
        return bool(transport) and transport in self.exclude_transports

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "Settings":
        """Build settings from environment variables.

        Unset or empty variables fall back to the defaults. A malformed
        number raises ValueError naming the variable.
        """
        env = os.environ if environ is None else environ

        def words(name: str, default: tuple[str, ...]) -> tuple[str, ...]:
            value = env.get(name, "")
            if not value.strip():
                return default
            return tuple(value.split())

        def number(name: str, default, convert=int):
            value = env.get(name, "").strip()
            if not value:
                return default
            try:
                return convert(value)
            except ValueError:
                raise ValueError(
                    f"{name} must be a number, got {value!r}"
                ) from None

        return cls(
            exclude_transports=words("EXCLUDE_TRAN", DEFAULT_EXCLUDE_TRAN),
            nvme_temp_warn=number("NVME_TEMP_WARN", DEFAULT_NVME_TEMP_WARN),
            sata_temp_warn=number("SATA_TEMP_WARN", DEFAULT_SATA_TEMP_WARN),
            allow_ro_mounts=words("ALLOW_RO_MOUNTS", DEFAULT_ALLOW_RO_MOUNTS),
            state_dir=Path(env.get("STORAGE_HEALTH_STATE_DIR")
                           or DEFAULT_STATE_DIR),
            log_file=Path(env.get("STORAGE_HEALTH_LOG_FILE")
                          or DEFAULT_LOG_FILE),
            mail_to=env.get("STORAGE_HEALTH_MAIL_TO") or DEFAULT_MAIL_TO,
            command_timeout=number("STORAGE_HEALTH_COMMAND_TIMEOUT",
                                   DEFAULT_COMMAND_TIMEOUT, float),
        )
