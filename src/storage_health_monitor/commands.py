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
# storage-health-monitor/src/storage_health_monitor/commands.py

"""Thin wrapper around the external diagnostic tools."""

import shutil
import subprocess
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Final

from loguru import logger

DEFAULT_TIMEOUT: Final[float] = 60.0
RC_NOT_FOUND: Final[int] = 127
RC_TIMEOUT: Final[int] = 124


@dataclass(frozen=True)
class CommandResult:
    """Captured result of one external command."""
    args: tuple[str, ...]
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    @property
    def output(self) -> str:
        """stdout followed by stderr, as a shell `2>&1` would show it."""
        if self.stdout and self.stderr:
            sep = "" if self.stdout.endswith("\n") else "\n"
            return f"{self.stdout}{sep}{self.stderr}"
        return self.stdout or self.stderr


class CommandRunner:
    """Run external commands without ever raising for tool failures.

    A missing executable yields returncode 127 and a timeout yields 124,
    mirroring the shell conventions, so callers only ever inspect the
    returned CommandResult.
    """

    def __init__(self, timeout: float = DEFAULT_TIMEOUT):
        self.timeout = timeout

    def exists(self, name: str) -> bool:
        return shutil.which(name) is not None

    def run(self, args: Sequence[str], timeout: float | None = None,
            input: str | None = None) -> CommandResult:
        args = tuple(args)
        limit = self.timeout if timeout is None else min(timeout, self.timeout)
        logger.debug(f"Running: {' '.join(args)} (timeout {limit}s)")
        try:
            result = subprocess.run(
                list(args),
                capture_output=True,
                text=True,
                input=input,
                timeout=limit,
                check=False
            )
        except FileNotFoundError:
            logger.debug(f"{args[0]}: command not found")
            return CommandResult(args, RC_NOT_FOUND, "",
                                 f"{args[0]}: command not found")
        except subprocess.TimeoutExpired as e:
            logger.warning(f"{args[0]} timed out after {limit}s")
            return CommandResult(args, RC_TIMEOUT, _as_text(e.stdout),
                                 _as_text(e.stderr))

        if result.returncode != 0:
            logger.debug(f"{args[0]} exited with {result.returncode}")
        return CommandResult(args, result.returncode, result.stdout,
                             result.stderr)


def _as_text(data: str | bytes | None) -> str:
    if data is None:
        return ""
    if isinstance(data, bytes):
        return data.decode(errors="replace")
    return data
