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
# storage-health-monitor/src/storage_health_monitor/dedup.py

"""Remember the digest of the last report that was sent."""

from pathlib import Path

from loguru import logger


class DedupStateError(RuntimeError):
    """The state file could not be written."""


class DedupState:
    """Single-line state file holding the last-sent report digest.

    An absent or unreadable file counts as "nothing sent yet", so a broken
    state file leads to a repeat alert rather than silence.
    """

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def load(self) -> str | None:
        try:
            digest = self.path.read_text().strip()
        except FileNotFoundError:
            return None
        except OSError as e:
            logger.warning(f"Cannot read dedup state {self.path}: {e}")
            return None
        return digest or None

    def is_new(self, digest: str) -> bool:
        return digest != self.load()

    def save(self, digest: str) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(f"{digest}\n")
        except OSError as e:
            raise DedupStateError(
                f"Cannot write dedup state {self.path}: {e}"
            ) from e
        logger.debug(f"Saved report digest {digest[:12]} to {self.path}")
