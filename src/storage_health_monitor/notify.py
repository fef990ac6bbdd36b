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
# storage-health-monitor/src/storage_health_monitor/notify.py

"""Report delivery: flat log file, syslog and mail."""

from collections.abc import Sequence
from email.utils import formatdate
from pathlib import Path
from typing import Final, Protocol

from loguru import logger

from .commands import CommandRunner
from .config import Settings

SYSLOG_TAG: Final[str] = "storage-health"


class NotificationError(RuntimeError):
    """A sink failed to deliver a report."""


class Sink(Protocol):
    name: str

    def deliver(self, subject: str, body: str) -> None: ...


class FileLogSink:
    """Append each report to a flat log file under a date banner."""
    name = "log file"

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def deliver(self, subject: str, body: str) -> None:
        record = (
            f"===== {formatdate(localtime=True)} =====\n"
            f"{subject}\n\n"
            f"{body}\n\n"
        )
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "a") as f:
                f.write(record)
        except OSError as e:
            raise NotificationError(f"cannot append to {self.path}: {e}") from e


class SyslogSink:
    """Hand the report to the system logger via logger(1)."""
    name = "syslog"

    def __init__(self, runner: CommandRunner, tag: str = SYSLOG_TAG):
        self.runner = runner
        self.tag = tag

    def deliver(self, subject: str, body: str) -> None:
        result = self.runner.run(
            ["logger", "-t", self.tag],
            input=f"STORAGE ALERT: {subject}\n\n{body}\n"
        )
        if not result.ok:
            raise NotificationError(
                f"logger exited {result.returncode}: {result.stderr.strip()}"
            )


class MailSink:
    """Send the report through the local mail(1) relay."""
    name = "mail"

    def __init__(self, runner: CommandRunner, recipient: str):
        self.runner = runner
        self.recipient = recipient

    def deliver(self, subject: str, body: str) -> None:
        result = self.runner.run(
            ["mail", "-s", subject, self.recipient],
            input=f"{body}\n"
        )
        if not result.ok:
            raise NotificationError(
                f"mail exited {result.returncode}: {result.stderr.strip()}"
            )


class Notifier:
    """Deliver a report to every sink; one failing sink does not stop the rest.

    ``send`` reaches all sinks. ``record`` only appends to the local log and
    is used when an unchanged report is not mailed again.
    """

    def __init__(self, log_sink: FileLogSink, sinks: Sequence[Sink] = ()):
        self.log_sink = log_sink
        self.sinks = list(sinks)

    @classmethod
    def from_settings(cls, settings: Settings,
                      runner: CommandRunner) -> "Notifier":
        return cls(
            FileLogSink(settings.log_file),
            [SyslogSink(runner), MailSink(runner, settings.mail_to)],
        )

    def _deliver(self, sinks: Sequence[Sink], subject: str,
                 body: str) -> list[str]:
        delivered = []
        for sink in sinks:
            try:
                sink.deliver(subject, body)
            except NotificationError as e:
                logger.error(f"Delivery via {sink.name} failed: {e}")
                continue
            delivered.append(sink.name)
        return delivered

    def send(self, subject: str, body: str) -> list[str]:
        delivered = self._deliver([self.log_sink, *self.sinks], subject, body)
        logger.info(f"Report sent via {', '.join(delivered) or 'nothing'}")
        return delivered

    def record(self, subject: str, body: str) -> list[str]:
        return self._deliver([self.log_sink], subject, body)

    def undelivered(self, delivered: Sequence[str]) -> list[str]:
        """Names of the outbound sinks missing from a send result."""
        return [s.name for s in self.sinks if s.name not in delivered]
