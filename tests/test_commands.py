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
# storage-health-monitor/tests/test_commands.py

"""Tests for the external command wrapper, using real shell commands."""

from storage_health_monitor.commands import (
    RC_NOT_FOUND,
    RC_TIMEOUT,
    CommandResult,
    CommandRunner,
)


class TestCommandResult:

    def test_output_joins_streams(self):
        result = CommandResult(("x",), 1, "out", "err\n")
        assert result.output == "out\nerr\n"
        assert not result.ok

    def test_output_single_stream(self):
        assert CommandResult(("x",), 0, "out\n").output == "out\n"
        assert CommandResult(("x",), 2, "", "err").output == "err"
        assert CommandResult(("x",), 0, "out\n", "err").output == "out\nerr"


class TestCommandRunner:

    def test_captures_stdout(self):
        result = CommandRunner().run(["sh", "-c", "echo hello"])
        assert result.ok
        assert result.stdout == "hello\n"

    def test_nonzero_exit_is_returned(self):
        result = CommandRunner().run(["sh", "-c", "echo oops >&2; exit 3"])
        assert result.returncode == 3
        assert result.stderr == "oops\n"

    def test_missing_binary(self):
        result = CommandRunner().run(["definitely-not-a-real-tool-xyz"])
        assert result.returncode == RC_NOT_FOUND
        assert "command not found" in result.stderr

    def test_timeout(self):
        runner = CommandRunner(timeout=0.2)
        result = runner.run(["sleep", "5"])
        assert result.returncode == RC_TIMEOUT

    def test_per_call_timeout_is_capped(self):
        runner = CommandRunner(timeout=0.2)
        result = runner.run(["sleep", "5"], timeout=30)
        assert result.returncode == RC_TIMEOUT

    def test_input(self):
        result = CommandRunner().run(["cat"], input="body\n")
        assert result.stdout == "body\n"

    def test_exists(self):
        runner = CommandRunner()
        assert runner.exists("sh")
        assert not runner.exists("definitely-not-a-real-tool-xyz")
