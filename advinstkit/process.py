# Copyright 2025 Roger Cibrian
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""External command execution for advinstkit.

ProcessRunner runs a command, waits for it and hands back a CommandResult
with the exit code and captured output. A non-zero exit code is data, not an
exception: license registration has to branch on specific codes (including
the "no seat available" one), so nothing here raises just because a process
failed unless the caller explicitly passes check=True.

Command lines:

Advanced Installer and msiexec use Windows command-line conventions
(TARGETDIR="C:\\path with spaces" must reach msiexec exactly like that), so
string commands are passed unchanged to CreateProcess on Windows. On other
hosts strings are split with shlex, which is only useful for tests and
tooling. Argument sequences are passed through as-is everywhere.

Output is decoded with the locale encoding; bytes it cannot decode become
U+FFFD, so console output from the tool never turns into an exception.
Pass secrets= to keep values such as license keys out of debug logs and
error messages.

Example:
    Run a command and inspect the exit code:
        ```python
        from advinstkit.process import ProcessRunner

        runner = ProcessRunner()
        result = runner.run('"C:\\\\tools\\\\advinst\\\\advancedinstaller.com" /help')
        if result.exit_code != 0:
            print(result.stdout)
        ```
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
import shlex
import subprocess
import sys

from advinstkit.exceptions import CommandError, CommandTimeoutError


@dataclass(frozen=True)
class CommandResult:
    """Outcome of one process invocation.

    Attributes:
        exit_code: Process exit code as reported by the OS.
        stdout: Captured standard output.
        stderr: Captured standard error.
    """

    exit_code: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.exit_code == 0


def _display(command: str | Sequence[str], secrets: Sequence[str] = ()) -> str:
    """Render command for logs and error messages with secrets masked."""
    if isinstance(command, str):
        text = command
    else:
        text = subprocess.list2cmdline([str(c) for c in command])
    for secret in secrets:
        if secret:
            text = text.replace(secret, "***")
    return text


class ProcessRunner:
    """Runs external commands and returns CommandResult values.

    Attributes:
        timeout: Default per-command timeout in seconds (None = no limit).
    """

    def __init__(self, timeout: float | None = None) -> None:
        self.timeout = timeout

    def run(
        self,
        command: str | Sequence[str],
        *,
        check: bool = False,
        timeout: float | None = None,
        cwd: Path | None = None,
        env: Mapping[str, str] | None = None,
        secrets: Sequence[str] = (),
    ) -> CommandResult:
        """Run a command to completion and capture its output.

        Args:
            command: Command line string or argument sequence.
            check: If True, raise CommandError on a non-zero exit code.
                Default is False, so the caller gets the exit code back.
            timeout: Timeout in seconds; overrides the runner default.
            cwd: Working directory for the process.
            env: Complete environment for the process (inherits if None).
            secrets: Values (e.g., a license key) replaced with *** wherever
                the command line is logged or quoted in an error.

        Returns:
            CommandResult with exit code, stdout and stderr.

        Raises:
            CommandError: If the executable cannot be started, or if check is
                True and the exit code is non-zero.
            CommandTimeoutError: If the process exceeds the timeout.
        """
        from advinstkit.logging import get_global_logger

        logger = get_global_logger()
        display = _display(command, secrets)

        if isinstance(command, str):
            args: str | list[str] = (
                command if sys.platform == "win32" else shlex.split(command)
            )
        else:
            args = [str(c) for c in command]

        effective_timeout = timeout if timeout is not None else self.timeout
        logger.debug("PROCESS", f"Running: {display}")

        try:
            completed = subprocess.run(
                args,
                capture_output=True,
                text=True,
                errors="replace",
                check=False,
                timeout=effective_timeout,
                cwd=cwd,
                env=dict(env) if env is not None else None,
            )
        except subprocess.TimeoutExpired as err:
            raise CommandTimeoutError(
                f"Command timed out after {err.timeout}s: {display}", command=display
            ) from err
        except OSError as err:
            raise CommandError(
                f"Failed to start command: {display}: {err}", command=display
            ) from err

        result = CommandResult(
            exit_code=completed.returncode,
            stdout=completed.stdout or "",
            stderr=completed.stderr or "",
        )
        logger.debug("PROCESS", f"Exit code: {result.exit_code}")

        if check and result.exit_code != 0:
            message = f"Command failed (exit code {result.exit_code}): {display}"
            if result.stderr:
                message += f"\n{result.stderr}"
            raise CommandError(message, command=display, exit_code=result.exit_code)

        return result
