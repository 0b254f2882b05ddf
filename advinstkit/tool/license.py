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

"""License registration for Advanced Installer.

Two ways to license a provisioned tool:

- **Fixed**: `advancedinstaller.com /RegisterCI <key>`, run once. A bad key
  does not become valid by waiting, so any non-zero exit is fatal.

- **Floating**: ask a license server for a seat with
  `advancedinstaller.com /registerfloating <host>:<port> -testconnection`.
  Seats are shared between concurrent jobs, so a busy server is expected;
  the check is repeated every retry_interval seconds until it succeeds or
  the acquisition timeout runs out.

Floating Retry Loop:

1. Run the check once. Exit code 0 means the seat is ours.
2. While not acquired:
   - stop if the deadline has passed (an attempt already running is
     allowed to finish, the deadline is only checked before a retry)
   - 0xE001006D: no seat available right now, keep waiting
   - any other code: unexpected, logged as a warning, keep waiting
   - sleep retry_interval, run the check again
3. Acquired -> return. Deadline passed -> LicenseTimeoutError.

The deadline is computed from an injected monotonic clock and sleeps go
through an injected sleep function, so the loop can be driven by a fake
clock in tests.

Example:
    Acquire a floating seat:
        ```python
        from advinstkit.process import ProcessRunner
        from advinstkit.tool.license import LicenseAcquirer

        acquirer = LicenseAcquirer(ProcessRunner())
        acquirer.register_floating(binary_path, spec)
        ```
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
import time

from advinstkit.exceptions import LicenseTimeoutError, RegistrationError
from advinstkit.process import CommandResult, ProcessRunner
from advinstkit.tool.spec import ToolSpec

REGISTER_CMD_TEMPLATE = '"{tool}" /RegisterCI {license}'
FLOATING_CHECK_CMD_TEMPLATE = '"{tool}" /registerfloating {host}:{port} -testconnection'

# No license seat available, or another transient license server error
NO_SEAT_AVAILABLE = 0xE001006D

RETRY_INTERVAL = 15


@dataclass(frozen=True)
class UnexpectedExitCode:
    """A license check failed with a code other than NO_SEAT_AVAILABLE."""

    code: int


@dataclass(frozen=True)
class Acquired:
    """A floating seat was granted.

    Attributes:
        attempts: Number of license checks run.
        unexpected: Non-sentinel failures seen before the seat was granted.
    """

    attempts: int
    unexpected: tuple[UnexpectedExitCode, ...] = ()


@dataclass(frozen=True)
class TimedOut:
    """The deadline passed before a seat was granted.

    Attributes:
        last_exit_code: Exit code of the final check.
        attempts: Number of license checks run.
        unexpected: Non-sentinel failures seen while waiting.
    """

    last_exit_code: int
    attempts: int
    unexpected: tuple[UnexpectedExitCode, ...] = ()


LicenseOutcome = Acquired | TimedOut


def is_no_seat_available(exit_code: int) -> bool:
    """Return True for the "no seat available" exit code.

    Windows exit codes are DWORDs; depending on how they were read they may
    come back sign-extended, so compare the low 32 bits.
    """
    return exit_code & 0xFFFFFFFF == NO_SEAT_AVAILABLE


class LicenseAcquirer:
    """Registers fixed licenses and acquires floating license seats.

    Attributes:
        runner: Process runner for the license commands.
        retry_interval: Seconds to wait between floating license checks.
    """

    def __init__(
        self,
        runner: ProcessRunner,
        *,
        retry_interval: int = RETRY_INTERVAL,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.runner = runner
        self.retry_interval = retry_interval
        self._clock = clock
        self._sleep = sleep

    def register(self, tool_path: Path, license_key: str) -> None:
        """Register a fixed license key.

        Args:
            tool_path: Path to advancedinstaller.com.
            license_key: License key to register.

        Raises:
            RegistrationError: If the registration command exits non-zero.
        """
        from advinstkit.logging import get_global_logger

        logger = get_global_logger()
        logger.verbose("LICENSE", "Registering advinst tool")

        cmd = REGISTER_CMD_TEMPLATE.format(tool=tool_path, license=license_key)
        result = self.runner.run(cmd, check=False, secrets=[license_key])
        if result.exit_code != 0:
            raise RegistrationError(
                f"License registration failed (exit code {result.exit_code}): {result.stdout}",
                output=result.stdout,
            )

    def _check_floating(self, tool_path: Path, spec: ToolSpec) -> CommandResult:
        cmd = FLOATING_CHECK_CMD_TEMPLATE.format(
            tool=tool_path, host=spec.license_host, port=spec.license_port
        )
        # check=False: the exit code drives the retry loop
        return self.runner.run(cmd, check=False)

    def acquire_floating(self, tool_path: Path, spec: ToolSpec) -> LicenseOutcome:
        """Poll the license server until a seat is granted or time runs out.

        Args:
            tool_path: Path to advancedinstaller.com.
            spec: Provisioning request with host, port and timeout.

        Returns:
            Acquired or TimedOut. Unexpected exit codes seen along the way
            are logged as warnings, listed on the outcome as `unexpected`,
            and do not end the loop.
        """
        from advinstkit.logging import get_global_logger

        logger = get_global_logger()
        logger.verbose(
            "LICENSE",
            f"Acquiring floating license from {spec.license_host}:{spec.license_port}",
        )

        deadline = self._clock() + spec.acquisition_timeout
        result = self._check_floating(tool_path, spec)
        attempts = 1
        unexpected: list[UnexpectedExitCode] = []

        while result.exit_code != 0:
            if self._clock() >= deadline:
                return TimedOut(
                    last_exit_code=result.exit_code,
                    attempts=attempts,
                    unexpected=tuple(unexpected),
                )

            if is_no_seat_available(result.exit_code):
                logger.verbose(
                    "LICENSE",
                    f"No license seat available (0x{NO_SEAT_AVAILABLE:08X}), "
                    f"retrying in {self.retry_interval}s",
                )
            else:
                unexpected.append(UnexpectedExitCode(code=result.exit_code))
                logger.warning(
                    "LICENSE",
                    f"Unexpected exit code {result.exit_code} while acquiring license, "
                    f"retrying in {self.retry_interval}s: {result.stdout.strip()}",
                )

            self._sleep(self.retry_interval)
            result = self._check_floating(tool_path, spec)
            attempts += 1

        logger.verbose("LICENSE", f"Floating license acquired after {attempts} attempt(s)")
        return Acquired(attempts=attempts, unexpected=tuple(unexpected))

    def register_floating(self, tool_path: Path, spec: ToolSpec) -> LicenseOutcome | None:
        """Acquire a floating seat, raising if none was granted in time.

        Called with a spec that does not request a floating license, this
        logs a warning and does nothing.

        Returns:
            Acquired, or None when floating licensing is disabled.

        Raises:
            LicenseTimeoutError: If the acquisition timeout ran out.
        """
        from advinstkit.logging import get_global_logger

        logger = get_global_logger()
        if not spec.floating_license:
            logger.warning("LICENSE", "Floating license is not enabled, skipping")
            return None

        outcome = self.acquire_floating(tool_path, spec)
        if isinstance(outcome, TimedOut):
            raise LicenseTimeoutError(outcome.last_exit_code, spec.acquisition_timeout)
        return outcome
