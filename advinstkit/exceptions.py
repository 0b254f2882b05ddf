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

"""Exception hierarchy for advinstkit.

This module defines a custom exception hierarchy that allows callers to
distinguish between the different ways provisioning can fail:

- ConfigError: Invalid configuration or action inputs
- NetworkError: Download or version feed failures
- PlatformUnsupportedError: The host is not Windows
- ProvisioningError: The tool could not be extracted, found or registered
- LicenseTimeoutError: No floating license seat within the timeout
- CommandError: An external command could not be run at all

All exceptions inherit from AdvinstError, so a single except clause is
enough to catch everything the library raises on purpose.

Example:
    Catching specific error types:
        ```python
        from advinstkit.core import provision_tool
        from advinstkit.exceptions import LicenseTimeoutError, ProvisioningError

        try:
            tool = provision_tool(spec)
        except LicenseTimeoutError as e:
            print(f"No seat available: {e}")
        except ProvisioningError as e:
            print(f"Provisioning failed: {e}")
        ```

Note:
    A non-zero exit code is NOT an exception by itself. ProcessRunner
    returns it in a CommandResult and the caller decides what it means.
"""

from __future__ import annotations

__all__ = [
    "AdvinstError",
    "ConfigError",
    "NetworkError",
    "PlatformUnsupportedError",
    "ProvisioningError",
    "ExtractionError",
    "BinaryNotFoundError",
    "RegistrationError",
    "ComRegistrationError",
    "LicenseTimeoutError",
    "CommandError",
    "CommandTimeoutError",
]


class AdvinstError(Exception):
    """Base exception for all advinstkit errors."""

    pass


class ConfigError(AdvinstError):
    """Raised for configuration-related errors.

    This exception is raised when there are problems with:

    - YAML parsing (syntax errors, invalid structure)
    - Invalid values (port out of range, negative timeout, bad booleans)
    - Missing config files
    """

    pass


class NetworkError(AdvinstError):
    """Raised when the installer download or the version feed fails."""

    pass


class PlatformUnsupportedError(AdvinstError):
    """Raised when provisioning is attempted on a non-Windows host."""

    pass


class ProvisioningError(AdvinstError):
    """Base class for unrecoverable tool installation defects.

    None of these are retried: they point at a broken install, a bad
    license key or a runner that cannot host the tool.

    Attributes:
        output: Captured stdout of the failing command, if any.
    """

    def __init__(self, message: str, output: str = "") -> None:
        super().__init__(message)
        self.output = output


class ExtractionError(ProvisioningError):
    """Raised when msiexec fails to extract the downloaded installer."""

    pass


class BinaryNotFoundError(ProvisioningError):
    """Raised when the automation binary is missing from the install root."""

    def __init__(self, path) -> None:
        super().__init__(f"Expected to find {path}, but it was not found.")
        self.path = path


class RegistrationError(ProvisioningError):
    """Raised when fixed license registration exits with a non-zero code."""

    pass


class ComRegistrationError(ProvisioningError):
    """Raised when enabling the COM automation interface fails."""

    pass


class LicenseTimeoutError(AdvinstError):
    """Raised when no floating license seat was acquired before the deadline.

    Attributes:
        last_exit_code: Exit code of the final license check.
        timeout: The acquisition timeout in seconds.
    """

    def __init__(self, last_exit_code: int, timeout: int) -> None:
        super().__init__(
            f"Could not acquire a floating license within {timeout}s "
            f"(last exit code: {last_exit_code} / 0x{last_exit_code & 0xFFFFFFFF:08X})"
        )
        self.last_exit_code = last_exit_code
        self.timeout = timeout


class CommandError(AdvinstError):
    """Raised when a command cannot be started, or exits non-zero with check=True.

    Attributes:
        command: The command line that was run.
        exit_code: Exit code if the process ran, otherwise None.
    """

    def __init__(
        self, message: str, command: str = "", exit_code: int | None = None
    ) -> None:
        super().__init__(message)
        self.command = command
        self.exit_code = exit_code


class CommandTimeoutError(CommandError):
    """Raised when a command exceeds its timeout."""

    pass
