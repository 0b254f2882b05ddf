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

"""Provisioning of a licensed, ready-to-use Advanced Installer.

ToolProvisioner.get_path() runs the whole sequence:

1. Resolve the install root (tool cache, or download + extract)
2. Locate bin/x86/advancedinstaller.com and verify it exists
3. License it: fixed key if one is set, otherwise a floating seat if requested
4. Register the COM automation interface if requested
5. Return a ProvisionedTool with the root, binary and MSBuild paths

Nothing is exported here. The returned ProvisionedTool carries the values
the build step needs; the CLI publishes them after get_path() returns, so a
failure in any step leaves the environment untouched.

Example:
    Provision with a fixed license:
        ```python
        from advinstkit.tool import ToolProvisioner, ToolSpec

        provisioner = ToolProvisioner.create(cache_dir=Path("cache/tools"))
        tool = provisioner.get_path(ToolSpec(version="22.0", license_key="XXXX"))
        print(tool.binary_path)
        ```
"""

from __future__ import annotations

from pathlib import Path

from advinstkit.exceptions import BinaryNotFoundError, ComRegistrationError
from advinstkit.layout import com_path
from advinstkit.process import ProcessRunner
from advinstkit.results import ProvisionedTool
from advinstkit.tool.artifact import ArtifactCache
from advinstkit.tool.license import RETRY_INTERVAL, LicenseAcquirer
from advinstkit.tool.spec import ToolSpec
from advinstkit.toolcache import ToolCache

START_COM_CMD_TEMPLATE = '"{tool}" /REGSERVER'


class ToolProvisioner:
    """Turns a ToolSpec into a licensed Advanced Installer installation.

    Attributes:
        artifacts: Install root resolution (cache, download, extraction).
        licenses: Fixed and floating license registration.
        runner: Process runner for the COM registration.
    """

    def __init__(
        self,
        artifacts: ArtifactCache,
        licenses: LicenseAcquirer,
        runner: ProcessRunner,
    ):
        self.artifacts = artifacts
        self.licenses = licenses
        self.runner = runner

    @classmethod
    def create(
        cls,
        cache_dir: Path,
        *,
        temp_dir: Path | None = None,
        command_timeout: float | None = None,
        retry_interval: int = RETRY_INTERVAL,
    ) -> ToolProvisioner:
        """Build a provisioner wired to a real runner and on-disk tool cache."""
        runner = ProcessRunner(timeout=command_timeout)
        return cls(
            ArtifactCache(ToolCache(cache_dir), runner, temp_dir=temp_dir),
            LicenseAcquirer(runner, retry_interval=retry_interval),
            runner,
        )

    def get_path(self, spec: ToolSpec) -> ProvisionedTool:
        """Provision Advanced Installer for spec.

        Args:
            spec: What to provision and how to license it.

        Returns:
            ProvisionedTool with the binary path and install root.

        Raises:
            NetworkError: If the installer cannot be downloaded.
            ExtractionError: If msiexec fails.
            BinaryNotFoundError: If advancedinstaller.com is missing from the
                install root (corrupted or incompatible install).
            RegistrationError: If the fixed license is rejected.
            LicenseTimeoutError: If no floating seat was granted in time.
            ComRegistrationError: If COM registration fails.
        """
        from advinstkit.logging import get_global_logger

        logger = get_global_logger()

        install_root = self.artifacts.resolve(spec)
        tool_path = com_path(install_root)

        if not tool_path.exists():
            raise BinaryNotFoundError(tool_path)

        if spec.license_key:
            self.licenses.register(tool_path, spec.license_key)
        elif spec.floating_license:
            self.licenses.register_floating(tool_path, spec)

        self.register_com(tool_path, spec)

        logger.verbose("PROVISION", f"Advanced Installer ready: {tool_path}")
        return ProvisionedTool(
            binary_path=tool_path, install_root=install_root, version=spec.version
        )

    def register_com(self, tool_path: Path, spec: ToolSpec) -> None:
        """Enable the COM automation interface when spec asks for it.

        Raises:
            ComRegistrationError: If /REGSERVER exits with a non-zero code.
        """
        from advinstkit.logging import get_global_logger

        logger = get_global_logger()
        if not spec.enable_com:
            return

        logger.verbose("PROVISION", "Enabling advinst COM interface")
        result = self.runner.run(START_COM_CMD_TEMPLATE.format(tool=tool_path), check=False)
        if result.exit_code != 0:
            raise ComRegistrationError(
                f"COM registration failed (exit code {result.exit_code}): {result.stdout}",
                output=result.stdout,
            )
