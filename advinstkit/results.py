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

"""Public API return types for advinstkit.

All dataclasses are frozen (immutable) to prevent accidental mutation of
return values.

Example:
    Using result types:
        ```python
        from advinstkit.core import provision_tool
        from advinstkit.results import ProvisionedTool

        tool: ProvisionedTool = provision_tool(spec)
        print(tool.binary_path)
        print(tool.exported_variables())
        ```

Note:
    Only public API return types belong in this module. Domain types
    (like ToolSpec or LicenseOutcome) stay co-located with their logic.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from advinstkit.layout import (
    MSBUILD_TARGETS_VAR,
    TOOL_ROOT_VAR,
    msbuild_targets_path,
)


@dataclass(frozen=True)
class ProvisionedTool:
    """A licensed, ready-to-use Advanced Installer installation.

    Nothing in the library exports these values; the CLI (or any other
    outermost caller) decides whether to publish them to the environment.

    Attributes:
        binary_path: Path to advancedinstaller.com.
        install_root: Root of the extracted installation.
        version: Provisioned Advanced Installer version.
    """

    binary_path: Path
    install_root: Path
    version: str = ""

    @property
    def msbuild_targets_path(self) -> Path:
        return msbuild_targets_path(self.install_root)

    @property
    def path_entry(self) -> Path:
        """Directory to prepend to PATH (the binary's directory)."""
        return self.binary_path.parent

    def exported_variables(self) -> dict[str, str]:
        """Named values the downstream build step expects in its environment."""
        return {
            TOOL_ROOT_VAR: str(self.install_root),
            MSBUILD_TARGETS_VAR: str(self.msbuild_targets_path),
        }
