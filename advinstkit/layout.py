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

"""Well-known locations inside an extracted Advanced Installer install.

The helpers keep the path flavour of their argument: a PureWindowsPath
install root yields backslash-separated Windows paths on any host, a
concrete Path yields paths usable on the current filesystem.

Example:
    >>> from pathlib import PureWindowsPath
    >>> str(com_path(PureWindowsPath("C:\\\\tools\\\\advinst")))
    'C:\\\\tools\\\\advinst\\\\bin\\\\x86\\\\advancedinstaller.com'
"""

from __future__ import annotations

from pathlib import PurePath
from typing import TypeVar

TOOL_NAME = "advinst"
TOOL_ARCH = "x86"

# Variables exported for the build step
TOOL_ROOT_VAR = "AdvancedInstallerRoot"
MSBUILD_TARGETS_VAR = "AdvancedInstallerMSBuildTargets"

_COM_SUBPATH = ("bin", "x86", "advancedinstaller.com")
_MSBUILD_SUBPATH = ("ProgramFilesFolder", "MSBuild", "Caphyon", "Advanced Installer")

P = TypeVar("P", bound=PurePath)


def com_path(install_root: P) -> P:
    """Return the automation binary (advancedinstaller.com) under install_root."""
    return install_root.joinpath(*_COM_SUBPATH)


def msbuild_targets_path(install_root: P) -> P:
    """Return the MSBuild integration directory under install_root."""
    return install_root.joinpath(*_MSBUILD_SUBPATH)
