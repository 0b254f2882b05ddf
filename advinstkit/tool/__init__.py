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

"""Advanced Installer provisioning.

Modules:

spec : module
    ToolSpec, the provisioning request.
artifact : module
    ArtifactCache: cache lookup, download and msiexec extraction.
license : module
    LicenseAcquirer: fixed registration and floating seat retry loop.
provisioner : module
    ToolProvisioner: the full provisioning sequence.

Public API:

- ToolSpec, ToolProvisioner, ArtifactCache, LicenseAcquirer
- com_path, msbuild_targets_path

"""

from advinstkit.layout import com_path, msbuild_targets_path

from .artifact import ArtifactCache
from .license import LicenseAcquirer
from .provisioner import ToolProvisioner
from .spec import ToolSpec

__all__ = [
    "ArtifactCache",
    "LicenseAcquirer",
    "ToolProvisioner",
    "ToolSpec",
    "com_path",
    "msbuild_targets_path",
]
