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

"""Provisioning request for one Advanced Installer session."""

from __future__ import annotations

from dataclasses import dataclass

from advinstkit.exceptions import ConfigError

DEFAULT_LICENSE_PORT = 1024
DEFAULT_ACQUISITION_TIMEOUT = 180


@dataclass(frozen=True)
class ToolSpec:
    """What to provision and how to license it.

    A spec with both a license key and floating_license=True is legal; the
    fixed key always wins and the floating path is never attempted.

    Attributes:
        version: Exact Advanced Installer version (e.g., "22.0").
        license_key: Fixed license key, or None when unset. Empty strings
            are normalized to None.
        enable_com: Register the COM automation interface.
        floating_license: Acquire a seat from a floating license server.
        license_host: Floating license server host name.
        license_port: Floating license server port.
        acquisition_timeout: Seconds to keep retrying for a floating seat.
    """

    version: str
    license_key: str | None = None
    enable_com: bool = False
    floating_license: bool = False
    license_host: str = ""
    license_port: int = DEFAULT_LICENSE_PORT
    acquisition_timeout: int = DEFAULT_ACQUISITION_TIMEOUT

    def __post_init__(self) -> None:
        if not self.version or not self.version.strip():
            raise ConfigError("Advanced Installer version must not be empty")
        if not self.license_key:
            object.__setattr__(self, "license_key", None)
        if not 0 < self.license_port <= 0xFFFF:
            raise ConfigError(
                f"License port must be between 1 and 65535, got {self.license_port}"
            )
        if self.acquisition_timeout < 0:
            raise ConfigError(
                f"License timeout must not be negative, got {self.acquisition_timeout}"
            )
