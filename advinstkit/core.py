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

"""Core orchestration for advinstkit.

This module ties configuration, version resolution and provisioning
together. It is what the 'advinstkit provision' command runs, and the
entry point for programmatic use.

Workflow:

1. Refuse to run anywhere but Windows (checked before anything else)
2. Resolve the version (configured, or the latest release)
3. Warn if the version is deprecated (advisory only)
4. Provision: cache/download/extract, license, COM registration

Design Principles:

- Functions return structured data (ProvisionedTool); nothing here mutates
  the process environment
- Error handling uses exceptions; the CLI layer formats them for display
- Collaborators (provisioner) can be injected for testing

Example:
    Programmatic usage:
        ```python
        from advinstkit.config import load_effective_config
        from advinstkit.core import provision_from_config

        tool = provision_from_config(load_effective_config())
        print(tool.binary_path)
        ```
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from advinstkit.ci import default_tool_cache_dir, is_windows
from advinstkit.config.loader import build_tool_spec, configured_version, runtime_settings
from advinstkit.exceptions import NetworkError, PlatformUnsupportedError
from advinstkit.results import ProvisionedTool
from advinstkit.tool.license import RETRY_INTERVAL
from advinstkit.tool.provisioner import ToolProvisioner
from advinstkit.tool.spec import ToolSpec
from advinstkit.versions import get_latest, version_is_deprecated

DEPRECATION_WARNING = (
    "The minimum supported Advanced Installer version is {minimum}. "
    "You are using {version}, which is deprecated; please update."
)


def ensure_supported_platform() -> None:
    """Raise PlatformUnsupportedError unless running on Windows."""
    if not is_windows():
        raise PlatformUnsupportedError(
            "Advanced Installer provisioning is only supported on Windows platforms"
        )


def provision_tool(
    spec: ToolSpec,
    *,
    cache_dir: Path | None = None,
    temp_dir: Path | None = None,
    command_timeout: float | None = None,
    retry_interval: int = RETRY_INTERVAL,
    provisioner: ToolProvisioner | None = None,
) -> ProvisionedTool:
    """Provision Advanced Installer for spec.

    Args:
        spec: What to provision and how to license it.
        cache_dir: Tool cache root. Default: RUNNER_TOOL_CACHE or cache/tools.
        temp_dir: Scratch directory. Default: RUNNER_TEMP or the system temp.
        command_timeout: Per-command timeout in seconds (None = no limit).
        retry_interval: Seconds between floating license checks.
        provisioner: Pre-built provisioner (mainly for tests).

    Returns:
        ProvisionedTool describing the ready installation.

    Raises:
        PlatformUnsupportedError: If not running on Windows.
        AdvinstError: Any provisioning failure (see ToolProvisioner.get_path).
    """
    ensure_supported_platform()

    if provisioner is None:
        provisioner = ToolProvisioner.create(
            cache_dir or default_tool_cache_dir(),
            temp_dir=temp_dir,
            command_timeout=command_timeout,
            retry_interval=retry_interval,
        )

    return provisioner.get_path(spec)


def check_deprecation(version: str, *, years: int, versions_url: str) -> str | None:
    """Return a warning message if version is deprecated, else None.

    The check is advisory: feed failures are logged and ignored.
    """
    from advinstkit.logging import get_global_logger

    logger = get_global_logger()
    try:
        deprecated, minimum = version_is_deprecated(version, years=years, url=versions_url)
    except NetworkError as err:
        logger.verbose("VERSIONS", f"Skipping deprecation check: {err}")
        return None

    if deprecated:
        return DEPRECATION_WARNING.format(minimum=minimum, version=version)
    return None


def provision_from_config(
    config: dict[str, Any],
    *,
    provisioner: ToolProvisioner | None = None,
) -> ProvisionedTool:
    """Run the full provisioning workflow from a merged configuration.

    Args:
        config: Result of load_effective_config().
        provisioner: Pre-built provisioner (mainly for tests).

    Returns:
        ProvisionedTool describing the ready installation.

    Raises:
        PlatformUnsupportedError: If not running on Windows.
        ConfigError: If the configuration is invalid.
        NetworkError: If the latest version cannot be resolved or the
            installer cannot be downloaded.
        AdvinstError: Any other provisioning failure.
    """
    from advinstkit.logging import get_global_logger

    logger = get_global_logger()

    ensure_supported_platform()
    settings = runtime_settings(config)

    logger.step(1, 3, "Resolving Advanced Installer version...")
    version = configured_version(config)
    if not version:
        version = get_latest(settings["versions_url"])
        logger.verbose("VERSIONS", f"Latest version: {version}")
    spec = build_tool_spec(config, version=version)

    logger.step(2, 3, f"Checking support for version {version}...")
    warning = check_deprecation(
        version,
        years=settings["deprecation_years"],
        versions_url=settings["versions_url"],
    )
    if warning:
        logger.warning("VERSIONS", warning)

    logger.step(3, 3, f"Provisioning Advanced Installer {version}...")
    return provision_tool(
        spec,
        cache_dir=settings["cache_dir"],
        command_timeout=settings["command_timeout"],
        retry_interval=settings["retry_interval"],
        provisioner=provisioner,
    )
