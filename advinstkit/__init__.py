"""
advinstkit - Advanced Installer provisioning for CI runners

A Python-based CLI tool that prepares a licensed, COM-enabled Advanced
Installer on a Windows build agent so later steps can build packages with it.

advinstkit provides:
  - Tool cache lookup keyed by (advinst, version, x86)
  - Robust download and msiexec extraction on a cache miss
  - Fixed license registration
  - Floating license seat acquisition with a bounded retry window
  - COM automation interface registration
  - Export of AdvancedInstallerRoot / AdvancedInstallerMSBuildTargets and PATH

Quick Start
-----------
Provision the latest release with a fixed license:

    $ advinstkit provision --license XXXX-XXXX --enable-com

For full CLI documentation:

    $ advinstkit --help

Package Structure
-----------------
cli : module
    Command-line interface with argparse.
core : module
    High-level orchestration functions.
config : package
    Layered configuration (defaults, YAML, action inputs, CLI).
tool : package
    Artifact cache, license acquisition and the provisioner.
process : module
    External command execution returning exit codes as data.
toolcache : module
    On-disk tool cache keyed by (name, version, arch).
versions : module
    Release feed: latest version and deprecation check.
io : package
    Download operations.
ci : module
    CI runner environment (exports, PATH, log groups).

Public API
----------
    from advinstkit.core import provision_tool, provision_from_config
    from advinstkit.config import load_effective_config, build_tool_spec
    from advinstkit.tool import ToolSpec, ToolProvisioner

Project Information
-------------------
Author: Roger Cibrian
License: Apache-2.0
"""

__version__ = "0.1.0"
__author__ = "Roger Cibrian"
__license__ = "Apache-2.0"
__description__ = "Advanced Installer provisioning for CI runners"

# Re-export commonly used functions for convenience
from advinstkit.config import build_tool_spec, load_effective_config
from advinstkit.core import provision_from_config, provision_tool
from advinstkit.exceptions import (
    AdvinstError,
    ConfigError,
    LicenseTimeoutError,
    NetworkError,
    PlatformUnsupportedError,
    ProvisioningError,
)
from advinstkit.results import ProvisionedTool
from advinstkit.tool import ToolProvisioner, ToolSpec

__all__ = [
    "__version__",
    "__author__",
    "__license__",
    "__description__",
    "provision_tool",
    "provision_from_config",
    "load_effective_config",
    "build_tool_spec",
    "ProvisionedTool",
    "ToolProvisioner",
    "ToolSpec",
    "AdvinstError",
    "ConfigError",
    "LicenseTimeoutError",
    "NetworkError",
    "PlatformUnsupportedError",
    "ProvisioningError",
]
