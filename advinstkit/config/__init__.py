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

"""Configuration loading for advinstkit.

Settings come from built-in defaults, an optional YAML file, GitHub Actions
inputs (INPUT_ADVINST-* variables) and command-line flags, merged in that
order (last wins).

Public API:

- load_effective_config: Merge all configuration layers
- configured_version: The configured version ("" means latest)
- build_tool_spec: Validate the merged config into a ToolSpec
- runtime_settings: Cache directory, timeouts and version feed settings

Example:
    Basic usage:

        from pathlib import Path
        from advinstkit.config import build_tool_spec, load_effective_config

        config = load_effective_config(Path("advinst.yaml"))
        spec = build_tool_spec(config, version="22.0")

"""

from .loader import (
    build_tool_spec,
    configured_version,
    load_effective_config,
    runtime_settings,
)

__all__ = [
    "build_tool_spec",
    "configured_version",
    "load_effective_config",
    "runtime_settings",
]
