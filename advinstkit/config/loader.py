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

"""
Configuration loading and merging for advinstkit.

Configuration Layers
--------------------
Settings are merged with "last wins" semantics from four layers:

1. **Built-in defaults** (DEFAULT_CONFIG)
2. **Config file** (optional YAML file with an `advinst:` mapping)
3. **Action inputs** (INPUT_ADVINST-* environment variables, as set by the
   GitHub Actions runner for `with:` inputs)
4. **CLI overrides** (only values that were actually given)

Config file example:

    advinst:
      version: "22.0"
      enable_com: true
      floating_license: true
      license_host: licenses.example.com
      license_port: 1024
      license_timeout: 300

Merge Behavior
--------------
  - **Dicts**: Recursively merged (keys from overlay override base)
  - **Lists**: Completely replaced (NOT appended/extended)
  - **Scalars**: Overwritten (strings, numbers, booleans)

Functions
---------
load_effective_config : function
    Merge all layers into one config dict.
configured_version : function
    Read the version, rejecting unquoted YAML floats such as 22.10.
build_tool_spec : function
    Validate the merged config and turn it into a ToolSpec.

Error Handling
--------------
- ConfigError: missing/invalid YAML, non-mapping content, bad values
- All errors are chained with "from err" for better debugging
"""

from __future__ import annotations

from collections.abc import Mapping
import os
from pathlib import Path
from typing import Any

import yaml

from advinstkit.exceptions import ConfigError
from advinstkit.tool.license import RETRY_INTERVAL
from advinstkit.tool.spec import (
    DEFAULT_ACQUISITION_TIMEOUT,
    DEFAULT_LICENSE_PORT,
    ToolSpec,
)
from advinstkit.versions import DEPRECATION_YEARS, VERSIONS_URL

SECTION = "advinst"

DEFAULT_CONFIG: dict[str, Any] = {
    SECTION: {
        "version": "",
        "license": "",
        "enable_com": False,
        "floating_license": False,
        "license_host": "",
        "license_port": DEFAULT_LICENSE_PORT,
        "license_timeout": DEFAULT_ACQUISITION_TIMEOUT,
        "cache_dir": None,
        "command_timeout": None,
        "retry_interval": RETRY_INTERVAL,
        "deprecation_years": DEPRECATION_YEARS,
        "versions_url": VERSIONS_URL,
    }
}

# Action input name -> config key
ACTION_INPUTS: dict[str, str] = {
    "advinst-version": "version",
    "advinst-license": "license",
    "advinst-enable-automation": "enable_com",
    "advinst-use-floating-license": "floating_license",
    "advinst-license-host": "license_host",
    "advinst-license-port": "license_port",
    "advinst-license-timeout": "license_timeout",
}

_TRUE = {"true", "yes", "on", "1"}
_FALSE = {"false", "no", "off", "0", ""}


# -------------------------------
# YAML helpers
# -------------------------------


def _load_yaml_file(p: Path) -> Any:
    """Loads a YAML file and returns the parsed Python object.

    Raises:
        ConfigError: When file does not exist, invalid YAML (parse error), or empty files.
    """
    if not p.exists():
        raise ConfigError(f"file not found: {p}")
    try:
        with p.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as err:
        raise ConfigError(f"Error parsing YAML: {p}: {err}") from err
    if data is None:
        raise ConfigError(f"YAML file is empty: {p}")
    return data


# -------------------------------
# Merge logic
# -------------------------------


def _deep_merge_dicts(base: dict[str, Any], overlay: dict[str, Any]) -> dict[str, Any]:
    """Deep-merges two dicts with "overlay wins" semantics.

    This function does not mutate inputs; returns a new dict.
    """
    result: dict[str, Any] = dict(base)
    for k, v in overlay.items():
        if k in result and isinstance(result[k], dict) and isinstance(v, dict):
            result[k] = _deep_merge_dicts(result[k], v)
        else:
            # Replace lists and scalars entirely
            result[k] = v
    return result


def _inputs_from_environ(environ: Mapping[str, str]) -> dict[str, Any]:
    """Collect action inputs (INPUT_<NAME> variables) that are set and non-empty."""
    values: dict[str, Any] = {}
    for input_name, key in ACTION_INPUTS.items():
        env_name = "INPUT_" + input_name.replace(" ", "_").upper()
        value = environ.get(env_name, "").strip()
        if value:
            values[key] = value
    return values


def _print_yaml_content(data: dict[str, Any]) -> None:
    """Print config content in debug mode, with the license key masked."""
    from advinstkit.logging import get_global_logger

    logger = get_global_logger()
    shown = _deep_merge_dicts(data, {})
    section = dict(shown.get(SECTION, {}))
    if section.get("license"):
        section["license"] = "***"
    shown[SECTION] = section
    yaml_str = yaml.dump(shown, default_flow_style=False, sort_keys=False)
    for line in yaml_str.split("\n"):
        if line.strip():
            logger.debug("CONFIG", line)


# -------------------------------
# Value coercion
# -------------------------------


def _as_bool(key: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in _TRUE | _FALSE:
        return value.strip().lower() in _TRUE
    raise ConfigError(f"{key} must be a boolean, got {value!r}")


def _as_int(key: str, value: Any) -> int:
    if isinstance(value, bool):
        raise ConfigError(f"{key} must be an integer, got {value!r}")
    try:
        return int(str(value).strip())
    except ValueError as err:
        raise ConfigError(f"{key} must be an integer, got {value!r}") from err


def _as_version(value: Any) -> str:
    """Coerce a configured version, rejecting YAML floats.

    An unquoted `version: 22.10` loads as the float 22.1, which names a
    different release, so only strings and integers are accepted.
    """
    if isinstance(value, float):
        raise ConfigError(
            f"version must be a quoted string (e.g. \"22.10\"), got the number {value!r}"
        )
    return _as_str("version", value)


def _as_str(key: str, value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (str, int, float)) and not isinstance(value, bool):
        return str(value).strip()
    raise ConfigError(f"{key} must be a string, got {value!r}")


# -------------------------------
# Public API
# -------------------------------


def load_effective_config(
    config_path: Path | None = None,
    *,
    environ: Mapping[str, str] | None = None,
    overrides: Mapping[str, Any] | None = None,
) -> dict[str, Any]:
    """Loads and merges the effective configuration.

    Args:
        config_path: Optional YAML config file.
        environ: Environment to read action inputs from. Default is os.environ.
        overrides: CLI values keyed like the `advinst:` section; None values
            are ignored.

    Returns:
        Merged configuration dict with a single `advinst` section.

    Raises:
        ConfigError: On YAML parse errors, empty or missing files, or a
            config file whose `advinst` entry is not a mapping.
    """
    from advinstkit.logging import get_global_logger

    logger = get_global_logger()
    environ = os.environ if environ is None else environ

    merged = _deep_merge_dicts({}, DEFAULT_CONFIG)
    layers = ["defaults"]

    if config_path is not None:
        config_path = Path(config_path).resolve()
        logger.verbose("CONFIG", f"Loading: {config_path}")
        file_obj = _load_yaml_file(config_path)
        if not isinstance(file_obj, dict) or not isinstance(file_obj.get(SECTION, {}), dict):
            raise ConfigError(
                f"config file must contain an '{SECTION}' mapping: {config_path}"
            )
        merged = _deep_merge_dicts(merged, {SECTION: file_obj.get(SECTION, {})})
        layers.append(config_path.name)

    inputs = _inputs_from_environ(environ)
    if inputs:
        merged = _deep_merge_dicts(merged, {SECTION: inputs})
        layers.append("action inputs")

    given = {k: v for k, v in (overrides or {}).items() if v is not None}
    if given:
        merged = _deep_merge_dicts(merged, {SECTION: given})
        layers.append("command line")

    logger.verbose("CONFIG", f"Merged layers: {' -> '.join(layers)}")
    logger.debug("CONFIG", "--- Effective Configuration ---")
    _print_yaml_content(merged)

    return merged


def configured_version(config: Mapping[str, Any]) -> str:
    """Return the configured version, or "" when the latest should be used.

    Raises:
        ConfigError: If the version is not a string or integer.
    """
    return _as_version(config.get(SECTION, {}).get("version"))


def build_tool_spec(config: Mapping[str, Any], version: str | None = None) -> ToolSpec:
    """Validate the merged config and build a ToolSpec.

    Args:
        config: Result of load_effective_config().
        version: Resolved version; overrides the configured one (used once
            an empty version has been resolved to the latest release).

    Returns:
        ToolSpec ready for provisioning.

    Raises:
        ConfigError: If a value has the wrong type or is out of range.
    """
    section = config.get(SECTION, {})

    license_key = _as_str("license", section.get("license"))
    floating_license = _as_bool("floating_license", section.get("floating_license", False))
    license_host = _as_str("license_host", section.get("license_host"))
    if floating_license and not license_key and not license_host:
        raise ConfigError("Floating license requires a license server host")

    return ToolSpec(
        version=version or configured_version(config),
        license_key=license_key or None,
        enable_com=_as_bool("enable_com", section.get("enable_com", False)),
        floating_license=floating_license,
        license_host=license_host,
        license_port=_as_int(
            "license_port", section.get("license_port", DEFAULT_LICENSE_PORT)
        ),
        acquisition_timeout=_as_int(
            "license_timeout",
            section.get("license_timeout", DEFAULT_ACQUISITION_TIMEOUT),
        ),
    )


def runtime_settings(config: Mapping[str, Any]) -> dict[str, Any]:
    """Return the non-spec settings (cache, timeouts, version feed) validated.

    Raises:
        ConfigError: If a value has the wrong type or is out of range.
    """
    section = config.get(SECTION, {})

    cache_dir = section.get("cache_dir")
    command_timeout = section.get("command_timeout")
    retry_interval = _as_int("retry_interval", section.get("retry_interval", RETRY_INTERVAL))
    deprecation_years = _as_int(
        "deprecation_years", section.get("deprecation_years", DEPRECATION_YEARS)
    )

    if command_timeout is not None:
        command_timeout = _as_int("command_timeout", command_timeout)
        if command_timeout <= 0:
            raise ConfigError(f"command_timeout must be positive, got {command_timeout}")
    if retry_interval <= 0:
        raise ConfigError(f"retry_interval must be positive, got {retry_interval}")
    if deprecation_years < 0:
        raise ConfigError(f"deprecation_years must not be negative, got {deprecation_years}")

    return {
        "cache_dir": Path(cache_dir) if cache_dir else None,
        "command_timeout": command_timeout,
        "retry_interval": retry_interval,
        "deprecation_years": deprecation_years,
        "versions_url": _as_str("versions_url", section.get("versions_url")) or VERSIONS_URL,
    }
