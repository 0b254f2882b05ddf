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

"""CI runner environment helpers.

Everything that touches process-wide state lives here: exporting variables,
prepending to PATH, log groups and failure annotations. Library code returns
values; only the CLI calls the mutating functions in this module.

When running under GitHub Actions (GITHUB_ENV / GITHUB_PATH are set), exports
are also appended to the runner's command files so later workflow steps see
them. Elsewhere only the current process environment is updated.

Example:
    Export the results of provisioning:
        ```python
        from advinstkit import ci

        for name, value in tool.exported_variables().items():
            ci.export_variable(name, value)
        ci.add_path(tool.path_entry)
        ```
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from contextlib import contextmanager
import os
from pathlib import Path
import sys
import tempfile
import uuid


def is_windows() -> bool:
    """Return True when running on a Windows host."""
    return sys.platform == "win32"


def get_variable(name: str, environ: Mapping[str, str] | None = None) -> str:
    """Look up an environment variable, ignoring case.

    Args:
        name: Variable name (e.g., "advancedinstaller_url").
        environ: Mapping to search. Default is os.environ.

    Returns:
        The value, or an empty string if the variable is not set.
    """
    env = os.environ if environ is None else environ
    if name in env:
        return env[name]
    lowered = name.lower()
    for key, value in env.items():
        if key.lower() == lowered:
            return value
    return ""


def runner_temp_dir() -> Path:
    """Return the runner's temp directory (RUNNER_TEMP or the system temp)."""
    return Path(os.environ.get("RUNNER_TEMP") or tempfile.gettempdir())


def default_tool_cache_dir() -> Path:
    """Return the runner's tool cache (RUNNER_TOOL_CACHE or cache/tools)."""
    return Path(os.environ.get("RUNNER_TOOL_CACHE") or "cache/tools")


def _append_command_file(env_var: str, text: str) -> bool:
    command_file = os.environ.get(env_var)
    if not command_file:
        return False
    with open(command_file, "a", encoding="utf-8") as f:
        f.write(text)
    return True


def export_variable(name: str, value: str | Path) -> None:
    """Set a variable for this process and for later workflow steps.

    Args:
        name: Variable name.
        value: Variable value (paths are converted to strings).
    """
    value = str(value)
    os.environ[name] = value
    delimiter = f"ghadelimiter_{uuid.uuid4()}"
    _append_command_file("GITHUB_ENV", f"{name}<<{delimiter}\n{value}\n{delimiter}\n")


def add_path(directory: str | Path) -> None:
    """Prepend a directory to PATH for this process and later workflow steps."""
    directory = str(directory)
    _append_command_file("GITHUB_PATH", f"{directory}\n")
    os.environ["PATH"] = directory + os.pathsep + os.environ.get("PATH", "")


@contextmanager
def group(title: str) -> Iterator[None]:
    """Fold the output produced inside the block into a named log group."""
    if os.environ.get("GITHUB_ACTIONS"):
        print(f"::group::{title}")
    else:
        print(f"--- {title} ---")
    try:
        yield
    finally:
        if os.environ.get("GITHUB_ACTIONS"):
            print("::endgroup::")


def set_failed(message: str) -> None:
    """Report a job failure message (an error annotation under GitHub Actions)."""
    if os.environ.get("GITHUB_ACTIONS"):
        print(f"::error::{message}")
    else:
        print(f"Error: {message}", file=sys.stderr)
