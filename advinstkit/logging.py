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

"""Console output for advinstkit.

Library modules never print directly. They fetch the process-wide logger
with get_global_logger() and tag each message with an upper-case area
prefix (CACHE, DOWNLOAD, LICENSE, PROCESS, ...). The CLI installs a
DefaultLogger sized to its -v/-d flags; everyone else gets SilentLogger.

Output kinds:

    step     progress line, always shown ("[2/3] Checking support...")
    warning  non-fatal problem, always shown; a ::warning:: annotation
             when running under GitHub Actions
    verbose  shown with -v or -d
    debug    shown with -d only

Example:
    Install a logger for a verbose run:
        ```python
        from advinstkit.logging import get_global_logger, get_logger, set_global_logger

        set_global_logger(get_logger(verbose=True))
        get_global_logger().verbose("CACHE", "Tool found in cache")
        ```
"""

from __future__ import annotations

import os
from typing import Protocol


class Logger(Protocol):
    """Anything with the four output methods can act as the global logger."""

    def step(self, step: int, total: int, message: str) -> None: ...

    def verbose(self, prefix: str, message: str) -> None: ...

    def debug(self, prefix: str, message: str) -> None: ...

    def warning(self, prefix: str, message: str) -> None: ...


class DefaultLogger:
    """Prints to stdout, filtered by verbosity.

    Whether warnings become workflow annotations is decided once, when the
    logger is created, from the GITHUB_ACTIONS variable.
    """

    def __init__(self, verbose: bool = False, debug: bool = False) -> None:
        self._verbose = verbose or debug
        self._debug = debug
        self._annotate = bool(os.environ.get("GITHUB_ACTIONS"))

    def step(self, step: int, total: int, message: str) -> None:
        print(f"[{step}/{total}] {message}")

    def verbose(self, prefix: str, message: str) -> None:
        if self._verbose:
            print(f"[{prefix}] {message}")

    def debug(self, prefix: str, message: str) -> None:
        if self._debug:
            print(f"[{prefix}] {message}")

    def warning(self, prefix: str, message: str) -> None:
        marker = "::warning::" if self._annotate else "[WARNING] "
        print(f"{marker}[{prefix}] {message}")


class SilentLogger:
    """Discards everything. The global default outside the CLI."""

    def _discard(self, *args: object) -> None:
        return None

    step = verbose = debug = warning = _discard


_global_logger: Logger = SilentLogger()


def get_logger(verbose: bool = False, debug: bool = False) -> Logger:
    """Return a console logger; debug implies verbose."""
    return DefaultLogger(verbose=verbose, debug=debug)


def get_global_logger() -> Logger:
    return _global_logger


def set_global_logger(logger: Logger) -> None:
    """Replace the logger used by every library module."""
    global _global_logger
    _global_logger = logger
