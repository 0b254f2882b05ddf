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

"""On-disk tool cache keyed by (name, version, architecture).

Layout follows the hosted-runner tool cache so entries can be shared with
other actions running on the same machine:

    {root}/{name}/{version}/{arch}/           cached tool directory
    {root}/{name}/{version}/{arch}.complete   marker written last

An entry only counts as cached once the marker exists, so an interrupted
copy is never reported as a hit. Versions are matched exactly; resolving
"latest" happens before the cache is consulted.

Example:
    Cache a directory and find it again:
        ```python
        from pathlib import Path
        from advinstkit.toolcache import CacheKey, ToolCache

        cache = ToolCache(Path("cache/tools"))
        key = CacheKey("advinst", "22.0", "x86")
        root = cache.find(key) or cache.cache_dir(Path("extracted"), key)
        ```
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
import shutil

from advinstkit.exceptions import ConfigError


@dataclass(frozen=True)
class CacheKey:
    """Identifies a cached tool installation.

    Attributes:
        name: Tool name (e.g., "advinst").
        version: Exact tool version (e.g., "22.0").
        arch: Architecture (e.g., "x86").
    """

    name: str
    version: str
    arch: str

    def __post_init__(self) -> None:
        for field_name in ("name", "version", "arch"):
            value = getattr(self, field_name)
            if not value or "/" in value or "\\" in value or value in (".", ".."):
                raise ConfigError(f"Invalid tool cache {field_name}: {value!r}")


class ToolCache:
    """Persistent storage of materialized tool directories.

    Attributes:
        root: Base directory of the cache.
    """

    def __init__(self, root: Path):
        self.root = Path(root)

    def entry_dir(self, key: CacheKey) -> Path:
        return self.root / key.name / key.version / key.arch

    def _marker(self, key: CacheKey) -> Path:
        return self.root / key.name / key.version / f"{key.arch}.complete"

    def find(self, key: CacheKey) -> Path | None:
        """Return the cached directory for key, or None on a miss."""
        from advinstkit.logging import get_global_logger

        logger = get_global_logger()
        entry = self.entry_dir(key)
        if entry.is_dir() and self._marker(key).exists():
            logger.debug("CACHE", f"Cache hit: {entry}")
            return entry
        logger.debug("CACHE", f"Cache miss: {entry}")
        return None

    def cache_dir(self, source_dir: Path, key: CacheKey) -> Path:
        """Copy source_dir into the cache under key and return the new entry.

        Any stale, incomplete entry for the same key is replaced.

        Args:
            source_dir: Directory to copy (e.g., an msiexec extraction folder).
            key: Cache key to store it under.

        Returns:
            Path to the cached copy.

        Raises:
            FileNotFoundError: If source_dir does not exist.
        """
        from advinstkit.logging import get_global_logger

        logger = get_global_logger()
        source_dir = Path(source_dir)
        if not source_dir.is_dir():
            raise FileNotFoundError(f"source directory not found: {source_dir}")

        entry = self.entry_dir(key)
        marker = self._marker(key)

        if marker.exists():
            marker.unlink()
        if entry.exists():
            shutil.rmtree(entry)

        entry.parent.mkdir(parents=True, exist_ok=True)
        logger.verbose("CACHE", f"Caching {source_dir} -> {entry}")
        shutil.copytree(source_dir, entry)
        marker.write_text("", encoding="utf-8")

        return entry
