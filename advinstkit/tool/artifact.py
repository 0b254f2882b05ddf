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

"""Advanced Installer acquisition: cache lookup, download and extraction.

ArtifactCache.resolve() returns the root of an extracted Advanced Installer
installation for a ToolSpec. The tool cache is checked first; on a miss the
MSI is downloaded, unpacked with an msiexec administrative install and the
result is copied into the cache under ("advinst", version, "x86").

Download Source:

- advancedinstaller_url environment variable, used verbatim if set. The
  operator is responsible for it matching the requested version.
- Otherwise https://www.advancedinstaller.com/downloads/{version}/advinst.msi

Example:
    Resolve an installation:
        ```python
        from pathlib import Path
        from advinstkit.process import ProcessRunner
        from advinstkit.tool import ArtifactCache, ToolSpec
        from advinstkit.toolcache import ToolCache

        artifacts = ArtifactCache(ToolCache(Path("cache/tools")), ProcessRunner())
        root = artifacts.resolve(ToolSpec(version="22.0"))
        ```

Note:
    Download and extraction folders live under the runner temp directory and
    are not removed on failure; the runner discards them with the job.
"""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
import shutil
import tempfile

import requests

from advinstkit.ci import get_variable, runner_temp_dir
from advinstkit.exceptions import ExtractionError, NetworkError
from advinstkit.io import download_file
from advinstkit.layout import TOOL_ARCH, TOOL_NAME
from advinstkit.process import ProcessRunner
from advinstkit.tool.spec import ToolSpec
from advinstkit.toolcache import CacheKey, ToolCache

CUSTOM_URL_VAR = "advancedinstaller_url"
DOWNLOAD_URL_TEMPLATE = "https://www.advancedinstaller.com/downloads/{version}/advinst.msi"
EXTRACT_CMD_TEMPLATE = 'msiexec /a "{setup}" TARGETDIR="{target}" /qn'


def cache_key_for(spec: ToolSpec) -> CacheKey:
    return CacheKey(TOOL_NAME, spec.version, TOOL_ARCH)


class ArtifactCache:
    """Gets or creates the Advanced Installer installation for a spec.

    Attributes:
        tool_cache: Persistent tool cache.
        runner: Process runner used for the msiexec extraction.
        temp_dir: Scratch directory for downloads and extraction.
    """

    def __init__(
        self,
        tool_cache: ToolCache,
        runner: ProcessRunner,
        temp_dir: Path | None = None,
        environ: Mapping[str, str] | None = None,
    ):
        self.tool_cache = tool_cache
        self.runner = runner
        self.temp_dir = Path(temp_dir) if temp_dir is not None else runner_temp_dir()
        self._environ = environ

    def download_url(self, spec: ToolSpec) -> str:
        """Return the installer URL for spec, honouring the override variable."""
        from advinstkit.logging import get_global_logger

        logger = get_global_logger()
        custom_url = get_variable(CUSTOM_URL_VAR, self._environ)
        if custom_url:
            logger.verbose("DOWNLOAD", f"Using custom URL for advinst tool: {custom_url}")
            return custom_url
        return DOWNLOAD_URL_TEMPLATE.format(version=spec.version)

    def resolve(self, spec: ToolSpec) -> Path:
        """Return the install root for spec, downloading and extracting on a miss.

        Args:
            spec: Provisioning request; only the version is used here.

        Returns:
            Path to the cached installation root.

        Raises:
            NetworkError: If the installer cannot be downloaded.
            ExtractionError: If msiexec exits with a non-zero code. Nothing
                is cached in that case.
        """
        from advinstkit.logging import get_global_logger

        logger = get_global_logger()
        key = cache_key_for(spec)

        logger.verbose("CACHE", f"Checking cache for advinst tool with version: {spec.version}")
        cached = self.tool_cache.find(key)
        if cached is not None:
            logger.verbose("CACHE", "Tool found in cache")
            return cached

        logger.verbose("CACHE", "Tool not found in cache")
        setup = self.download(spec)
        return self.extract(setup, key)

    def download(self, spec: ToolSpec) -> Path:
        """Download the installer MSI into a fresh temp folder.

        Raises:
            NetworkError: On HTTP/connection errors or an HTML response.
        """
        from advinstkit.logging import get_global_logger

        logger = get_global_logger()
        url = self.download_url(spec)
        logger.verbose("DOWNLOAD", f"Downloading advinst tool with version: {spec.version}")

        self.temp_dir.mkdir(parents=True, exist_ok=True)
        download_dir = Path(tempfile.mkdtemp(prefix="advinst-setup-", dir=self.temp_dir))
        try:
            setup, digest = download_file(url, download_dir, validate_content_type=True)
        except (requests.RequestException, ValueError) as err:
            raise NetworkError(f"Failed to download Advanced Installer from {url}: {err}") from err
        logger.verbose("DOWNLOAD", f"Downloaded {setup.name} (sha256 {digest})")
        return setup

    def extract(self, setup: Path, key: CacheKey) -> Path:
        """Unpack setup with msiexec and store the result in the tool cache.

        Raises:
            ExtractionError: If msiexec exits with a non-zero code.
        """
        from advinstkit.logging import get_global_logger

        logger = get_global_logger()
        extract_folder = self.temp_dir / TOOL_NAME
        if extract_folder.exists():
            shutil.rmtree(extract_folder)

        logger.verbose("EXTRACT", f"Extracting advinst tool to {extract_folder}")
        cmd = EXTRACT_CMD_TEMPLATE.format(setup=setup, target=extract_folder)
        result = self.runner.run(cmd, check=False)
        if result.exit_code != 0:
            raise ExtractionError(
                f"msiexec extraction failed (exit code {result.exit_code}): {result.stdout}",
                output=result.stdout,
            )

        return self.tool_cache.cache_dir(extract_folder, key)
