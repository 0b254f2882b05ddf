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
Robust HTTP(S) file download for advinstkit.

Key Features:

- **Retry Logic with Exponential Backoff** - Automatically retries on transient failures (429, 500, 502, 503, 504) with exponential backoff. Configurable via urllib3.util.Retry.
- **Atomic Writes** - Downloads to temporary .part files with atomic rename on success to prevent partial files.
- **Integrity Reporting** - SHA-256 is computed while streaming and returned to the caller.
- **Smart Filename Detection** - Respects Content-Disposition headers, falls back to URL path, handles edge cases.
- **HTML Guard** - Optionally rejects text/html responses, which is what a
  mistyped version usually produces instead of an installer.

Constants:

- DEFAULT_CHUNK (int): Stream chunk size (1 MiB). Balance memory vs. progress granularity.

Example:
Basic download:

    >>> from pathlib import Path
    >>> from advinstkit.io import download_file
    >>> path, sha256 = download_file(
    ...     url="https://www.advancedinstaller.com/downloads/22.0/advinst.msi",
    ...     destination_folder=Path("./downloads"),
    ... )
    >>> print(f"Downloaded to {path}")

Notes:
- User-Agent identifies advinstkit to help with debugging/support
- All HTTP errors are chained for better debugging
- Timeouts are per-request, not total download time
"""

from __future__ import annotations

import hashlib
from pathlib import Path
import time
from urllib.parse import urlparse

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from advinstkit import __version__

# Stream size per chunk (1 MiB). Tune up/down if needed.
DEFAULT_CHUNK = 1024 * 1024


def _filename_from_cd(content_disposition: str) -> str | None:
    """
    Extract a filename from a Content-Disposition header if present.

    Example header:
      'attachment; filename="advinst.msi"'
    """
    if not content_disposition:
        return None
    parts = [s.strip() for s in content_disposition.split(";")]
    for part in parts:
        if part.lower().startswith("filename="):
            value = part.split("=", 1)[1].strip().strip('"')
            return value or None
    return None


def _filename_from_url(url: str) -> str:
    """
    Derive a filename from the URL path. Fallback to a generic name if empty.
    """
    name = Path(urlparse(url).path).name
    return name or "download.bin"


def make_session() -> requests.Session:
    """
    Create a requests.Session with sane retry/backoff defaults.

    - Retries on common transient status codes.
    - Applies exponential backoff.
    - Sets a helpful User-Agent to avoid being blocked.
    """
    s = requests.Session()
    retries = Retry(
        total=5,
        backoff_factor=0.5,
        status_forcelist=(429, 500, 502, 503, 504),
        allowed_methods=("GET", "HEAD"),
        raise_on_status=False,
    )
    s.headers.update({"User-Agent": f"advinstkit/{__version__}"})
    s.mount("http://", HTTPAdapter(max_retries=retries))
    s.mount("https://", HTTPAdapter(max_retries=retries))
    return s


def download_file(
    url: str,
    destination_folder: Path,
    *,
    validate_content_type: bool = False,
    timeout: int = 60,
) -> tuple[Path, str]:
    """Download a URL to destination_folder.

    Follows redirects and retries transient failures. Writes to <filename>.part
    then renames to <filename> on success (atomic).

    Args:
        url: Source URL.
        destination_folder: Folder to save into (created if missing).
        validate_content_type: If True, rejects responses with text/html content-type.
        timeout: Per-request timeout (seconds).

    Returns:
        A tuple (file_path, sha256_hex).

    Raises:
        requests.HTTPError: For non-2xx responses (after retries).
        requests.RequestException: For connection-level failures.
        ValueError: For a text/html response when validate_content_type is set.
    """
    from advinstkit.logging import get_global_logger

    logger = get_global_logger()

    destination_folder = Path(destination_folder)
    destination_folder.mkdir(parents=True, exist_ok=True)

    logger.verbose("HTTP", f"GET {url}")

    with make_session() as session:
        # Stream response so we can hash while writing.
        resp = session.get(url, stream=True, allow_redirects=True, timeout=timeout)

        for hist in resp.history:
            logger.debug(
                "HTTP",
                f"Redirect {hist.status_code} -> {hist.headers.get('Location', 'unknown')}",
            )

        try:
            resp.raise_for_status()
        except requests.HTTPError as err:
            resp.close()
            raise requests.HTTPError(f"download failed for {url}: {err}") from err

        logger.verbose("HTTP", f"Response: {resp.status_code} {resp.reason}")

        # Content-Disposition beats URL when naming the file.
        cd_name = _filename_from_cd(resp.headers.get("Content-Disposition", ""))
        filename = cd_name or _filename_from_url(resp.url)
        target = destination_folder / filename

        if validate_content_type:
            ctype = resp.headers.get("Content-Type", "")
            if "text/html" in ctype.lower():
                resp.close()
                raise ValueError(f"expected binary, got content-type={ctype}")

        total_size = int(resp.headers.get("Content-Length", "0") or 0)
        if total_size:
            logger.debug(
                "HTTP", f"Content-Length: {total_size} ({total_size / (1024 * 1024):.1f} MB)"
            )

        tmp = target.with_suffix(target.suffix + ".part")
        logger.debug("FILE", f"Downloading to: {tmp}")

        sha = hashlib.sha256()
        started_at = time.time()

        with tmp.open("wb") as f:
            for chunk in resp.iter_content(chunk_size=DEFAULT_CHUNK):
                if not chunk:
                    continue
                f.write(chunk)
                sha.update(chunk)

        resp.close()

        digest = sha.hexdigest()
        tmp.replace(target)

        elapsed = time.time() - started_at
        logger.verbose("FILE", f"Download complete: {target} ({digest}) in {elapsed:.1f}s")

        return target, digest
