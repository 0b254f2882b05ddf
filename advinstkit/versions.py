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

"""Advanced Installer release feed.

The vendor publishes its releases as an INI file, one section per release:

    [Update1]
    ProductVersion = 22.0
    ReleaseDate = 01/07/2024
    ...

This module reads that feed to resolve the latest version (used when no
version is configured) and to warn about versions too old to be supported.

Deprecation Rule:

A version is deprecated when it was released more than `years` years before
the newest release. The oldest release still inside that window is reported
as the minimum allowed version; anything sorting below it is deprecated,
whether or not it appears in the feed.

Example:
    Resolve the latest version:
        ```python
        from advinstkit.versions import get_latest, version_is_deprecated

        latest = get_latest()
        deprecated, minimum = version_is_deprecated("19.0")
        ```
"""

from __future__ import annotations

import configparser
from dataclasses import dataclass
from datetime import date, datetime

import requests

from advinstkit.exceptions import NetworkError

VERSIONS_URL = "https://www.advancedinstaller.com/downloads/updates.ini"
DEPRECATION_YEARS = 3

_DATE_FORMATS = ("%d/%m/%Y", "%Y-%m-%d")


@dataclass(frozen=True)
class Release:
    """One entry of the release feed."""

    version: str
    release_date: date | None


def version_key(version: str) -> tuple[int, ...]:
    """Sort key for dotted numeric versions ("22.0.1" -> (22, 0, 1))."""
    parts = []
    for piece in version.split("."):
        digits = "".join(ch for ch in piece if ch.isdigit())
        parts.append(int(digits) if digits else 0)
    return tuple(parts)


def _parse_date(value: str) -> date | None:
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(value.strip(), fmt).date()
        except ValueError:
            continue
    return None


def parse_releases(text: str) -> list[Release]:
    """Parse the INI feed into releases, newest first.

    Sections without a ProductVersion are skipped.

    Raises:
        NetworkError: If the feed is not valid INI.
    """
    parser = configparser.ConfigParser(interpolation=None, strict=False)
    try:
        parser.read_string(text)
    except configparser.Error as err:
        raise NetworkError(f"Malformed Advanced Installer release feed: {err}") from err

    releases: dict[str, Release] = {}
    for section in parser.sections():
        version = parser.get(section, "ProductVersion", fallback="").strip()
        if not version:
            continue
        released = _parse_date(parser.get(section, "ReleaseDate", fallback=""))
        releases.setdefault(version, Release(version=version, release_date=released))

    return sorted(releases.values(), key=lambda r: version_key(r.version), reverse=True)


def fetch_releases(url: str = VERSIONS_URL, timeout: int = 30) -> list[Release]:
    """Download and parse the release feed.

    Raises:
        NetworkError: If the request fails or the feed lists no releases.
    """
    from advinstkit.logging import get_global_logger

    logger = get_global_logger()
    logger.verbose("VERSIONS", f"Fetching release feed: {url}")

    try:
        response = requests.get(url, timeout=timeout)
        response.raise_for_status()
    except requests.RequestException as err:
        raise NetworkError(f"Failed to fetch Advanced Installer releases: {err}") from err

    releases = parse_releases(response.text)
    if not releases:
        raise NetworkError(f"No Advanced Installer releases found in {url}")

    logger.debug("VERSIONS", f"Found {len(releases)} releases")
    return releases


def get_latest(url: str = VERSIONS_URL) -> str:
    """Return the newest Advanced Installer version."""
    return fetch_releases(url)[0].version


def version_is_deprecated(
    version: str,
    *,
    years: int = DEPRECATION_YEARS,
    url: str = VERSIONS_URL,
    releases: list[Release] | None = None,
) -> tuple[bool, str]:
    """Check whether version is too old to be supported.

    Args:
        version: Version to check.
        years: Support window, counted back from the newest release date.
        url: Release feed URL (ignored when releases is given).
        releases: Pre-fetched releases, newest first.

    Returns:
        A tuple (is_deprecated, min_allowed_version).
    """
    if releases is None:
        releases = fetch_releases(url)

    dated = [r for r in releases if r.release_date is not None]
    if not dated:
        return False, releases[-1].version

    newest = max(r.release_date for r in dated)
    try:
        cutoff = newest.replace(year=newest.year - years)
    except ValueError:
        # Feb 29 in a non-leap target year
        cutoff = newest.replace(year=newest.year - years, day=28)

    supported = [r for r in dated if r.release_date >= cutoff]
    minimum = min(supported, key=lambda r: version_key(r.version))

    return version_key(version) < version_key(minimum.version), minimum.version
