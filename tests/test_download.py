"""
Tests for advinstkit.io.download module.

Tests download functionality including:
- Basic downloads
- Redirects
- Content-Disposition headers
- HTML rejection
- Atomic writes
"""

from __future__ import annotations

import hashlib
from pathlib import Path

import pytest
import requests
import requests_mock

from advinstkit import __version__
from advinstkit.io.download import download_file


def _sha256(data: bytes) -> str:
    """Helper to compute SHA-256 hash."""
    return hashlib.sha256(data).hexdigest()


def test_download_success(tmp_test_dir: Path) -> None:
    """Test basic successful download."""
    url = "https://example.com/downloads/22.0/advinst.msi"
    data = b"MSI payload"

    with requests_mock.Mocker() as m:
        m.get(url, content=data, headers={"Content-Length": str(len(data))})
        path, digest = download_file(url, tmp_test_dir)

    assert path.name == "advinst.msi"
    assert path.read_bytes() == data
    assert digest == _sha256(data)


def test_follows_redirect_and_uses_final_url_name(tmp_test_dir: Path) -> None:
    """Test that redirects are followed and final URL name is used."""
    start = "https://example.com/latest"
    final = "https://cdn.example.com/advinst.msi"

    with requests_mock.Mocker() as m:
        m.get(start, status_code=302, headers={"Location": final})
        m.get(final, content=b"abc", headers={"Content-Length": "3"})
        path, _ = download_file(start, tmp_test_dir)

    assert path.name == "advinst.msi"
    assert path.read_bytes() == b"abc"


def test_content_disposition_filename(tmp_test_dir: Path) -> None:
    """Test that Content-Disposition header overrides URL filename."""
    url = "https://example.com/dl"

    with requests_mock.Mocker() as m:
        m.get(
            url,
            content=b"abc",
            headers={"Content-Disposition": 'attachment; filename="advinst.msi"'},
        )
        path, _ = download_file(url, tmp_test_dir)

    assert path.name == "advinst.msi"


def test_http_error_raises(tmp_test_dir: Path) -> None:
    """Test that a 404 surfaces as requests.HTTPError and writes nothing."""
    url = "https://example.com/downloads/0.0/advinst.msi"

    with requests_mock.Mocker() as m:
        m.get(url, status_code=404)

        with pytest.raises(requests.HTTPError, match="download failed"):
            download_file(url, tmp_test_dir)

    assert list(tmp_test_dir.iterdir()) == []


def test_rejects_html_when_validate_content_type(tmp_test_dir: Path) -> None:
    """Test that HTML is rejected when content type validation is enabled."""
    url = "https://example.com/file"

    with requests_mock.Mocker() as m:
        m.get(url, text="<html>oops</html>", headers={"Content-Type": "text/html"})

        with pytest.raises(ValueError, match="expected binary"):
            download_file(url, tmp_test_dir, validate_content_type=True)


def test_html_allowed_without_validation(tmp_test_dir: Path) -> None:
    url = "https://example.com/page.html"

    with requests_mock.Mocker() as m:
        m.get(url, text="<html></html>", headers={"Content-Type": "text/html"})
        path, _ = download_file(url, tmp_test_dir)

    assert path.exists()


def test_writes_atomically_no_part_leftovers(tmp_test_dir: Path) -> None:
    """Test that atomic writes don't leave .part files behind."""
    url = "https://example.com/file.bin"

    with requests_mock.Mocker() as m:
        m.get(url, content=b"x" * 10, headers={"Content-Length": "10"})
        path, _ = download_file(url, tmp_test_dir)

    assert list(tmp_test_dir.glob("*.part")) == []
    assert path.exists()


def test_creates_destination_folder(tmp_test_dir: Path) -> None:
    """Test that destination folder is created if it doesn't exist."""
    url = "https://example.com/file.bin"
    nested_dir = tmp_test_dir / "nested" / "path"

    with requests_mock.Mocker() as m:
        m.get(url, content=b"test")
        path, _ = download_file(url, nested_dir)

    assert nested_dir.exists()
    assert path.parent == nested_dir


def test_sends_user_agent(tmp_test_dir: Path) -> None:
    url = "https://example.com/file.bin"

    with requests_mock.Mocker() as m:
        m.get(url, content=b"test")
        download_file(url, tmp_test_dir)

    assert m.request_history[0].headers["User-Agent"] == f"advinstkit/{__version__}"
