"""Input/Output operations for advinstkit.

Public API:

download_file : function
    Download a file from a URL with retries and atomic writes.
make_session : function
    requests.Session with the retry/backoff policy used for all downloads.

Example:
    from pathlib import Path
    from advinstkit.io import download_file

    file_path, sha256 = download_file(
        url="https://www.advancedinstaller.com/downloads/22.0/advinst.msi",
        destination_folder=Path("./downloads"),
    )

"""

from .download import download_file, make_session

__all__ = ["download_file", "make_session"]
