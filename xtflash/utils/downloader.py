"""
Firmware package downloader.
Streams a factory archive to the downloads directory with progress reporting.
"""
import logging
import posixpath
from pathlib import Path
from typing import Callable, Optional
from urllib.parse import unquote, urlparse

import requests

from ..config import ToolSettings
from ..core.exceptions import FetchError

logger = logging.getLogger(__name__)

DEFAULT_ARCHIVE_NAME = "firmware.zip"
CHUNK_SIZE = 8192

ProgressCallback = Callable[[int, int], None]


def archive_name_from_url(url: str) -> str:
    """Base name of the URL path, or a default when the path has none"""
    name = posixpath.basename(unquote(urlparse(url).path))
    return name or DEFAULT_ARCHIVE_NAME


class ArchiveFetcher:
    def __init__(self, config: ToolSettings, session: Optional[requests.Session] = None):
        self.downloads_dir = Path(config.downloads_dir).expanduser()
        self.timeout = config.timeout_or_none

        self.session = session or requests.Session()
        self.session.headers.update({"User-Agent": config.user_agent})

    def fetch(self, url: str, progress_callback: Optional[ProgressCallback] = None) -> Path:
        """
        Download url into the downloads directory.
        Returns the archive path; raises FetchError on any transport failure.
        """
        output_path = self.downloads_dir / archive_name_from_url(url)

        logger.info(f"Downloading {url} -> {output_path}")
        try:
            self.downloads_dir.mkdir(parents=True, exist_ok=True)
            with self.session.get(
                url, stream=True, allow_redirects=True, timeout=self.timeout
            ) as response:
                response.raise_for_status()
                total = int(response.headers.get("content-length", 0) or 0)
                downloaded = 0

                with open(output_path, "wb") as f:
                    for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                        if chunk:
                            f.write(chunk)
                            downloaded += len(chunk)
                            if progress_callback:
                                progress_callback(downloaded, total)
        except (requests.RequestException, OSError) as e:
            if output_path.is_file():
                output_path.unlink()
            raise FetchError(f"Download failed: {e}") from e

        logger.info(f"Download complete: {downloaded} bytes")
        return output_path
