"""
Fetches and unpacks the DynamoDB Local distribution.

The archive is downloaded once into the configured install directory and
extracted beside it. Subsequent calls reuse whatever is already on disk.
"""

import logging
import threading
import time
import zipfile
from pathlib import Path
from typing import Optional

import requests

from .config import DynamoDBLocalConfig, DEFAULT_CONFIG, DOWNLOAD_PROGRESS_INTERVAL
from .errors import DownloadError


logger = logging.getLogger(__name__)

# One install at a time per process
_install_lock = threading.Lock()


def bytes_to_mb(num_bytes: int) -> float:
    """Convert a byte count to MiB"""
    return num_bytes / float(1024 * 1024)


def _content_length(headers) -> int:
    """Content-Length as int, 0 when missing or malformed"""
    try:
        return max(int(headers.get("Content-Length") or 0), 0)
    except ValueError:
        logger.debug(f"Ignoring bad Content-Length: {headers.get('Content-Length')!r}")
        return 0


class LocalLibDownloader:
    """
    Downloads and extracts DynamoDBLocal.jar on demand.

    Example:
        downloader = LocalLibDownloader(config)
        jar = downloader.ensure_installed()
    """

    def __init__(
        self,
        config: DynamoDBLocalConfig = DEFAULT_CONFIG,
        session: Optional[requests.Session] = None
    ):
        """
        Initialize downloader.

        Args:
            config: Emulator configuration (install location, URL)
            session: HTTP session to use, a new one if None
        """
        self.config = config
        self._session = session

    def is_installed(self) -> bool:
        """Check whether the jar is already extracted"""
        return self.config.jar_path.is_file()

    def ensure_installed(self) -> Path:
        """
        Make sure DynamoDBLocal.jar exists, downloading it if needed.

        Returns:
            Path to the jar

        Raises:
            DownloadError: If download or extraction fails
        """
        with _install_lock:
            if self.is_installed():
                logger.debug(f"Using cached jar {self.config.jar_path}")
                return self.config.jar_path

            logger.info(
                "No DynamoDBLocal lib found. Downloading it for testing purpose"
            )

            zip_path = self.config.zip_path
            if zip_path.is_file():
                logger.info(f"{zip_path} already exists. Try to unzip it.")
            else:
                self.download_zip()

            self.unzip_lib()
            return self.config.jar_path

    def download_zip(self) -> Path:
        """
        Stream the archive to install_dir.

        The body goes to a .part file first and is renamed when complete,
        so an interrupted download never looks like a cached archive.

        Returns:
            Path to the downloaded zip

        Raises:
            DownloadError: On network, HTTP or filesystem errors
        """
        url = self.config.download_url
        zip_path = self.config.zip_path
        part_path = zip_path.with_name(zip_path.name + ".part")

        logger.info(f"Downloading from {url}")

        session = self._session or requests.Session()
        try:
            zip_path.parent.mkdir(parents=True, exist_ok=True)

            with session.get(
                url,
                stream=True,
                timeout=self.config.download_timeout
            ) as response:
                response.raise_for_status()

                total = _content_length(response.headers)
                if total:
                    logger.info(f"Zip file size: {bytes_to_mb(total):6.2f}M")
                logger.info(f"Write zip file to {zip_path}")

                written = 0
                last_report = time.monotonic()
                with open(part_path, "wb") as out:
                    for chunk in response.iter_content(
                        chunk_size=self.config.download_chunk_size
                    ):
                        if not chunk:
                            continue
                        out.write(chunk)
                        written += len(chunk)

                        now = time.monotonic()
                        if now - last_report >= DOWNLOAD_PROGRESS_INTERVAL:
                            last_report = now
                            logger.info(
                                f"Downloading... {bytes_to_mb(written):6.2f}M"
                                f"/{bytes_to_mb(total):6.2f}M"
                            )

                if total and written < total:
                    raise DownloadError(
                        f"Incomplete download: got {written} of {total} bytes"
                    )

            part_path.replace(zip_path)

        except requests.exceptions.RequestException as e:
            part_path.unlink(missing_ok=True)
            raise DownloadError(f"Failed to download {url}: {e}") from e
        except OSError as e:
            part_path.unlink(missing_ok=True)
            raise DownloadError(f"Failed to write {zip_path}: {e}") from e
        except DownloadError:
            part_path.unlink(missing_ok=True)
            raise
        finally:
            if self._session is None:
                session.close()

        logger.info(f"Downloaded {bytes_to_mb(written):6.2f}M to {zip_path}")
        return zip_path

    def unzip_lib(self) -> Path:
        """
        Extract the cached archive into lib_dir.

        Returns:
            Path to the extracted jar

        Raises:
            DownloadError: If the archive is corrupt, unsafe, or lacks the jar
        """
        zip_path = self.config.zip_path
        dest = self.config.lib_dir

        logger.info("Unzipping files...")

        try:
            dest.mkdir(parents=True, exist_ok=True)
            dest_root = dest.resolve()

            with zipfile.ZipFile(zip_path) as archive:
                members = archive.infolist()
                for member in members:
                    target = (dest_root / member.filename).resolve()
                    if target != dest_root and dest_root not in target.parents:
                        raise DownloadError(
                            f"Refusing to extract {member.filename!r} outside {dest}"
                        )

                archive.extractall(dest_root)

        except zipfile.BadZipFile as e:
            raise DownloadError(f"Corrupt archive {zip_path}: {e}") from e
        except OSError as e:
            raise DownloadError(f"Failed to extract {zip_path}: {e}") from e

        logger.info(f"Extracted {len(members)} entries to {dest}")

        if not self.is_installed():
            raise DownloadError(
                f"Archive {zip_path} did not contain {self.config.jar_relative_path}"
            )

        return self.config.jar_path
