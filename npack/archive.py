"""Archive extraction for package installation.

Packages are distributed as tar archives (optionally compressed). The
archive may be a local file or an http(s) URL, which is downloaded to a
temporary file first.
"""

import logging
import os
import shutil
import tarfile
import tempfile
from pathlib import Path, PurePosixPath

import requests

from npack.errors import ArchiveError

logger = logging.getLogger(__name__)

DEFAULT_DOWNLOAD_TIMEOUT = 60


def is_url(src: str) -> bool:
    return str(src).startswith(("http://", "https://"))


def download_archive(url: str, timeout: float = DEFAULT_DOWNLOAD_TIMEOUT) -> Path:
    """Download an archive to a temporary file.

    Args:
        url: http(s) URL of the archive
        timeout: Connect/read timeout in seconds

    Returns:
        Path to the downloaded file (caller removes it)

    Raises:
        requests.RequestException: If the download fails
    """
    logger.info(f"Downloading {url}")

    with tempfile.NamedTemporaryFile(suffix=".tgz", delete=False) as tmp_file:
        tmp_path = Path(tmp_file.name)

    try:
        with requests.get(url, stream=True, timeout=timeout) as response:
            response.raise_for_status()
            with open(tmp_path, "wb") as f:
                for chunk in response.iter_content(chunk_size=64 * 1024):
                    f.write(chunk)
    except Exception:
        tmp_path.unlink(missing_ok=True)
        raise

    return tmp_path


def _check_members(tar: tarfile.TarFile) -> None:
    """Reject members that would escape the extraction directory."""
    for member in tar.getmembers():
        path = PurePosixPath(member.name)
        if path.is_absolute() or ".." in path.parts:
            raise ArchiveError(f"Invalid archive member path: {member.name}")

        if member.issym() or member.islnk():
            link = PurePosixPath(member.linkname)
            base = path.parent if member.issym() else PurePosixPath()
            if link.is_absolute() or ".." in (base / link).parts:
                raise ArchiveError(f"Archive link points outside package: {member.name}")

        if member.isdev():
            raise ArchiveError(f"Device files not allowed in archives: {member.name}")


def _hoist_single_root(target_dir: Path) -> None:
    """Move contents of a lone top-level directory (npm's "package/") up."""
    entries = list(target_dir.iterdir())
    if len(entries) != 1 or not entries[0].is_dir() or entries[0].is_symlink():
        return

    wrapper = entries[0]
    # Rename first so a child with the wrapper's name can't collide
    tmp_wrapper = target_dir / f".npack-unwrap-{os.getpid()}"
    wrapper.rename(tmp_wrapper)
    for child in tmp_wrapper.iterdir():
        shutil.move(str(child), str(target_dir / child.name))
    tmp_wrapper.rmdir()


def extract_tar(archive_path: Path, target_dir: Path) -> None:
    """Extract a local tar archive into target_dir.

    Raises:
        FileNotFoundError: If archive doesn't exist
        ArchiveError: If the archive is unreadable or has unsafe members
    """
    archive_path = Path(archive_path)
    if not archive_path.exists():
        raise FileNotFoundError(f"Archive not found: {archive_path}")

    try:
        with tarfile.open(archive_path, "r:*") as tar:
            _check_members(tar)
            if hasattr(tarfile, "data_filter"):
                tar.extractall(target_dir, filter="data")
            else:
                tar.extractall(target_dir)
    except tarfile.TarError as e:
        raise ArchiveError(f"Cannot extract {archive_path}: {e}") from e

    _hoist_single_root(Path(target_dir))


def extract_archive(
    src: str, target_dir: Path, timeout: float = DEFAULT_DOWNLOAD_TIMEOUT
) -> None:
    """Extract a package archive (local path or URL) into target_dir.

    Args:
        src: Archive path or http(s) URL
        target_dir: Existing, empty directory to extract into
        timeout: Download timeout for URLs

    Raises:
        FileNotFoundError: If a local archive doesn't exist
        ArchiveError: If the archive is invalid
        requests.RequestException: If downloading fails
    """
    if not is_url(src):
        extract_tar(Path(src), target_dir)
        logger.info(f"Extracted {src} into {target_dir}")
        return

    archive_path = download_archive(src, timeout=timeout)
    try:
        extract_tar(archive_path, target_dir)
    finally:
        archive_path.unlink(missing_ok=True)

    logger.info(f"Extracted {src} into {target_dir}")
