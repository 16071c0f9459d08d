"""
Archiver for backup directories.

Backups are packaged as zip so they can be downloaded and opened on any
platform. The archive keeps the backup directory itself as the top-level
entry, e.g. ``trasa-backup-.../cockroach-back.sql``.
"""

import os
import zipfile
import logging
from pathlib import Path

from .errors import ArchiveError

logger = logging.getLogger(__name__)


def create_archive(source_dir: str, archive_path: str) -> str:
    """
    Compress a directory into a zip archive.

    Args:
        source_dir: Directory whose full contents should be archived
        archive_path: Path of the zip file to create

    Returns:
        Path to the created archive

    Raises:
        ArchiveError: If the source is not a directory or writing fails
    """
    source = Path(source_dir)
    if not source.is_dir():
        raise ArchiveError(f"Backup directory does not exist: {source_dir}")

    try:
        with zipfile.ZipFile(archive_path, 'w', zipfile.ZIP_DEFLATED) as zipf:
            _add_directory_to_zip(zipf, source)
    except (OSError, zipfile.BadZipFile) as e:
        # Clean up partial archive on failure
        if os.path.exists(archive_path):
            try:
                os.remove(archive_path)
            except OSError:
                logger.warning(f"Could not remove partial archive {archive_path}")
        raise ArchiveError(f"Failed to create archive {archive_path}: {e}")

    logger.info(f"Archive created: {archive_path} ({get_archive_size(archive_path)} bytes)")
    return archive_path


def _add_directory_to_zip(zipf: zipfile.ZipFile, directory: Path):
    """
    Recursively add directory to zip archive.

    Args:
        zipf: ZipFile object
        directory: Directory to add
    """
    # Keep the directory name as the root entry, even when empty
    zipf.write(directory, directory.name)

    for item in sorted(directory.rglob('*')):
        # Calculate relative path within archive
        relative_path = item.relative_to(directory.parent)
        zipf.write(item, relative_path)


def get_archive_size(archive_path: str) -> int:
    """
    Get the size of an archive file in bytes.

    Args:
        archive_path: Path to the archive file

    Returns:
        File size in bytes

    Raises:
        ArchiveError: If file doesn't exist or cannot be accessed
    """
    try:
        return os.path.getsize(archive_path)
    except FileNotFoundError:
        raise ArchiveError(f"Archive not found: {archive_path}")
    except OSError as e:
        raise ArchiveError(f"Failed to get archive size: {e}")
