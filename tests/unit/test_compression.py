"""
Unit tests for the archiver (orgbackup/backup/compression.py).
"""

import os
import zipfile
from unittest.mock import patch

import pytest

from orgbackup.backup.compression import create_archive, get_archive_size
from orgbackup.backup.errors import ArchiveError


@pytest.fixture
def backup_dir(tmp_path):
    """A populated backup directory like the dump step leaves behind."""
    directory = tmp_path / 'trasa-backup-2024-01-01T10:00:00+05:45'
    directory.mkdir()
    (directory / 'cockroach-back.sql').write_text('CREATE TABLE t (id INT);\n')
    nested = directory / 'extra'
    nested.mkdir()
    (nested / 'notes.txt').write_text('nested file')
    return directory


class TestCreateArchive:
    """Test create_archive."""

    def test_create_archive_returns_path(self, backup_dir, tmp_path):
        """Test the archive is written where requested."""
        archive_path = str(tmp_path / f"{backup_dir.name}.zip")

        result = create_archive(str(backup_dir), archive_path)

        assert result == archive_path
        assert zipfile.is_zipfile(archive_path)
        assert os.path.getsize(archive_path) > 0

    def test_create_archive_keeps_directory_as_root(self, backup_dir, tmp_path):
        """Test entries are stored under the backup directory name."""
        archive_path = str(tmp_path / 'out.zip')

        create_archive(str(backup_dir), archive_path)

        with zipfile.ZipFile(archive_path) as zipf:
            names = zipf.namelist()
            assert f"{backup_dir.name}/cockroach-back.sql" in names
            assert f"{backup_dir.name}/extra/notes.txt" in names
            assert zipf.testzip() is None

    def test_create_archive_content_round_trip(self, backup_dir, tmp_path):
        """Test archived file content matches the source file."""
        archive_path = str(tmp_path / 'out.zip')

        create_archive(str(backup_dir), archive_path)

        with zipfile.ZipFile(archive_path) as zipf:
            data = zipf.read(f"{backup_dir.name}/cockroach-back.sql")
        assert data == (backup_dir / 'cockroach-back.sql').read_bytes()

    def test_create_archive_is_compressed(self, tmp_path):
        """Test entries use deflate."""
        directory = tmp_path / 'compressible'
        directory.mkdir()
        (directory / 'dump.sql').write_text('INSERT INTO t VALUES (1);\n' * 5000)
        archive_path = str(tmp_path / 'compressible.zip')

        create_archive(str(directory), archive_path)

        with zipfile.ZipFile(archive_path) as zipf:
            info = zipf.getinfo('compressible/dump.sql')
            assert info.compress_type == zipfile.ZIP_DEFLATED
            assert info.compress_size < info.file_size

    def test_create_archive_empty_directory(self, tmp_path):
        """Test an empty directory still yields a valid archive."""
        directory = tmp_path / 'empty'
        directory.mkdir()
        archive_path = str(tmp_path / 'empty.zip')

        create_archive(str(directory), archive_path)

        with zipfile.ZipFile(archive_path) as zipf:
            assert zipf.namelist() == ['empty/']


class TestCreateArchiveErrors:
    """Test error handling in create_archive."""

    def test_create_archive_missing_source(self, tmp_path):
        """Test a missing source directory raises ArchiveError."""
        with pytest.raises(ArchiveError, match="does not exist"):
            create_archive(str(tmp_path / 'missing'), str(tmp_path / 'out.zip'))

    def test_create_archive_source_is_file(self, tmp_path):
        """Test a file source raises ArchiveError."""
        source = tmp_path / 'file.sql'
        source.write_text('x')

        with pytest.raises(ArchiveError):
            create_archive(str(source), str(tmp_path / 'out.zip'))

    def test_create_archive_unwritable_destination(self, backup_dir, tmp_path):
        """Test an impossible output path raises ArchiveError."""
        archive_path = str(tmp_path / 'no-such-dir' / 'out.zip')

        with pytest.raises(ArchiveError, match="Failed to create archive"):
            create_archive(str(backup_dir), archive_path)

    def test_create_archive_removes_partial_file(self, backup_dir, tmp_path):
        """Test a failed write leaves no partial archive behind."""
        archive_path = tmp_path / 'partial.zip'

        with patch('orgbackup.backup.compression._add_directory_to_zip',
                   side_effect=OSError("disk full")):
            with pytest.raises(ArchiveError, match="disk full"):
                create_archive(str(backup_dir), str(archive_path))

        assert not archive_path.exists()


class TestGetArchiveSize:
    """Test get_archive_size."""

    def test_get_archive_size(self, backup_dir, tmp_path):
        archive_path = create_archive(str(backup_dir), str(tmp_path / 'out.zip'))

        assert get_archive_size(archive_path) == os.path.getsize(archive_path)

    def test_get_archive_size_missing(self, tmp_path):
        with pytest.raises(ArchiveError, match="Archive not found"):
            get_archive_size(str(tmp_path / 'missing.zip'))
