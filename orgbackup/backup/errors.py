"""
Error taxonomy for backup operations.

Each error carries a short public message and an HTTP status so the API
boundary can answer without leaking internal detail (paths, stderr, SQL).
"""


class BackupError(Exception):
    """Base class for all backup failures."""
    public_message = 'Backup operation failed'
    http_status = 500


class ConfigError(BackupError):
    """Raised when organization configuration (timezone, lookup) is unusable."""
    public_message = 'Invalid organization configuration'
    http_status = 400


class DumpError(BackupError):
    """Raised when the dump step fails (directory, process, or pipe copy)."""
    public_message = 'Failed to take backup'
    http_status = 500


class DumpTimeoutError(DumpError):
    """Raised when the dump tool exceeds its deadline and is killed."""
    public_message = 'Backup timed out'
    http_status = 504


class ArchiveError(BackupError):
    """Raised when a backup directory cannot be packaged."""
    public_message = 'Failed to package backup'
    http_status = 500


class StoreError(BackupError):
    """Raised when backup metadata cannot be read or written."""
    public_message = 'Failed to store backup metadata'
    http_status = 500


class BackupNameConflictError(StoreError):
    """Raised when a backup name is already taken on disk or in the store."""
    public_message = 'A backup with this name already exists, retry shortly'
    http_status = 409


class NotFoundError(BackupError):
    """Raised when a backup or its artifact cannot be found."""
    public_message = 'Backup not found'
    http_status = 404


class BackupNotFoundError(NotFoundError):
    """No metadata record for this id within the requesting organization."""
    pass


class ArtifactNotFoundError(NotFoundError):
    """Metadata exists but the artifact file is missing on disk."""
    public_message = 'Backup file not found'
