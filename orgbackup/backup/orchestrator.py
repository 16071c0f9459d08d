"""
Backup orchestrator - sequences one backup run and serves retrieval.

Workflow for take_backup:
1. Resolve the organization timezone            (REQUESTED -> NAMING)
2. Derive the backup name and target directory  (NAMING -> DUMPING)
3. Run the dump tool into <root>/<name>/        (DUMPING -> ARCHIVING)
4. Zip the directory into <root>/<name>.zip     (ARCHIVING -> PERSISTING)
5. Insert the Backup record                     (PERSISTING -> COMPLETED)

Any failure moves the run to FAILED. Nothing is cleaned up: a partial dump
directory or an unreferenced archive is left on disk for diagnosis.
"""

import os
import enum
import uuid
import logging
from datetime import datetime, timezone
from typing import Callable, List, Optional, Tuple

from orgbackup.models import Backup, BackupType, Organization
from .compression import create_archive
from .dump import DumpExecutor
from .errors import (
    BackupError, ArchiveError, ArtifactNotFoundError, BackupNameConflictError
)
from .naming import generate_name, resolve_timezone
from .settings import BackupSettings
from .store import BackupStore

logger = logging.getLogger(__name__)


class BackupState(str, enum.Enum):
    REQUESTED = 'requested'
    NAMING = 'naming'
    DUMPING = 'dumping'
    ARCHIVING = 'archiving'
    PERSISTING = 'persisting'
    COMPLETED = 'completed'
    FAILED = 'failed'


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class BackupOrchestrator:
    """
    Runs backups for organizations and resolves stored backups.

    One instance handles one take_backup run; its attributes describe
    where that run got to.
    """

    def __init__(
        self,
        settings: BackupSettings,
        store: Optional[BackupStore] = None,
        dump_executor: Optional[DumpExecutor] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Initialize backup orchestrator.

        Args:
            settings: Backup root, naming and dump settings
            store: Metadata store (defaults to the SQLAlchemy-backed store)
            dump_executor: Dump step (defaults to one built from settings.dump)
            clock: Returns the current aware datetime
        """
        self.settings = settings
        self.store = store or BackupStore()
        self.dump_executor = dump_executor or DumpExecutor(settings.dump)
        self.clock = clock or _utc_now

        self.state = BackupState.REQUESTED
        self.backup_name = None
        self.target_dir = None
        self.artifact_path = None
        self.backup = None
        self.error = None
        self.failed_at = None

    def take_backup(self, organization: Organization) -> List[Backup]:
        """
        Take a system backup for an organization.

        Args:
            organization: Owning organization (provides id and timezone)

        Returns:
            The organization's full backup listing, newest first

        Raises:
            ConfigError: Timezone cannot be resolved
            BackupNameConflictError: Name already used on disk or in the store
            DumpError: Dump step failed (DumpTimeoutError on deadline)
            ArchiveError: Packaging failed and archive failures abort runs
            StoreError: Metadata could not be written or read back
        """
        org_id = organization.id
        logger.info(f"Backup requested for org {org_id}")

        try:
            self._transition(BackupState.NAMING)
            tz = resolve_timezone(organization.timezone)
            started_at = self.clock()
            self.backup_name = generate_name(started_at, tz, self.settings.name_prefix)
            self.target_dir = os.path.join(self.settings.backup_root, self.backup_name)
            self.artifact_path = self.artifact_path_for(self.backup_name)
            self._check_name_available(org_id)

            self._transition(BackupState.DUMPING)
            self.dump_executor.run(self.target_dir)

            self._transition(BackupState.ARCHIVING)
            self._archive()

            self._transition(BackupState.PERSISTING)
            self.backup = self.store.put(Backup(
                id=str(uuid.uuid4()),
                name=self.backup_name,
                type=BackupType.SYSTEM.value,
                org_id=org_id,
                created_at=int(started_at.timestamp()),
            ))

            backups = self.store.list_by_org(org_id)
            self._transition(BackupState.COMPLETED)
            logger.info(f"Backup {self.backup_name} ({self.backup.id}) completed for org {org_id}")
            return backups

        except BackupError as e:
            self.error = e
            self.failed_at = self.state
            logger.error(
                f"Backup for org {org_id} failed while {self.state.value} "
                f"(name={self.backup_name}): {e}"
            )
            self._transition(BackupState.FAILED)
            raise

    def list_backups(self, org_id: str, latest_only: bool = False):
        """
        List an organization's backups.

        Args:
            org_id: Requesting organization
            latest_only: Return only the newest record plus the total count

        Returns:
            List of Backup newest first, or (latest Backup or None, count)
        """
        backups = self.store.list_by_org(org_id)
        if latest_only:
            latest = backups[0] if backups else None
            return latest, len(backups)
        return backups

    def get_backup(self, backup_id: str, org_id: str) -> Backup:
        return self.store.get_one(backup_id, org_id)

    def resolve_artifact(self, backup_id: str, org_id: str) -> Tuple[Backup, str]:
        """
        Find the artifact file for a backup.

        The metadata store is always consulted first, so a backup owned by
        another organization is reported as not found.

        Returns:
            (Backup record, absolute artifact path)

        Raises:
            BackupNotFoundError: No such backup for org_id
            ArtifactNotFoundError: Record exists but the zip is missing
        """
        backup = self.store.get_one(backup_id, org_id)
        path = self.artifact_path_for(backup.name)

        if not os.path.isfile(path):
            logger.error(f"Artifact missing for backup {backup.id} (org {org_id}): {path}")
            raise ArtifactNotFoundError(f"Artifact file not found: {path}")

        return backup, path

    def artifact_path_for(self, name: str) -> str:
        return os.path.join(self.settings.backup_root, f"{name}.zip")

    def _check_name_available(self, org_id: str):
        if os.path.exists(self.target_dir) or os.path.exists(self.artifact_path):
            raise BackupNameConflictError(f"Backup path already exists: {self.target_dir}")
        if self.store.name_exists(org_id, self.backup_name):
            raise BackupNameConflictError(
                f"Backup {self.backup_name} already recorded for org {org_id}"
            )

    def _archive(self):
        try:
            create_archive(self.target_dir, self.artifact_path)
        except ArchiveError as e:
            if self.settings.abort_on_archive_failure:
                raise
            logger.warning(
                f"Archiving {self.target_dir} failed, recording backup anyway: {e}"
            )

    def _transition(self, state: BackupState):
        logger.debug(f"Backup run {self.backup_name or '-'}: {self.state.value} -> {state.value}")
        self.state = state
