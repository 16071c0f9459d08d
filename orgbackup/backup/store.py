"""
Backup metadata store backed by SQLAlchemy.

Every read is scoped to an organization. Uniqueness of ids and of
(org_id, name) is enforced by the database, so concurrent inserts that
collide surface as StoreError instead of duplicate rows.
"""

import logging
from typing import List, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from orgbackup import db
from orgbackup.models import Backup, Organization
from .errors import StoreError, BackupNameConflictError, BackupNotFoundError, ConfigError

logger = logging.getLogger(__name__)


class BackupStore:
    """
    Insert-only store of Backup records.
    """

    def __init__(self, session=None):
        self.session = session or db.session

    def put(self, backup: Backup) -> Backup:
        """
        Insert one backup record.

        Args:
            backup: New Backup instance

        Returns:
            The persisted Backup

        Raises:
            BackupNameConflictError: If the id or (org, name) already exists
            StoreError: For any other database failure
        """
        try:
            self.session.add(backup)
            self.session.commit()
        except IntegrityError as e:
            self.session.rollback()
            logger.error(f"Duplicate backup {backup.name} for org {backup.org_id}: {e.orig}")
            raise BackupNameConflictError(
                f"Backup {backup.name} already recorded for organization {backup.org_id}"
            )
        except SQLAlchemyError as e:
            self.session.rollback()
            raise StoreError(f"Failed to store backup {backup.name}: {e}")

        return backup

    def list_by_org(self, org_id: str) -> List[Backup]:
        """
        All backups of an organization, newest first.

        Raises:
            StoreError: If the query fails
        """
        try:
            return self.session.query(Backup).filter_by(org_id=org_id).order_by(
                Backup.created_at.desc(),
                Backup.name.desc()
            ).all()
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to list backups for org {org_id}: {e}")

    def get_one(self, backup_id: str, org_id: str) -> Backup:
        """
        Look up one backup within an organization.

        A backup owned by another organization is reported as missing.

        Raises:
            BackupNotFoundError: If no such backup exists for org_id
            StoreError: If the query fails
        """
        try:
            backup = self.session.query(Backup).filter_by(id=backup_id, org_id=org_id).first()
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to fetch backup {backup_id}: {e}")

        if backup is None:
            raise BackupNotFoundError(f"Backup {backup_id} not found for org {org_id}")
        return backup

    def name_exists(self, org_id: str, name: str) -> bool:
        """Check whether an organization already has a backup with this name."""
        try:
            return self.session.query(Backup).filter_by(org_id=org_id, name=name).first() is not None
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to check backup name {name}: {e}")


def get_organization(org_id: Optional[str]) -> Organization:
    """
    Load the organization a backup run belongs to.

    Raises:
        ConfigError: If the organization is unknown or cannot be loaded
    """
    if not org_id:
        raise ConfigError("No organization given")

    try:
        organization = db.session.get(Organization, org_id)
    except SQLAlchemyError as e:
        raise ConfigError(f"Failed to load organization {org_id}: {e}")

    if organization is None:
        raise ConfigError(f"Organization not found: {org_id}")
    return organization
