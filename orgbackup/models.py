import enum
import uuid
from datetime import datetime
from orgbackup import db


def _new_uuid():
    return str(uuid.uuid4())


class BackupType(str, enum.Enum):
    """Kinds of backup a run can produce"""
    SYSTEM = 'SYSTEM'


class Organization(db.Model):
    """Tenant that owns users and backups"""
    __tablename__ = 'organizations'

    id = db.Column(db.String(36), primary_key=True, default=_new_uuid)
    name = db.Column(db.String(255), unique=True, nullable=False)
    timezone = db.Column(db.String(64), nullable=False, default='UTC')  # IANA identifier
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    # Relationships
    users = db.relationship('User', back_populates='organization', lazy='dynamic')
    backups = db.relationship('Backup', back_populates='organization', lazy='dynamic')

    def __repr__(self):
        return f'<Organization {self.name} tz={self.timezone}>'


class User(db.Model):
    """User model for authentication, bound to exactly one organization"""
    __tablename__ = 'users'

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(80), unique=True, nullable=False)
    password_hash = db.Column(db.String(255), nullable=False)
    org_id = db.Column(db.String(36), db.ForeignKey('organizations.id'), nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    organization = db.relationship('Organization', back_populates='users')

    def __repr__(self):
        return f'<User {self.username}>'


class Backup(db.Model):
    """Metadata for one completed backup run. Never updated after insert."""
    __tablename__ = 'backups'
    __table_args__ = (
        db.UniqueConstraint('org_id', 'name', name='uq_backups_org_name'),
    )

    id = db.Column(db.String(36), primary_key=True, default=_new_uuid)
    name = db.Column(db.String(255), nullable=False)  # artifact base name
    type = db.Column(db.String(20), nullable=False, default=BackupType.SYSTEM.value)
    org_id = db.Column(db.String(36), db.ForeignKey('organizations.id'), nullable=False, index=True)
    created_at = db.Column(db.BigInteger, nullable=False)  # epoch seconds

    organization = db.relationship('Organization', back_populates='backups')

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'type': self.type,
            'org_id': self.org_id,
            'created_at': self.created_at,
        }

    @staticmethod
    def empty_dict():
        """Zero-valued record returned when an organization has no backups."""
        return {
            'id': '',
            'name': '',
            'type': '',
            'org_id': '',
            'created_at': 0,
        }

    def __repr__(self):
        return f'<Backup {self.name} type={self.type} org={self.org_id}>'
