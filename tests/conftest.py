"""
Shared pytest fixtures for orgbackup tests.

This module provides fixtures for:
- Flask app, test client and CLI runner
- Database setup with in-memory SQLite
- Organizations, users and an authenticated client
- Fake dump tools (small shell scripts standing in for the real binary)
- Backup settings and pre-existing backup records
"""

import os
import stat
from datetime import datetime, timezone

import pytest

from orgbackup import create_app, db as _db
from orgbackup.auth import create_user
from orgbackup.backup import BackupSettings
from orgbackup.models import Backup, Organization


# 2024-01-01T10:00:00+05:45 (Asia/Kathmandu)
KATHMANDU_TEN_AM = datetime(2024, 1, 1, 4, 15, 0, tzinfo=timezone.utc)

DUMP_CONTENT = (
    "-- dump of trasadb\n"
    "CREATE TABLE users (id UUID PRIMARY KEY, email STRING);\n"
    "INSERT INTO users VALUES ('3f1c', 'admin@example.com');\n"
)


def write_script(path, body):
    """Write an executable /bin/sh script and return its path as str."""
    path.write_text("#!/bin/sh\n" + body)
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return str(path)


@pytest.fixture
def tools_dir(tmp_path):
    directory = tmp_path / 'tools'
    directory.mkdir()
    return directory


@pytest.fixture
def fake_dump_tool(tools_dir):
    """Dump tool that prints a small SQL dump and exits 0."""
    return write_script(tools_dir / 'fake-cockroach', f"cat <<'SQL'\n{DUMP_CONTENT}SQL\n")


@pytest.fixture
def failing_dump_tool(tools_dir):
    """Dump tool that writes partial output, complains on stderr and exits 3."""
    return write_script(
        tools_dir / 'failing-cockroach',
        'echo "-- partial dump"\n'
        'echo "ERROR: cannot dial server: connection refused" >&2\n'
        'exit 3\n'
    )


@pytest.fixture
def args_dump_tool(tools_dir):
    """Dump tool that echoes its own arguments."""
    return write_script(tools_dir / 'args-cockroach', 'echo "$@"\n')


@pytest.fixture
def backup_root(tmp_path):
    return str(tmp_path / 'backup')


@pytest.fixture(scope='function')
def app(tmp_path, backup_root, fake_dump_tool):
    """
    Create Flask app with test configuration.

    Uses in-memory SQLite and a per-test backup root.
    """
    app = create_app('testing', {
        'BACKUP_ROOT': backup_root,
        'LOG_DIR': str(tmp_path / 'logs'),
        'DUMP_BINARY': fake_dump_tool,
    })

    yield app


@pytest.fixture(scope='function')
def db(app):
    """
    Create database with all tables.

    Each test gets a fresh database.
    """
    with app.app_context():
        _db.create_all()
        yield _db
        _db.session.remove()
        _db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Flask test client for making HTTP requests."""
    return app.test_client()


@pytest.fixture(scope='function')
def runner(app):
    """Flask CLI test runner."""
    return app.test_cli_runner()


@pytest.fixture(scope='function')
def organization(db):
    """Organization 'org-1' in Asia/Kathmandu."""
    org = Organization(name='org-1', timezone='Asia/Kathmandu')
    db.session.add(org)
    db.session.commit()
    return org


@pytest.fixture(scope='function')
def other_organization(db):
    """Organization 'org-2' in UTC."""
    org = Organization(name='org-2', timezone='UTC')
    db.session.add(org)
    db.session.commit()
    return org


@pytest.fixture(scope='function')
def user(db, organization):
    """
    User bound to org-1.

    Username: alice
    Password: Alice1234
    """
    return create_user('alice', 'Alice1234', organization)


@pytest.fixture(scope='function')
def other_user(db, other_organization):
    """User bound to org-2 (bob / Bobby1234)."""
    return create_user('bob', 'Bobby1234', other_organization)


def login(client, username, password):
    return client.post('/api/auth/login', json={'username': username, 'password': password})


@pytest.fixture(scope='function')
def auth_client(client, user):
    """Test client logged in as alice (org-1)."""
    response = login(client, 'alice', 'Alice1234')
    assert response.status_code == 200
    return client


@pytest.fixture(scope='function')
def backup_settings(app):
    """BackupSettings built from the test app config."""
    return BackupSettings.from_mapping(app.config)


@pytest.fixture(scope='function')
def make_backup(db):
    """
    Factory inserting Backup records directly.

    Usage: make_backup(org, 'trasa-backup-...', created_at=1704082500)
    """
    def _make(org, name, created_at, backup_id=None):
        backup = Backup(name=name, type='SYSTEM', org_id=org.id, created_at=created_at)
        if backup_id:
            backup.id = backup_id
        db.session.add(backup)
        db.session.commit()
        return backup

    return _make


@pytest.fixture
def write_artifact(backup_root):
    """Create <backup_root>/<name>.zip with the given bytes."""
    def _write(name, content=b'PK\x05\x06' + b'\x00' * 18):
        os.makedirs(backup_root, exist_ok=True)
        path = os.path.join(backup_root, f"{name}.zip")
        with open(path, 'wb') as f:
            f.write(content)
        return path

    return _write
