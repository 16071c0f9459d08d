"""
Flask CLI commands for provisioning and cron-driven backups.

    flask create-org acme --timezone Asia/Kathmandu
    flask create-user alice --org acme --password 'S3cretPass'
    flask take-backup --org acme
"""

import click
from flask import current_app
from flask.cli import with_appcontext

from orgbackup import db
from orgbackup.auth import create_user
from orgbackup.backup import BackupOrchestrator, BackupSettings, resolve_timezone
from orgbackup.backup.errors import BackupError, ConfigError
from orgbackup.models import Organization


def _find_org(name: str) -> Organization:
    organization = Organization.query.filter_by(name=name).first()
    if organization is None:
        raise click.ClickException(f"Organization not found: {name}")
    return organization


@click.command('create-org')
@with_appcontext
@click.argument('name')
@click.option('--timezone', 'tz_name', default='UTC', show_default=True,
              help='IANA timezone used to name this organization\'s backups.')
def create_org_command(name, tz_name):
    """Create an organization."""
    try:
        resolve_timezone(tz_name)
    except ConfigError as e:
        raise click.BadParameter(str(e), param_hint='--timezone')

    if Organization.query.filter_by(name=name).first():
        raise click.ClickException(f"Organization already exists: {name}")

    organization = Organization(name=name, timezone=tz_name)
    db.session.add(organization)
    db.session.commit()
    click.echo(f"Created organization {name} ({organization.id})")


@click.command('create-user')
@with_appcontext
@click.argument('username')
@click.option('--org', 'org_name', required=True, help='Organization the user belongs to.')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True)
def create_user_command(username, org_name, password):
    """Create a user in an organization."""
    organization = _find_org(org_name)
    try:
        user = create_user(username, password, organization)
    except ValueError as e:
        raise click.ClickException(str(e))
    click.echo(f"Created user {user.username} in {organization.name}")


@click.command('take-backup')
@with_appcontext
@click.option('--org', 'org_name', required=True, help='Organization to back up.')
def take_backup_command(org_name):
    """Take a system backup for an organization."""
    organization = _find_org(org_name)
    orchestrator = BackupOrchestrator(BackupSettings.from_mapping(current_app.config))

    try:
        orchestrator.take_backup(organization)
    except BackupError as e:
        raise click.ClickException(f"Backup failed ({orchestrator.failed_at.value}): {e}")

    click.echo(f"Backup taken: {orchestrator.backup_name} ({orchestrator.backup.id})")


def register_commands(app):
    app.cli.add_command(create_org_command)
    app.cli.add_command(create_user_command)
    app.cli.add_command(take_backup_command)
