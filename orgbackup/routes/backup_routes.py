"""
Backup routes - take, list and download organization backups.

All endpoints are scoped to the logged-in user's organization.
"""

from flask import Blueprint, request, current_app, send_file
from flask_login import login_required, current_user

from orgbackup.backup import BackupOrchestrator, BackupSettings, get_organization
from orgbackup.backup.errors import BackupError
from orgbackup.models import Backup
from orgbackup.utils.response import api_response


bp = Blueprint('backups', __name__, url_prefix='/api/backups')


def _orchestrator() -> BackupOrchestrator:
    return BackupOrchestrator(BackupSettings.from_mapping(current_app.config))


def _failure(error: BackupError, intent: str):
    """Log the full error and answer with its short public message."""
    current_app.logger.error(
        f"{intent} failed for org {current_user.org_id}: {type(error).__name__}: {error}"
    )
    return api_response('failed', error.public_message, intent, http_status=error.http_status)


@bp.route('/', methods=['POST'])
@login_required
def take_backup():
    """
    Take a system backup now.

    Returns:
        JSON envelope whose data holds the organization's full backup list
    """
    orchestrator = _orchestrator()

    try:
        organization = get_organization(current_user.org_id)
        backups = orchestrator.take_backup(organization)
    except BackupError as e:
        return _failure(e, 'TakeBackup')

    return api_response(
        'success', 'Backup created', 'TakeBackup',
        [backup.to_dict() for backup in backups]
    )


@bp.route('/', methods=['GET'])
@login_required
def list_backups():
    """
    Get the organization's backups, newest first.

    Query params:
        - latest: 'true' to return only [latest backup, total count]

    Returns:
        JSON envelope with the listing
    """
    latest_only = request.args.get('latest') == 'true'

    try:
        result = _orchestrator().list_backups(current_user.org_id, latest_only=latest_only)
    except BackupError as e:
        return _failure(e, 'GetBackups')

    if latest_only:
        latest, count = result
        latest_data = latest.to_dict() if latest else Backup.empty_dict()
        return api_response('success', 'Backups fetched', 'GetBackups', latest_data, count)

    return api_response('success', 'Backups fetched', 'GetBackups', [b.to_dict() for b in result])


@bp.route('/<backup_id>', methods=['GET'])
@login_required
def get_backup(backup_id):
    """Get a single backup record."""
    try:
        backup = _orchestrator().get_backup(backup_id, current_user.org_id)
    except BackupError as e:
        return _failure(e, 'GetBackup')

    return api_response('success', 'Backup fetched', 'GetBackup', backup.to_dict())


@bp.route('/<backup_id>/download', methods=['GET'])
@login_required
def download_backup(backup_id):
    """
    Download a backup artifact.

    Returns:
        The zip file as an attachment named <backup name>.zip
    """
    try:
        backup, path = _orchestrator().resolve_artifact(backup_id, current_user.org_id)
    except BackupError as e:
        return _failure(e, 'DownloadBackup')

    current_app.logger.debug(f"Serving backup file {path}")

    response = send_file(path, mimetype='application/zip')
    response.headers['Content-Disposition'] = f"attachment; filename={backup.name}.zip"
    return response
