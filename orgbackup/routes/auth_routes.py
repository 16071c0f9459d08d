"""
Authentication routes: CSRF token, login, logout, current user.
"""

from flask import Blueprint, request, current_app
from flask_login import login_user, logout_user, login_required, current_user
from flask_wtf.csrf import generate_csrf

from orgbackup.auth import authenticate, UserModel
from orgbackup.utils.response import api_response


bp = Blueprint('auth', __name__, url_prefix='/api/auth')


@bp.route('/csrf-token', methods=['GET'])
def csrf_token():
    """
    Issue a CSRF token for the login form.

    Clients send it back in the X-CSRFToken header.
    """
    return api_response('success', 'CSRF token issued', 'CSRFToken', {'csrf_token': generate_csrf()})


@bp.route('/login', methods=['POST'])
def login():
    """
    Log a user in.

    Request body:
        - username: Username (required)
        - password: Password (required)

    Returns:
        JSON envelope with the user's id, username and organization
    """
    data = request.get_json(silent=True) or {}
    username = (data.get('username') or '').strip()
    password = data.get('password') or ''

    if not username or not password:
        return api_response('failed', 'Username and password are required', 'Login', http_status=400)

    user = authenticate(username, password)
    if user is None:
        current_app.logger.warning(f"Failed login attempt for user '{username}'")
        return api_response('failed', 'Invalid username or password', 'Login', http_status=401)

    login_user(UserModel(user), remember=True)
    current_app.logger.info(f"User '{username}' logged in (org {user.org_id})")

    return api_response('success', 'Login successful', 'Login', _user_payload(user))


@bp.route('/logout', methods=['POST'])
@login_required
def logout():
    """Logout handler."""
    logout_user()
    return api_response('success', 'Logged out', 'Logout')


@bp.route('/me', methods=['GET'])
@login_required
def me():
    """Return the logged-in user."""
    return api_response('success', 'Current user', 'Me', _user_payload(current_user.user))


def _user_payload(user):
    return {
        'id': user.id,
        'username': user.username,
        'org_id': user.org_id,
        'org_name': user.organization.name
    }
