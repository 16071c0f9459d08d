"""
Authentication helpers: password hashing, org-bound users, Flask-Login wrapper.
"""

from typing import Optional

from werkzeug.security import generate_password_hash, check_password_hash
from flask_login import UserMixin

from orgbackup import db
from orgbackup.models import Organization, User

MIN_PASSWORD_LENGTH = 8


def hash_password(password: str) -> str:
    """Hash a password using werkzeug's pbkdf2:sha256."""
    return generate_password_hash(password, method='pbkdf2:sha256')


def verify_password(password_hash: str, password: str) -> bool:
    return check_password_hash(password_hash, password)


def validate_password_strength(password: str) -> tuple[bool, str]:
    """
    Validate password meets security requirements.

    Requires at least 8 characters with upper case, lower case and a digit.

    Returns:
        Tuple of (is_valid, error_message)
    """
    if len(password) < MIN_PASSWORD_LENGTH:
        return False, f"Password must be at least {MIN_PASSWORD_LENGTH} characters long"

    checks = [
        (str.isupper, "an uppercase letter"),
        (str.islower, "a lowercase letter"),
        (str.isdigit, "a digit"),
    ]
    for check, description in checks:
        if not any(check(c) for c in password):
            return False, f"Password must contain at least {description}"

    return True, ""


def create_user(username: str, password: str, organization: Organization) -> User:
    """
    Create a user bound to an organization.

    Raises:
        ValueError: If the username is taken or the password is too weak
    """
    is_valid, error_msg = validate_password_strength(password)
    if not is_valid:
        raise ValueError(error_msg)

    if User.query.filter_by(username=username).first():
        raise ValueError(f"Username already exists: {username}")

    user = User(
        username=username,
        password_hash=hash_password(password),
        org_id=organization.id
    )
    db.session.add(user)
    db.session.commit()
    return user


def authenticate(username: str, password: str) -> Optional[User]:
    """Return the user for valid credentials, otherwise None."""
    user = User.query.filter_by(username=username).first()
    if user is None or not verify_password(user.password_hash, password):
        return None
    return user


class UserModel(UserMixin):
    """
    Flask-Login user wrapper for the User database model.
    """

    def __init__(self, user: User):
        self.user = user

    def get_id(self):
        """Return user ID as required by Flask-Login."""
        return str(self.user.id)

    @property
    def id(self):
        return self.user.id

    @property
    def username(self):
        return self.user.username

    @property
    def org_id(self):
        """Organization every request by this user is scoped to."""
        return self.user.org_id
