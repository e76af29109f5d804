# Overview: Identity provider operations; password hashing, account creation and authentication.

"""
Identity Provider

The data gateway delegates every credential check here. Accounts are keyed
by email (case-insensitive) and identified by a uuid that doubles as the
owner key on orders, inventory and profiles.

SECURITY NOTES:
- Passwords hashed with bcrypt (cost factor 12)
- Minimum 8 characters required
- Must contain uppercase, lowercase, digit, and special char
- Session tokens managed separately (see session_service.py)
"""

import re

import bcrypt

from ..extensions import db
from ..models import AuthUser
from ..time_utils import utcnow


class PasswordValidationError(Exception):
    """Raised when password doesn't meet strength requirements."""
    pass


class AccountExistsError(Exception):
    """Raised when registering an email that already has an account."""
    pass


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def validate_password_strength(password: str) -> None:
    """
    Validate password meets strength requirements.

    Raises PasswordValidationError if requirements not met.
    """
    if len(password) < 8:
        raise PasswordValidationError("Password must be at least 8 characters long")

    if not re.search(r'[A-Z]', password):
        raise PasswordValidationError("Password must contain at least one uppercase letter")

    if not re.search(r'[a-z]', password):
        raise PasswordValidationError("Password must contain at least one lowercase letter")

    if not re.search(r'\d', password):
        raise PasswordValidationError("Password must contain at least one digit")

    if not re.search(r"[!@#$%^&*(),.'\":{}|<>]", password):
        raise PasswordValidationError("Password must contain at least one special character")


def hash_password(password: str) -> str:
    """
    Hash password using bcrypt with cost factor 12.

    Password is validated for strength before hashing.
    """
    validate_password_strength(password)
    salt = bcrypt.gensalt(rounds=12)
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify password against bcrypt hash.

    Returns False for malformed hashes instead of raising.
    """
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        return False


def create_account(email: str, password: str) -> AuthUser:
    """
    Create a new identity.

    Raises:
        ValueError: If email is blank
        AccountExistsError: If an account already uses the email
        PasswordValidationError: If password doesn't meet requirements
    """
    email = normalize_email(email)
    if not email or "@" not in email:
        raise ValueError("A valid email address is required")

    existing = db.session.query(AuthUser).filter_by(email=email).first()
    if existing:
        raise AccountExistsError("An account with this email already exists")

    user = AuthUser(email=email, password_hash=hash_password(password))
    db.session.add(user)
    db.session.commit()
    return user


def authenticate(email: str, password: str) -> AuthUser | None:
    """
    Authenticate by email and password.

    Returns the AuthUser if credentials are valid and the account is active,
    None otherwise. Updates last_login_at on success.
    """
    user = db.session.query(AuthUser).filter(
        AuthUser.email == normalize_email(email),
        AuthUser.is_active.is_(True),
    ).first()

    if not user:
        return None

    if verify_password(password, user.password_hash):
        user.last_login_at = utcnow()
        db.session.commit()
        return user

    return None
