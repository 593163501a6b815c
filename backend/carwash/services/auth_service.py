# Overview: Service-layer operations for auth; encapsulates business logic and database work.

"""
Authentication Service

Sign-up, sign-in, password reset and password update. Uses bcrypt for
password hashing and validates password strength.

SECURITY NOTES:
- Passwords hashed with bcrypt (cost factor 12)
- Minimum 8 characters required
- Must contain uppercase, lowercase, digit, and special char
- Reset requests never reveal whether an e-mail is registered
- Session tokens managed separately (see session_service.py)
"""

import hashlib
import logging
import re
import secrets
from datetime import timedelta

import bcrypt
from flask import current_app

from ..extensions import db
from ..models import User, Profile, Role, PasswordResetToken
from ..permissions import DEFAULT_ROLES
from ..validation import ValidationError, ConflictError, NotFoundError
from carwash.time_utils import utcnow

logger = logging.getLogger(__name__)

PASSWORD_RESET_TTL = timedelta(hours=1)
RESET_REQUEST_MESSAGE = "Si el email está registrado, recibirás un enlace de recuperación."

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class PasswordValidationError(Exception):
    """Raised when password doesn't meet strength requirements."""
    pass


def validate_password_strength(password: str) -> None:
    """
    Validate password meets strength requirements.

    Requirements:
    - Minimum 8 characters
    - At least one uppercase letter
    - At least one lowercase letter
    - At least one digit
    - At least one special character

    Raises PasswordValidationError if requirements not met.
    """
    if not password or len(password) < 8:
        raise PasswordValidationError("Password must be at least 8 characters long")

    if not re.search(r'[A-Z]', password):
        raise PasswordValidationError("Password must contain at least one uppercase letter")

    if not re.search(r'[a-z]', password):
        raise PasswordValidationError("Password must contain at least one lowercase letter")

    if not re.search(r'\d', password):
        raise PasswordValidationError("Password must contain at least one digit")

    if not re.search(r"[^A-Za-z0-9]", password):
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
    """Timing-safe bcrypt comparison. Malformed hashes never match."""
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        return False


def normalize_email(email: str | None) -> str:
    return (email or "").strip().lower()


def _parse_national_id(value) -> int | None:
    if value is None or str(value).strip() == "":
        return None
    s = str(value).strip()
    if not s.isdigit():
        raise ValidationError("DNI must contain digits only")
    return int(s)


def register_user(
    email: str,
    password: str,
    first_name: str,
    last_name: str,
    national_id=None,
    phone: str | None = None,
    role_name: str | None = None,
) -> User:
    """
    Create identity + profile in one transaction.

    New profiles get the default customer role unless role_name is given
    (admin panel / CLI).

    Raises:
        ValidationError: missing/invalid fields
        PasswordValidationError: weak password
        ConflictError: e-mail or DNI already registered
    """
    email = normalize_email(email)
    first_name = (first_name or "").strip()
    last_name = (last_name or "").strip()

    if not email or not EMAIL_PATTERN.match(email):
        raise ValidationError("Invalid email")
    if not first_name or not last_name:
        raise ValidationError("first_name and last_name are required")

    dni = _parse_national_id(national_id)

    if db.session.query(User).filter_by(email=email).first():
        raise ConflictError("User already registered")
    if dni is not None and db.session.query(Profile).filter_by(national_id=dni).first():
        raise ConflictError("A profile with this DNI already exists")

    role_name = role_name or current_app.config["DEFAULT_CUSTOMER_ROLE"]
    role = db.session.query(Role).filter_by(name=role_name).first()
    if not role:
        raise NotFoundError(f"Role {role_name} not found")

    user = User(email=email, password_hash=hash_password(password))
    db.session.add(user)
    db.session.flush()

    profile = Profile(
        user_id=user.id,
        first_name=first_name,
        last_name=last_name,
        national_id=dni,
        phone=(phone or "").strip() or None,
        role_id=role.id,
    )
    db.session.add(profile)
    db.session.commit()

    logger.info("Registered user %s with role %s", user.id, role.name)
    return user


def authenticate(email: str, password: str) -> User | None:
    """
    Returns User if credentials are valid and the account is active.
    Updates last_login_at on success.
    """
    user = db.session.query(User).filter(
        User.email == normalize_email(email),
        User.is_active.is_(True),
    ).first()

    if not user:
        return None

    if verify_password(password or "", user.password_hash):
        user.last_login_at = utcnow()
        db.session.commit()
        return user

    return None


def check_user_exists_by_email(email: str) -> bool:
    return db.session.query(User.id).filter_by(email=normalize_email(email)).first() is not None


def get_users_emails(user_ids) -> list[dict]:
    """[{"id": ..., "email": ...}] for the given user ids."""
    ids = [int(i) for i in user_ids or ()]
    if not ids:
        return []
    rows = db.session.query(User.id, User.email).filter(User.id.in_(ids)).all()
    return [{"id": row.id, "email": row.email} for row in rows]


def _hash_reset_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def request_password_reset(email: str) -> tuple[str, str | None]:
    """
    Issue a reset token when the e-mail exists.

    Always returns the same message; the token (second element) is None for
    unknown addresses and is handed to the mail collaborator otherwise.
    """
    user = db.session.query(User).filter_by(email=normalize_email(email), is_active=True).first()
    if not user:
        return RESET_REQUEST_MESSAGE, None

    token = secrets.token_urlsafe(32)
    db.session.add(PasswordResetToken(
        user_id=user.id,
        token_hash=_hash_reset_token(token),
        created_at=utcnow(),
        expires_at=utcnow() + PASSWORD_RESET_TTL,
    ))
    db.session.commit()
    logger.info("Password reset requested for user %s", user.id)
    return RESET_REQUEST_MESSAGE, token


def reset_password(token: str, new_password: str) -> User:
    """Consume a reset token and set a new password; revokes all sessions."""
    from . import session_service

    record = db.session.query(PasswordResetToken).filter_by(
        token_hash=_hash_reset_token(token or "")
    ).first()
    if not record or record.used_at is not None or record.expires_at < utcnow():
        raise ValidationError("Invalid or expired token")

    user = record.user
    user.password_hash = hash_password(new_password)
    record.used_at = utcnow()
    db.session.commit()

    session_service.revoke_all_user_sessions(user.id, reason="Password reset")
    return user


def update_password(user_id: int, new_password: str) -> User:
    """Set a new password for a signed-in user. Must differ from the current one."""
    user = db.session.get(User, user_id)
    if not user:
        raise NotFoundError("User not found")
    if verify_password(new_password or "", user.password_hash):
        raise PasswordValidationError("New password should be different from the old password")

    user.password_hash = hash_password(new_password)
    db.session.commit()
    return user


def create_default_roles() -> int:
    """Create the system roles if they don't exist."""
    created = 0
    for name, desc in DEFAULT_ROLES:
        existing = db.session.query(Role).filter_by(name=name).first()
        if not existing:
            db.session.add(Role(name=name, description=desc, is_system=True, is_active=True))
            created += 1

    db.session.commit()
    return created
