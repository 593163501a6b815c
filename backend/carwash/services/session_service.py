# Overview: Service-layer operations for sessions; bearer tokens and the cached permission snapshot.

"""
Sessions

A session is an opaque bearer token (only its SHA-256 is stored) plus the
permission snapshot loaded at the last session-change event:

    LOGIN             create_session
    TOKEN_REFRESHED   refresh_session
    PASSWORD_UPDATED  reload_snapshot, called by the password route
    PROFILE_UPDATED   reload_snapshot, called after a self-service profile edit
    LOGOUT            revoke_session (snapshot cleared)

Between events every request authorizes against the cached snapshot, so
role or matrix edits made in the admin panel show up in an open session
only after one of the events above.

Lifetime: SESSION_ABSOLUTE_TIMEOUT from creation (refresh extends it) and
SESSION_IDLE_TIMEOUT between requests.
"""

import hashlib
import logging
import secrets
from dataclasses import dataclass
from datetime import timedelta

from ..extensions import db
from ..models import SessionToken, User
from ..permissions.oracle import PermissionSnapshot
from . import profile_service
from carwash.time_utils import utcnow

logger = logging.getLogger(__name__)

SESSION_ABSOLUTE_TIMEOUT = timedelta(hours=24)
SESSION_IDLE_TIMEOUT = timedelta(hours=2)
REVOKED_RETENTION = timedelta(days=30)


class SessionEvent:
    """Session-change events; each one reloads the snapshot except LOGOUT."""
    LOGIN = "LOGIN"
    LOGOUT = "LOGOUT"
    TOKEN_REFRESHED = "TOKEN_REFRESHED"
    PASSWORD_UPDATED = "PASSWORD_UPDATED"
    PROFILE_UPDATED = "PROFILE_UPDATED"


@dataclass
class SessionContext:
    user: User
    session: SessionToken
    snapshot: PermissionSnapshot


def generate_token() -> str:
    return secrets.token_hex(32)


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def _load_snapshot(session: SessionToken, event: str) -> None:
    session.snapshot = profile_service.load_snapshot(session.user_id)
    session.snapshot_loaded_at = utcnow()
    logger.debug("Snapshot for session %s loaded on %s", session.id, event)


def _snapshot_of(session: SessionToken) -> PermissionSnapshot:
    return PermissionSnapshot.from_dict(session.user_id, session.snapshot)


def _mark_revoked(session: SessionToken, reason: str, when=None) -> None:
    session.is_revoked = True
    session.revoked_at = when or utcnow()
    session.revoked_reason = reason


def _lookup(token: str) -> SessionToken | None:
    """Non-revoked session for a plaintext token."""
    return (
        db.session.query(SessionToken)
        .filter(SessionToken.token_hash == hash_token(token), SessionToken.is_revoked.is_(False))
        .first()
    )


def create_session(user_id: int, user_agent: str | None = None,
                   ip_address: str | None = None) -> tuple[SessionToken, str]:
    """
    LOGIN: open a session and load its snapshot.

    Returns (session, plaintext_token); the plaintext is never stored.
    """
    if db.session.get(User, user_id) is None:
        raise ValueError("User not found")

    token = generate_token()
    now = utcnow()
    session = SessionToken(
        user_id=user_id,
        token_hash=hash_token(token),
        created_at=now,
        last_used_at=now,
        expires_at=now + SESSION_ABSOLUTE_TIMEOUT,
        user_agent=user_agent,
        ip_address=ip_address,
        is_revoked=False,
    )
    _load_snapshot(session, SessionEvent.LOGIN)
    db.session.add(session)
    db.session.commit()
    return session, token


def validate_session(token: str) -> SessionContext | None:
    """
    Resolve a bearer token, or None when it is unknown, revoked, expired,
    idle too long, or its user was deactivated.

    Touches last_used_at. The cached snapshot is returned as is.
    """
    session = _lookup(token)
    if session is None:
        return None

    now = utcnow()
    if now > session.expires_at:
        return None

    reason = None
    if now - session.last_used_at > SESSION_IDLE_TIMEOUT:
        reason = "Idle timeout"
    elif session.user is None or not session.user.is_active:
        reason = "User account deactivated"
    if reason:
        _mark_revoked(session, reason, now)
        db.session.commit()
        return None

    session.last_used_at = now
    db.session.commit()
    return SessionContext(user=session.user, session=session, snapshot=_snapshot_of(session))


def refresh_session(token: str) -> SessionContext | None:
    """TOKEN_REFRESHED: reload the snapshot and push the expiry forward."""
    context = validate_session(token)
    if context is None:
        return None

    context.session.expires_at = utcnow() + SESSION_ABSOLUTE_TIMEOUT
    _load_snapshot(context.session, SessionEvent.TOKEN_REFRESHED)
    db.session.commit()
    context.snapshot = _snapshot_of(context.session)
    return context


def reload_snapshot(session: SessionToken, event: str) -> PermissionSnapshot:
    _load_snapshot(session, event)
    db.session.commit()
    return _snapshot_of(session)


def revoke_session(token: str, reason: str = "User logout") -> bool:
    """LOGOUT. False when the token was not an open session."""
    session = _lookup(token)
    if session is None:
        return False

    session.snapshot = None
    _mark_revoked(session, reason)
    db.session.commit()
    return True


def revoke_all_user_sessions(user_id: int, reason: str = "Revoke all sessions") -> int:
    now = utcnow()
    sessions = (
        db.session.query(SessionToken)
        .filter(SessionToken.user_id == user_id, SessionToken.is_revoked.is_(False))
        .all()
    )
    for session in sessions:
        _mark_revoked(session, reason, now)
    db.session.commit()

    if sessions:
        logger.info("Revoked %d session(s) of user %s: %s", len(sessions), user_id, reason)
    return len(sessions)


def cleanup_expired_sessions() -> int:
    """Purge sessions that are expired or revoked and older than REVOKED_RETENTION."""
    now = utcnow()
    deleted = (
        db.session.query(SessionToken)
        .filter(
            db.or_(SessionToken.expires_at < now, SessionToken.is_revoked.is_(True)),
            SessionToken.created_at < now - REVOKED_RETENTION,
        )
        .delete(synchronize_session=False)
    )
    db.session.commit()
    return deleted
