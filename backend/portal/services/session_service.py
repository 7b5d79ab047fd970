# Overview: Service-layer operations for session validation; encapsulates token hashing and lookup.

"""
Session Token Validation

WHY: Reports are only served to an authenticated caller whose role and
company come from a server-side session, never from request parameters.

Sessions are issued by the sign-in service. This module validates the
bearer token on each request and exposes create_session for operator
tooling (CLI) and tests.

SECURITY FEATURES:
- Cryptographically secure random tokens (32 bytes)
- Tokens hashed with SHA-256 before storage (fast, one-way)
- Absolute timeout (SESSION_TTL_HOURS, default 8 hours)
- Revocable; inactive users are rejected even with a live token
"""

import secrets
import hashlib
from dataclasses import dataclass
from datetime import timedelta

from flask import current_app

from ..extensions import db
from ..models import SessionToken, User
from portal.time_utils import utcnow


DEFAULT_SESSION_TTL_HOURS = 8


@dataclass
class SessionContext:
    """
    Caller identity returned by validate_session.

    role and company_id are copied from the user row at validation time.
    """
    user: User
    session: SessionToken
    role: str
    company_id: int | None


def generate_token() -> str:
    """Return a 64-character hex token (32 bytes of entropy)."""
    return secrets.token_hex(32)


def hash_token(token: str) -> str:
    """
    Hash token for database storage using SHA-256.

    Tokens are already high-entropy, so a fast hash is sufficient.
    """
    return hashlib.sha256(token.encode('utf-8')).hexdigest()


def _session_ttl() -> timedelta:
    hours = current_app.config.get("SESSION_TTL_HOURS", DEFAULT_SESSION_TTL_HOURS)
    return timedelta(hours=hours)


def create_session(user_id: int) -> tuple[SessionToken, str]:
    """
    Create a session for a user.

    Returns (session, plaintext_token). The plaintext token is not stored
    and cannot be recovered later.
    """
    token = generate_token()
    now = utcnow()
    session = SessionToken(
        user_id=user_id,
        token_hash=hash_token(token),
        created_at=now,
        expires_at=now + _session_ttl(),
    )
    db.session.add(session)
    db.session.commit()
    return session, token


def validate_session(token: str) -> SessionContext | None:
    """
    Resolve a bearer token to its SessionContext.

    Returns None for unknown, expired or revoked tokens, and for users
    that have been deactivated.
    """
    if not token:
        return None

    session = db.session.query(SessionToken).filter_by(token_hash=hash_token(token)).first()
    if not session:
        return None

    if session.revoked_at is not None:
        return None

    if session.expires_at <= utcnow():
        return None

    user = db.session.get(User, session.user_id)
    if not user or not user.is_active:
        return None

    return SessionContext(
        user=user,
        session=session,
        role=user.role,
        company_id=user.company_id,
    )


def revoke_session(token: str) -> bool:
    """Revoke a session. Returns False if the token is unknown or already revoked."""
    session = db.session.query(SessionToken).filter_by(token_hash=hash_token(token)).first()
    if not session or session.revoked_at is not None:
        return False
    session.revoked_at = utcnow()
    db.session.commit()
    return True
