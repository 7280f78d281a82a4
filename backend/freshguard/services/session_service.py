# Overview: Service-layer operations for session; encapsulates business logic and database work.

"""
Session Token Management Service

Two kinds of bearer sessions share one table:
- admin sessions, created on password login (user_id set)
- terminal sessions, created when a binding code is consumed (store_id set)

SECURITY FEATURES:
- Cryptographically secure random tokens (32 bytes)
- Tokens hashed with SHA-256 before storage
- Absolute timeout per kind; revocable on logout
- Terminal context (store, brand, device) fixed for the session lifetime
"""

import hashlib
import secrets
from dataclasses import dataclass
from datetime import timedelta

from ..extensions import db
from ..models import SessionToken, Store, User
from freshguard.time_utils import utcnow


ADMIN_SESSION_TIMEOUT = timedelta(hours=12)
TERMINAL_SESSION_TIMEOUT = timedelta(days=30)


@dataclass
class SessionContext:
    """
    Identity of the caller, as consumed by the core services.

    Admin sessions carry `user`; terminal sessions carry store/brand ids.
    """
    kind: str
    session: SessionToken
    user: User | None = None
    store_id: int | None = None
    brand_id: int | None = None
    device_id: str | None = None

    @property
    def is_admin(self) -> bool:
        return self.kind == "admin"


def generate_token() -> str:
    return secrets.token_hex(32)  # 32 bytes = 64 hex characters


def hash_token(token: str) -> str:
    """
    SHA-256, not bcrypt: tokens are already high-entropy and are checked on
    every request.
    """
    return hashlib.sha256(token.encode('utf-8')).hexdigest()


def _create(**principal) -> tuple[SessionToken, str]:
    plaintext_token = generate_token()
    now = utcnow()
    timeout = ADMIN_SESSION_TIMEOUT if principal.get("user_id") else TERMINAL_SESSION_TIMEOUT

    session = SessionToken(
        token_hash=hash_token(plaintext_token),
        created_at=now,
        last_used_at=now,
        expires_at=now + timeout,
        is_revoked=False,
        **principal,
    )
    db.session.add(session)
    db.session.commit()
    return session, plaintext_token


def create_admin_session(user: User) -> tuple[SessionToken, str]:
    """Returns (session_record, plaintext_token)."""
    return _create(user_id=user.id)


def create_terminal_session(store: Store, device_id: str | None = None) -> tuple[SessionToken, str]:
    """Returns (session_record, plaintext_token)."""
    return _create(store_id=store.id, device_id=device_id)


def validate_session(token: str) -> SessionContext | None:
    """
    Resolve a bearer token to its SessionContext.

    Returns None if the token is unknown, expired or revoked, or if its
    user was deactivated or its store deleted.
    """
    if not token:
        return None

    now = utcnow()
    session = db.session.query(SessionToken).filter_by(
        token_hash=hash_token(token),
        is_revoked=False,
    ).first()

    if not session or session.expires_at < now:
        return None

    if session.user_id is not None:
        user = session.user
        if not user or not user.is_active:
            _revoke(session, "User account deactivated")
            return None
        context = SessionContext(kind="admin", session=session, user=user)
    else:
        store = session.store
        if not store:
            return None
        context = SessionContext(
            kind="terminal",
            session=session,
            store_id=store.id,
            brand_id=store.brand_id,
            device_id=session.device_id,
        )

    session.last_used_at = now
    db.session.commit()
    return context


def _revoke(session: SessionToken, reason: str) -> None:
    session.is_revoked = True
    session.revoked_at = utcnow()
    session.revoked_reason = reason
    db.session.commit()


def revoke_session(token: str, reason: str = "User logout") -> bool:
    """Returns True if session was revoked, False if not found."""
    session = db.session.query(SessionToken).filter_by(
        token_hash=hash_token(token),
        is_revoked=False,
    ).first()

    if not session:
        return False

    _revoke(session, reason)
    return True
