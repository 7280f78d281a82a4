# Overview: Service-layer operations for admin accounts; password hashing and credential checks.

"""
Admin account service.

Passwords are hashed with bcrypt (cost factor 12) and validated for
strength before hashing. Emails are normalized to lower case.
"""

import logging
import re

import bcrypt

from ..extensions import db
from ..models import User
from freshguard.time_utils import utcnow

logger = logging.getLogger(__name__)


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
    validate_password_strength(password)
    salt = bcrypt.gensalt(rounds=12)
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')  # Store as string in database


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        # Malformed hash in the database
        return False


def normalize_email(email) -> str:
    return str(email or "").strip().lower()


def get_user_by_email(email) -> User | None:
    return db.session.query(User).filter_by(email=normalize_email(email)).first()


def list_admin_users() -> list[User]:
    return db.session.query(User).filter_by(role="admin").order_by(User.id.asc()).all()


def ensure_admin_user(email, password) -> User:
    """Create the admin account if it does not exist yet. Idempotent."""
    email = normalize_email(email)
    if not email or not password:
        raise ValueError("Admin email/password are required to seed admin user")

    existing = get_user_by_email(email)
    if existing:
        return existing

    user = User(email=email, password_hash=hash_password(password), role="admin")
    db.session.add(user)
    db.session.commit()
    logger.info("Seeded admin user %s", email)
    return user


def authenticate_admin(email, password) -> User | None:
    """Return the admin user for valid credentials, else None."""
    user = get_user_by_email(email)
    if not user or user.role != "admin" or not user.is_active:
        return None
    if not verify_password(str(password or ""), user.password_hash):
        return None

    user.last_login_at = utcnow()
    db.session.commit()
    return user
