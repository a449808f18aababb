"""Admin credential helpers for reviewing name changes.

Approving or denying a name change requires an admin password. Services
don't check it themselves; they are given an AdminAuthorizer, so the check
can be swapped out (e.g. in tests).
"""

from __future__ import annotations

import hashlib
import hmac
import os
from typing import Optional, Protocol

from sqlalchemy.orm import Session

from hstrack.config import settings
from hstrack.db.models import AdminUser

PBKDF2_ALGORITHM = "sha256"
PBKDF2_ITERATIONS = 390_000
SALT_SIZE = 16


def hash_password(password: str) -> str:
    """Hash a plaintext password using PBKDF2-HMAC-SHA256."""
    if not password:
        raise ValueError("Password cannot be empty")

    salt = os.urandom(SALT_SIZE).hex()
    derived = hashlib.pbkdf2_hmac(
        PBKDF2_ALGORITHM,
        password.encode("utf-8"),
        bytes.fromhex(salt),
        PBKDF2_ITERATIONS,
    ).hex()
    return f"pbkdf2_{PBKDF2_ALGORITHM}${PBKDF2_ITERATIONS}${salt}${derived}"


def verify_password(password: str, stored_hash: str) -> bool:
    """Verify a plaintext password against a stored PBKDF2 hash."""
    if not password or not stored_hash:
        return False
    try:
        scheme, iter_raw, salt_hex, expected_hex = stored_hash.split("$", 3)
        if scheme != f"pbkdf2_{PBKDF2_ALGORITHM}":
            return False
        iterations = int(iter_raw)
        actual_hex = hashlib.pbkdf2_hmac(
            PBKDF2_ALGORITHM,
            password.encode("utf-8"),
            bytes.fromhex(salt_hex),
            iterations,
        ).hex()
    except ValueError:
        return False
    return hmac.compare_digest(actual_hex, expected_hex)


def create_or_update_admin_user(
    db: Session,
    username: str,
    password: str,
    is_active: bool = True,
) -> AdminUser:
    """Create a new admin user, or update an existing one by username."""
    normalized = username.strip().lower()
    if not normalized:
        raise ValueError("Username cannot be empty")

    admin = db.query(AdminUser).filter(AdminUser.username == normalized).first()
    password_hash = hash_password(password)
    if admin:
        admin.password_hash = password_hash
        admin.is_active = is_active
    else:
        admin = AdminUser(
            username=normalized,
            password_hash=password_hash,
            is_active=is_active,
        )
        db.add(admin)
    db.flush()
    return admin


class AdminAuthorizer(Protocol):
    """Decides whether a credential may resolve name changes."""

    def is_valid_admin_token(self, token: Optional[str]) -> bool:
        ...


class PasswordAuthorizer:
    """
    Accepts the shared reviewer password, or any active admin's password.

    When settings.admin_password_hash is set, only that password is
    accepted. Otherwise every active row in admin_users is tried.
    """

    def __init__(self, db: Session, password_hash: Optional[str] = None):
        self.db = db
        self.password_hash = password_hash if password_hash is not None else settings.admin_password_hash

    def is_valid_admin_token(self, token: Optional[str]) -> bool:
        if not token:
            return False

        if self.password_hash:
            return verify_password(token, self.password_hash)

        admins = self.db.query(AdminUser).filter(AdminUser.is_active.is_(True)).all()
        return any(verify_password(token, admin.password_hash) for admin in admins)
