"""
Database module for hstrack.

Provides SQLAlchemy ORM models and session management.

Usage:
    from hstrack.db import get_session, Player, NameChange

    with get_session() as session:
        pending = session.query(NameChange).filter_by(status="pending").all()
"""

from hstrack.db.models import (
    Base,
    Player,
    Snapshot,
    Record,
    Group,
    Membership,
    Competition,
    Participation,
    NameChange,
    AdminUser,
)
from hstrack.db.session import get_session, get_engine, SessionLocal

__all__ = [
    # Base
    "Base",
    # Models
    "Player",
    "Snapshot",
    "Record",
    "Group",
    "Membership",
    "Competition",
    "Participation",
    "NameChange",
    "AdminUser",
    # Session
    "get_session",
    "get_engine",
    "SessionLocal",
]
