"""
SQLAlchemy ORM models for hstrack.

This module defines all database tables and their relationships.
The schema is designed around a mutable player identity: each tracked
player has one row in `players`, and every piece of history (snapshots,
records, group memberships, competition participations) points at it.
When a player renames, history can be moved between two player rows by
the name change transfer (see names/transfer.py).

Key design decisions:
- Usernames are stored standardized (lowercase, single spaces) and unique
- Snapshot stats are a JSON object so new metrics don't need migrations
- Each history kind has a natural key backed by a unique constraint,
  which the transfer relies on for ON CONFLICT DO NOTHING inserts
- Name change requests are never deleted, only resolved

Tables:
- players: Tracked player identities
- snapshots: Point-in-time stat captures
- records: Best-ever value per metric and period
- groups / memberships: Group membership rows
- competitions / participations: Competition participation rows
- name_changes: Name change requests awaiting review
- admin_users: Reviewer accounts
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import (
    JSON,
    BigInteger,
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    String,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


# =============================================================================
# Constants
# =============================================================================

# Name change request statuses. PENDING is the only non-terminal state.
NAME_CHANGE_PENDING = "pending"
NAME_CHANGE_APPROVED = "approved"
NAME_CHANGE_DENIED = "denied"

NAME_CHANGE_STATUSES: tuple[str, ...] = (
    NAME_CHANGE_PENDING,
    NAME_CHANGE_APPROVED,
    NAME_CHANGE_DENIED,
)

# JSONB on PostgreSQL, plain JSON elsewhere (SQLite in tests)
StatsJSON = JSON().with_variant(JSONB(), "postgresql")


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""
    pass


# =============================================================================
# Player Models
# =============================================================================

class Player(Base):
    """
    Tracked player identity.

    Each player has exactly one record in this table. The username is the
    standardized hiscores name and changes when a name change is approved;
    the id never changes, so history follows the player across renames.
    """
    __tablename__ = "players"

    id: Mapped[int] = mapped_column(primary_key=True)

    # Standardized name used for lookups (see players/lookup.py)
    username: Mapped[str] = mapped_column(String(20), nullable=False, unique=True)

    # Name used for display
    display_name: Mapped[str] = mapped_column(String(20), nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    def __repr__(self) -> str:
        return f"<Player(id={self.id}, username='{self.username}')>"


# =============================================================================
# History Models
# =============================================================================

class Snapshot(Base):
    """
    Point-in-time capture of a player's hiscores stats.

    Snapshots are immutable once created; only their owner can change,
    and only through a name change transfer. A player can't have two
    snapshots at the same instant.
    """
    __tablename__ = "snapshots"

    id: Mapped[int] = mapped_column(primary_key=True)
    player_id: Mapped[int] = mapped_column(
        ForeignKey("players.id", ondelete="CASCADE"), nullable=False
    )

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)

    # Set when the snapshot was imported from another tracker
    imported_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    # Metric key -> value, e.g. {"attack_experience": 13034431, "attack_rank": 1022}
    stats: Mapped[dict] = mapped_column(StatsJSON, nullable=False, default=dict)

    __table_args__ = (
        UniqueConstraint("player_id", "created_at", name="uq_snapshot_player_created"),
        Index("idx_snapshots_player_created", "player_id", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Snapshot(player_id={self.player_id}, created_at={self.created_at})>"


class Record(Base):
    """
    Best-ever gain for a metric over a period.

    One row per (player, metric, period). Values only ever go up; a
    name change transfer may raise a record but never adds a second row.
    """
    __tablename__ = "records"

    id: Mapped[int] = mapped_column(primary_key=True)
    player_id: Mapped[int] = mapped_column(
        ForeignKey("players.id", ondelete="CASCADE"), nullable=False
    )

    metric: Mapped[str] = mapped_column(String(40), nullable=False)
    period: Mapped[str] = mapped_column(String(10), nullable=False)  # see metrics.PERIODS
    value: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)

    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    __table_args__ = (
        UniqueConstraint("player_id", "metric", "period", name="uq_record_player_metric_period"),
    )

    def __repr__(self) -> str:
        return f"<Record(player_id={self.player_id}, metric='{self.metric}', period='{self.period}', value={self.value})>"


class Group(Base):
    """A group (clan) players can be members of."""

    __tablename__ = "groups"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(30), nullable=False, unique=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    def __repr__(self) -> str:
        return f"<Group(id={self.id}, name='{self.name}')>"


class Membership(Base):
    """A player's membership of a group. One row per (player, group)."""

    __tablename__ = "memberships"

    player_id: Mapped[int] = mapped_column(
        ForeignKey("players.id", ondelete="CASCADE"), primary_key=True
    )
    group_id: Mapped[int] = mapped_column(
        ForeignKey("groups.id", ondelete="CASCADE"), primary_key=True
    )
    role: Mapped[str] = mapped_column(String(40), nullable=False, default="member")

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    def __repr__(self) -> str:
        return f"<Membership(player_id={self.player_id}, group_id={self.group_id}, role='{self.role}')>"


class Competition(Base):
    """A time-boxed competition players can take part in."""

    __tablename__ = "competitions"

    id: Mapped[int] = mapped_column(primary_key=True)
    title: Mapped[str] = mapped_column(String(50), nullable=False)
    starts_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    ends_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    def __repr__(self) -> str:
        return f"<Competition(id={self.id}, title='{self.title}')>"


class Participation(Base):
    """A player's participation in a competition. One row per (player, competition)."""

    __tablename__ = "participations"

    player_id: Mapped[int] = mapped_column(
        ForeignKey("players.id", ondelete="CASCADE"), primary_key=True
    )
    competition_id: Mapped[int] = mapped_column(
        ForeignKey("competitions.id", ondelete="CASCADE"), primary_key=True
    )

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    def __repr__(self) -> str:
        return f"<Participation(player_id={self.player_id}, competition_id={self.competition_id})>"


# =============================================================================
# Name Change Models
# =============================================================================

class NameChange(Base):
    """
    A request to rename a tracked player from old_name to new_name.

    Created as 'pending' by a submission. A reviewer either denies it
    (no data changes) or approves it, which transfers history from the
    player currently holding new_name (if tracked) into the old player
    and renames the old player.

    Status moves exactly once: pending -> approved | denied.
    """
    __tablename__ = "name_changes"

    id: Mapped[int] = mapped_column(primary_key=True)

    # Player that held old_name when the request was submitted.
    # Cleared if that player is later absorbed by another name change.
    player_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("players.id", ondelete="SET NULL"), nullable=True
    )

    old_name: Mapped[str] = mapped_column(String(20), nullable=False)
    new_name: Mapped[str] = mapped_column(String(20), nullable=False)

    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=NAME_CHANGE_PENDING
    )  # 'pending', 'approved', 'denied'

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )
    resolved_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    __table_args__ = (
        CheckConstraint(
            "status IN (" + ", ".join(f"'{s}'" for s in NAME_CHANGE_STATUSES) + ")",
            name="ck_name_changes_status",
        ),
        Index("idx_name_changes_status", "status", "created_at"),
        Index("idx_name_changes_names", "old_name", "new_name"),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "player_id": self.player_id,
            "old_name": self.old_name,
            "new_name": self.new_name,
            "status": self.status,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
            "resolved_at": self.resolved_at.isoformat() if self.resolved_at else None,
        }

    def __repr__(self) -> str:
        return f"<NameChange(id={self.id}, '{self.old_name}' -> '{self.new_name}', status='{self.status}')>"


# =============================================================================
# Admin Models
# =============================================================================

class AdminUser(Base):
    """Reviewer account allowed to approve or deny name changes."""

    __tablename__ = "admin_users"

    id: Mapped[int] = mapped_column(primary_key=True)
    username: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
        server_default="true",
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    __table_args__ = (
        Index("idx_admin_users_active", "is_active"),
    )

    def __repr__(self) -> str:
        return f"<AdminUser(username='{self.username}', active={self.is_active})>"
