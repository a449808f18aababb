"""Snapshot queries and comparisons used when reviewing name changes."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from sqlalchemy.orm import Session

from hstrack.db.models import Snapshot
from hstrack.hiscores import HiscoresData
from hstrack.metrics import SKILLS, experience_key, rank_key


def find_latest(db: Session, player_id: int) -> Optional[Snapshot]:
    """Return the player's most recent snapshot, or None if never snapshotted."""
    return (
        db.query(Snapshot)
        .filter(Snapshot.player_id == player_id)
        .order_by(Snapshot.created_at.desc())
        .first()
    )


def find_first_since(db: Session, player_id: int, since: datetime) -> Optional[Snapshot]:
    """Return the player's first snapshot taken strictly after `since`."""
    return (
        db.query(Snapshot)
        .filter(Snapshot.player_id == player_id, Snapshot.created_at > since)
        .order_by(Snapshot.created_at.asc())
        .first()
    )


def from_hiscores(player_id: Optional[int], data: HiscoresData) -> Snapshot:
    """
    Build an unsaved snapshot from live hiscores data.

    The snapshot is never added to a session; it only serves as a
    comparison baseline.
    """
    return Snapshot(
        player_id=player_id,
        created_at=datetime.utcnow(),
        stats=dict(data.stats),
    )


def has_negative_gains(before: Snapshot, after: Snapshot) -> bool:
    """
    Check whether any skill lost experience between two snapshots.

    Experience can't go down, so a loss means the snapshots belong to two
    different accounts. Unranked values (-1) are skipped on either side.
    """
    for skill in SKILLS:
        key = experience_key(skill)
        old_value = before.stats.get(key, -1)
        new_value = after.stats.get(key, -1)
        if old_value < 0 or new_value < 0:
            continue
        if new_value < old_value:
            return True
    return False


def format_snapshot(snapshot: Optional[Snapshot]) -> Optional[dict[str, Any]]:
    """Presentation form of a snapshot, grouped by skill."""
    if snapshot is None:
        return None

    return {
        "created_at": snapshot.created_at.isoformat() if snapshot.created_at else None,
        "imported_at": snapshot.imported_at.isoformat() if snapshot.imported_at else None,
        "skills": {
            skill: {
                "rank": snapshot.stats.get(rank_key(skill), -1),
                "experience": snapshot.stats.get(experience_key(skill), -1),
            }
            for skill in SKILLS
        },
    }
