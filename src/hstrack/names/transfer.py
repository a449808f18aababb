"""
History transfer for approved name changes.

When "Bob" renames to "Bobby", the player row tracked as "Bob" keeps its
id and is renamed. If "Bobby" was already tracked as a separate player
(someone looked the new name up before the change was approved), the
history recorded under "Bobby" since the rename is moved onto Bob's row
and the "Bobby" row is deleted.

The rename point is the transition date: the time of Bob's last snapshot.
Anything "Bobby" recorded at or after that time is considered to belong
to Bob. If Bob was never snapshotted, all of "Bobby"'s history moves.

Per history kind:
- Records: Bob's existing record is raised to Bobby's value if Bobby's is
  higher. Records Bob doesn't have are not created.
- Snapshots, participations, memberships: copied onto Bob with
  INSERT ... ON CONFLICT DO NOTHING on their natural key, so a fact Bob
  already has is never duplicated.

Everything happens in one transaction on the given session. The transfer
owns the commit: on any error the session is rolled back and the error
re-raised, leaving both players and their history untouched.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from sqlalchemy import true
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session

from hstrack.db.models import (
    Membership,
    NameChange,
    Participation,
    Player,
    Record,
    Snapshot,
)
from hstrack.errors import ServerError
from hstrack.players.lookup import standardize
from hstrack.snapshots import find_latest

logger = logging.getLogger(__name__)

# Dialect-specific INSERT constructs supporting ON CONFLICT DO NOTHING
_INSERT_BY_DIALECT = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


@dataclass
class TransferResult:
    """Summary of what a name change transfer did."""

    transition_date: Optional[datetime]
    records_raised: int = 0
    snapshots_moved: int = 0
    participations_moved: int = 0
    memberships_moved: int = 0
    deleted_player_id: Optional[int] = None

    def summary(self) -> str:
        return (
            f"transition={self.transition_date}, records_raised={self.records_raised}, "
            f"snapshots={self.snapshots_moved}, participations={self.participations_moved}, "
            f"memberships={self.memberships_moved}, deleted_player={self.deleted_player_id}"
        )


def find_transition_date(db: Session, player_id: int) -> Optional[datetime]:
    """
    Find when a player's rename took effect.

    This is the time of the player's last snapshot under the old name,
    not the time the change is approved: a reviewer may approve days
    after the player actually renamed.

    Returns:
        The latest snapshot's created_at, or None if the player has no snapshots
    """
    latest = find_latest(db, player_id)
    return latest.created_at if latest else None


class NameChangeTransfer:
    """
    Moves post-rename history from one player into another, atomically.

    Usage:
        transfer = NameChangeTransfer(db)
        result = transfer.run(old_player, new_player, "Bobby")
    """

    def __init__(self, db: Session):
        self.db = db

    def run(
        self,
        old_player: Player,
        new_player: Optional[Player],
        new_name: str,
        before_commit: Optional[Callable[[], None]] = None,
    ) -> TransferResult:
        """
        Transfer new_player's history into old_player and rename old_player.

        Args:
            old_player: Player being renamed; keeps its id
            new_player: Player currently tracked under new_name, if any; deleted
            new_name: The name old_player takes
            before_commit: Called after all changes are flushed, inside the
                           transaction. Raising from it aborts the transfer.

        Returns:
            TransferResult describing the moved rows

        Raises:
            Any exception from the transfer steps (after rollback)
        """
        try:
            result = TransferResult(
                transition_date=find_transition_date(self.db, old_player.id)
            )

            if new_player is not None:
                since = result.transition_date
                result.records_raised = self._transfer_records(new_player, old_player, since)
                result.snapshots_moved = self._transfer_snapshots(new_player, old_player, since)
                result.participations_moved = self._transfer_participations(
                    new_player, old_player, since
                )
                result.memberships_moved = self._transfer_memberships(
                    new_player, old_player, since
                )
                result.deleted_player_id = new_player.id
                self._delete_player(new_player)

            standardized = standardize(new_name)
            old_player.username = standardized
            old_player.display_name = standardized
            self.db.flush()

            if before_commit is not None:
                before_commit()

            self.db.commit()
        except Exception:
            self.db.rollback()
            logger.warning(
                "Name change transfer for player %s -> '%s' rolled back",
                old_player.id,
                new_name,
            )
            raise

        logger.info(
            "Transferred history into player %s ('%s'): %s",
            old_player.id,
            new_name,
            result.summary(),
        )
        return result

    # =========================================================================
    # Transfer Steps
    # =========================================================================

    def _transfer_records(
        self, source: Player, target: Player, since: Optional[datetime]
    ) -> int:
        """
        Raise target's records to source's values where source's are higher.

        Only source records updated since the transition count. Returns the
        number of target records raised.
        """
        target_records = {
            (r.metric, r.period): r
            for r in self.db.query(Record).filter(Record.player_id == target.id)
        }
        source_records = (
            self.db.query(Record)
            .filter(Record.player_id == source.id, _since(Record.updated_at, since))
            .all()
        )

        raised = 0
        for record in source_records:
            existing = target_records.get((record.metric, record.period))
            if existing is not None and existing.value < record.value:
                existing.value = record.value
                raised += 1

        self.db.flush()
        return raised

    def _transfer_snapshots(
        self, source: Player, target: Player, since: Optional[datetime]
    ) -> int:
        snapshots = (
            self.db.query(Snapshot)
            .filter(Snapshot.player_id == source.id, _since(Snapshot.created_at, since))
            .all()
        )
        rows = [
            {
                "player_id": target.id,
                "created_at": s.created_at,
                "imported_at": s.imported_at,
                "stats": dict(s.stats or {}),
            }
            for s in snapshots
        ]
        return self._insert_ignoring_duplicates(Snapshot, rows, ["player_id", "created_at"])

    def _transfer_participations(
        self, source: Player, target: Player, since: Optional[datetime]
    ) -> int:
        participations = (
            self.db.query(Participation)
            .filter(
                Participation.player_id == source.id,
                _since(Participation.created_at, since),
            )
            .all()
        )
        rows = [
            {
                "player_id": target.id,
                "competition_id": p.competition_id,
                "created_at": p.created_at,
                "updated_at": p.updated_at,
            }
            for p in participations
        ]
        return self._insert_ignoring_duplicates(
            Participation, rows, ["player_id", "competition_id"]
        )

    def _transfer_memberships(
        self, source: Player, target: Player, since: Optional[datetime]
    ) -> int:
        memberships = (
            self.db.query(Membership)
            .filter(Membership.player_id == source.id, _since(Membership.created_at, since))
            .all()
        )
        rows = [
            {
                "player_id": target.id,
                "group_id": m.group_id,
                "role": m.role,
                "created_at": m.created_at,
                "updated_at": m.updated_at,
            }
            for m in memberships
        ]
        return self._insert_ignoring_duplicates(Membership, rows, ["player_id", "group_id"])

    def _delete_player(self, player: Player) -> None:
        """Delete a player along with any history it still owns."""
        for model in (Snapshot, Record, Participation, Membership):
            self.db.query(model).filter(model.player_id == player.id).delete(
                synchronize_session=False
            )

        # Requests are kept for auditability, only detached from the player
        self.db.query(NameChange).filter(NameChange.player_id == player.id).update(
            {"player_id": None}, synchronize_session=False
        )

        self.db.delete(player)
        # The rename that follows may reuse this player's username, and
        # the unit of work would otherwise run the UPDATE before the DELETE
        self.db.flush()

    # =========================================================================
    # Private Helper Methods
    # =========================================================================

    def _insert_ignoring_duplicates(
        self, model, rows: list[dict], natural_key: list[str]
    ) -> int:
        """
        Insert rows, skipping any that collide on the natural key.

        Returns:
            Number of rows actually inserted
        """
        if not rows:
            return 0

        dialect = self.db.get_bind().dialect.name
        insert = _INSERT_BY_DIALECT.get(dialect)
        if insert is None:
            raise ServerError(f"Unsupported database dialect for transfers: {dialect}")

        stmt = insert(model.__table__).values(rows).on_conflict_do_nothing(index_elements=natural_key)
        result = self.db.execute(stmt)
        inserted = result.rowcount if result.rowcount is not None and result.rowcount >= 0 else 0

        logger.debug(
            "Inserted %d/%d %s rows for player %s",
            inserted,
            len(rows),
            model.__tablename__,
            rows[0]["player_id"],
        )
        return inserted


def _since(column, since: Optional[datetime]):
    """Filter on column >= since; no lower bound when since is None."""
    if since is None:
        return true()
    return column >= since
