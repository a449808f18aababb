"""
Review details for a name change request.

Before approving "Bob" -> "Bobby", a reviewer wants evidence that both
names are the same account: Bob's last snapshot is compared against the
first thing known about "Bobby" afterwards. That baseline is, in order:

1. "Bobby"'s first snapshot after Bob's last one, if "Bobby" is tracked
2. "Bobby"'s live hiscores stats, if "Bobby" is on the hiscores
3. nothing

Negative gains between the two (experience can't go down) and large
efficiency gains over a short time are the usual red flags.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

from sqlalchemy.orm import Session

from hstrack.db.models import NameChange, Snapshot
from hstrack.efficiency import EfficiencyCalculator
from hstrack.errors import NotFoundError, PlayerNotOnHiscoresError
from hstrack.hiscores import HiscoresClient, HiscoresData
from hstrack.players.lookup import find_player
from hstrack.snapshots import (
    find_first_since,
    find_latest,
    format_snapshot,
    from_hiscores,
    has_negative_gains,
)

logger = logging.getLogger(__name__)


@dataclass
class NameChangeDetails:
    """Comparison shown to a reviewer for one name change request."""

    name_change: NameChange
    is_new_on_hiscores: bool
    is_old_on_hiscores: bool
    is_new_tracked: bool
    has_negative_gains: bool
    time_diff_ms: Optional[int]
    hours_diff: Optional[float]
    ehp_diff: float
    ehb_diff: float
    old_stats: Optional[dict[str, Any]]
    new_stats: Optional[dict[str, Any]]

    def to_dict(self) -> dict[str, Any]:
        return {
            "name_change": self.name_change.to_dict(),
            "data": {
                "is_new_on_hiscores": self.is_new_on_hiscores,
                "is_old_on_hiscores": self.is_old_on_hiscores,
                "is_new_tracked": self.is_new_tracked,
                "has_negative_gains": self.has_negative_gains,
                "time_diff": self.time_diff_ms,
                "hours_diff": self.hours_diff,
                "ehp_diff": self.ehp_diff,
                "ehb_diff": self.ehb_diff,
                "old_stats": self.old_stats,
                "new_stats": self.new_stats,
            },
        }


class NameChangeReporter:
    """Builds NameChangeDetails from the database, hiscores and efficiency engine."""

    def __init__(
        self,
        db: Session,
        hiscores: HiscoresClient,
        efficiency: EfficiencyCalculator,
    ):
        self.db = db
        self.hiscores = hiscores
        self.efficiency = efficiency

    def describe(self, name_change_id: int) -> NameChangeDetails:
        """
        Compare the old name's last snapshot with the new name's baseline.

        Raises:
            NotFoundError: If the request or its old player doesn't exist
            HiscoresUnavailableError: If the hiscores failed for a reason
                                      other than the name not being listed
        """
        name_change = self.db.get(NameChange, name_change_id)
        if not name_change:
            raise NotFoundError("Name change id was not found.")

        new_hiscores = self._fetch_hiscores(name_change.new_name)
        old_hiscores = self._fetch_hiscores(name_change.old_name)

        old_player = find_player(self.db, name_change.old_name)
        if not old_player:
            raise NotFoundError(f"Player '{name_change.old_name}' is no longer tracked.")
        new_player = find_player(self.db, name_change.new_name)

        old_snapshot = find_latest(self.db, old_player.id)
        new_snapshot = self._find_baseline(old_snapshot, new_player, new_hiscores)

        time_diff_ms = None
        hours_diff = None
        if old_snapshot is not None:
            after = new_snapshot.created_at if new_snapshot is not None else datetime.utcnow()
            time_diff_ms = int((after - old_snapshot.created_at).total_seconds() * 1000)
            hours_diff = time_diff_ms / 1000 / 60 / 60

        compare = old_snapshot is not None and new_snapshot is not None

        return NameChangeDetails(
            name_change=name_change,
            is_new_on_hiscores=new_hiscores is not None,
            is_old_on_hiscores=old_hiscores is not None,
            is_new_tracked=new_player is not None,
            has_negative_gains=has_negative_gains(old_snapshot, new_snapshot) if compare else False,
            time_diff_ms=time_diff_ms,
            hours_diff=hours_diff,
            ehp_diff=self.efficiency.ehp_diff(old_snapshot, new_snapshot) if compare else 0.0,
            ehb_diff=self.efficiency.ehb_diff(old_snapshot, new_snapshot) if compare else 0.0,
            old_stats=format_snapshot(old_snapshot),
            new_stats=format_snapshot(new_snapshot),
        )

    def _fetch_hiscores(self, username: str) -> Optional[HiscoresData]:
        """Fetch hiscores, treating an unlisted name as absent."""
        try:
            return self.hiscores.fetch(username)
        except PlayerNotOnHiscoresError:
            logger.debug("'%s' is not on the hiscores", username)
            return None

    def _find_baseline(
        self,
        old_snapshot: Optional[Snapshot],
        new_player,
        new_hiscores: Optional[HiscoresData],
    ) -> Optional[Snapshot]:
        if new_player is not None and old_snapshot is not None:
            post_change = find_first_since(self.db, new_player.id, old_snapshot.created_at)
            if post_change is not None:
                return post_change

        if new_hiscores is not None:
            return from_hiscores(new_player.id if new_player else None, new_hiscores)

        return None
