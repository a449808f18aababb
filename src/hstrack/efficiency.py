"""Efficiency (EHP/EHB) collaborator interface.

The efficiency engine itself lives outside this package; name change
reviews only need the difference in efficient hours between two snapshots.
"""

from __future__ import annotations

from typing import Protocol

from hstrack.db.models import Snapshot


class EfficiencyCalculator(Protocol):
    """Computes efficient-hours gained between two snapshots."""

    def ehp_diff(self, before: Snapshot, after: Snapshot) -> float:
        ...

    def ehb_diff(self, before: Snapshot, after: Snapshot) -> float:
        ...


class NullEfficiency:
    """Reports no efficiency gains. Used when no efficiency engine is configured."""

    def ehp_diff(self, before: Snapshot, after: Snapshot) -> float:
        return 0.0

    def ehb_diff(self, before: Snapshot, after: Snapshot) -> float:
        return 0.0
