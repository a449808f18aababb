"""Unit tests for the name change review comparison."""

from datetime import timedelta

import pytest

from hstrack.db.models import Player
from hstrack.efficiency import NullEfficiency
from hstrack.errors import HiscoresUnavailableError, NotFoundError
from hstrack.names.details import NameChangeReporter
from factories import (
    T0,
    FakeHiscores,
    add_name_change,
    add_player,
    add_snapshot,
    stats,
)


class RecordingEfficiency:
    """Efficiency engine that reports fixed gains and remembers its inputs."""

    def __init__(self, ehp: float = 12.5, ehb: float = 3.0):
        self.ehp = ehp
        self.ehb = ehb
        self.calls = []

    def ehp_diff(self, before, after):
        self.calls.append((before, after))
        return self.ehp

    def ehb_diff(self, before, after):
        return self.ehb


@pytest.fixture
def bob_to_robert(db_session):
    """Bob, last snapshotted at T0, asks to become the untracked "Robert"."""
    bob = add_player(db_session, "bob")
    add_snapshot(db_session, bob, T0, attack=1000)
    name_change = add_name_change(db_session, bob, "Bob", "Robert")
    db_session.commit()
    return name_change.id


def test_tracked_new_name_uses_first_snapshot_after_transition(db_session, bob_and_bobby):
    hiscores = FakeHiscores({"Bobby": stats(1300)})
    efficiency = RecordingEfficiency()

    details = NameChangeReporter(db_session, hiscores, efficiency).describe(
        bob_and_bobby["name_change"]
    )

    assert details.is_new_tracked
    assert details.is_new_on_hiscores
    assert not details.is_old_on_hiscores
    assert not details.has_negative_gains
    assert details.time_diff_ms == 2 * 60 * 60 * 1000
    assert details.hours_diff == pytest.approx(2.0)
    assert details.ehp_diff == 12.5
    assert details.ehb_diff == 3.0

    before, after = efficiency.calls[0]
    assert before.created_at == T0
    assert after.created_at == T0 + timedelta(hours=2)

    assert details.old_stats["skills"]["attack"]["experience"] == 1000
    assert details.new_stats["skills"]["attack"]["experience"] == 1200
    assert hiscores.requested == ["Bobby", "Bob"]


def test_negative_gains_flagged(db_session, bob_and_bobby):
    bobby = db_session.get(Player, bob_and_bobby["bobby"])
    add_snapshot(db_session, bobby, T0 + timedelta(hours=1), attack=900)
    db_session.commit()

    details = NameChangeReporter(db_session, FakeHiscores(), NullEfficiency()).describe(
        bob_and_bobby["name_change"]
    )

    assert details.has_negative_gains
    assert details.new_stats["skills"]["attack"]["experience"] == 900


def test_untracked_new_name_uses_live_hiscores(db_session, bob_to_robert):
    hiscores = FakeHiscores({"Robert": stats(5000), "Bob": stats(1000)})

    details = NameChangeReporter(db_session, hiscores, NullEfficiency()).describe(bob_to_robert)

    assert not details.is_new_tracked
    assert details.is_new_on_hiscores
    assert details.is_old_on_hiscores
    assert not details.has_negative_gains
    assert details.new_stats["skills"]["attack"]["experience"] == 5000
    assert details.time_diff_ms is not None
    assert details.hours_diff == pytest.approx(details.time_diff_ms / 3_600_000)


def test_no_baseline(db_session, bob_to_robert):
    efficiency = RecordingEfficiency()

    details = NameChangeReporter(db_session, FakeHiscores(), efficiency).describe(bob_to_robert)

    assert details.new_stats is None
    assert details.old_stats is not None
    assert not details.is_new_on_hiscores
    assert not details.has_negative_gains
    assert details.ehp_diff == 0.0
    assert details.ehb_diff == 0.0
    assert efficiency.calls == []
    # Measured against the current time instead
    assert details.time_diff_ms is not None


def test_old_player_without_snapshots(db_session):
    bob = add_player(db_session, "bob")
    name_change = add_name_change(db_session, bob, "Bob", "Robert")
    db_session.commit()

    details = NameChangeReporter(
        db_session, FakeHiscores({"Robert": stats()}), RecordingEfficiency()
    ).describe(name_change.id)

    assert details.old_stats is None
    assert details.time_diff_ms is None
    assert details.hours_diff is None
    assert details.ehp_diff == 0.0
    assert not details.has_negative_gains


def test_hiscores_failure_propagates(db_session, bob_and_bobby):
    hiscores = FakeHiscores(error=HiscoresUnavailableError("Failed to load hiscores: HTTP 503."))

    with pytest.raises(HiscoresUnavailableError):
        NameChangeReporter(db_session, hiscores, NullEfficiency()).describe(
            bob_and_bobby["name_change"]
        )


def test_missing_request(db_session):
    with pytest.raises(NotFoundError):
        NameChangeReporter(db_session, FakeHiscores(), NullEfficiency()).describe(9999)


def test_old_player_no_longer_tracked(db_session, bob_to_robert):
    db_session.query(Player).one().username = "someone else"
    db_session.commit()

    with pytest.raises(NotFoundError):
        NameChangeReporter(db_session, FakeHiscores(), NullEfficiency()).describe(bob_to_robert)


def test_to_dict_shape(db_session, bob_and_bobby):
    details = NameChangeReporter(db_session, FakeHiscores(), NullEfficiency()).describe(
        bob_and_bobby["name_change"]
    )

    payload = details.to_dict()

    assert payload["name_change"]["status"] == "pending"
    assert set(payload["data"]) == {
        "is_new_on_hiscores",
        "is_old_on_hiscores",
        "is_new_tracked",
        "has_negative_gains",
        "time_diff",
        "hours_diff",
        "ehp_diff",
        "ehb_diff",
        "old_stats",
        "new_stats",
    }
