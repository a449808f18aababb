"""Shared metric and period definitions.

This module is the single source of truth for metric names stored in
snapshot stats and record rows, and for the record periods.
"""

from __future__ import annotations

# Skills in the order the hiscores "lite" CSV lists them.
SKILLS: tuple[str, ...] = (
    "overall",
    "attack",
    "defence",
    "strength",
    "hitpoints",
    "ranged",
    "prayer",
    "magic",
    "cooking",
    "woodcutting",
    "fletching",
    "fishing",
    "firemaking",
    "crafting",
    "smithing",
    "mining",
    "herblore",
    "agility",
    "thieving",
    "slayer",
    "farming",
    "runecrafting",
    "hunter",
    "construction",
)

# Record periods, shortest first.
PERIODS: tuple[str, ...] = ("5min", "day", "week", "month", "year")


def experience_key(skill: str) -> str:
    """Return the snapshot stats key holding a skill's experience."""
    return f"{skill}_experience"


def rank_key(skill: str) -> str:
    """Return the snapshot stats key holding a skill's rank."""
    return f"{skill}_rank"
