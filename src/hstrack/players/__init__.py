"""
Player identity helpers.

Players are identified by a standardized username that can change over
time; see hstrack.names for how renames are reviewed and applied.
"""

from hstrack.players.lookup import find_player, standardize

__all__ = [
    "find_player",
    "standardize",
]
