"""
Player name standardization and lookup.

Hiscores names are case-insensitive and treat spaces, hyphens and
underscores as the same character:
- "Zezima", "zezima" and " ZEZIMA " are one player
- "Lord_Ash", "Lord-Ash" and "lord ash" are one player

Usernames are stored standardized, so a lookup only needs to
standardize its input before an exact match.
"""

import re
from typing import Optional

from sqlalchemy.orm import Session

from hstrack.db.models import Player

_SEPARATORS = re.compile(r"[-_\s]+")


def standardize(username: str) -> str:
    """
    Standardize a username for storage and comparison.

    Examples:
        >>> standardize("  Lord_Ash ")
        'lord ash'
        >>> standardize("ZEZIMA")
        'zezima'
    """
    if not username:
        return ""
    return _SEPARATORS.sub(" ", username).strip().lower()


def find_player(db: Session, username: str, for_update: bool = False) -> Optional[Player]:
    """
    Find a tracked player by username.

    Args:
        db: SQLAlchemy session
        username: Raw or standardized username
        for_update: Lock the player row until the session's transaction ends

    Returns:
        Player if tracked, None otherwise
    """
    query = db.query(Player).filter(Player.username == standardize(username))
    if for_update:
        query = query.with_for_update()
    return query.first()
