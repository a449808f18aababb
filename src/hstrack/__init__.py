"""
hstrack - Hiscores player tracker

Tracks players' hiscores progress over time under a username that can
change. Covers the review and approval of name changes, including
reconciling history between two tracked players when one takes the
other's name.

Main components:
- db: SQLAlchemy models and session management
- players: Username standardization and lookup
- names: Name change lifecycle, history transfer and review details
- hiscores: Live hiscores client
- web: FastAPI JSON API
"""

__version__ = "1.0.0"
