"""
Name change request lifecycle.

A name change request asks for a tracked player to be renamed. It is
created as 'pending' and resolved exactly once by a reviewer:

- deny: the request is closed, nothing else changes
- approve: the player's history is reconciled with any player already
  tracked under the new name (see transfer.py) and the player is renamed

Resolving requires an admin credential, checked by the injected
AdminAuthorizer.

Concurrency: approve locks the request row (SELECT ... FOR UPDATE) and
re-checks its status inside the transfer's transaction, so two reviewers
approving the same request at once get exactly one approval; the other
sees InvalidStateError. deny writes its status only while the row is
still pending, so it can never overwrite a committed approval.
"""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from hstrack.admin_auth import AdminAuthorizer
from hstrack.db.models import (
    NAME_CHANGE_APPROVED,
    NAME_CHANGE_DENIED,
    NAME_CHANGE_PENDING,
    NameChange,
)
from hstrack.errors import (
    BadRequestError,
    ConflictError,
    InvalidStateError,
    NotFoundError,
    ServerError,
    UnauthorizedError,
)
from hstrack.names.transfer import NameChangeTransfer, TransferResult
from hstrack.players.lookup import find_player, standardize

logger = logging.getLogger(__name__)


class NameChangeService:
    """
    Service for submitting and reviewing name change requests.

    Usage:
        service = NameChangeService(db, authorizer)

        request = service.submit("Bob", "Bobby")
        ...
        service.approve(request.id, admin_password)
    """

    def __init__(self, db: Session, authorizer: Optional[AdminAuthorizer] = None):
        """
        Initialize the service.

        Args:
            db: SQLAlchemy session for database operations
            authorizer: Checks admin credentials for deny/approve. Without
                        one, only submit and get can succeed.
        """
        self.db = db
        self.authorizer = authorizer

        # Summary of the last approval's transfer, for callers that report it
        self.last_transfer: Optional[TransferResult] = None

    # =========================================================================
    # Main Public Methods
    # =========================================================================

    def submit(self, old_name: str, new_name: str) -> NameChange:
        """
        Submit a new name change request, from old_name to new_name.

        Raises:
            BadRequestError: Blank names, or both names are the same player name
            NotFoundError: No player is tracked under old_name
            ConflictError: An identical request is already pending
        """
        old_name = (old_name or "").strip()
        new_name = (new_name or "").strip()

        if not old_name or not new_name:
            raise BadRequestError("Both old name and new name are required.")

        if standardize(old_name) == standardize(new_name):
            raise BadRequestError("Old name and new name cannot be the same.")

        old_player = find_player(self.db, old_name)
        if not old_player:
            raise NotFoundError(f"Player '{old_name}' is not tracked yet.")

        pending = (
            self.db.query(NameChange)
            .filter(
                NameChange.old_name == old_name,
                NameChange.new_name == new_name,
                NameChange.status == NAME_CHANGE_PENDING,
            )
            .first()
        )
        if pending:
            raise ConflictError("There's already a similar pending name change request.")

        name_change = NameChange(
            player_id=old_player.id,
            old_name=old_name,
            new_name=new_name,
            status=NAME_CHANGE_PENDING,
        )
        self.db.add(name_change)
        self.db.commit()

        logger.info(
            "Submitted name change %s: '%s' -> '%s'", name_change.id, old_name, new_name
        )
        return name_change

    def get(self, name_change_id: int) -> NameChange:
        """
        Fetch a name change request.

        Raises:
            NotFoundError: If no request has this id
        """
        name_change = self.db.get(NameChange, name_change_id)
        if not name_change:
            raise NotFoundError("Name change id was not found.")
        return name_change

    def deny(self, name_change_id: int, admin_password: Optional[str]) -> NameChange:
        """
        Deny a pending name change request. No player data changes.

        Raises:
            NotFoundError: If no request has this id
            InvalidStateError: If the request isn't pending
            UnauthorizedError: If the admin password is rejected
        """
        try:
            name_change = self._get_pending(name_change_id, for_update=True)
            self._authorize(admin_password)

            # Conditional write: an approval may have committed since the read
            denied = (
                self.db.query(NameChange)
                .filter(
                    NameChange.id == name_change_id,
                    NameChange.status == NAME_CHANGE_PENDING,
                )
                .update(
                    {"status": NAME_CHANGE_DENIED, "updated_at": datetime.utcnow()},
                    synchronize_session=False,
                )
            )
            if denied != 1:
                raise InvalidStateError("Name change status must be PENDING.")
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info("Denied name change %s", name_change_id)
        return name_change

    def approve(self, name_change_id: int, admin_password: Optional[str]) -> NameChange:
        """
        Approve a pending name change request and transfer the player's data.

        The player tracked under old_name is renamed to new_name. If another
        player is tracked under new_name, its post-rename history is merged
        into the renamed player and it is deleted. The request is marked
        approved in the same transaction; if the transfer fails the request
        stays pending.

        Raises:
            NotFoundError: If no request has this id
            InvalidStateError: If the request isn't (or is no longer) pending
            UnauthorizedError: If the admin password is rejected
            ServerError: If the old player has disappeared since submission
        """
        try:
            name_change = self._get_pending(name_change_id, for_update=True)
            self._authorize(admin_password)

            old_player = find_player(self.db, name_change.old_name, for_update=True)
            new_player = find_player(self.db, name_change.new_name, for_update=True)

            if not old_player:
                raise ServerError("Old player cannot be found in the database anymore.")
        except Exception:
            self.db.rollback()
            raise

        if new_player is not None and new_player.id == old_player.id:
            new_player = None

        def resolve() -> None:
            # Re-read under lock: another reviewer may have resolved it meanwhile
            self.db.refresh(name_change, with_for_update=True)
            if name_change.status != NAME_CHANGE_PENDING:
                raise InvalidStateError("Name change status must be PENDING.")
            name_change.status = NAME_CHANGE_APPROVED
            name_change.resolved_at = datetime.utcnow()
            self.db.flush()

        transfer = NameChangeTransfer(self.db)
        self.last_transfer = transfer.run(
            old_player, new_player, name_change.new_name, before_commit=resolve
        )

        logger.info(
            "Approved name change %s: '%s' -> '%s'",
            name_change.id,
            name_change.old_name,
            name_change.new_name,
        )
        return name_change

    # =========================================================================
    # Private Helper Methods
    # =========================================================================

    def _get_pending(self, name_change_id: int, for_update: bool = False) -> NameChange:
        query = self.db.query(NameChange).filter(NameChange.id == name_change_id)
        if for_update:
            query = query.with_for_update().populate_existing()
        name_change = query.first()

        if not name_change:
            raise NotFoundError("Name change id was not found.")

        if name_change.status != NAME_CHANGE_PENDING:
            raise InvalidStateError("Name change status must be PENDING.")

        return name_change

    def _authorize(self, admin_password: Optional[str]) -> None:
        if self.authorizer is None or not self.authorizer.is_valid_admin_token(
            admin_password
        ):
            raise UnauthorizedError("Incorrect password.")
