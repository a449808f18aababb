"""Exception types raised by hstrack services.

Every error carries the HTTP status code the web layer answers with, so
services can stay unaware of HTTP while the API still reports a stable
error kind.
"""

from __future__ import annotations


class HstrackError(Exception):
    """Base class for all expected service errors."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class BadRequestError(HstrackError):
    """The request itself is malformed (blank names, same names, ...)."""

    status_code = 400


class NotFoundError(HstrackError):
    """A referenced name change or player does not exist."""

    status_code = 404


class ConflictError(HstrackError):
    """An equivalent pending request already exists."""

    status_code = 409


class InvalidStateError(HstrackError):
    """The name change is not in the status the operation requires."""

    status_code = 409


class UnauthorizedError(HstrackError):
    """The admin credential was rejected."""

    status_code = 403


class ServerError(HstrackError):
    """Invariant violation or upstream failure. Never caller-correctable."""

    status_code = 500


class HiscoresUnavailableError(ServerError):
    """The hiscores could not be reached or returned an unexpected response."""


class PlayerNotOnHiscoresError(HstrackError):
    """The username has no hiscores entry. A valid outcome, not a failure."""

    status_code = 404
