"""
Hiscores lookups.

The official hiscores serve a CSV "lite" format: one line per skill in
metrics.SKILLS order, each line being "rank,level,experience". Unranked
entries are reported as -1. Lines after the skills (activities, bosses)
are ignored here.

A name that isn't on the hiscores answers HTTP 404; that is reported as
PlayerNotOnHiscoresError so callers can treat it as "absent" rather than
as a failure.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional, Protocol

import httpx

from hstrack.config import settings
from hstrack.errors import HiscoresUnavailableError, PlayerNotOnHiscoresError
from hstrack.metrics import SKILLS, experience_key, rank_key

logger = logging.getLogger(__name__)


@dataclass
class HiscoresData:
    """Stats for one username as currently shown on the hiscores."""

    username: str
    stats: dict[str, int] = field(default_factory=dict)


class HiscoresClient(Protocol):
    """Anything that can look up a username on the hiscores."""

    def fetch(self, username: str) -> HiscoresData:
        ...


def parse_lite_csv(username: str, body: str) -> HiscoresData:
    """
    Parse a hiscores "lite" CSV response.

    Raises:
        HiscoresUnavailableError: If the body doesn't hold every skill line
    """
    lines = [line.strip() for line in body.strip().splitlines() if line.strip()]
    if len(lines) < len(SKILLS):
        raise HiscoresUnavailableError(
            f"Unexpected hiscores response for '{username}' ({len(lines)} lines)"
        )

    stats: dict[str, int] = {}
    for skill, line in zip(SKILLS, lines):
        parts = line.split(",")
        if len(parts) != 3:
            raise HiscoresUnavailableError(f"Malformed hiscores line for {skill}: '{line}'")
        try:
            rank, _level, experience = (int(p) for p in parts)
        except ValueError as exc:
            raise HiscoresUnavailableError(
                f"Malformed hiscores line for {skill}: '{line}'"
            ) from exc
        stats[rank_key(skill)] = rank
        stats[experience_key(skill)] = experience

    return HiscoresData(username=username, stats=stats)


class HttpHiscoresClient:
    """
    Hiscores client backed by the official "lite" endpoint.

    Usage:
        client = HttpHiscoresClient()
        data = client.fetch("zezima")
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.base_url = base_url or settings.hiscores_base_url
        self.timeout = timeout if timeout is not None else settings.hiscores_timeout_seconds
        self.transport = transport

    def fetch(self, username: str) -> HiscoresData:
        """
        Fetch a username's current stats.

        Raises:
            PlayerNotOnHiscoresError: The username has no hiscores entry
            HiscoresUnavailableError: Network failure or unexpected response
        """
        try:
            with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
                response = client.get(self.base_url, params={"player": username})
        except httpx.HTTPError as exc:
            logger.warning("Hiscores request failed for %s: %s", username, exc)
            raise HiscoresUnavailableError("Failed to load hiscores: connection error.") from exc

        if response.status_code == 404:
            raise PlayerNotOnHiscoresError(f"'{username}' is not on the hiscores.")

        if response.status_code != 200:
            logger.warning(
                "Hiscores returned HTTP %s for %s", response.status_code, username
            )
            raise HiscoresUnavailableError(
                f"Failed to load hiscores: HTTP {response.status_code}."
            )

        return parse_lite_csv(username, response.text)
