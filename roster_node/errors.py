"""Error kinds raised by the roster core and mapped to HTTP responses by the API worker."""
from __future__ import annotations


class RosterError(Exception):
    status_code: int = 500

    @property
    def detail(self) -> str:
        return str(self) or self.__class__.__name__


class ValidationError(RosterError):
    """A required identifier or argument is missing or malformed."""

    status_code = 400


class AuthError(RosterError):
    """Missing, invalid or expired credential."""

    status_code = 401


class PlayerNotFound(RosterError):
    status_code = 404

    def __init__(self, player_id: str):
        super().__init__(f"Player {player_id!r} not found")
        self.player_id = player_id


class StoreError(RosterError):
    """Backing-store I/O failure. The message never leaks storage internals."""

    status_code = 503

    @property
    def detail(self) -> str:
        return "storage unavailable"


class UnknownSourceError(RosterError):
    """Soft error: the declared source has no whitelist entry.

    Callers treat it as an empty contribution instead of failing the request.
    """

    status_code = 400

    def __init__(self, source: str | None):
        super().__init__(f"Unknown source {source!r}")
        self.source = source
