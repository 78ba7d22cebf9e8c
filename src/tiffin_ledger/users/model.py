from __future__ import annotations

from dataclasses import dataclass

from ..core.enums import Role


@dataclass(frozen=True)
class SessionUser:
    """Identity carried by an access token (what ``auth_required`` puts on ``flask.g``)."""

    username: str
    role: Role


@dataclass(frozen=True)
class IssuedToken:
    token: str
    expires_at: int
    user: SessionUser
