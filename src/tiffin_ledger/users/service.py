from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Callable

from jose import JWTError, jwt
from werkzeug.security import check_password_hash

from ..core.constants import DEFAULT_JWT_ALGORITHM, DEFAULT_TOKEN_TTL_HOURS, TOKEN_TYPE
from ..core.enums import Role
from ..core.exceptions import AuthenticationError
from .model import IssuedToken, SessionUser

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AuthService:
    """Use case: authenticate the mess admin and verify access tokens."""

    def __init__(
        self,
        *,
        admin_username: str,
        admin_password_hash: str,
        secret_key: str,
        algorithm: str = DEFAULT_JWT_ALGORITHM,
        ttl_hours: int = DEFAULT_TOKEN_TTL_HOURS,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self._admin_username = admin_username
        self._admin_password_hash = admin_password_hash
        self._secret_key = secret_key
        self._algorithm = algorithm
        self._ttl = timedelta(hours=max(int(ttl_hours), 1))
        self._clock = clock

    def authenticate(self, username: str, password: str) -> IssuedToken:
        if (username or "").strip() != self._admin_username:
            raise AuthenticationError("Invalid credentials")

        try:
            ok = check_password_hash(self._admin_password_hash, password or "")
        except ValueError:
            # Unknown hash method in settings.
            ok = False
        if not ok:
            raise AuthenticationError("Invalid credentials")

        user = SessionUser(username=self._admin_username, role=Role.ADMIN)
        now = self._clock()
        expires_at = int((now + self._ttl).timestamp())
        claims = {
            "sub": user.username,
            "role": user.role.value,
            "type": TOKEN_TYPE,
            "iat": int(now.timestamp()),
            "exp": expires_at,
        }
        token = jwt.encode(claims, self._secret_key, algorithm=self._algorithm)
        logger.info("Issued access token for %s", user.username)
        return IssuedToken(token=token, expires_at=expires_at, user=user)

    def decode(self, token: str) -> SessionUser:
        try:
            payload = jwt.decode(token, self._secret_key, algorithms=[self._algorithm])
        except JWTError as exc:
            raise AuthenticationError("Invalid token") from exc

        if payload.get("type") != TOKEN_TYPE:
            raise AuthenticationError("Invalid token")

        subject = str(payload.get("sub") or "").strip()
        try:
            role = Role(payload.get("role"))
        except ValueError:
            raise AuthenticationError("Invalid token")
        if not subject:
            raise AuthenticationError("Invalid token")
        return SessionUser(username=subject, role=role)
