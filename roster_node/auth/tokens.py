"""Signed bearer tokens for collectors and dashboards (HS256 JWT)."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable

import jwt

from roster_node.entities.player import utc_now
from roster_node.errors import AuthError

ALGORITHM = "HS256"


@dataclass(frozen=True)
class Claims:
    subject: str
    expiry: datetime
    name: str | None = None
    alliance: str | None = None
    role: str | None = None


class TokenVerifier:
    def __init__(self, secret: str):
        if not secret:
            raise ValueError("TokenVerifier requires a non-empty secret")
        self._secret = secret

    def verify(self, credential: str | None) -> Claims:
        if not credential:
            raise AuthError("Missing bearer token")
        try:
            payload = jwt.decode(
                credential,
                self._secret,
                algorithms=[ALGORITHM],
                options={"require": ["exp", "sub"]},
            )
        except jwt.ExpiredSignatureError:
            raise AuthError("Token expired") from None
        except jwt.InvalidTokenError:
            raise AuthError("Invalid token") from None

        return Claims(
            subject=str(payload["sub"]),
            expiry=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
            name=payload.get("name"),
            alliance=payload.get("alliance"),
            role=payload.get("role"),
        )


class TokenIssuer:
    def __init__(
        self,
        secret: str,
        ttl: timedelta = timedelta(hours=12),
        clock: Callable[[], datetime] = utc_now,
    ):
        if not secret:
            raise ValueError("TokenIssuer requires a non-empty secret")
        self._secret = secret
        self.ttl = ttl
        self.clock = clock

    def issue(
        self,
        subject: str,
        *,
        name: str | None = None,
        alliance: str | None = None,
        role: str = "member",
    ) -> str:
        now = self.clock()
        claims = {
            "sub": subject,
            "name": name,
            "alliance": alliance,
            "role": role,
            "iat": now,
            "exp": now + self.ttl,
        }
        return jwt.encode(claims, self._secret, algorithm=ALGORITHM)
