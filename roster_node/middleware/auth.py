"""Bearer token authentication middleware for the roster API.

Endpoints are classified into two tiers:

- **Public**: no auth required (root info, healthz, token login, docs)
- **Protected**: everything else; requires `Authorization: Bearer <jwt>`
  when `JWT_SECRET` is set

Configuration via environment variables:

- `JWT_SECRET`: HS256 signing secret. When unset, all endpoints are open
  (local development).
- `API_PUBLIC_PREFIXES`: comma-separated path prefixes that never require auth.
  Default: `/healthz,/auth,/docs,/redoc,/openapi.json`

CORS preflight (`OPTIONS`) requests always pass through.
"""
from __future__ import annotations

import logging
import os
from typing import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse

from roster_node.auth.tokens import TokenVerifier
from roster_node.errors import AuthError

logger = logging.getLogger(__name__)

_DEFAULT_PUBLIC_PREFIXES = (
    "/healthz",
    "/auth",
    "/docs",
    "/redoc",
    "/openapi.json",
)

_PUBLIC_PATHS = ("/",)


def _parse_prefixes(env_var: str, defaults: tuple[str, ...]) -> tuple[str, ...]:
    raw = os.getenv(env_var, "").strip()
    if not raw:
        return defaults
    return tuple(p.strip() for p in raw.split(",") if p.strip())


class BearerAuthMiddleware(BaseHTTPMiddleware):
    """FastAPI middleware that gates non-public endpoints by bearer token.

    Inactive when `verifier` is None (no JWT_SECRET set). Verified claims are
    exposed as `request.state.claims`.
    """

    def __init__(
        self,
        app,
        verifier: TokenVerifier | None = None,
        public_prefixes: tuple[str, ...] | None = None,
    ):
        super().__init__(app)
        self.verifier = verifier
        self.public_prefixes = public_prefixes or _parse_prefixes(
            "API_PUBLIC_PREFIXES", _DEFAULT_PUBLIC_PREFIXES
        )

    async def dispatch(self, request: Request, call_next: Callable):
        if self.verifier is None:
            return await call_next(request)

        if request.method == "OPTIONS" or self._is_public(request.url.path):
            return await call_next(request)

        try:
            request.state.claims = self.verifier.verify(self._extract_token(request))
        except AuthError as exc:
            return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})

        return await call_next(request)

    def _is_public(self, path: str) -> bool:
        return path in _PUBLIC_PATHS or any(path.startswith(p) for p in self.public_prefixes)

    @staticmethod
    def _extract_token(request: Request) -> str | None:
        auth = request.headers.get("authorization", "")
        if auth.lower().startswith("bearer "):
            return auth[7:].strip() or None
        return None


def configure_auth(app, secret: str | None) -> None:
    """Add bearer auth middleware to a FastAPI app. Does nothing without a secret."""
    if secret:
        app.add_middleware(BearerAuthMiddleware, verifier=TokenVerifier(secret))
        logger.info(
            "Bearer auth enabled (%d public prefixes)",
            len(_parse_prefixes("API_PUBLIC_PREFIXES", _DEFAULT_PUBLIC_PREFIXES)),
        )
    else:
        logger.info("Bearer auth disabled (JWT_SECRET not set)")
