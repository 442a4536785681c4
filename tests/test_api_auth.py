"""Tests for bearer token authentication middleware."""
from __future__ import annotations

import os
import unittest
from unittest.mock import patch

from fastapi import FastAPI, Request
from fastapi.testclient import TestClient

from roster_node.auth.tokens import TokenIssuer, TokenVerifier
from roster_node.middleware.auth import BearerAuthMiddleware

SECRET = "roster-test-secret-0123456789abcdef"


def _make_app(secret: str | None = None, public_prefixes: tuple[str, ...] | None = None) -> FastAPI:
    app = FastAPI()

    if secret:
        app.add_middleware(
            BearerAuthMiddleware,
            verifier=TokenVerifier(secret),
            public_prefixes=public_prefixes,
        )

    @app.get("/")
    def root():
        return {"ok": True}

    @app.get("/healthz")
    def healthz():
        return {"status": "ok"}

    @app.post("/auth/koc")
    def login():
        return {"token": "t"}

    @app.get("/players")
    def players(request: Request):
        claims = getattr(request.state, "claims", None)
        return {"subject": claims.subject if claims else None}

    @app.post("/players")
    def upsert():
        return {"ok": True}

    @app.get("/status/ping")
    def ping():
        return {"pong": True}

    return app


class TestNoSecret(unittest.TestCase):
    """When JWT_SECRET is not set, everything is open."""

    def setUp(self):
        self.client = TestClient(_make_app(secret=None))

    def test_everything_open(self):
        self.assertEqual(self.client.get("/").status_code, 200)
        self.assertEqual(self.client.get("/players").status_code, 200)
        self.assertEqual(self.client.post("/players").status_code, 200)


class TestWithSecret(unittest.TestCase):
    def setUp(self):
        patcher = patch.dict(os.environ, {"API_PUBLIC_PREFIXES": ""})
        patcher.start()
        self.addCleanup(patcher.stop)
        self.client = TestClient(_make_app(secret=SECRET))
        self.token = TokenIssuer(SECRET).issue("42", alliance="Sweet Revenge")

    def test_public_endpoints_open(self):
        self.assertEqual(self.client.get("/").status_code, 200)
        self.assertEqual(self.client.get("/healthz").status_code, 200)
        self.assertEqual(self.client.post("/auth/koc").status_code, 200)

    def test_protected_requires_token(self):
        resp = self.client.get("/players")
        self.assertEqual(resp.status_code, 401)
        self.assertEqual(resp.json()["detail"], "Missing bearer token")
        self.assertEqual(self.client.post("/players").status_code, 401)

    def test_invalid_token_rejected(self):
        resp = self.client.get("/players", headers={"Authorization": "Bearer nope"})
        self.assertEqual(resp.status_code, 401)
        self.assertEqual(resp.json()["detail"], "Invalid token")

    def test_non_bearer_scheme_rejected(self):
        resp = self.client.get("/players", headers={"Authorization": f"Basic {self.token}"})
        self.assertEqual(resp.status_code, 401)

    def test_valid_token_exposes_claims(self):
        resp = self.client.get("/players", headers={"Authorization": f"Bearer {self.token}"})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["subject"], "42")

    def test_scheme_is_case_insensitive(self):
        resp = self.client.get("/players", headers={"Authorization": f"bearer {self.token}"})
        self.assertEqual(resp.status_code, 200)

    def test_preflight_passes_through(self):
        resp = self.client.options("/players")
        self.assertNotEqual(resp.status_code, 401)


class TestCustomPublicPrefixes(unittest.TestCase):
    def test_constructor_prefixes(self):
        client = TestClient(_make_app(secret=SECRET, public_prefixes=("/status",)))

        self.assertEqual(client.get("/status/ping").status_code, 200)
        self.assertEqual(client.get("/healthz").status_code, 401)
        # root info stays public regardless of prefixes
        self.assertEqual(client.get("/").status_code, 200)

    def test_env_prefixes(self):
        with patch.dict(os.environ, {"API_PUBLIC_PREFIXES": "/status, /healthz"}):
            client = TestClient(_make_app(secret=SECRET))

            self.assertEqual(client.get("/status/ping").status_code, 200)
            self.assertEqual(client.get("/healthz").status_code, 200)
            self.assertEqual(client.get("/players").status_code, 401)


if __name__ == "__main__":
    unittest.main()
