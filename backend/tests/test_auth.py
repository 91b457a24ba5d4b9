"""Tests for registration, login and token handling."""

import sys
import os
from contextlib import ExitStack

import pytest
from fastapi.testclient import TestClient

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from jose import jwt

from luct_reporting.middleware.auth import hash_password, verify_password
from luct_reporting.models.user import User

PASSWORD = "secret123"


class TestPasswords:
    """bcrypt hashing helpers."""

    def test_hash_and_verify(self):
        """A hash verifies its own password and nothing else."""
        hashed = hash_password("s3cret!")
        assert hashed != "s3cret!"
        assert verify_password("s3cret!", hashed)
        assert not verify_password("wrong", hashed)


class TestRegisterLogin:
    """POST /api/auth/register and /api/auth/login."""

    def _register(self, client, **overrides):
        body = {
            "username": "mpho",
            "password": "pass1234",
            "name": "Mpho Lebesa",
            "email": "mpho@luct.ac.ls",
            "role": "student",
        }
        body.update(overrides)
        return client.post("/api/auth/register", json=body)

    def test_register_returns_token(self, client, test_settings):
        """Registration returns a token whose claims name the new user and role."""
        res = self._register(client)
        assert res.status_code == 201
        body = res.json()
        assert body["success"] is True
        assert body["user"]["role"] == "student"
        payload = jwt.decode(body["token"], test_settings.SECRET_KEY, algorithms=[test_settings.ALGORITHM])
        assert payload["sub"] == body["user"]["id"]
        assert payload["role"] == "student"

    def test_register_duplicate_username(self, client):
        """A taken username is a 409."""
        self._register(client)
        res = self._register(client, email="other@luct.ac.ls")
        assert res.status_code == 409

    def test_register_unknown_role(self, client):
        """Roles outside the four known ones are rejected."""
        res = self._register(client, role="dean")
        assert res.status_code == 400

    def test_register_empty_fields(self, client, db):
        """Empty username, password, name and email are rejected and no user is stored."""
        res = self._register(client, username="", password="", name="", email="")
        assert res.status_code == 400
        body = res.json()
        assert body["success"] is False
        assert body["error"] == "Invalid request"
        assert db.query(User).count() == 0

    @pytest.mark.parametrize("field", ["username", "name", "email"])
    def test_register_whitespace_only(self, client, db, field):
        """A whitespace-only identity field counts as empty."""
        res = self._register(client, **{field: "   "})
        assert res.status_code == 400
        assert db.query(User).count() == 0

    def test_register_strips_surrounding_whitespace(self, client):
        """Usernames are stored trimmed, so the trimmed form logs in."""
        assert self._register(client, username="  mpho  ").status_code == 201
        res = client.post("/api/auth/login", json={"username": "mpho", "password": "pass1234"})
        assert res.status_code == 200

    def test_login(self, client, lecturer):
        """Correct credentials return the user."""
        res = client.post("/api/auth/login", json={"username": "thabo", "password": PASSWORD})
        assert res.status_code == 200
        assert res.json()["user"]["name"] == "Thabo Mokoena"

    def test_login_wrong_password(self, client, lecturer):
        """A wrong password is a generic 401."""
        res = client.post("/api/auth/login", json={"username": "thabo", "password": "nope"})
        assert res.status_code == 401
        assert res.json() == {"success": False, "error": "Invalid credentials"}

    def test_login_unknown_user(self, client):
        """An unknown username gets the same 401 as a wrong password."""
        res = client.post("/api/auth/login", json={"username": "ghost", "password": "nope"})
        assert res.status_code == 401

    def test_login_empty_credentials(self, client):
        """Empty login fields are a 400 before any lookup."""
        res = client.post("/api/auth/login", json={"username": "", "password": ""})
        assert res.status_code == 400


class TestTokens:
    """Bearer token validation."""

    def test_me(self, client, auth_headers, principal):
        """/me returns the caller behind the token."""
        res = client.get("/api/auth/me", headers=auth_headers(principal))
        assert res.status_code == 200
        assert res.json()["data"]["role"] == "principal_lecturer"

    def test_expired_token(self, client, test_settings, principal):
        """An expired token is a 401."""
        token = jwt.encode(
            {"sub": principal.id, "exp": 0},
            test_settings.SECRET_KEY,
            algorithm=test_settings.ALGORITHM,
        )
        res = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert res.status_code == 401

    def test_token_for_deleted_user(self, client, db, auth_headers, student):
        """A valid token for a deleted user no longer authenticates."""
        headers = auth_headers(student)
        db.delete(student)
        db.commit()
        res = client.get("/api/auth/me", headers=headers)
        assert res.status_code == 401
        assert res.json()["error"] == "User no longer exists"

    def test_token_signed_with_other_key(self, client, test_settings, principal):
        """Tokens signed with a foreign key are rejected."""
        token = jwt.encode({"sub": principal.id}, "other-key", algorithm=test_settings.ALGORITHM)
        res = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert res.status_code == 401


class TestUsers:
    """GET /api/users and /api/users/profile."""

    def test_profile(self, client, auth_headers, student):
        """The profile endpoint returns the caller."""
        res = client.get("/api/users/profile", headers=auth_headers(student))
        assert res.json()["data"]["username"] == "karabo"

    def test_program_leader_lists_users(self, client, auth_headers, leader, student, lecturer):
        """Program leaders see every user, ordered by name."""
        body = client.get("/api/users", headers=auth_headers(leader)).json()
        assert body["count"] == 3
        assert [u["name"] for u in body["data"]] == sorted(u["name"] for u in body["data"])

    def test_others_cannot_list_users(self, client, auth_headers, principal):
        """Other roles are refused the user list."""
        assert client.get("/api/users", headers=auth_headers(principal)).status_code == 403


class TestLoginRateLimit:
    """slowapi limit on POST /api/auth/login."""

    @pytest.fixture
    def limited_app(self, test_settings):
        from luct_reporting.main import create_app
        from luct_reporting.middleware.rate_limit import configure_limiter, limiter

        with ExitStack() as stack:
            def _make(**overrides):
                app = create_app(test_settings.model_copy(update={"RATE_LIMIT_ENABLED": True, **overrides}))
                return stack.enter_context(TestClient(app))

            yield _make
        limiter.reset()
        configure_limiter(test_settings)

    def test_eleventh_attempt_is_throttled(self, limited_app):
        """The default limit allows ten attempts a minute."""
        client = limited_app()
        body = {"username": "ghost", "password": "nope"}
        for _ in range(10):
            assert client.post("/api/auth/login", json=body).status_code == 401
        assert client.post("/api/auth/login", json=body).status_code == 429

    def test_limit_comes_from_app_settings(self, limited_app):
        """An app built with its own LOGIN_RATE_LIMIT is throttled at that limit."""
        client = limited_app(LOGIN_RATE_LIMIT="2/minute")
        body = {"username": "ghost", "password": "nope"}
        for _ in range(2):
            assert client.post("/api/auth/login", json=body).status_code == 401
        assert client.post("/api/auth/login", json=body).status_code == 429

    def test_disabled_limiter_never_throttles(self, limited_app):
        """With RATE_LIMIT_ENABLED off the login route is not limited."""
        client = limited_app(RATE_LIMIT_ENABLED=False, LOGIN_RATE_LIMIT="1/minute")
        body = {"username": "ghost", "password": "nope"}
        for _ in range(3):
            assert client.post("/api/auth/login", json=body).status_code == 401
