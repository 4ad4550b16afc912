"""Authentication tests: register, login, logout revocation, JWT, admin-only routes."""

import os
import sys
from uuid import uuid4

# Ensure the backend package is importable
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from mvp_planner.constants import ADMIN_USERNAME
from mvp_planner.database import Base, get_db
from mvp_planner.main import app
from mvp_planner.models.user import User
from mvp_planner.schemas.auth_schema import validate_password, validate_username
from mvp_planner.services.auth_utils import (
    create_access_token,
    decode_access_token,
    hash_password,
    verify_password,
)

# ---------------------------------------------------------------------------
# Test database setup (file-based SQLite for compatibility)
# ---------------------------------------------------------------------------
TEST_DATABASE_URL = "sqlite:///./test_auth.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Counter to generate unique usernames per test helper call
_user_counter = 0


def _next_username(prefix="testuser"):
    global _user_counter
    _user_counter += 1
    return f"{prefix}_{_user_counter}"


PASSWORD = "secret123"


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


client = TestClient(app)


@pytest.fixture(autouse=True)
def setup_db():
    """Create tables before each test, drop after."""
    app.dependency_overrides[get_db] = override_get_db
    Base.metadata.create_all(bind=engine)
    client.cookies.clear()
    yield
    Base.metadata.drop_all(bind=engine)
    app.dependency_overrides.pop(get_db, None)


def _register(username=None, password=PASSWORD):
    username = username or _next_username()
    return username, client.post("/api/register", json={"username": username, "password": password})


def _seed_admin():
    db = TestingSessionLocal()
    try:
        db.add(User(id=uuid4(), username=ADMIN_USERNAME, hashed_password=hash_password("admin")))
        db.commit()
    finally:
        db.close()


# ===================================================================== #
#  Unit tests: auth_utils                                                 #
# ===================================================================== #

class TestPasswordHashing:
    def test_hash_and_verify(self):
        hashed = hash_password(PASSWORD)
        assert hashed != PASSWORD
        assert verify_password(PASSWORD, hashed) is True

    def test_wrong_password(self):
        hashed = hash_password("Correct1!")
        assert verify_password("wrong", hashed) is False


class TestJWT:
    def test_create_and_decode(self):
        token = create_access_token("user-123", "testuser")
        payload = decode_access_token(token)
        assert payload is not None
        assert payload["sub"] == "user-123"
        assert payload["username"] == "testuser"
        assert payload["jti"]

    def test_each_token_has_unique_jti(self):
        a = decode_access_token(create_access_token("u", "n"))
        b = decode_access_token(create_access_token("u", "n"))
        assert a["jti"] != b["jti"]

    def test_invalid_token(self):
        assert decode_access_token("garbage.token.here") is None


class TestCredentialPolicy:
    def test_valid_username(self):
        assert validate_username("jane.doe-42") == "jane.doe-42"

    @pytest.mark.parametrize("name", ["ab", "has space", "x" * 33, "semi;colon"])
    def test_invalid_username(self, name):
        with pytest.raises(ValueError):
            validate_username(name)

    def test_short_password(self):
        with pytest.raises(ValueError, match="at least 6"):
            validate_password("12345")


# ===================================================================== #
#  Integration tests: routes                                              #
# ===================================================================== #

class TestRegister:
    def test_register_returns_token_and_cookie(self):
        username, resp = _register()
        assert resp.status_code == 201
        body = resp.json()
        assert body["success"] is True
        assert body["data"]["username"] == username
        assert body["data"]["isAdmin"] is False
        assert body["accessToken"]
        assert "access_token" in resp.cookies

    def test_duplicate_username(self):
        username, _ = _register()
        _, resp = _register(username)
        assert resp.status_code == 409
        assert resp.json()["success"] is False

    def test_invalid_body_is_400_with_field_errors(self):
        resp = client.post("/api/register", json={"username": "ok_name", "password": "123"})
        assert resp.status_code == 400
        body = resp.json()
        assert body["message"] == "Invalid request data"
        assert body["errors"][0]["field"] == "password"


class TestLogin:
    def test_login_success(self):
        username, _ = _register()
        resp = client.post("/api/login", json={"username": username, "password": PASSWORD})
        assert resp.status_code == 200
        assert resp.json()["data"]["username"] == username

    def test_wrong_password(self):
        username, _ = _register()
        resp = client.post("/api/login", json={"username": username, "password": "nope-nope"})
        assert resp.status_code == 401

    def test_unknown_user(self):
        resp = client.post("/api/login", json={"username": "ghost", "password": PASSWORD})
        assert resp.status_code == 401


class TestSession:
    def test_current_user_with_bearer(self):
        username, resp = _register()
        client.cookies.clear()
        token = resp.json()["accessToken"]
        me = client.get("/api/user", headers={"Authorization": f"Bearer {token}"})
        assert me.status_code == 200
        assert me.json()["data"]["username"] == username

    def test_current_user_with_cookie(self):
        username, _ = _register()
        me = client.get("/api/user")
        assert me.status_code == 200
        assert me.json()["data"]["username"] == username

    def test_no_token(self):
        assert client.get("/api/user").status_code == 401

    def test_logout_revokes_token(self):
        _, resp = _register()
        client.cookies.clear()
        headers = {"Authorization": f"Bearer {resp.json()['accessToken']}"}

        out = client.post("/api/logout", headers=headers)
        assert out.status_code == 200
        assert out.json()["success"] is True

        again = client.get("/api/user", headers=headers)
        assert again.status_code == 401
        assert again.json()["error"] == "Token has been revoked"


class TestAdmin:
    def test_users_list_forbidden_for_regular_user(self):
        _register()
        resp = client.get("/api/users")
        assert resp.status_code == 403
        assert resp.json()["error"] == "Access denied. Admin privileges required."

    def test_users_list_for_admin(self):
        _seed_admin()
        _register("alice")
        client.cookies.clear()
        login = client.post("/api/login", json={"username": ADMIN_USERNAME, "password": "admin"})
        assert login.json()["data"]["isAdmin"] is True
        resp = client.get("/api/users")
        assert resp.status_code == 200
        names = {u["username"] for u in resp.json()["data"]}
        assert names == {ADMIN_USERNAME, "alice"}


class TestGeneral:
    def test_health(self):
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json()["status"] == "healthy"

    def test_root(self):
        assert client.get("/").json()["name"] == "MVP Planner"
