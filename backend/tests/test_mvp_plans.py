"""Saved plan routes: ownership, admin visibility, and document exports."""

import os
import sys
from uuid import uuid4

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from mvp_planner.constants import ADMIN_USERNAME
from mvp_planner.database import Base, get_db
from mvp_planner.main import app
from mvp_planner.models.user import User
from mvp_planner.services.auth_utils import hash_password

# ---------------------------------------------------------------------------
# Test database setup (file-based SQLite for compatibility)
# ---------------------------------------------------------------------------
TEST_DATABASE_URL = "sqlite:///./test_mvp_plans.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


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


def _auth_headers(username):
    resp = client.post("/api/register", json={"username": username, "password": "secret123"})
    assert resp.status_code == 201
    client.cookies.clear()
    return {"Authorization": f"Bearer {resp.json()['accessToken']}"}


def _admin_headers():
    db = TestingSessionLocal()
    try:
        db.add(User(id=uuid4(), username=ADMIN_USERNAME, hashed_password=hash_password("admin")))
        db.commit()
    finally:
        db.close()
    resp = client.post("/api/login", json={"username": ADMIN_USERNAME, "password": "admin"})
    client.cookies.clear()
    return {"Authorization": f"Bearer {resp.json()['accessToken']}"}


PLAN = {
    "name": "Task Flow",
    "industry": "Productivity",
    "audience": "Freelancers",
    "problemStatement": "Tracking billable work is painful",
    "executiveSummary": "A lightweight time tracker.",
    "mvpScope": "Timer and invoices only.",
    "keyFeatures": ["Timer", "Invoices"],
    "featuresData": {
        "featureIdeas": [
            {"name": "Timer", "description": "One-click tracking", "priority": "High", "difficulty": "Easy"}
        ]
    },
    "milestonesData": {
        "milestones": [
            {"title": "Launch", "duration": 2, "order": 1},
            {"title": "Build", "duration": 4, "order": 0, "deliverables": ["Timer UI"]},
        ]
    },
    "kpisData": {"kpis": [{"name": "WAU", "target": "500", "timeframe": "3 months"}]},
    "diagramsData": {
        "userFlowDiagram": "flowchart LR\n  A --> B",
        "explanation": "One diagram & some notes.",
    },
}


def _create(headers, **overrides):
    resp = client.post("/api/mvp-plans", json=dict(PLAN, **overrides), headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]


class TestPlanCrud:
    def test_create_returns_envelope(self):
        headers = _auth_headers("alice")
        resp = client.post("/api/mvp-plans", json=PLAN, headers=headers)
        assert resp.status_code == 201
        body = resp.json()
        assert body["success"] is True
        assert body["data"]["name"] == "Task Flow"
        assert body["data"]["keyFeatures"] == ["Timer", "Invoices"]
        assert body["data"]["userId"]

    def test_user_id_in_body_is_ignored(self):
        headers = _auth_headers("alice")
        other = str(uuid4())
        plan = _create(headers, userId=other)
        assert plan["userId"] != other

    def test_missing_required_fields(self):
        headers = _auth_headers("alice")
        resp = client.post("/api/mvp-plans", json={"name": "x"}, headers=headers)
        assert resp.status_code == 400
        fields = {e["field"] for e in resp.json()["errors"]}
        assert {"industry", "audience"} <= fields

    def test_list_only_own(self):
        alice = _auth_headers("alice")
        bob = _auth_headers("bob")
        _create(alice)
        _create(bob, name="Bob's Plan")
        names = [p["name"] for p in client.get("/api/mvp-plans", headers=alice).json()["data"]]
        assert names == ["Task Flow"]

    def test_admin_sees_all(self):
        _create(_auth_headers("alice"))
        _create(_auth_headers("bob"), name="Bob's Plan")
        admin = _admin_headers()
        names = {p["name"] for p in client.get("/api/mvp-plans", headers=admin).json()["data"]}
        assert names == {"Task Flow", "Bob's Plan"}

    def test_get_and_delete(self):
        headers = _auth_headers("alice")
        plan = _create(headers)
        got = client.get(f"/api/mvp-plans/{plan['id']}", headers=headers)
        assert got.status_code == 200
        assert got.json()["data"]["id"] == plan["id"]

        deleted = client.delete(f"/api/mvp-plans/{plan['id']}", headers=headers)
        assert deleted.status_code == 200
        assert deleted.json()["message"] == "MVP plan deleted successfully"
        assert client.get(f"/api/mvp-plans/{plan['id']}", headers=headers).status_code == 404

    def test_other_users_plan_is_not_found(self):
        plan = _create(_auth_headers("alice"))
        bob = _auth_headers("bob")
        resp = client.get(f"/api/mvp-plans/{plan['id']}", headers=bob)
        assert resp.status_code == 404
        assert resp.json() == {"success": False, "error": "MVP plan not found"}
        assert client.delete(f"/api/mvp-plans/{plan['id']}", headers=bob).status_code == 404

    def test_requires_auth(self):
        assert client.get("/api/mvp-plans").status_code == 401


class TestPlanExports:
    def test_markdown(self):
        headers = _auth_headers("alice")
        plan = _create(headers)
        resp = client.get(f"/api/mvp-plans/{plan['id']}/export/markdown", headers=headers)
        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("text/markdown")
        assert 'filename="Task-Flow-MVP-Plan.md"' in resp.headers["content-disposition"]

        text = resp.text
        assert text.startswith("# MVP Plan: Task Flow")
        assert "## Executive Summary" in text
        assert "- Invoices" in text
        # milestones follow their order field, not list position
        assert text.index("1. Build (4 weeks)") < text.index("2. Launch (2 weeks)")
        assert "- Timer UI" in text
        assert "```mermaid\nflowchart LR\n  A --> B\n```" in text
        assert "Data Flow Diagram" not in text

    def test_html_escapes_content(self):
        headers = _auth_headers("alice")
        plan = _create(headers)
        resp = client.get(f"/api/mvp-plans/{plan['id']}/export/html", headers=headers)
        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("text/html")
        assert 'filename="Task-Flow-MVP-Plan.html"' in resp.headers["content-disposition"]
        assert "<h1>MVP Plan: Task Flow</h1>" in resp.text
        assert "One diagram &amp; some notes." in resp.text
        assert '<pre class="mermaid">' in resp.text

    def test_export_of_foreign_plan(self):
        plan = _create(_auth_headers("alice"))
        bob = _auth_headers("bob")
        assert client.get(f"/api/mvp-plans/{plan['id']}/export/markdown", headers=bob).status_code == 404
