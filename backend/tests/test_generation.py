"""Generation tests: per-artifact generators, the orchestrator, and the AI routes."""

import asyncio
import json
import os
import sys
import threading
from unittest.mock import AsyncMock, patch

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from mvp_planner.agents.mvp_agent import generator as planner
from mvp_planner.agents.mvp_agent.graph import with_feature_ideas
from mvp_planner.database import Base, get_db
from mvp_planner.main import app
from mvp_planner.models.mvp_plan import MvpPlan
from mvp_planner.schemas.generation_schema import GenerationRequest, GenerationResult
from mvp_planner.services.generation_pipeline import (
    GenerationProgress,
    GenerationStatus,
    build_plan_record,
    run_generation,
)
from mvp_planner.services.llm_client import LLMError

# ---------------------------------------------------------------------------
# Test database setup (file-based SQLite for compatibility)
# ---------------------------------------------------------------------------
TEST_DATABASE_URL = "sqlite:///./test_generation.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

LLM = "mvp_planner.agents.mvp_agent.generator.call_llm_async"


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


def _auth_headers(username="planner"):
    resp = client.post("/api/register", json={"username": username, "password": "secret123"})
    assert resp.status_code == 201
    return {"Authorization": f"Bearer {resp.json()['accessToken']}"}


FULL_BODY = {
    "projectName": "TaskFlow",
    "industry": "Productivity",
    "targetAudience": "Freelancers",
    "problemStatement": "Tracking billable work across clients is painful",
    "keyBenefits": ["Less admin", "Faster invoicing"],
}

PLAN_DATA = {
    "executiveSummary": "A lightweight time tracker.",
    "problemStatement": "Freelancers lose billable hours.",
    "targetAudience": "Independent contractors",
    "valueProposition": "Track once, invoice instantly.",
    "mvpScope": "Timer and invoices only.",
    "keyFeatures": ["Timer", "Invoices"],
    "successCriteria": "100 weekly active users",
    "potentialChallenges": ["Crowded market", "Pricing"],
    "nextSteps": "Launch beta",
}
FEATURES_DATA = {
    "featureIdeas": [
        {"name": "One-click timer", "description": "Start tracking fast", "value": "Saves time",
         "priority": "High", "difficulty": "Easy", "reasoning": "Core loop"},
    ]
}
MILESTONES_DATA = {"milestones": [{"title": "Prototype", "description": "Clickable", "duration": 2, "order": 1}]}
KPIS_DATA = {"kpis": [{"name": "WAU", "description": "Weekly actives", "target": "100", "timeframe": "3 months"}]}
DIAGRAMS_DATA = {
    "userFlowDiagram": "flowchart LR\nA-->B",
    "dataFlowDiagram": "flowchart LR\nC-->D",
    "systemArchitectureDiagram": "flowchart LR\nE-->F",
    "explanation": "ok",
}


def _reply_for(system, **_):
    """Fake model: answer according to the system prompt's schema."""
    if "featureIdeas" in system:
        data = FEATURES_DATA
    elif "'milestones'" in system:
        data = MILESTONES_DATA
    elif "'kpis'" in system:
        data = KPIS_DATA
    elif "userFlowDiagram" in system:
        data = DIAGRAMS_DATA
    else:
        data = PLAN_DATA
    return "Here is the result:\n```json\n" + json.dumps(data) + "\n```"


def _fake_llm():
    return AsyncMock(side_effect=lambda *, system, prompt, max_completion_tokens=0, **kw: _reply_for(system))


# ===================================================================== #
#  Request validation                                                     #
# ===================================================================== #

class TestMissingFields:
    def test_plan_requires_all_fields(self):
        req = GenerationRequest(project_name="X", industry="  ")
        assert req.missing_fields("plan") == ["industry", "targetAudience", "problemStatement", "keyBenefits"]

    def test_milestones_need_fewer_fields(self):
        req = GenerationRequest(project_name="X", industry="SaaS", problem_statement="P")
        assert req.missing_fields("milestones") == []
        assert req.missing_fields("diagrams") == []
        assert req.missing_fields("kpis") == ["targetAudience"]

    def test_camel_case_input(self):
        req = GenerationRequest.model_validate(FULL_BODY)
        assert req.project_name == "TaskFlow"
        assert req.missing_fields("plan") == []


# ===================================================================== #
#  Generators                                                             #
# ===================================================================== #

class TestGenerators:
    def test_plan_success(self):
        with patch(LLM, new=_fake_llm()):
            result = asyncio.run(planner.generate_plan(GenerationRequest.model_validate(FULL_BODY)))
        assert result.success is True
        assert result.data["executiveSummary"] == "A lightweight time tracker."

    def test_prompt_carries_project_context(self):
        mock = _fake_llm()
        body = dict(FULL_BODY, competitors=[{"name": "Toggl", "features": ["Timer"]}])
        with patch(LLM, new=mock):
            asyncio.run(planner.generate_plan(GenerationRequest.model_validate(body)))
        prompt = mock.call_args.kwargs["prompt"]
        assert "TaskFlow" in prompt
        assert "Less admin, Faster invoicing" in prompt
        assert "Toggl: Timer" in prompt

    def test_diagram_token_budget(self):
        mock = _fake_llm()
        with patch(LLM, new=mock):
            asyncio.run(planner.generate_diagrams(GenerationRequest.model_validate(FULL_BODY)))
        assert mock.call_args.kwargs["max_completion_tokens"] == 3000

    @pytest.mark.parametrize("artifact", ["plan", "features", "milestones", "kpis"])
    def test_upstream_error_becomes_failed_result(self, artifact):
        mock = AsyncMock(side_effect=LLMError("Model API returned HTTP 500"))
        with patch(LLM, new=mock):
            result = asyncio.run(planner.GENERATORS[artifact](GenerationRequest.model_validate(FULL_BODY)))
        assert result.success is False
        assert result.error == planner.FAILURE_MESSAGES[artifact]
        assert result.data is None

    def test_unparseable_reply_becomes_failed_result(self):
        with patch(LLM, new=AsyncMock(return_value="Sorry, I can't help with that.")):
            result = asyncio.run(planner.generate_kpis(GenerationRequest.model_validate(FULL_BODY)))
        assert result.success is False
        assert result.body() == {"success": False, "error": "Failed to generate KPIs"}

    @pytest.mark.parametrize("reply", ["[1, 2]", '"just a string"', "42"])
    def test_non_object_reply_becomes_failed_result(self, reply):
        with patch(LLM, new=AsyncMock(return_value=reply)):
            result = asyncio.run(planner.generate_plan(GenerationRequest.model_validate(FULL_BODY)))
        assert result.success is False
        assert result.error == "Failed to generate MVP plan"


# ===================================================================== #
#  Orchestrator                                                           #
# ===================================================================== #

def _fake_generators(fail=(), calls=None):
    calls = calls if calls is not None else []
    data = {
        "plan": PLAN_DATA,
        "features": FEATURES_DATA,
        "milestones": MILESTONES_DATA,
        "kpis": KPIS_DATA,
        "diagrams": DIAGRAMS_DATA,
    }

    def make(artifact):
        async def gen(req):
            calls.append((artifact, req))
            await asyncio.sleep(0)
            if artifact in fail:
                return GenerationResult.fail(f"{artifact} broke")
            return GenerationResult.ok(data[artifact])
        return gen

    return {a: make(a) for a in data}, calls


class TestProgress:
    def test_weighted_percentage(self):
        progress = GenerationProgress()
        assert progress.percent == 0
        progress.start("plan")
        assert progress.percent == 10
        progress.finish("plan", True)
        progress.start("features")
        progress.start("kpis")
        assert progress.percent == 40
        progress.finish("features", False)
        assert progress.steps["features"] == GenerationStatus.ERROR
        assert progress.percent == 30
        assert progress.all_complete is False


class TestRunGeneration:
    def test_all_complete_saves_once(self):
        generators, calls = _fake_generators()
        saved = []

        def save_plan(req, results):
            saved.append(results)
            return "plan-1"

        run = asyncio.run(run_generation(GenerationRequest.model_validate(FULL_BODY), save_plan, generators))
        assert run.success is True
        assert run.progress == 100
        assert run.plan_id == "plan-1"
        assert len(saved) == 1
        assert set(run.steps.values()) == {"complete"}
        order = [name for name, _ in calls]
        assert order[0] == "plan"
        assert order[-1] == "diagrams"

    def test_save_runs_off_the_event_loop_thread(self):
        generators, _ = _fake_generators()
        threads = []

        def save_plan(req, results):
            threads.append(threading.get_ident())
            return "plan-1"

        run = asyncio.run(run_generation(GenerationRequest.model_validate(FULL_BODY), save_plan, generators))
        assert run.plan_id == "plan-1"
        assert threads and threads[0] != threading.get_ident()

    def test_plan_failure_stops_everything(self):
        generators, calls = _fake_generators(fail={"plan"})
        save_plan = AsyncMock()
        run = asyncio.run(run_generation(GenerationRequest.model_validate(FULL_BODY), save_plan, generators))
        assert run.success is False
        assert [name for name, _ in calls] == ["plan"]
        assert run.steps["plan"] == "error"
        assert run.steps["features"] == "idle"
        assert run.progress == 0
        save_plan.assert_not_called()

    def test_kpi_failure_skips_diagrams(self):
        generators, calls = _fake_generators(fail={"kpis"})
        saved = []
        run = asyncio.run(
            run_generation(GenerationRequest.model_validate(FULL_BODY), lambda r, res: saved.append(1), generators)
        )
        names = [name for name, _ in calls]
        assert "diagrams" not in names
        assert {"features", "milestones", "kpis"} <= set(names)
        assert run.steps["diagrams"] == "idle"
        assert run.progress == 60
        assert saved == []

    def test_feature_failure_still_runs_diagrams_but_does_not_save(self):
        generators, calls = _fake_generators(fail={"features"})
        saved = []
        run = asyncio.run(
            run_generation(GenerationRequest.model_validate(FULL_BODY), lambda r, res: saved.append(1), generators)
        )
        assert run.steps["diagrams"] == "complete"
        assert run.steps["features"] == "error"
        assert run.progress == 80
        assert saved == []
        diagram_req = dict(calls)["diagrams"]
        assert diagram_req.features is None

    def test_diagrams_receive_generated_feature_ideas(self):
        generators, calls = _fake_generators()
        asyncio.run(run_generation(GenerationRequest.model_validate(FULL_BODY), lambda r, res: "id", generators))
        diagram_req = dict(calls)["diagrams"]
        assert [f.name for f in diagram_req.features] == ["One-click timer"]
        assert diagram_req.features[0].priority == "High"

    def test_with_feature_ideas_ignores_failed_result(self):
        req = GenerationRequest.model_validate(FULL_BODY)
        assert with_feature_ideas(req, GenerationResult.fail("x")) is req
        assert with_feature_ideas(req, None) is req


class TestBuildPlanRecord:
    def test_consolidates_results(self):
        results = {
            "plan": GenerationResult.ok(PLAN_DATA),
            "features": GenerationResult.ok(FEATURES_DATA),
            "milestones": GenerationResult.ok(MILESTONES_DATA),
            "kpis": GenerationResult.ok(KPIS_DATA),
            "diagrams": GenerationResult.ok(DIAGRAMS_DATA),
        }
        record = build_plan_record(GenerationRequest.model_validate(FULL_BODY), results)
        assert record.name == "TaskFlow"
        assert record.audience == "Freelancers"
        assert record.problem_statement == "Freelancers lose billable hours."
        assert record.key_features == ["Timer", "Invoices"]
        # list-valued prose is flattened to text
        assert record.potential_challenges == "Crowded market\nPricing"
        assert record.features_data == FEATURES_DATA
        assert record.diagrams_data == DIAGRAMS_DATA


# ===================================================================== #
#  Routes                                                                 #
# ===================================================================== #

class TestAiRoutes:
    def test_requires_auth(self):
        resp = client.post("/api/ai/generate-plan", json=FULL_BODY)
        assert resp.status_code == 401

    def test_missing_fields_400_without_model_call(self):
        headers = _auth_headers()
        mock = _fake_llm()
        with patch(LLM, new=mock):
            resp = client.post("/api/ai/generate-plan", json={"projectName": "X"}, headers=headers)
        assert resp.status_code == 400
        body = resp.json()
        assert body["success"] is False
        assert body["error"] == "Missing required fields"
        assert "industry" in body["missingFields"]
        mock.assert_not_called()

    def test_generate_features_success(self):
        headers = _auth_headers()
        with patch(LLM, new=_fake_llm()):
            resp = client.post("/api/ai/generate-features", json=FULL_BODY, headers=headers)
        assert resp.status_code == 200
        body = resp.json()
        assert body["success"] is True
        assert body["data"]["featureIdeas"][0]["name"] == "One-click timer"

    def test_generation_failure_is_500_with_generic_message(self):
        headers = _auth_headers()
        with patch(LLM, new=AsyncMock(side_effect=LLMError("secret upstream detail"))):
            resp = client.post("/api/ai/generate-milestones", json=FULL_BODY, headers=headers)
        assert resp.status_code == 500
        assert resp.json() == {"success": False, "error": "Failed to generate milestones"}

    def test_diagrams_never_500(self):
        headers = _auth_headers()
        with patch(LLM, new=AsyncMock(side_effect=LLMError("down"))):
            resp = client.post("/api/ai/generate-diagrams", json=FULL_BODY, headers=headers)
        assert resp.status_code == 200
        assert resp.json()["success"] is True
        assert "A[Start]" in resp.json()["data"]["userFlowDiagram"]

    def test_generate_all_saves_plan(self):
        headers = _auth_headers()
        with patch(LLM, new=_fake_llm()):
            resp = client.post("/api/ai/generate-all", json=FULL_BODY, headers=headers)
        assert resp.status_code == 200
        body = resp.json()
        assert body["success"] is True
        assert body["data"]["progress"] == 100
        plan_id = body["data"]["planId"]
        assert plan_id

        db = TestingSessionLocal()
        try:
            plans = db.query(MvpPlan).all()
            assert len(plans) == 1
            assert str(plans[0].id) == plan_id
            assert plans[0].executive_summary == "A lightweight time tracker."
            assert plans[0].kpis_data == KPIS_DATA
        finally:
            db.close()

        listed = client.get("/api/mvp-plans", headers=headers).json()
        assert [p["id"] for p in listed["data"]] == [plan_id]

    def test_generate_all_partial_failure_saves_nothing(self):
        headers = _auth_headers()

        async def flaky(*, system, prompt, max_completion_tokens=0, **kw):
            if "'milestones'" in system:
                raise LLMError("timeout")
            return _reply_for(system)

        with patch(LLM, new=AsyncMock(side_effect=flaky)):
            resp = client.post("/api/ai/generate-all", json=FULL_BODY, headers=headers)
        assert resp.status_code == 500
        body = resp.json()
        assert body["success"] is False
        assert body["data"]["steps"]["milestones"] == "error"
        assert body["data"]["planId"] is None
        assert body["data"]["progress"] == 80

    def test_generate_all_with_non_object_plan_reply(self):
        headers = _auth_headers()

        async def list_plan(*, system, prompt, max_completion_tokens=0, **kw):
            if "'executiveSummary'" in system:
                return "[1, 2]"
            return _reply_for(system)

        with patch(LLM, new=AsyncMock(side_effect=list_plan)):
            resp = client.post("/api/ai/generate-all", json=FULL_BODY, headers=headers)
        assert resp.status_code == 500
        body = resp.json()
        assert body["success"] is False
        assert body["data"]["steps"]["plan"] == "error"
        assert body["data"]["results"]["plan"] == {"success": False, "error": "Failed to generate MVP plan"}
        assert body["data"]["planId"] is None

        db = TestingSessionLocal()
        try:
            assert db.query(MvpPlan).count() == 0
        finally:
            db.close()

    def test_generate_all_unknown_project(self):
        headers = _auth_headers()
        body = dict(FULL_BODY, projectId="00000000-0000-0000-0000-000000000000")
        with patch(LLM, new=_fake_llm()):
            resp = client.post("/api/ai/generate-all", json=body, headers=headers)
        assert resp.status_code == 404
