"""AI generation routes.

Endpoints:
  POST /api/ai/generate-plan        Overall MVP plan
  POST /api/ai/generate-features    Feature ideas
  POST /api/ai/generate-milestones  Development timeline
  POST /api/ai/generate-kpis        KPIs
  POST /api/ai/generate-diagrams    Mermaid diagrams (never fails after validation)
  POST /api/ai/generate-all         All five, then save the consolidated plan
"""

from __future__ import annotations

import logging
from typing import Dict, Optional
from uuid import UUID, uuid4

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from ..agents.mvp_agent import generator as planner
from ..database import get_db
from ..models.mvp_plan import MvpPlan
from ..schemas.generation_schema import GenerationRequest, GenerationResult
from ..services.auth_dependency import AuthContext, get_auth_context
from ..services.generation_pipeline import build_plan_record, run_generation
from ..services.project_store import find_project

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/ai", tags=["AI generation"])

MISSING_FIELDS_MESSAGE = "Missing required fields"


def _missing_fields_response(req: GenerationRequest, artifact: str) -> Optional[JSONResponse]:
    missing = req.missing_fields(artifact)
    if not missing:
        return None
    print(f"⚠️  [AI] {artifact} request missing fields: {missing}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"success": False, "error": MISSING_FIELDS_MESSAGE, "missingFields": missing},
    )


def _result_response(result: GenerationResult) -> JSONResponse:
    code = status.HTTP_200_OK if result.success else status.HTTP_500_INTERNAL_SERVER_ERROR
    return JSONResponse(status_code=code, content=result.body())


async def _run_single(artifact: str, req: GenerationRequest) -> JSONResponse:
    invalid = _missing_fields_response(req, artifact)
    if invalid is not None:
        return invalid
    # Looked up at call time so tests can patch the module attribute
    result = await getattr(planner, f"generate_{artifact}")(req)
    return _result_response(result)


@router.post("/generate-plan", summary="Generate MVP plan")
async def generate_plan(req: GenerationRequest, _: AuthContext = Depends(get_auth_context)) -> JSONResponse:
    return await _run_single("plan", req)


@router.post("/generate-features", summary="Generate feature ideas")
async def generate_features(req: GenerationRequest, _: AuthContext = Depends(get_auth_context)) -> JSONResponse:
    return await _run_single("features", req)


@router.post("/generate-milestones", summary="Generate milestones")
async def generate_milestones(req: GenerationRequest, _: AuthContext = Depends(get_auth_context)) -> JSONResponse:
    return await _run_single("milestones", req)


@router.post("/generate-kpis", summary="Generate KPIs")
async def generate_kpis(req: GenerationRequest, _: AuthContext = Depends(get_auth_context)) -> JSONResponse:
    return await _run_single("kpis", req)


@router.post("/generate-diagrams", summary="Generate diagrams")
async def generate_diagrams(req: GenerationRequest, _: AuthContext = Depends(get_auth_context)) -> JSONResponse:
    return await _run_single("diagrams", req)


@router.post("/generate-all", summary="Generate every artifact and save the plan")
async def generate_all(
    req: GenerationRequest,
    ctx: AuthContext = Depends(get_auth_context),
    db: Session = Depends(get_db),
) -> JSONResponse:
    # plan requires a superset of every other artifact's fields
    invalid = _missing_fields_response(req, "plan")
    if invalid is not None:
        return invalid

    project_id: Optional[UUID] = None
    if req.project_id:
        try:
            project_id = UUID(req.project_id)
        except ValueError:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid projectId")
        if find_project(db, ctx, project_id) is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Project not found")

    def save_plan(request: GenerationRequest, results: Dict[str, GenerationResult]) -> str:
        record = build_plan_record(request, results, project_id=project_id)
        plan = MvpPlan(id=uuid4(), user_id=ctx.user.id, **record.model_dump())
        db.add(plan)
        db.commit()
        return str(plan.id)

    run = await run_generation(req, save_plan=save_plan, generators=planner.GENERATORS)
    code = status.HTTP_200_OK if run.success else status.HTTP_500_INTERNAL_SERVER_ERROR
    return JSONResponse(
        status_code=code,
        content={"success": run.success, "data": run.model_dump(mode="json", by_alias=True, exclude={"success"})},
    )
