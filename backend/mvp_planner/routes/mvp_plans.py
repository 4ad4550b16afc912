"""Saved MVP plan routes.

Endpoints:
  GET    /api/mvp-plans                        Caller's plans (all plans for admin)
  POST   /api/mvp-plans                        Save a consolidated plan
  GET    /api/mvp-plans/{id}                   One plan
  DELETE /api/mvp-plans/{id}                   Delete a plan
  GET    /api/mvp-plans/{id}/export/markdown   Plan document (Markdown)
  GET    /api/mvp-plans/{id}/export/html       Plan document (HTML)
"""

from __future__ import annotations

import logging
from typing import List
from uuid import UUID, uuid4

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.orm import Session

from ..database import get_db
from ..models.mvp_plan import MvpPlan
from ..schemas.auth_schema import MessageResponse
from ..schemas.common import Envelope
from ..schemas.mvp_plan_schema import MvpPlanCreate, MvpPlanRead
from ..services import exporter
from ..services.auth_dependency import AuthContext, get_auth_context

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/mvp-plans", tags=["MVP plans"])


def _get_plan_or_404(db: Session, ctx: AuthContext, plan_id: UUID) -> MvpPlan:
    plan = db.query(MvpPlan).filter(MvpPlan.id == plan_id).first()
    if plan is None or (not ctx.is_admin and plan.user_id != ctx.user.id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="MVP plan not found")
    return plan


@router.get("", response_model=Envelope[List[MvpPlanRead]], summary="List saved plans")
def list_plans(
    ctx: AuthContext = Depends(get_auth_context),
    db: Session = Depends(get_db),
) -> Envelope[List[MvpPlanRead]]:
    query = db.query(MvpPlan)
    if not ctx.is_admin:
        query = query.filter(MvpPlan.user_id == ctx.user.id)
    plans = query.order_by(MvpPlan.created_at.desc()).all()
    return Envelope[List[MvpPlanRead]](data=[MvpPlanRead.model_validate(p) for p in plans])


@router.post(
    "",
    response_model=Envelope[MvpPlanRead],
    status_code=status.HTTP_201_CREATED,
    summary="Save a plan",
)
def create_plan(
    payload: MvpPlanCreate,
    ctx: AuthContext = Depends(get_auth_context),
    db: Session = Depends(get_db),
) -> Envelope[MvpPlanRead]:
    plan = MvpPlan(id=uuid4(), user_id=ctx.user.id, **payload.model_dump())
    db.add(plan)
    db.commit()
    db.refresh(plan)
    print(f"💾 [PLANS] Saved plan={plan.name} id={plan.id} user={ctx.user.username}")
    return Envelope[MvpPlanRead](data=MvpPlanRead.model_validate(plan))


@router.get("/{plan_id}", response_model=Envelope[MvpPlanRead], summary="Get a plan")
def get_plan(
    plan_id: UUID,
    ctx: AuthContext = Depends(get_auth_context),
    db: Session = Depends(get_db),
) -> Envelope[MvpPlanRead]:
    return Envelope[MvpPlanRead](data=MvpPlanRead.model_validate(_get_plan_or_404(db, ctx, plan_id)))


@router.delete("/{plan_id}", response_model=MessageResponse, summary="Delete a plan")
def delete_plan(
    plan_id: UUID,
    ctx: AuthContext = Depends(get_auth_context),
    db: Session = Depends(get_db),
) -> MessageResponse:
    plan = _get_plan_or_404(db, ctx, plan_id)
    db.delete(plan)
    db.commit()
    return MessageResponse(message="MVP plan deleted successfully")


@router.get("/{plan_id}/export/markdown", summary="Download plan as Markdown")
def export_plan_markdown(
    plan_id: UUID,
    ctx: AuthContext = Depends(get_auth_context),
    db: Session = Depends(get_db),
) -> Response:
    plan = _get_plan_or_404(db, ctx, plan_id)
    return Response(
        content=exporter.build_plan_markdown(plan),
        media_type="text/markdown",
        headers={"Content-Disposition": f'attachment; filename="{exporter.filename_stem(plan.name)}-MVP-Plan.md"'},
    )


@router.get("/{plan_id}/export/html", summary="Download plan as HTML")
def export_plan_html(
    plan_id: UUID,
    ctx: AuthContext = Depends(get_auth_context),
    db: Session = Depends(get_db),
) -> Response:
    plan = _get_plan_or_404(db, ctx, plan_id)
    return Response(
        content=exporter.build_plan_html(plan),
        media_type="text/html",
        headers={"Content-Disposition": f'attachment; filename="{exporter.filename_stem(plan.name)}-MVP-Plan.html"'},
    )
