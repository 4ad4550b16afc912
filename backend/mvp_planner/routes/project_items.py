"""Routes for the rows that hang off a project.

Every child type gets the same four endpoints:
  GET    /api/projects/{project_id}/{path}   List for a project
  POST   /api/{path}                         Create (body carries projectId)
  PATCH  /api/{path}/{item_id}               Partial update
  DELETE /api/{path}/{item_id}               Delete

plus a few type-specific actions (grid toggle, milestone move, node delete).
"""

import logging
from typing import Any, Callable, Dict, List, Optional, Type
from uuid import UUID, uuid4

from fastapi import APIRouter, Depends, HTTPException, Response, status
from pydantic import BaseModel
from sqlalchemy.orm import Session

from ..database import get_db
from ..models.project import (
    CompetitiveFeature,
    Competitor,
    Feature,
    FlowDiagram,
    Kpi,
    Milestone,
    Project,
    ValidationMethod,
)
from ..schemas.project_schema import (
    CompetitiveFeatureCreate,
    CompetitiveFeatureRead,
    CompetitiveFeatureUpdate,
    CompetitorCreate,
    CompetitorRead,
    CompetitorUpdate,
    FeatureCreate,
    FeatureRead,
    FeatureUpdate,
    FlowDiagramCreate,
    FlowDiagramRead,
    FlowDiagramUpdate,
    KpiCreate,
    KpiRead,
    KpiUpdate,
    MilestoneCreate,
    MilestoneRead,
    MilestoneUpdate,
    MoveRequest,
    ToggleRequest,
    ValidationMethodCreate,
    ValidationMethodRead,
    ValidationMethodUpdate,
)
from ..services.auth_dependency import AuthContext, get_auth_context
from ..services.comparison import remove_competitor_key, toggle_cell, unknown_competitor_keys
from ..services.flow_graph import remove_node
from ..services.project_store import find_child, find_project, touch
from ..services.timeline import move_milestone, remove_milestone

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Project items"])

Prepare = Callable[[Session, Project, Dict[str, Any]], None]
OnDelete = Callable[[Session, Project, Any], None]


def _project_or_404(db: Session, ctx: AuthContext, project_id: UUID) -> Project:
    project = find_project(db, ctx, project_id)
    if project is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Project not found")
    return project


def _child_or_404(db: Session, ctx: AuthContext, model: Type[Any], item_id: UUID, label: str) -> Any:
    row = find_child(db, ctx, model, item_id)
    if row is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"{label} not found")
    return row


def register_child_routes(
    *,
    path: str,
    label: str,
    model: Type[Any],
    create_schema: Type[BaseModel],
    update_schema: Type[BaseModel],
    read_schema: Type[BaseModel],
    relation: str,
    prepare: Optional[Prepare] = None,
    prepare_update: Optional[Prepare] = None,
    on_delete: Optional[OnDelete] = None,
) -> None:
    """Attach list/create/update/delete routes for one child model."""
    slug = path.replace("-", "_")

    def list_items(
        project_id: UUID,
        ctx: AuthContext = Depends(get_auth_context),
        db: Session = Depends(get_db),
    ):
        project = _project_or_404(db, ctx, project_id)
        return list(getattr(project, relation))

    def create_item(
        payload: create_schema,
        ctx: AuthContext = Depends(get_auth_context),
        db: Session = Depends(get_db),
    ):
        project = _project_or_404(db, ctx, payload.project_id)
        values = payload.model_dump()
        if prepare is not None:
            prepare(db, project, values)
        row = model(id=uuid4(), **values)
        db.add(row)
        touch(project)
        db.commit()
        db.refresh(row)
        return row

    def update_item(
        item_id: UUID,
        payload: update_schema,
        ctx: AuthContext = Depends(get_auth_context),
        db: Session = Depends(get_db),
    ):
        row = _child_or_404(db, ctx, model, item_id, label)
        project = _project_or_404(db, ctx, row.project_id)
        values = payload.model_dump(exclude_unset=True)
        if prepare_update is not None:
            prepare_update(db, project, values)
        for key, value in values.items():
            setattr(row, key, value)
        touch(project)
        db.commit()
        db.refresh(row)
        return row

    def delete_item(
        item_id: UUID,
        ctx: AuthContext = Depends(get_auth_context),
        db: Session = Depends(get_db),
    ):
        row = _child_or_404(db, ctx, model, item_id, label)
        project = _project_or_404(db, ctx, row.project_id)
        if on_delete is not None:
            on_delete(db, project, row)
        db.delete(row)
        touch(project)
        db.commit()
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    router.add_api_route(
        f"/projects/{{project_id}}/{path}",
        list_items,
        methods=["GET"],
        response_model=List[read_schema],
        name=f"list_{slug}",
        summary=f"List {label.lower()}s of a project",
    )
    router.add_api_route(
        f"/{path}",
        create_item,
        methods=["POST"],
        response_model=read_schema,
        status_code=status.HTTP_201_CREATED,
        name=f"create_{slug}",
        summary=f"Create {label.lower()}",
    )
    router.add_api_route(
        f"/{path}/{{item_id}}",
        update_item,
        methods=["PATCH"],
        response_model=read_schema,
        name=f"update_{slug}",
        summary=f"Update {label.lower()}",
    )
    router.add_api_route(
        f"/{path}/{{item_id}}",
        delete_item,
        methods=["DELETE"],
        status_code=status.HTTP_204_NO_CONTENT,
        name=f"delete_{slug}",
        summary=f"Delete {label.lower()}",
    )


# ── Type-specific hooks ──────────────────────────────────────────────────

def _append_milestone(db: Session, project: Project, values: Dict[str, Any]) -> None:
    values["order"] = len(project.milestones)


def _next_competitor_position(db: Session, project: Project, values: Dict[str, Any]) -> None:
    values["position"] = max((c.position for c in project.competitors), default=-1) + 1


def _check_grid_keys(db: Session, project: Project, values: Dict[str, Any]) -> None:
    unknown = unknown_competitor_keys(values.get("competitors_has_feature"), (c.id for c in project.competitors))
    if unknown:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unknown competitor ids in competitorsHasFeature: {', '.join(unknown)}",
        )


def _renumber_after_milestone_delete(db: Session, project: Project, row: Milestone) -> None:
    ordered = sorted(project.milestones, key=lambda m: m.order)
    remove_milestone(ordered, ordered.index(row))


def _drop_competitor_column(db: Session, project: Project, row: Competitor) -> None:
    changed = remove_competitor_key(project.competitive_features, str(row.id))
    print(f"🧹 [COMPETITORS] Removed competitor {row.id} from {changed} grid rows")


register_child_routes(
    path="features",
    label="Feature",
    model=Feature,
    create_schema=FeatureCreate,
    update_schema=FeatureUpdate,
    read_schema=FeatureRead,
    relation="features",
)
register_child_routes(
    path="validation-methods",
    label="Validation method",
    model=ValidationMethod,
    create_schema=ValidationMethodCreate,
    update_schema=ValidationMethodUpdate,
    read_schema=ValidationMethodRead,
    relation="validation_methods",
)
register_child_routes(
    path="competitors",
    label="Competitor",
    model=Competitor,
    create_schema=CompetitorCreate,
    update_schema=CompetitorUpdate,
    read_schema=CompetitorRead,
    relation="competitors",
    prepare=_next_competitor_position,
    on_delete=_drop_competitor_column,
)
register_child_routes(
    path="competitive-features",
    label="Competitive feature",
    model=CompetitiveFeature,
    create_schema=CompetitiveFeatureCreate,
    update_schema=CompetitiveFeatureUpdate,
    read_schema=CompetitiveFeatureRead,
    relation="competitive_features",
    prepare=_check_grid_keys,
    prepare_update=_check_grid_keys,
)
register_child_routes(
    path="milestones",
    label="Milestone",
    model=Milestone,
    create_schema=MilestoneCreate,
    update_schema=MilestoneUpdate,
    read_schema=MilestoneRead,
    relation="milestones",
    prepare=_append_milestone,
    on_delete=_renumber_after_milestone_delete,
)
register_child_routes(
    path="kpis",
    label="KPI",
    model=Kpi,
    create_schema=KpiCreate,
    update_schema=KpiUpdate,
    read_schema=KpiRead,
    relation="kpis",
)
register_child_routes(
    path="flow-diagrams",
    label="Flow diagram",
    model=FlowDiagram,
    create_schema=FlowDiagramCreate,
    update_schema=FlowDiagramUpdate,
    read_schema=FlowDiagramRead,
    relation="flow_diagrams",
)


# ── Actions ──────────────────────────────────────────────────────────────

@router.post(
    "/competitive-features/{item_id}/toggle",
    response_model=CompetitiveFeatureRead,
    summary="Flip one cell of the comparison grid",
)
def toggle_competitive_cell(
    item_id: UUID,
    payload: ToggleRequest,
    ctx: AuthContext = Depends(get_auth_context),
    db: Session = Depends(get_db),
):
    row = _child_or_404(db, ctx, CompetitiveFeature, item_id, "Competitive feature")
    project = _project_or_404(db, ctx, row.project_id)
    competitor_ids = [str(c.id) for c in project.competitors]
    try:
        toggle_cell(row, payload.column, competitor_ids)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    touch(project)
    db.commit()
    db.refresh(row)
    return row


@router.post(
    "/milestones/{item_id}/move",
    response_model=List[MilestoneRead],
    summary="Move a milestone up or down the timeline",
)
def move_timeline_milestone(
    item_id: UUID,
    payload: MoveRequest,
    ctx: AuthContext = Depends(get_auth_context),
    db: Session = Depends(get_db),
):
    row = _child_or_404(db, ctx, Milestone, item_id, "Milestone")
    project = _project_or_404(db, ctx, row.project_id)
    ordered = sorted(project.milestones, key=lambda m: m.order)
    result = move_milestone(ordered, ordered.index(row), payload.direction)
    touch(project)
    db.commit()
    return result


@router.delete(
    "/flow-diagrams/{item_id}/nodes/{node_id}",
    response_model=FlowDiagramRead,
    summary="Delete a node and its connected edges",
)
def delete_flow_node(
    item_id: UUID,
    node_id: str,
    ctx: AuthContext = Depends(get_auth_context),
    db: Session = Depends(get_db),
):
    row = _child_or_404(db, ctx, FlowDiagram, item_id, "Flow diagram")
    try:
        row.data = remove_node(row.data or {}, node_id)
    except KeyError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Node '{node_id}' not found")
    touch(_project_or_404(db, ctx, row.project_id))
    db.commit()
    db.refresh(row)
    return row
