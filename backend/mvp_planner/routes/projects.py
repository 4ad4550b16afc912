"""Project routes: CRUD, wizard navigation, and document exports.

Endpoints:
  GET    /api/projects                              List caller's projects
  POST   /api/projects                              Create a project
  GET    /api/projects/{id}                         Get one project
  PATCH  /api/projects/{id}                         Edit project fields
  DELETE /api/projects/{id}                         Delete project and children
  POST   /api/projects/{id}/wizard/next             Advance the wizard
  POST   /api/projects/{id}/wizard/previous         Go back one step
  GET    /api/projects/{id}/export/powerpoint       HTML slide deck
  GET    /api/projects/{id}/export/readme           Markdown README
  GET    /api/projects/{id}/export/flowdiagram      SVG of the first flow diagram
"""

from __future__ import annotations

import logging
from typing import List
from uuid import UUID, uuid4

from fastapi import APIRouter, Depends, HTTPException, Response, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from ..database import get_db
from ..models.project import Project
from ..schemas.common import Envelope
from ..schemas.project_schema import ProjectCreate, ProjectRead, ProjectUpdate, WizardState
from ..services import exporter
from ..services.auth_dependency import AuthContext, get_auth_context
from ..services.project_store import ProjectWizardStore, build_snapshot, find_project, touch
from ..services.wizard import advance, go_back

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/projects", tags=["Projects"])


def _get_project_or_404(db: Session, ctx: AuthContext, project_id: UUID) -> Project:
    project = find_project(db, ctx, project_id)
    if project is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Project not found")
    return project


def _attachment(content: str, media_type: str, filename: str) -> Response:
    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


# ── CRUD ─────────────────────────────────────────────────────────────────

@router.get("", response_model=List[ProjectRead], summary="List projects")
def list_projects(
    ctx: AuthContext = Depends(get_auth_context),
    db: Session = Depends(get_db),
) -> List[Project]:
    query = db.query(Project)
    if not ctx.is_admin:
        query = query.filter(Project.user_id == ctx.user.id)
    return query.order_by(Project.last_updated.desc()).all()


@router.post("", response_model=ProjectRead, status_code=status.HTTP_201_CREATED, summary="Create project")
def create_project(
    payload: ProjectCreate,
    ctx: AuthContext = Depends(get_auth_context),
    db: Session = Depends(get_db),
) -> Project:
    project = Project(id=uuid4(), user_id=ctx.user.id, **payload.model_dump())
    db.add(project)
    db.commit()
    db.refresh(project)
    print(f"📁 [PROJECT] Created project={project.name} id={project.id}")
    return project


@router.get("/{project_id}", response_model=ProjectRead, summary="Get project")
def get_project(
    project_id: UUID,
    ctx: AuthContext = Depends(get_auth_context),
    db: Session = Depends(get_db),
) -> Project:
    return _get_project_or_404(db, ctx, project_id)


@router.patch("/{project_id}", response_model=ProjectRead, summary="Update project")
def update_project(
    project_id: UUID,
    payload: ProjectUpdate,
    ctx: AuthContext = Depends(get_auth_context),
    db: Session = Depends(get_db),
) -> Project:
    project = _get_project_or_404(db, ctx, project_id)
    for key, value in payload.model_dump(exclude_unset=True).items():
        setattr(project, key, value)
    touch(project)
    db.commit()
    db.refresh(project)
    return project


@router.delete("/{project_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete project")
def delete_project(
    project_id: UUID,
    ctx: AuthContext = Depends(get_auth_context),
    db: Session = Depends(get_db),
) -> Response:
    project = _get_project_or_404(db, ctx, project_id)
    db.delete(project)
    db.commit()
    print(f"🗑️ [PROJECT] Deleted project id={project_id}")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ── Wizard ───────────────────────────────────────────────────────────────

def _wizard_response(outcome) -> JSONResponse:
    if outcome.ok:
        body = Envelope[WizardState](data=WizardState(current_step=outcome.step))
        return JSONResponse(content=body.model_dump(mode="json", by_alias=True))
    code = status.HTTP_500_INTERNAL_SERVER_ERROR if outcome.persistence_error else status.HTTP_409_CONFLICT
    return JSONResponse(
        status_code=code,
        content={"success": False, "error": outcome.message, "data": {"currentStep": outcome.step.value}},
    )


@router.post("/{project_id}/wizard/next", summary="Advance to the next wizard step")
def wizard_next(
    project_id: UUID,
    ctx: AuthContext = Depends(get_auth_context),
    db: Session = Depends(get_db),
) -> JSONResponse:
    project = _get_project_or_404(db, ctx, project_id)
    outcome = advance(build_snapshot(project), ProjectWizardStore(db, project))
    return _wizard_response(outcome)


@router.post("/{project_id}/wizard/previous", summary="Go back one wizard step")
def wizard_previous(
    project_id: UUID,
    ctx: AuthContext = Depends(get_auth_context),
    db: Session = Depends(get_db),
) -> JSONResponse:
    project = _get_project_or_404(db, ctx, project_id)
    outcome = go_back(build_snapshot(project), ProjectWizardStore(db, project))
    return _wizard_response(outcome)


# ── Exports ──────────────────────────────────────────────────────────────

@router.get("/{project_id}/export/powerpoint", summary="Download presentation (HTML)")
def export_powerpoint(
    project_id: UUID,
    ctx: AuthContext = Depends(get_auth_context),
    db: Session = Depends(get_db),
) -> Response:
    project = _get_project_or_404(db, ctx, project_id)
    content = exporter.build_presentation_html(project, project.features, project.milestones, project.kpis)
    return _attachment(content, "text/html", exporter.presentation_filename(project.name))


@router.get("/{project_id}/export/readme", summary="Download README (Markdown)")
def export_readme(
    project_id: UUID,
    ctx: AuthContext = Depends(get_auth_context),
    db: Session = Depends(get_db),
) -> Response:
    project = _get_project_or_404(db, ctx, project_id)
    content = exporter.build_readme(project, project.features, project.milestones, project.kpis)
    return _attachment(content, "text/markdown", "README.md")


@router.get("/{project_id}/export/flowdiagram", summary="Download flow diagram (SVG)")
def export_flow_diagram(
    project_id: UUID,
    ctx: AuthContext = Depends(get_auth_context),
    db: Session = Depends(get_db),
) -> Response:
    project = _get_project_or_404(db, ctx, project_id)
    graph = project.flow_diagrams[0].data if project.flow_diagrams else None
    content = exporter.build_flow_svg(project.name, graph)
    return _attachment(content, "image/svg+xml", exporter.flow_diagram_filename(project.name))
