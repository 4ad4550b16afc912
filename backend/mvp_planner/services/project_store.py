"""Database access shared by the project routes.

Ownership rules: a project is visible to its owner and to the admin account.
Anything else looks exactly like a missing project.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Optional, Type
from uuid import UUID

from sqlalchemy.orm import Session

from ..models.project import Project
from .auth_dependency import AuthContext
from .flow_graph import node_count
from .wizard import FeatureFlag, ValidationFlag, WizardSnapshot, WizardStep

logger = logging.getLogger(__name__)


def find_project(db: Session, ctx: AuthContext, project_id: UUID) -> Optional[Project]:
    project = db.query(Project).filter(Project.id == project_id).first()
    if project is None:
        return None
    if not ctx.is_admin and project.user_id != ctx.user.id:
        return None
    return project


def find_child(db: Session, ctx: AuthContext, model: Type[Any], row_id: UUID) -> Optional[Any]:
    """Load a child row only if its project is visible to the caller."""
    row = db.query(model).filter(model.id == row_id).first()
    if row is None or find_project(db, ctx, row.project_id) is None:
        return None
    return row


def touch(project: Project) -> None:
    project.last_updated = datetime.utcnow()


def build_snapshot(project: Project) -> WizardSnapshot:
    """Everything the wizard preconditions look at, read from the project rows."""
    first_diagram = project.flow_diagrams[0] if project.flow_diagrams else None
    return WizardSnapshot(
        current_step=WizardStep(project.current_step),
        name=project.name or "",
        industry=project.industry or "",
        audience=project.audience or "",
        problem_statement=project.problem_statement or "",
        features=[FeatureFlag(f.name, bool(f.include_in_mvp)) for f in project.features],
        validation_methods=[ValidationFlag(m.method, bool(m.is_selected)) for m in project.validation_methods],
        milestone_count=len(project.milestones),
        kpi_count=len(project.kpis),
        diagram_node_count=node_count(first_diagram.data) if first_diagram is not None else None,
    )


class ProjectWizardStore:
    """``WizardStore`` backed by the project row."""

    def __init__(self, db: Session, project: Project):
        self.db = db
        self.project = project

    def update_step(self, step: WizardStep) -> None:
        self.project.current_step = step.value
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

    def save_progress(self) -> None:
        touch(self.project)
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
