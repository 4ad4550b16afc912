"""Pydantic schemas for saved MVP plan snapshots."""

from __future__ import annotations

from datetime import datetime
from typing import Any, List, Optional
from uuid import UUID

from pydantic import Field

from .common import CamelModel


class MvpPlanCreate(CamelModel):
    """Consolidated plan posted once all five generations are complete.

    ``user_id`` is never accepted from the body; the route takes it from the
    authenticated caller.
    """

    project_id: Optional[UUID] = None
    name: str = Field(..., min_length=1)
    industry: str = Field(..., min_length=1)
    audience: str = Field(..., min_length=1)
    problem_statement: Optional[str] = None
    executive_summary: Optional[str] = None
    value_proposition: Optional[str] = None
    mvp_scope: Optional[str] = None
    key_features: List[Any] = Field(default_factory=list)
    success_criteria: Optional[str] = None
    potential_challenges: Optional[str] = None
    next_steps: Optional[str] = None
    features_data: Optional[Any] = None
    milestones_data: Optional[Any] = None
    kpis_data: Optional[Any] = None
    diagrams_data: Optional[Any] = None


class MvpPlanRead(MvpPlanCreate):
    id: UUID
    user_id: Optional[UUID] = None
    created_at: datetime
