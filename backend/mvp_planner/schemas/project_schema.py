"""Request/response schemas for projects and their child entities.

Create schemas carry ``project_id``; update schemas are all-optional (PATCH);
read schemas mirror the ORM row. Wire format is camelCase.
"""

from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Literal, Optional
from uuid import UUID

from pydantic import Field, field_validator, model_validator

from ..services.wizard import WizardStep
from .common import CamelModel

Priority = Literal["Low", "Medium", "High"]
Difficulty = Literal["Easy", "Medium", "Hard"]


# ---------------------------------------------------------------------------
# Project
# ---------------------------------------------------------------------------
class ProjectCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=255)
    industry: str = Field(..., min_length=1, max_length=255)
    audience: str = Field(..., min_length=1, max_length=1000)
    problem_statement: Optional[str] = None
    key_benefits: List[str] = Field(default_factory=list)
    additional_notes: Optional[str] = None

    @field_validator("key_benefits")
    @classmethod
    def drop_blank_benefits(cls, v: List[str]) -> List[str]:
        return [b.strip() for b in v if b and b.strip()]


class ProjectUpdate(CamelModel):
    """Field edits. ``currentStep`` moves only through the wizard routes."""

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    industry: Optional[str] = Field(None, min_length=1, max_length=255)
    audience: Optional[str] = Field(None, min_length=1, max_length=1000)
    problem_statement: Optional[str] = None
    key_benefits: Optional[List[str]] = None
    additional_notes: Optional[str] = None


class ProjectRead(CamelModel):
    id: UUID
    user_id: Optional[UUID] = None
    name: str
    industry: str
    audience: str
    problem_statement: Optional[str] = None
    key_benefits: List[str] = Field(default_factory=list)
    additional_notes: Optional[str] = None
    current_step: WizardStep
    last_updated: datetime


# ---------------------------------------------------------------------------
# Feature
# ---------------------------------------------------------------------------
class FeatureCreate(CamelModel):
    project_id: UUID
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    priority: Priority
    difficulty: Difficulty
    include_in_mvp: bool = True


class FeatureUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    priority: Optional[Priority] = None
    difficulty: Optional[Difficulty] = None
    include_in_mvp: Optional[bool] = None


class FeatureRead(CamelModel):
    id: UUID
    project_id: UUID
    name: str
    description: Optional[str] = None
    priority: Priority
    difficulty: Difficulty
    include_in_mvp: bool


# ---------------------------------------------------------------------------
# Validation method
# ---------------------------------------------------------------------------
class ValidationMethodCreate(CamelModel):
    project_id: UUID
    method: str = Field(..., min_length=1)
    description: Optional[str] = None
    is_selected: bool = False


class ValidationMethodUpdate(CamelModel):
    method: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    is_selected: Optional[bool] = None


class ValidationMethodRead(CamelModel):
    id: UUID
    project_id: UUID
    method: str
    description: Optional[str] = None
    is_selected: bool


# ---------------------------------------------------------------------------
# Competitors and the comparison grid
# ---------------------------------------------------------------------------
class CompetitorCreate(CamelModel):
    project_id: UUID
    name: str = Field(..., min_length=1)


class CompetitorUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1)


class CompetitorRead(CamelModel):
    id: UUID
    project_id: UUID
    name: str


class CompetitiveFeatureCreate(CamelModel):
    project_id: UUID
    name: str = Field(..., min_length=1)
    your_mvp: bool = False
    # competitor id -> has feature
    competitors_has_feature: Dict[str, bool] = Field(default_factory=dict)


class CompetitiveFeatureUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1)
    your_mvp: Optional[bool] = None
    competitors_has_feature: Optional[Dict[str, bool]] = None


class CompetitiveFeatureRead(CamelModel):
    id: UUID
    project_id: UUID
    name: str
    your_mvp: bool
    competitors_has_feature: Dict[str, bool] = Field(default_factory=dict)


class ToggleRequest(CamelModel):
    """``column`` -1 is "your MVP"; 0..n-1 are competitors in creation order."""

    column: int = Field(..., ge=-1)


# ---------------------------------------------------------------------------
# Milestone
# ---------------------------------------------------------------------------
class MilestoneCreate(CamelModel):
    project_id: UUID
    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    duration: int = Field(..., gt=0, description="Duration in weeks")


class MilestoneUpdate(CamelModel):
    title: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    duration: Optional[int] = Field(None, gt=0)


class MilestoneRead(CamelModel):
    id: UUID
    project_id: UUID
    title: str
    description: Optional[str] = None
    duration: int
    order: int


class MoveRequest(CamelModel):
    direction: Literal["up", "down"]


# ---------------------------------------------------------------------------
# KPI
# ---------------------------------------------------------------------------
class KpiCreate(CamelModel):
    project_id: UUID
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    target: Optional[str] = None
    timeframe: Optional[str] = None


class KpiUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    target: Optional[str] = None
    timeframe: Optional[str] = None


class KpiRead(CamelModel):
    id: UUID
    project_id: UUID
    name: str
    description: Optional[str] = None
    target: Optional[str] = None
    timeframe: Optional[str] = None


# ---------------------------------------------------------------------------
# Flow diagram
# ---------------------------------------------------------------------------
class Position(CamelModel):
    x: float
    y: float


class FlowNodeData(CamelModel):
    label: str
    type: Optional[str] = None
    description: Optional[str] = None
    color: Optional[str] = None


class FlowNode(CamelModel):
    id: str = Field(..., min_length=1)
    type: str = "default"
    position: Position
    data: FlowNodeData
    draggable: bool = True


class FlowEdge(CamelModel):
    id: str = Field(..., min_length=1)
    source: str
    target: str
    type: Optional[str] = None
    label: Optional[str] = None


class FlowGraph(CamelModel):
    nodes: List[FlowNode] = Field(default_factory=list)
    edges: List[FlowEdge] = Field(default_factory=list)

    @model_validator(mode="after")
    def edges_reference_nodes(self) -> "FlowGraph":
        node_ids = [n.id for n in self.nodes]
        if len(set(node_ids)) != len(node_ids):
            raise ValueError("Node ids must be unique")
        known = set(node_ids)
        for edge in self.edges:
            for end in (edge.source, edge.target):
                if end not in known:
                    raise ValueError(f"Edge {edge.id} references unknown node '{end}'")
        return self


class FlowDiagramCreate(CamelModel):
    project_id: UUID
    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    data: FlowGraph = Field(default_factory=FlowGraph)


class FlowDiagramUpdate(CamelModel):
    title: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    data: Optional[FlowGraph] = None


class FlowDiagramRead(CamelModel):
    id: UUID
    project_id: UUID
    title: str
    description: Optional[str] = None
    data: FlowGraph


# ---------------------------------------------------------------------------
# Wizard
# ---------------------------------------------------------------------------
class WizardState(CamelModel):
    current_step: WizardStep
