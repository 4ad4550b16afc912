from .mvp_plan import MvpPlan
from .project import (
    CompetitiveFeature,
    Competitor,
    Feature,
    FlowDiagram,
    Kpi,
    Milestone,
    Project,
    ValidationMethod,
)
from .user import RevokedToken, User

__all__ = [
    "CompetitiveFeature",
    "Competitor",
    "Feature",
    "FlowDiagram",
    "Kpi",
    "Milestone",
    "MvpPlan",
    "Project",
    "RevokedToken",
    "User",
    "ValidationMethod",
]
