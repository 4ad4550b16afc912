"""Schemas for the AI generation endpoints.

Every field of ``GenerationRequest`` is optional at the schema level: which
fields are required depends on the artifact being generated and is checked by
``missing_fields`` so the endpoint can answer ``Missing required fields``
without calling the model.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import Field

from ..constants import REQUIRED_GENERATION_FIELDS
from .common import CamelModel


class FeatureBrief(CamelModel):
    name: str
    description: str = ""
    priority: str = "Medium"
    difficulty: str = "Medium"


class CompetitorBrief(CamelModel):
    name: str
    features: List[str] = Field(default_factory=list)


class GenerationRequest(CamelModel):
    project_name: Optional[str] = None
    industry: Optional[str] = None
    target_audience: Optional[str] = None
    problem_statement: Optional[str] = None
    key_benefits: Optional[List[str]] = None
    additional_notes: Optional[str] = None
    features: Optional[List[FeatureBrief]] = None
    competitors: Optional[List[CompetitorBrief]] = None
    # Only used by generate-all to link the saved plan
    project_id: Optional[str] = None

    def missing_fields(self, artifact: str) -> List[str]:
        """Return the camelCase names of required fields that are absent or blank."""
        missing = []
        for name in REQUIRED_GENERATION_FIELDS[artifact]:
            value = getattr(self, name)
            if value is None or (isinstance(value, str) and not value.strip()):
                missing.append(type(self).model_fields[name].alias or name)
        return missing


class GenerationResult(CamelModel):
    """``{success, data}`` on success, ``{success: false, error}`` otherwise."""

    success: bool
    data: Optional[Any] = None
    error: Optional[str] = None

    @classmethod
    def ok(cls, data: Any) -> "GenerationResult":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: str) -> "GenerationResult":
        return cls(success=False, error=error)

    def body(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class GenerationRunResponse(CamelModel):
    success: bool
    progress: int
    steps: Dict[str, str]
    results: Dict[str, Dict[str, Any]] = Field(default_factory=dict)
    plan_id: Optional[str] = None
