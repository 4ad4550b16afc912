"""Output contracts for the generated planning artifacts.

Model replies are passed through to the client as parsed, so these models are
lenient (unknown keys allowed, every field defaulted). They are used where the
server itself consumes a reply: building the saved plan record and feeding
feature ideas into the diagram prompt.
"""

from __future__ import annotations

from typing import Any, List

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _as_text(value: Any) -> str:
    """Flatten list/dict values that models sometimes return for prose fields."""
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, list):
        return "\n".join(_as_text(item) for item in value)
    if isinstance(value, dict):
        return "\n".join(f"{key}: {_as_text(item)}" for key, item in value.items())
    return str(value)


class PlanOutput(BaseModel):
    """Reply shape of the plan generator."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    executive_summary: str = Field("", alias="executiveSummary")
    problem_statement: str = Field("", alias="problemStatement")
    target_audience: str = Field("", alias="targetAudience")
    value_proposition: str = Field("", alias="valueProposition")
    mvp_scope: str = Field("", alias="mvpScope")
    key_features: List[Any] = Field(default_factory=list, alias="keyFeatures")
    success_criteria: str = Field("", alias="successCriteria")
    potential_challenges: str = Field("", alias="potentialChallenges")
    next_steps: str = Field("", alias="nextSteps")

    @field_validator(
        "executive_summary",
        "problem_statement",
        "target_audience",
        "value_proposition",
        "mvp_scope",
        "success_criteria",
        "potential_challenges",
        "next_steps",
        mode="before",
    )
    @classmethod
    def _coerce_text(cls, v: Any) -> str:
        return _as_text(v)

    @field_validator("key_features", mode="before")
    @classmethod
    def _coerce_list(cls, v: Any) -> List[Any]:
        if v is None:
            return []
        if isinstance(v, list):
            return v
        return [v]


class FeatureIdea(BaseModel):
    """One entry of ``featureIdeas``."""

    model_config = ConfigDict(extra="allow")

    name: str = ""
    description: str = ""
    value: str = ""
    priority: str = "Medium"
    difficulty: str = "Medium"
    reasoning: str = ""

    @field_validator("name", "description", "value", "priority", "difficulty", "reasoning", mode="before")
    @classmethod
    def _coerce_text(cls, v: Any) -> str:
        return _as_text(v)


def parse_feature_ideas(data: Any) -> List[FeatureIdea]:
    """Return the usable feature ideas of a features reply (named entries only)."""
    if not isinstance(data, dict):
        return []
    ideas = data.get("featureIdeas")
    if not isinstance(ideas, list):
        return []
    parsed = [FeatureIdea.model_validate(item) for item in ideas if isinstance(item, dict)]
    return [idea for idea in parsed if idea.name.strip()]
