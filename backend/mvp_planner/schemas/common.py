"""Shared schema plumbing: camelCase wire format and the success envelope."""

from __future__ import annotations

from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class CamelModel(BaseModel):
    """Base model whose JSON keys are camelCase (``includeInMvp``) while
    Python attributes stay snake_case. Accepts either spelling on input."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class Envelope(CamelModel, Generic[T]):
    """``{success, data}`` wrapper used by the auth, plan, and wizard routes."""

    success: bool = True
    data: T

