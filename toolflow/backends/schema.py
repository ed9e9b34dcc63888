"""Saved-pipeline schemas.

A saved pipeline is a pipeline definition plus a slug id, display metadata,
an optional editor layout and lifecycle timestamps.
"""

import re
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from toolflow.core.pipeline import PipelineDefinition, PipelineStep

RESERVED_SLUGS = ("new", "run")
SLUG_RE = re.compile(r"^[a-z0-9]([a-z0-9-]*[a-z0-9])?$")


def validate_slug(value: str) -> str:
    """Check a pipeline slug.

    Raises:
        ValueError: If the slug is malformed, too long or reserved
    """
    if not 1 <= len(value) <= 64:
        raise ValueError("Must be between 1 and 64 characters")
    if not SLUG_RE.match(value):
        raise ValueError("Must be lowercase alphanumeric with hyphens")
    if value in RESERVED_SLUGS:
        raise ValueError("This ID is reserved")
    return value


class NodePosition(BaseModel):
    x: float
    y: float


class NodeLayout(BaseModel):
    """Stored canvas position of one node."""

    id: str
    position: NodePosition


class Viewport(BaseModel):
    x: float = 0.0
    y: float = 0.0
    zoom: float = 1.0


class GraphLayout(BaseModel):
    """Editor layout stored alongside a pipeline."""

    nodes: List[NodeLayout] = Field(default_factory=list)
    viewport: Optional[Viewport] = None


class SavePipelineInput(BaseModel):
    """Payload accepted by ``PipelineStore.save``."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str = Field(min_length=1, max_length=128)
    description: str = Field(default="", max_length=1024)
    steps: List[PipelineStep] = Field(min_length=1)
    layout: Optional[GraphLayout] = None

    @field_validator("id")
    @classmethod
    def check_id(cls, value: str) -> str:
        return validate_slug(value)

    def definition(self) -> PipelineDefinition:
        return PipelineDefinition(steps=self.steps)


class SavedPipelineSummary(BaseModel):
    """Saved pipeline without its steps."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str
    description: str = ""
    layout: Optional[GraphLayout] = None
    created_at: datetime = Field(alias="createdAt")
    updated_at: datetime = Field(alias="updatedAt")


class SavedPipeline(SavedPipelineSummary):
    """A persisted pipeline."""

    steps: List[PipelineStep] = Field(min_length=1)

    def definition(self) -> PipelineDefinition:
        return PipelineDefinition(steps=self.steps)

    def summary(self) -> SavedPipelineSummary:
        return SavedPipelineSummary.model_validate(self.model_dump(exclude={"steps"}))

    def to_wire(self) -> dict:
        """Dump to the camelCase storage format."""
        data = self.model_dump(mode="json", by_alias=True, exclude={"steps"}, exclude_none=True)
        data["steps"] = self.definition().to_wire()["steps"]
        return data
