"""Serialized pipeline data model.

These models mirror the wire/storage format::

    {"steps": [
        {"toolId": "...",
         "input": {"key": <literal or "${{ expr }}">},
         "inputMapping": {"key": {"fromStep": 0, "field": "a.b"}},
         "bypass": false}
    ]}

``legacyMapping`` is accepted as an alias of ``inputMapping``.
"""

import json
from typing import Any, Dict, List, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class InputMapping(BaseModel):
    """Legacy step-to-step field mapping.

    Attributes:
        from_step: Index of the step to read output from
        field: Dot-separated path into that step's output (entire output if omitted)
    """

    model_config = ConfigDict(populate_by_name=True)

    from_step: int = Field(alias="fromStep")
    field: Optional[str] = None


class PipelineStep(BaseModel):
    """One ordered unit of work, identified by its position."""

    model_config = ConfigDict(populate_by_name=True)

    tool_id: str = Field(alias="toolId")
    input: Optional[Dict[str, Any]] = None
    input_mapping: Optional[Dict[str, InputMapping]] = Field(
        default=None,
        validation_alias=AliasChoices("inputMapping", "legacyMapping", "input_mapping"),
        serialization_alias="inputMapping",
    )
    bypass: bool = False


class PipelineDefinition(BaseModel):
    """Ordered list of pipeline steps."""

    steps: List[PipelineStep] = Field(default_factory=list)

    @classmethod
    def from_json(cls, data: Union[str, bytes, Dict[str, Any]]) -> "PipelineDefinition":
        """Parse a definition from a JSON string or an already-decoded dict.

        Raises:
            pydantic.ValidationError: If the payload does not match the wire format
        """
        if isinstance(data, (str, bytes)):
            data = json.loads(data)
        return cls.model_validate(data)

    def to_wire(self) -> Dict[str, Any]:
        """Dump to the camelCase wire format, omitting unset optional fields.

        Legacy mappings are always written under ``inputMapping``;
        ``legacyMapping`` is only accepted when reading.
        """
        steps = []
        for step in self.steps:
            dumped: Dict[str, Any] = {"toolId": step.tool_id}
            if step.input is not None:
                dumped["input"] = step.input
            if step.input_mapping is not None:
                dumped["inputMapping"] = {
                    key: mapping.model_dump(by_alias=True, exclude_none=True)
                    for key, mapping in step.input_mapping.items()
                }
            if step.bypass:
                dumped["bypass"] = True
            steps.append(dumped)
        return {"steps": steps}


class StepResult(BaseModel):
    """Outcome of a single completed step."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    tool_id: str = Field(alias="toolId")
    output: Any = None
    duration_ms: int = Field(alias="durationMs", ge=0)
    bypassed: bool = False


class PipelineResult(BaseModel):
    """Outcome of a fully successful pipeline run."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    steps: List[StepResult] = Field(default_factory=list)
    total_duration_ms: int = Field(alias="totalDurationMs", ge=0)

    @property
    def outputs(self) -> List[Any]:
        return [step.output for step in self.steps]
