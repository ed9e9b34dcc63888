"""Base protocol for saved-pipeline stores.

The store is the sole writer of saved pipelines; the engine and the mapper
only read or produce definitions.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Protocol, Union, runtime_checkable

from pydantic import ValidationError

from toolflow.backends.schema import SavedPipeline, SavedPipelineSummary, SavePipelineInput
from toolflow.utils.errors import PipelineValidationError


@runtime_checkable
class PipelineStore(Protocol):
    """Protocol for saved-pipeline persistence."""

    async def list(self) -> List[SavedPipelineSummary]:
        """List saved pipelines without their steps, newest update first."""
        ...

    async def get(self, pipeline_id: str) -> SavedPipeline:
        """Load a saved pipeline.

        Raises:
            PipelineNotFoundError: If no pipeline has that id
        """
        ...

    async def save(self, data: Union[SavePipelineInput, Dict[str, Any]]) -> SavedPipeline:
        """Create or replace a pipeline, preserving ``created_at``.

        Raises:
            PipelineValidationError: If the payload is invalid
        """
        ...

    async def remove(self, pipeline_id: str) -> None:
        """Delete a saved pipeline.

        Raises:
            PipelineNotFoundError: If no pipeline has that id
        """
        ...


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def validate_save_input(data: Union[SavePipelineInput, Dict[str, Any]]) -> SavePipelineInput:
    """Validate a save payload.

    Raises:
        PipelineValidationError: If the payload is invalid
    """
    if isinstance(data, SavePipelineInput):
        return data
    try:
        return SavePipelineInput.model_validate(data)
    except ValidationError as e:
        raise PipelineValidationError(f"Invalid pipeline: {e}") from e


def build_saved(data: SavePipelineInput, created_at: datetime, updated_at: datetime) -> SavedPipeline:
    return SavedPipeline(
        id=data.id,
        name=data.name,
        description=data.description,
        steps=data.steps,
        layout=data.layout,
        created_at=created_at,
        updated_at=updated_at,
    )
