"""Save File tool: write text or base64-encoded binary content to disk."""

import base64
import binascii
import logging
import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from toolflow.core.tool import ToolContext, ToolDefinition, ToolResult, tool_fail, tool_ok
from toolflow.utils.config import get_output_dir

logger = logging.getLogger(__name__)

TEXT_MIME_PREFIXES = ("text/",)
TEXT_MIME_EXACT = (
    "image/svg+xml",
    "application/json",
    "application/xml",
    "application/xhtml+xml",
    "application/javascript",
)


class SaveFileInput(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    data: str = Field(description="Content to save (text or base64-encoded binary)")
    mime_type: str = Field(alias="mimeType", description="MIME type, determines text vs binary handling")
    folder: str = Field(description="Target folder (absolute path or relative to output directory)")
    filename: str = Field(min_length=1, description="File name with extension, supports {id} placeholder")
    id: Optional[str] = Field(default=None, description="Identifier substituted into {id} placeholders")


class SaveFileOutput(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    path: str = Field(description="Absolute path of saved file")
    size_bytes: int = Field(alias="sizeBytes")


def is_text_mime(mime_type: str) -> bool:
    return mime_type.startswith(TEXT_MIME_PREFIXES) or mime_type in TEXT_MIME_EXACT


def resolve_folder(folder: str, context: ToolContext) -> Path:
    path = Path(folder)
    if path.is_absolute():
        return path
    base = context.env.get("TOOLFLOW_OUTPUT_DIR") or get_output_dir()
    return (Path(base) / path).resolve()


async def execute(input: SaveFileInput, context: ToolContext) -> ToolResult:
    filename = input.filename.replace("{id}", input.id) if input.id is not None else input.filename
    if os.sep in filename or (os.altsep and os.altsep in filename):
        return tool_fail(f"Filename must not contain path separators: {filename}")

    try:
        directory = resolve_folder(input.folder, context)
        directory.mkdir(parents=True, exist_ok=True)
        full_path = directory / filename

        if is_text_mime(input.mime_type):
            content = input.data.encode("utf-8")
        else:
            content = base64.b64decode(input.data, validate=True)

        full_path.write_bytes(content)
    except binascii.Error as e:
        return tool_fail(f"Failed to save file: invalid base64 data ({e})", e)
    except OSError as e:
        return tool_fail(f"Failed to save file: {e}", e)

    logger.debug("Saved %d bytes to %s", len(content), full_path)
    return tool_ok(SaveFileOutput(path=str(full_path), size_bytes=len(content)))


tool = ToolDefinition(
    id="save-file",
    name="Save File",
    description="Save text or binary content to a file on disk",
    category="Utility",
    input_model=SaveFileInput,
    output_model=SaveFileOutput,
    execute=execute,
)
