"""HTTP Request tool: fetch a URL and expose the response to later steps.

Makes an async HTTP request via httpx. Timeouts and connection errors are
reported as tool failures rather than raised.
"""

from typing import Any, Dict, Optional

import httpx
from pydantic import BaseModel, ConfigDict, Field

from toolflow.core.tool import ToolContext, ToolDefinition, ToolResult, tool_fail, tool_ok
from toolflow.utils.config import DEFAULT_HTTP_TIMEOUT


class HttpRequestInput(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    url: str = Field(description="URL to request")
    method: str = Field(default="GET", description="HTTP method")
    headers: Optional[Dict[str, str]] = Field(default=None, description="Request headers")
    body: Optional[Any] = Field(
        default=None, description="Request body; dicts and lists are sent as JSON"
    )
    timeout_seconds: Optional[float] = Field(
        default=None, alias="timeoutSeconds", gt=0, description="Request timeout"
    )


class HttpRequestOutput(BaseModel):
    status: int
    headers: Dict[str, str] = Field(default_factory=dict)
    body: str = ""
    json_body: Optional[Any] = Field(default=None, alias="json")

    model_config = ConfigDict(populate_by_name=True)


def _timeout(input: HttpRequestInput, context: ToolContext) -> float:
    if input.timeout_seconds is not None:
        return input.timeout_seconds
    raw = context.env.get("TOOLFLOW_HTTP_TIMEOUT")
    try:
        return float(raw) if raw else DEFAULT_HTTP_TIMEOUT
    except ValueError:
        return DEFAULT_HTTP_TIMEOUT


async def execute(
    input: HttpRequestInput,
    context: ToolContext,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> ToolResult:
    if context.cancel_token.cancelled:
        return tool_fail("Request cancelled")

    request_kwargs: Dict[str, Any] = {"headers": input.headers}
    if isinstance(input.body, (dict, list)):
        request_kwargs["json"] = input.body
    elif input.body is not None:
        request_kwargs["content"] = str(input.body)

    try:
        async with httpx.AsyncClient(timeout=_timeout(input, context), transport=transport) as client:
            response = await client.request(input.method.upper(), input.url, **request_kwargs)
    except httpx.TimeoutException as e:
        return tool_fail(f"Request to {input.url} timed out", e)
    except httpx.HTTPError as e:
        return tool_fail(f"Request to {input.url} failed: {e}", e)

    json_body = None
    if "json" in response.headers.get("content-type", ""):
        try:
            json_body = response.json()
        except ValueError:
            json_body = None

    return tool_ok(
        {
            "status": response.status_code,
            "headers": dict(response.headers),
            "body": response.text,
            "json": json_body,
        }
    )


tool = ToolDefinition(
    id="http-request",
    name="HTTP Request",
    description="Fetch a URL and return its status, headers and body",
    category="Network",
    input_model=HttpRequestInput,
    output_model=HttpRequestOutput,
    execute=execute,
)
