"""Tests for the built-in tools."""

import base64
import json

import httpx
import pytest

from toolflow import PipelineExecutor, ToolContext, create_default_registry
from toolflow.tools import http_request, save_file, variable_set


@pytest.fixture
def output_context(tmp_path):
    """Tool context whose relative folders resolve under tmp_path."""
    return ToolContext(env={"TOOLFLOW_OUTPUT_DIR": str(tmp_path)})


class TestVariableSet:
    @pytest.mark.asyncio
    async def test_echoes_name_and_value(self):
        result = await variable_set.execute(
            variable_set.VariableSetInput(name="k", value=[1, 2]), ToolContext(env={})
        )

        assert result.ok
        assert result.value.model_dump() == {"name": "k", "value": [1, 2]}

    def test_value_is_optional(self):
        assert variable_set.VariableSetInput.model_validate({"name": "k"}).value is None

    def test_name_is_required(self):
        with pytest.raises(ValueError):
            variable_set.VariableSetInput.model_validate({"value": 1})


class TestSaveFile:
    @pytest.mark.asyncio
    async def test_saves_text(self, tmp_path, output_context):
        """Test writing text content into a folder under the output directory."""
        input = save_file.SaveFileInput(
            data="<svg/>", mimeType="image/svg+xml", folder="exports", filename="logo-{id}.svg", id="42"
        )

        result = await save_file.execute(input, output_context)

        assert result.ok
        saved = tmp_path / "exports" / "logo-42.svg"
        assert result.value.path == str(saved.resolve())
        assert result.value.size_bytes == 6
        assert saved.read_text() == "<svg/>"

    @pytest.mark.asyncio
    async def test_saves_binary(self, tmp_path, output_context):
        payload = b"\x89PNG\x00\x01"
        input = save_file.SaveFileInput(
            data=base64.b64encode(payload).decode(),
            mimeType="image/png",
            folder=str(tmp_path / "abs"),
            filename="image.png",
        )

        result = await save_file.execute(input, output_context)

        assert result.ok
        assert (tmp_path / "abs" / "image.png").read_bytes() == payload

    @pytest.mark.asyncio
    async def test_invalid_base64_fails(self, output_context):
        input = save_file.SaveFileInput(
            data="not base64!", mimeType="image/png", folder="x", filename="a.png"
        )

        result = await save_file.execute(input, output_context)

        assert not result.ok
        assert "base64" in result.error

    @pytest.mark.asyncio
    async def test_path_separator_rejected(self, output_context):
        input = save_file.SaveFileInput(
            data="x", mimeType="text/plain", folder="x", filename="../escape.txt"
        )

        result = await save_file.execute(input, output_context)

        assert not result.ok

    def test_text_mime_detection(self):
        assert save_file.is_text_mime("text/csv")
        assert save_file.is_text_mime("application/json")
        assert not save_file.is_text_mime("image/png")

    @pytest.mark.asyncio
    async def test_in_pipeline(self, tmp_path, output_context):
        """Test saving a value produced by an earlier step."""
        executor = PipelineExecutor(create_default_registry())

        result = await executor.run(
            {
                "steps": [
                    {"toolId": "variable-set", "input": {"name": "doc", "value": "hello"}},
                    {
                        "toolId": "save-file",
                        "input": {
                            "data": "${{ variables.doc }}",
                            "mimeType": "text/plain",
                            "folder": "out",
                            "filename": "doc.txt",
                        },
                    },
                ]
            },
            output_context,
        )

        assert result.steps[1].output["sizeBytes"] == 5
        assert (tmp_path / "out" / "doc.txt").read_text() == "hello"


class TestHttpRequest:
    @pytest.mark.asyncio
    async def test_json_response(self):
        """Test a request whose JSON body is decoded for later steps."""
        seen = {}

        def handler(request):
            seen["method"] = request.method
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"ok": True})

        input = http_request.HttpRequestInput(url="https://example.test/api", method="post", body={"a": 1})

        result = await http_request.execute(
            input, ToolContext(env={}), transport=httpx.MockTransport(handler)
        )

        assert result.ok
        assert result.value["status"] == 200
        assert result.value["json"] == {"ok": True}
        assert seen == {"method": "POST", "body": {"a": 1}}

    @pytest.mark.asyncio
    async def test_text_response(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(404, text="missing"))

        result = await http_request.execute(
            http_request.HttpRequestInput(url="https://example.test/x"), ToolContext(env={}), transport
        )

        assert result.ok
        assert result.value["status"] == 404
        assert result.value["body"] == "missing"
        assert result.value["json"] is None

    @pytest.mark.asyncio
    async def test_connection_error_is_failure(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        result = await http_request.execute(
            http_request.HttpRequestInput(url="https://example.test/x"),
            ToolContext(env={}),
            httpx.MockTransport(handler),
        )

        assert not result.ok
        assert isinstance(result.exception, httpx.ConnectError)

    @pytest.mark.asyncio
    async def test_cancelled_request_not_sent(self):
        calls = []
        context = ToolContext(env={})
        context.cancel_token.cancel()

        result = await http_request.execute(
            http_request.HttpRequestInput(url="https://example.test/x"),
            context,
            httpx.MockTransport(lambda request: calls.append(request) or httpx.Response(200)),
        )

        assert not result.ok
        assert calls == []

    def test_timeout_from_environment(self):
        input = http_request.HttpRequestInput(url="https://example.test/x")

        assert http_request._timeout(input, ToolContext(env={"TOOLFLOW_HTTP_TIMEOUT": "5"})) == 5.0
        assert http_request._timeout(input, ToolContext(env={})) == 30.0
        assert http_request._timeout(input, ToolContext(env={"TOOLFLOW_HTTP_TIMEOUT": "x"})) == 30.0
