"""
tests/unit/test_llama_cpp_backend.py

Tests for LlamaCppBackend request building and failure classification.

Verifies:
✔ POST /v1/chat/completions with bearer auth and temperature 0.4
✔ choices[0].message.content is returned as text
✔ Transport failure → send_error
✔ Unreadable body → read_error
✔ Invalid JSON → parse_error
✔ Missing / non-string content → shape_error
✔ Never raises
"""

import json

import httpx
import pytest

from conftest import FailingStream, respond_with
from inference import LlamaCppBackend, StubInferenceBackend
from inference.llama_cpp import InferenceShapeError, extract_content
from inference.types import InferenceRequest

BASE_URL = "http://llm.local:8080"
COMPLETION = {
    "id": "chatcmpl-123",
    "choices": [{"message": {"role": "assistant", "content": "hello"}}],
}


def make_backend(transport, **kwargs):
    return LlamaCppBackend(base_url=BASE_URL, transport=transport, **kwargs)


# ─────────────────────────────────────────────────────
# Request building
# ─────────────────────────────────────────────────────


class TestInferenceRequest:
    def test_payload_shape(self):
        request = InferenceRequest(base_url=BASE_URL, model="gpt-3.5-turbo", prompt="Hi")

        assert request.url == "http://llm.local:8080/v1/chat/completions"
        assert request.to_payload() == {
            "model": "gpt-3.5-turbo",
            "messages": [{"role": "user", "content": "Hi"}],
            "temperature": 0.4,
        }

    def test_trailing_slash_in_base_url(self):
        request = InferenceRequest(base_url=BASE_URL + "/", model="m", prompt="Hi")
        assert request.url == "http://llm.local:8080/v1/chat/completions"

    @pytest.mark.asyncio
    async def test_request_sent_to_backend(self):
        transport = respond_with(json=COMPLETION)
        backend = make_backend(transport, api_key="no-key")

        await backend.infer("What is 2+2?")

        assert len(transport.seen) == 1
        sent = transport.seen[0]
        assert sent.method == "POST"
        assert str(sent.url) == "http://llm.local:8080/v1/chat/completions"
        assert sent.headers["Authorization"] == "Bearer no-key"
        assert sent.headers["Content-Type"] == "application/json"
        body = json.loads(sent.content)
        assert body["messages"] == [{"role": "user", "content": "What is 2+2?"}]
        assert body["temperature"] == 0.4


# ─────────────────────────────────────────────────────
# Success
# ─────────────────────────────────────────────────────


class TestInferenceSuccess:
    @pytest.mark.asyncio
    async def test_returns_content(self):
        backend = make_backend(respond_with(json=COMPLETION))

        result = await backend.infer("Say hello")

        assert result.ok
        assert result.text == "hello"
        assert result.error_type is None
        assert result.response_id == "chatcmpl-123"
        assert result.elapsed_s is not None

    @pytest.mark.asyncio
    async def test_identical_responses_give_identical_results(self):
        backend = make_backend(respond_with(json=COMPLETION))

        first = await backend.infer("Say hello")
        second = await backend.infer("Say hello")

        assert first.text == second.text == "hello"

    @pytest.mark.asyncio
    async def test_empty_content_is_still_a_reply(self):
        payload = {"choices": [{"message": {"content": ""}}]}
        result = await make_backend(respond_with(json=payload)).infer("x")

        assert result.ok
        assert result.text == ""


# ─────────────────────────────────────────────────────
# Failures
# ─────────────────────────────────────────────────────


class TestInferenceFailures:
    @pytest.mark.asyncio
    async def test_connection_refused_is_send_error(self):
        backend = make_backend(respond_with(exc=httpx.ConnectError("Connection refused")))

        result = await backend.infer("Hi")

        assert not result.ok
        assert result.error_type == "send_error"
        assert result.text is None

    @pytest.mark.asyncio
    async def test_timeout_is_send_error(self):
        backend = make_backend(respond_with(exc=httpx.ReadTimeout("timed out")))

        result = await backend.infer("Hi")

        assert result.error_type == "send_error"

    @pytest.mark.asyncio
    async def test_unreadable_body_is_read_error(self):
        backend = make_backend(respond_with(stream=FailingStream()))

        result = await backend.infer("Hi")

        assert result.error_type == "read_error"

    @pytest.mark.asyncio
    async def test_invalid_json_is_parse_error(self):
        backend = make_backend(respond_with(text="<html>Bad Gateway</html>"))

        result = await backend.infer("Hi")

        assert result.error_type == "parse_error"

    @pytest.mark.asyncio
    async def test_deeply_nested_json_is_parse_error(self):
        backend = make_backend(respond_with(text="[" * 100000 + "]" * 100000))

        result = await backend.infer("Hi")

        assert result.error_type == "parse_error"

    @pytest.mark.asyncio
    async def test_missing_choices_is_shape_error(self):
        backend = make_backend(respond_with(json={"error": {"message": "boom"}}))

        result = await backend.infer("Hi")

        assert result.error_type == "shape_error"

    @pytest.mark.asyncio
    async def test_empty_choices_is_shape_error(self):
        backend = make_backend(respond_with(json={"choices": []}))

        result = await backend.infer("Hi")

        assert result.error_type == "shape_error"

    @pytest.mark.asyncio
    async def test_non_string_content_is_shape_error(self):
        payload = {"choices": [{"message": {"content": 42}}]}
        result = await make_backend(respond_with(json=payload)).infer("Hi")

        assert result.error_type == "shape_error"

    @pytest.mark.asyncio
    async def test_http_error_status_without_content_is_shape_error(self):
        backend = make_backend(respond_with(status_code=500, json={"error": "overloaded"}))

        result = await backend.infer("Hi")

        assert result.error_type == "shape_error"


class TestExtractContent:
    def test_non_object_json(self):
        with pytest.raises(InferenceShapeError):
            extract_content(["not", "a", "completion"])

    def test_null_message(self):
        with pytest.raises(InferenceShapeError):
            extract_content({"choices": [{"message": None}]})


class TestStubBackend:
    @pytest.mark.asyncio
    async def test_echoes_prompt(self):
        result = await StubInferenceBackend().infer("ping")
        assert result.ok
        assert result.text == "Stubbed reply to: ping"

    @pytest.mark.asyncio
    async def test_forced_failure(self):
        result = await StubInferenceBackend().infer("fail:parse_error")
        assert result.error_type == "parse_error"

    @pytest.mark.asyncio
    async def test_unknown_failure_name_is_echoed(self):
        result = await StubInferenceBackend().infer("fail:nonsense")
        assert result.ok
