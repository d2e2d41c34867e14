"""
Tests for backend health interpretation.

Covers every (status code, status field) branch, the slot-count
defaults, and the recoverable failure outcomes.
"""

import httpx
import pytest

from conftest import FailingStream, respond_with
from inference.health import (
    MALFORMED_MESSAGE,
    READ_ERROR_MESSAGE,
    SEND_ERROR_MESSAGE,
    HealthChecker,
    HealthStatus,
    MalformedHealthResponse,
    interpret_health,
)


class TestInterpretHealth:
    """Pure mapping from (status code, body) to outcome text."""

    def test_ok_with_slots(self):
        body = '{"status":"ok","slots_idle":3,"slots_processing":1}'
        assert interpret_health(200, body) == (
            "Everything is working fine. Slots idle: 3, Slots processing: 1"
        )

    def test_ok_without_slots_defaults_to_zero(self):
        assert interpret_health(200, '{"status":"ok"}') == (
            "Everything is working fine. Slots idle: 0, Slots processing: 0"
        )

    def test_200_no_slot_available(self):
        body = '{"status":"no slot available","slots_idle":0,"slots_processing":4}'
        assert interpret_health(200, body) == (
            "No slots are currently available. Slots idle: 0, Slots processing: 4"
        )

    def test_200_unknown_status(self):
        assert interpret_health(200, '{"status":"warming up"}') == "Unknown status: warming up"

    def test_503_loading_model(self):
        assert interpret_health(503, '{"status":"loading model"}') == (
            "The model is still being loaded. Please wait."
        )

    def test_503_no_slot_available(self):
        body = '{"status":"no slot available","slots_processing":2}'
        assert interpret_health(503, body) == (
            "No slots are currently available. Slots idle: 0, Slots processing: 2"
        )

    def test_503_unknown_status(self):
        assert interpret_health(503, '{"status":"ok"}') == "Unknown status: ok"

    def test_500_error(self):
        assert interpret_health(500, '{"status":"error"}') == (
            "An error occurred while loading the model."
        )

    def test_500_unknown_status(self):
        assert interpret_health(500, '{"status":"something else"}') == (
            "Unknown status: something else"
        )

    def test_200_error_status_is_unknown(self):
        assert interpret_health(200, '{"status":"error"}') == "Unknown status: error"

    def test_unexpected_status_code(self):
        assert interpret_health(404, '{"status":"ok"}') == "Unexpected status: 404"

    def test_unexpected_status_code_ignores_body(self):
        assert interpret_health(502, "<html>Bad Gateway</html>") == "Unexpected status: 502"

    @pytest.mark.parametrize("status_code", [200, 503, 500])
    @pytest.mark.parametrize("body", ["not json", "[]", "{}", '{"status": 5}', ""])
    def test_malformed_body_raises(self, status_code, body):
        with pytest.raises(MalformedHealthResponse):
            interpret_health(status_code, body)


class TestHealthStatus:
    def test_optional_counts(self):
        health = HealthStatus(status="ok")
        assert health.slots_idle is None
        assert health.slots_summary() == "Slots idle: 0, Slots processing: 0"


class TestHealthChecker:
    """End-to-end over a mocked HTTP transport."""

    @pytest.mark.asyncio
    async def test_queries_health_endpoint(self):
        transport = respond_with(json={"status": "ok", "slots_idle": 1, "slots_processing": 0})
        checker = HealthChecker("http://llm.local:8080/", transport=transport)

        outcome = await checker.check_health()

        assert outcome == "Everything is working fine. Slots idle: 1, Slots processing: 0"
        assert transport.seen[0].method == "GET"
        assert str(transport.seen[0].url) == "http://llm.local:8080/health"

    @pytest.mark.asyncio
    async def test_loading_model(self):
        checker = HealthChecker(
            "http://llm.local:8080",
            transport=respond_with(status_code=503, json={"status": "loading model"}),
        )
        assert await checker.check_health() == "The model is still being loaded. Please wait."

    @pytest.mark.asyncio
    async def test_not_found(self):
        checker = HealthChecker(
            "http://llm.local:8080",
            transport=respond_with(status_code=404, text="Not Found"),
        )
        assert await checker.check_health() == "Unexpected status: 404"

    @pytest.mark.asyncio
    async def test_malformed_body_is_recoverable(self):
        checker = HealthChecker(
            "http://llm.local:8080",
            transport=respond_with(status_code=200, text="definitely not json"),
        )
        assert await checker.check_health() == MALFORMED_MESSAGE

    @pytest.mark.asyncio
    async def test_connection_error(self):
        checker = HealthChecker(
            "http://llm.local:8080",
            transport=respond_with(exc=httpx.ConnectError("Connection refused")),
        )
        assert await checker.check_health() == SEND_ERROR_MESSAGE

    @pytest.mark.asyncio
    async def test_unreadable_body(self):
        checker = HealthChecker(
            "http://llm.local:8080",
            transport=respond_with(stream=FailingStream()),
        )
        assert await checker.check_health() == READ_ERROR_MESSAGE
