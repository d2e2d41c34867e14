"""Pytest configuration and fixtures."""

import sys
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

# Add project root to sys.path for imports
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))


class FailingStream(httpx.AsyncByteStream):
    """Response body that breaks while being read."""

    async def __aiter__(self):
        raise httpx.ReadError("connection reset while reading body")
        yield b""  # pragma: no cover


def respond_with(status_code=200, json=None, text=None, stream=None, exc=None):
    """Build an httpx.MockTransport that answers every request the same way."""
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        if exc is not None:
            raise exc
        if stream is not None:
            return httpx.Response(status_code, stream=stream)
        if json is not None:
            return httpx.Response(status_code, json=json)
        return httpx.Response(status_code, text=text or "")

    transport = httpx.MockTransport(handler)
    transport.seen = seen
    return transport


@pytest.fixture
def mock_telegram():
    """Stand-in TelegramTransport recording every outbound call."""
    transport = MagicMock()
    transport.bot_username = "qwen_bot"
    transport.send_message = AsyncMock(return_value={"message_id": 99})
    transport.send_chat_action = AsyncMock(return_value=None)
    return transport
