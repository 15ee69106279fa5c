"""
Shared fixtures for EasyTable core tests.
"""

import json

import httpx
import pytest

HEX_SECRET = "00112233445566778899aabbccddeeff00112233445566778899aabbccddeeff"


def sse_line(content: str) -> bytes:
    """One upstream stream line carrying a content delta."""
    record = {"choices": [{"delta": {"content": content}}]}
    return f"data: {json.dumps(record)}\n".encode()


class TrackingStream(httpx.AsyncByteStream):
    """Async response body that records whether it was closed."""

    def __init__(self, chunks):
        self.chunks = list(chunks)
        self.yielded = 0
        self.closed = False

    async def __aiter__(self):
        for chunk in self.chunks:
            self.yielded += 1
            yield chunk

    async def aclose(self):
        self.closed = True


@pytest.fixture
def auth_config():
    from easytable_core.config import AuthServiceConfig

    return AuthServiceConfig(
        url="https://auth.example.test/api/auth",
        token="service-token",
        enc_key=HEX_SECRET,
        max_quota=10,
        timeout=5.0,
    )


@pytest.fixture
def llm_config():
    from easytable_core.config import LLMConfig

    return LLMConfig(
        base_url="https://llm.example.test/v1",
        api_key="sk-test",
        provider="openai",
        model="gpt-4o-mini",
        timeout=5.0,
    )


def mock_client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))
