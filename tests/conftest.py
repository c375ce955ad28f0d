"""
Pytest configuration and fixtures for modfilter tests.
"""

import sys
from pathlib import Path
from types import SimpleNamespace
from typing import Optional

import httpx
import pytest
from openai import AsyncOpenAI, OpenAI

# Add src directory to path so imports work without installing the package
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))


def make_completion(content: Optional[str]) -> SimpleNamespace:
    """Build an object shaped like an OpenAI ChatCompletion with one choice."""
    message = SimpleNamespace(role="assistant", content=content)
    return SimpleNamespace(choices=[SimpleNamespace(index=0, message=message)])


def make_empty_completion() -> SimpleNamespace:
    return SimpleNamespace(choices=[])


@pytest.fixture(autouse=True)
def clear_classifier_env(monkeypatch):
    """Keep the developer's GROQ_* variables out of the tests."""
    monkeypatch.delenv("GROQ_API_KEY", raising=False)
    monkeypatch.delenv("GROQ_MODEL", raising=False)


def html_gateway_transport() -> httpx.MockTransport:
    """Transport answering every request with a 200 HTML page instead of JSON."""
    return httpx.MockTransport(
        lambda request: httpx.Response(200, content=b"<html><body>Bad gateway</body></html>", headers={"content-type": "text/html"})
    )


def attach_transport(client, transport: httpx.MockTransport) -> None:
    """Point both SDK clients of a configured ModerationClient at ``transport``."""
    base_url = client.base_url
    client._client = OpenAI(api_key="test-key", base_url=base_url, max_retries=0, http_client=httpx.Client(transport=transport))
    client._async_client = AsyncOpenAI(
        api_key="test-key", base_url=base_url, max_retries=0, http_client=httpx.AsyncClient(transport=transport)
    )
