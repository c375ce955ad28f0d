"""Tests for llm_engine module."""

import asyncio
import json
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import openai
import pytest

from conftest import attach_transport, html_gateway_transport, make_completion, make_empty_completion
from modfilter.ai.llm_engine import (
    DEFAULT_BASE_URL,
    DEFAULT_MAX_TOKENS,
    DEFAULT_MODEL,
    DEFAULT_TEMPERATURE,
    ClientConfig,
    ModerationAPIError,
    ModerationClient,
    interpret_response_text,
    new_client,
)
from modfilter.datatypes.verdict_datatypes import ErrorCode, Verdict

SAFE_RESPONSE = '{"is_malicious": false, "error_code": null, "reason": ""}'
SCAM_RESPONSE = json.dumps({"is_malicious": True, "error_code": "CONTENT_SCAM", "reason": "phishing link"})


def connection_error() -> openai.APIConnectionError:
    return openai.APIConnectionError(request=httpx.Request("POST", f"{DEFAULT_BASE_URL}/chat/completions"))


def build_client(response=None, side_effect=None, **config) -> ModerationClient:
    """Create a configured client whose SDK clients are mocks."""
    config.setdefault("api_key", "test-key")
    config.setdefault("blocked_terms", [])
    client = ModerationClient(ClientConfig(**config))

    async_client = MagicMock()
    async_client.chat.completions.create = AsyncMock(return_value=response, side_effect=side_effect)
    sync_client = MagicMock()
    sync_client.chat.completions.create = MagicMock(return_value=response, side_effect=side_effect)

    client._async_client = async_client
    client._client = sync_client
    return client


class TestModerationClientInit:
    """Tests for ModerationClient configuration."""

    def test_defaults(self):
        client = ModerationClient(ClientConfig(api_key="test-key"))

        assert client.configured is True
        assert client.model == DEFAULT_MODEL
        assert client.base_url == DEFAULT_BASE_URL
        assert client.client is not None
        assert client.async_client is not None

    def test_environment_fallbacks(self, monkeypatch):
        monkeypatch.setenv("GROQ_API_KEY", "env-key")
        monkeypatch.setenv("GROQ_MODEL", "env-model")

        client = new_client()

        assert client.configured is True
        assert client.model == "env-model"

    def test_explicit_values_win_over_environment(self, monkeypatch):
        monkeypatch.setenv("GROQ_MODEL", "env-model")

        client = ModerationClient(ClientConfig(api_key="k", model="explicit", base_url="http://localhost:8000/v1"))

        assert client.model == "explicit"
        assert client.base_url == "http://localhost:8000/v1"

    def test_missing_api_key_leaves_client_inert(self):
        client = ModerationClient()

        assert client.configured is False
        assert client.client is None
        assert client.async_client is None
        assert client.model == DEFAULT_MODEL

    def test_none_blocked_terms_use_baseline(self):
        with patch("modfilter.ai.llm_engine.default_blocked_terms", return_value=("spam",)):
            client = ModerationClient(ClientConfig(api_key="k"))
        assert client.blocked_terms == ("spam",)

    def test_empty_blocked_terms_disable_blocklist(self):
        client = ModerationClient(ClientConfig(api_key="k", blocked_terms=[]))
        assert client.blocked_terms == ()

    def test_blocked_terms_are_copied(self):
        terms = ["spam"]
        client = ModerationClient(ClientConfig(api_key="k", blocked_terms=terms))
        terms.append("scam")
        assert client.blocked_terms == ("spam",)


class TestCheckMessage:
    """Tests for the async moderation pipeline."""

    @pytest.mark.asyncio
    async def test_unconfigured_client_fails_open(self):
        client = ModerationClient(ClientConfig(blocked_terms=["spam"]))

        verdict = await client.check_message("This is SPAM!!")

        assert verdict == Verdict.allowed()

    @pytest.mark.asyncio
    async def test_blocklist_hit_skips_classifier(self):
        client = build_client(response=make_completion(SAFE_RESPONSE), blocked_terms=["spam"])

        verdict = await client.check_message("This is SPAM!!")

        assert verdict == Verdict(True, ErrorCode.CONTENT_INAPPROPRIATE, "")
        client.async_client.chat.completions.create.assert_not_called()

    @pytest.mark.asyncio
    async def test_safe_classifier_answer(self):
        client = build_client(response=make_completion(SAFE_RESPONSE))

        verdict = await client.check_message("hello there")

        assert verdict == Verdict(False, ErrorCode.NONE, "")

    @pytest.mark.asyncio
    async def test_malicious_classifier_answer_round_trip(self):
        client = build_client(response=make_completion(SCAM_RESPONSE))

        verdict = await client.check_message("click this link")

        assert verdict.is_malicious is True
        assert verdict.error_code == "CONTENT_SCAM"
        assert verdict.reason == "phishing link"

    @pytest.mark.asyncio
    async def test_fenced_classifier_answer(self):
        client = build_client(response=make_completion(f"```json\n{SCAM_RESPONSE}\n```"))

        verdict = await client.check_message("click this link")

        assert verdict == Verdict.rejected(ErrorCode.CONTENT_SCAM, "phishing link")

    @pytest.mark.asyncio
    async def test_blank_error_code_defaults_to_other(self):
        client = build_client(response=make_completion('{"is_malicious": true, "error_code": "", "reason": "odd"}'))

        verdict = await client.check_message("something")

        assert verdict == Verdict(True, ErrorCode.CONTENT_OTHER, "odd")

    @pytest.mark.asyncio
    async def test_request_parameters(self):
        client = build_client(response=make_completion(SAFE_RESPONSE), model="test-model")

        await client.check_message("hello")

        kwargs = client.async_client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "test-model"
        assert kwargs["temperature"] == DEFAULT_TEMPERATURE
        assert kwargs["max_tokens"] == DEFAULT_MAX_TOKENS
        assert len(kwargs["messages"]) == 1
        assert kwargs["messages"][0]["role"] == "user"
        assert 'Message: "hello"' in kwargs["messages"][0]["content"]
        assert "timeout" not in kwargs

    @pytest.mark.asyncio
    async def test_custom_prompt_template(self):
        client = build_client(response=make_completion(SAFE_RESPONSE), prompt_template=lambda text: f"judge: {text}")

        await client.check_message("hello")

        kwargs = client.async_client.chat.completions.create.call_args.kwargs
        assert kwargs["messages"][0]["content"] == "judge: hello"

    @pytest.mark.asyncio
    async def test_timeout_is_forwarded(self):
        client = build_client(response=make_completion(SAFE_RESPONSE), timeout=5.0)

        await client.check_message("hello")
        assert client.async_client.chat.completions.create.call_args.kwargs["timeout"] == 5.0

        await client.check_message("hello", timeout=1.5)
        assert client.async_client.chat.completions.create.call_args.kwargs["timeout"] == 1.5

    @pytest.mark.asyncio
    async def test_transport_error_fails_open_with_error(self):
        client = build_client(side_effect=connection_error())

        with pytest.raises(ModerationAPIError) as exc_info:
            await client.check_message("hello")

        assert exc_info.value.verdict.is_malicious is False
        assert isinstance(exc_info.value.__cause__, openai.APIConnectionError)

    @pytest.mark.asyncio
    async def test_timeout_error_is_an_api_error(self):
        timeout = openai.APITimeoutError(request=httpx.Request("POST", DEFAULT_BASE_URL))
        client = build_client(side_effect=timeout)

        with pytest.raises(ModerationAPIError):
            await client.check_message("hello")

    @pytest.mark.asyncio
    async def test_empty_choice_list_is_an_api_error(self):
        client = build_client(response=make_empty_completion())

        with pytest.raises(ModerationAPIError) as exc_info:
            await client.check_message("hello")

        assert exc_info.value.verdict == Verdict.allowed()

    @pytest.mark.asyncio
    async def test_unparseable_answer_with_markers_is_rejected(self):
        client = build_client(response=make_completion('{"is_malicious": true, reason: broken'))

        verdict = await client.check_message("hello")

        assert verdict == Verdict(True, ErrorCode.CONTENT_OTHER, "")

    @pytest.mark.asyncio
    async def test_unparseable_answer_without_markers_fails_open(self):
        client = build_client(response=make_completion("I cannot help with that."))

        verdict = await client.check_message("hello")

        assert verdict == Verdict.allowed()

    @pytest.mark.asyncio
    async def test_missing_content_fails_open(self):
        client = build_client(response=make_completion(None))

        verdict = await client.check_message("hello")

        assert verdict == Verdict.allowed()

    @pytest.mark.asyncio
    async def test_repeated_calls_are_identical(self):
        client = build_client(response=make_completion(SCAM_RESPONSE))

        verdicts = [await client.check_message("same input") for _ in range(3)]

        assert verdicts[0] == verdicts[1] == verdicts[2]

    @pytest.mark.asyncio
    async def test_concurrent_calls_share_one_client(self):
        client = build_client(response=make_completion(SCAM_RESPONSE))

        verdicts = await asyncio.gather(*(client.check_message(f"message {i}") for i in range(5)))

        assert all(v == Verdict.rejected(ErrorCode.CONTENT_SCAM, "phishing link") for v in verdicts)
        assert client.async_client.chat.completions.create.await_count == 5

    @pytest.mark.asyncio
    async def test_cancellation_propagates(self):
        started = asyncio.Event()

        async def slow_create(**kwargs):
            started.set()
            await asyncio.sleep(30)

        client = build_client()
        client.async_client.chat.completions.create = AsyncMock(side_effect=slow_create)

        task = asyncio.create_task(client.check_message("hello"))
        await started.wait()
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task

    @pytest.mark.asyncio
    async def test_html_page_with_status_200_is_an_api_error(self):
        client = ModerationClient(ClientConfig(api_key="test-key", blocked_terms=[]))
        attach_transport(client, html_gateway_transport())

        with pytest.raises(ModerationAPIError) as exc_info:
            await client.check_message("hello")

        assert exc_info.value.verdict == Verdict.allowed()

    @pytest.mark.asyncio
    async def test_choice_without_message_is_an_api_error(self):
        client = build_client(response=SimpleNamespace(choices=[SimpleNamespace(index=0)]))

        with pytest.raises(ModerationAPIError):
            await client.check_message("hello")

    @pytest.mark.asyncio
    async def test_non_text_content_is_an_api_error(self):
        client = build_client(response=make_completion(["not", "text"]))

        with pytest.raises(ModerationAPIError):
            await client.check_message("hello")

    @pytest.mark.asyncio
    async def test_missing_async_client_is_an_api_error(self):
        client = build_client(response=make_completion(SAFE_RESPONSE))
        client._async_client = None

        with pytest.raises(ModerationAPIError, match="not initialized"):
            await client.check_message("hello")

    @pytest.mark.asyncio
    async def test_filter_message_with_ai_alias(self):
        client = build_client(response=make_completion(SCAM_RESPONSE))

        assert await client.filter_message_with_ai("x") == await client.check_message("x")


class TestCheckMessageSync:
    """Tests for the blocking moderation pipeline."""

    def test_blocklist_hit(self):
        client = build_client(response=make_completion(SAFE_RESPONSE), blocked_terms=["spam"])

        assert client.check_message_sync("This is SPAM!!") == Verdict(True, ErrorCode.CONTENT_INAPPROPRIATE, "")
        client.client.chat.completions.create.assert_not_called()

    def test_classifier_answer(self):
        client = build_client(response=make_completion(SCAM_RESPONSE))

        assert client.check_message_sync("x") == Verdict.rejected(ErrorCode.CONTENT_SCAM, "phishing link")

    def test_transport_error(self):
        client = build_client(side_effect=connection_error())

        with pytest.raises(ModerationAPIError):
            client.check_message_sync("hello")

    def test_html_page_with_status_200_is_an_api_error(self):
        client = ModerationClient(ClientConfig(api_key="test-key", blocked_terms=[]))
        attach_transport(client, html_gateway_transport())

        with pytest.raises(ModerationAPIError) as exc_info:
            client.check_message_sync("hello")

        assert exc_info.value.verdict.is_malicious is False

    def test_response_that_is_a_plain_string(self):
        client = build_client(response="<html/>")

        with pytest.raises(ModerationAPIError, match="unexpected response"):
            client.check_message_sync("hello")

    def test_unconfigured_client(self):
        assert ModerationClient().filter_message_with_ai_sync("anything") == Verdict.allowed()


class TestInterpretResponseText:
    """Tests for interpret_response_text function."""

    def test_safe(self):
        assert interpret_response_text(SAFE_RESPONSE) == Verdict.allowed()

    def test_safe_answer_drops_reason(self):
        assert interpret_response_text('{"is_malicious": false, "reason": "fine"}') == Verdict.allowed()

    def test_bare_fence(self):
        assert interpret_response_text(f"```\n{SCAM_RESPONSE}\n```") == Verdict.rejected("CONTENT_SCAM", "phishing link")

    def test_unknown_code_maps_to_other(self):
        verdict = interpret_response_text('{"is_malicious": true, "error_code": "CONTENT_WEIRD", "reason": "r"}')
        assert verdict == Verdict(True, ErrorCode.CONTENT_OTHER, "r")
