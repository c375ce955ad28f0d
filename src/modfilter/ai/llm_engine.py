"""Two-stage message moderation against an OpenAI-compatible chat API.

This module runs the moderation pipeline for a single message:
- Checking the message against the configured blocklist (no network call).
- Building the classifier prompt and sending one chat completion request.
- Parsing the classifier's JSON answer into a Verdict.

Failure policy:
- An unconfigured client (no API key) allows every message.
- Transport/API failures and empty responses raise ModerationAPIError, which
  carries the fail-open verdict; the caller decides the final disposition.
- Undecodable responses never raise: a textual heuristic is applied and the
  message is otherwise allowed.

The client is immutable after construction and safe to share between
threads and tasks. It performs no retries, queueing or rate limiting.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple

import openai
from openai import AsyncOpenAI, OpenAI
from openai.types.chat import ChatCompletion, ChatCompletionMessageParam

from modfilter.datatypes.verdict_datatypes import ErrorCode, Verdict
from modfilter.moderation import moderation_parsing
from modfilter.moderation.blocked_terms import default_blocked_terms
from modfilter.moderation.prompt_builder import PromptTemplate, default_prompt_template
from modfilter.moderation.term_matcher import contains_blocked_term
from modfilter.util.logger import get_logger

logger = get_logger("llm_engine")

API_KEY_ENV = "GROQ_API_KEY"
MODEL_ENV = "GROQ_MODEL"
DEFAULT_MODEL = "llama-3.1-8b-instant"
DEFAULT_BASE_URL = "https://api.groq.com/openai/v1"
DEFAULT_TEMPERATURE = 0.1
DEFAULT_MAX_TOKENS = 150


class ModerationAPIError(Exception):
    """The classifier could not be reached or returned nothing usable.

    Attributes:
        verdict: Fail-open verdict the caller may fall back to
    """

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.verdict = Verdict.allowed()


@dataclass
class ClientConfig:
    """Construction-time settings for ModerationClient.

    Attributes:
        api_key: Classifier API key; read from ``GROQ_API_KEY`` when empty
        model: Model identifier; read from ``GROQ_MODEL`` when empty, then ``DEFAULT_MODEL``
        base_url: OpenAI-compatible endpoint; ``DEFAULT_BASE_URL`` when empty
        prompt_template: Prompt builder; ``default_prompt_template`` when None
        blocked_terms: Blocklist; None selects the bundled baseline, an empty
            sequence disables the blocklist stage
        temperature: Sampling temperature for the classifier call
        max_tokens: Upper bound on the classifier's answer length
        timeout: Default request deadline in seconds; None keeps the SDK default
    """

    api_key: Optional[str] = None
    model: Optional[str] = None
    base_url: Optional[str] = None
    prompt_template: Optional[PromptTemplate] = None
    blocked_terms: Optional[Sequence[str]] = None
    temperature: float = DEFAULT_TEMPERATURE
    max_tokens: int = DEFAULT_MAX_TOKENS
    timeout: Optional[float] = None


class ModerationClient:
    """
    Check messages with a blocklist pre-filter followed by an LLM classifier.

    Holds both a synchronous and an asynchronous OpenAI client so the same
    instance serves threaded code (and validators) as well as asyncio code.
    """

    def __init__(self, config: Optional[ClientConfig] = None) -> None:
        config = config or ClientConfig()

        self._api_key = config.api_key or os.getenv(API_KEY_ENV, "")
        self._model = config.model or os.getenv(MODEL_ENV) or DEFAULT_MODEL
        self._base_url = config.base_url or DEFAULT_BASE_URL
        self._prompt_template: PromptTemplate = config.prompt_template or default_prompt_template
        self._temperature = config.temperature
        self._max_tokens = config.max_tokens
        self._timeout = config.timeout

        if not self._api_key:
            logger.warning("[MODERATION] %s not set, moderation client will not be initialized", API_KEY_ENV)
            self._client: Optional[OpenAI] = None
            self._async_client: Optional[AsyncOpenAI] = None
            self._blocked_terms: Tuple[str, ...] = ()
            return

        self._client = OpenAI(api_key=self._api_key, base_url=self._base_url)
        self._async_client = AsyncOpenAI(api_key=self._api_key, base_url=self._base_url)

        if config.blocked_terms is None:
            self._blocked_terms = default_blocked_terms()
        else:
            self._blocked_terms = tuple(config.blocked_terms)

        logger.info(
            "[MODERATION] Initialized with base_url=%s, model=%s, blocked_terms=%d",
            self._base_url,
            self._model,
            len(self._blocked_terms),
        )

    # -- properties ----------------------------------------------------------

    @property
    def configured(self) -> bool:
        """Return True if an API key was available at construction."""
        return self._client is not None

    @property
    def model(self) -> str:
        return self._model

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def blocked_terms(self) -> Tuple[str, ...]:
        return self._blocked_terms

    @property
    def client(self) -> Optional[OpenAI]:
        """Underlying synchronous OpenAI client, None when not configured."""
        return self._client

    @property
    def async_client(self) -> Optional[AsyncOpenAI]:
        """Underlying asynchronous OpenAI client, None when not configured."""
        return self._async_client

    # -- pipeline stages -----------------------------------------------------

    def _precheck(self, message_text: str) -> Optional[Verdict]:
        """Return a final verdict if the message is decided without the classifier."""
        if not self.configured:
            logger.info("[MODERATION] Client not initialized, allowing message")
            return Verdict.allowed()

        matched, term = contains_blocked_term(message_text, self._blocked_terms)
        if matched:
            logger.info("[BLOCKLIST] Message rejected, matched blocked term %r", term)
            return Verdict.rejected(ErrorCode.CONTENT_INAPPROPRIATE)
        return None

    def _build_request(self, message_text: str, timeout: Optional[float]) -> Dict[str, Any]:
        messages: List[ChatCompletionMessageParam] = [
            {"role": "user", "content": self._prompt_template(message_text)},
        ]
        kwargs: Dict[str, Any] = {
            "model": self._model,
            "messages": messages,
            "temperature": self._temperature,
            "max_tokens": self._max_tokens,
        }
        deadline = timeout if timeout is not None else self._timeout
        if deadline is not None:
            kwargs["timeout"] = deadline
        return kwargs

    def _interpret_response(self, response: ChatCompletion) -> Verdict:
        # A 200 with a non-JSON body (e.g. a gateway HTML page) comes back from the SDK as a plain str.
        choices = getattr(response, "choices", None)
        if not isinstance(choices, list):
            logger.error("[MODERATION] Unexpected response from moderation API: %r", response)
            raise ModerationAPIError("unexpected response from moderation API")
        if not choices:
            logger.error("[MODERATION] No response from moderation API")
            raise ModerationAPIError("no response from moderation API")

        message = getattr(choices[0], "message", None)
        content = getattr(message, "content", None)
        if message is None or not (content is None or isinstance(content, str)):
            logger.error("[MODERATION] Unexpected choice from moderation API: %r", choices[0])
            raise ModerationAPIError("unexpected response from moderation API")

        response_text = content or ""
        logger.debug("[MODERATION] Classifier response: %s", response_text)
        return interpret_response_text(response_text)

    # -- public API ----------------------------------------------------------

    async def check_message(self, message_text: str, timeout: Optional[float] = None) -> Verdict:
        """Check a message, awaiting the classifier when the blocklist does not decide it.

        Cancelling the awaiting task aborts the pending request.

        Args:
            message_text: Message to moderate
            timeout: Request deadline in seconds, overriding the configured one

        Returns:
            The moderation verdict.

        Raises:
            ModerationAPIError: On transport/API failure, timeout or an empty response.
        """
        verdict = self._precheck(message_text)
        if verdict is not None:
            return verdict

        if self._async_client is None:
            raise ModerationAPIError("moderation client not initialized")
        try:
            response = await self._async_client.chat.completions.create(
                **self._build_request(message_text, timeout)
            )
        except openai.OpenAIError as exc:
            logger.error("[MODERATION] Error calling moderation API: %s", exc)
            raise ModerationAPIError(f"error calling moderation API: {exc}") from exc

        return self._interpret_response(response)

    def check_message_sync(self, message_text: str, timeout: Optional[float] = None) -> Verdict:
        """Blocking variant of :meth:`check_message`."""
        verdict = self._precheck(message_text)
        if verdict is not None:
            return verdict

        if self._client is None:
            raise ModerationAPIError("moderation client not initialized")
        try:
            response = self._client.chat.completions.create(
                **self._build_request(message_text, timeout)
            )
        except openai.OpenAIError as exc:
            logger.error("[MODERATION] Error calling moderation API: %s", exc)
            raise ModerationAPIError(f"error calling moderation API: {exc}") from exc

        return self._interpret_response(response)

    async def filter_message_with_ai(self, message_text: str, timeout: Optional[float] = None) -> Verdict:
        return await self.check_message(message_text, timeout=timeout)

    def filter_message_with_ai_sync(self, message_text: str, timeout: Optional[float] = None) -> Verdict:
        return self.check_message_sync(message_text, timeout=timeout)


def interpret_response_text(response_text: str) -> Verdict:
    """Turn raw classifier text into a Verdict.

    Undecodable text falls back to :func:`moderation_parsing.looks_malicious`
    and is otherwise allowed; parse problems are logged, never raised.
    """
    try:
        payload = moderation_parsing.parse_moderation_response(response_text)
    except moderation_parsing.ModerationParseError as exc:
        cleaned = moderation_parsing.strip_code_fence(response_text)
        logger.warning("[PARSE] Error parsing moderation response: %s, response: %s", exc, cleaned)
        if moderation_parsing.looks_malicious(cleaned):
            return Verdict.rejected(ErrorCode.CONTENT_OTHER)
        return Verdict.allowed()

    if not payload.is_malicious:
        return Verdict.allowed()

    verdict = Verdict.rejected(payload.error_code, payload.reason)
    logger.info(
        "[MODERATION] Message flagged as malicious: error_code=%s, reason=%s",
        verdict.error_code,
        verdict.reason,
    )
    return verdict


def new_client(config: Optional[ClientConfig] = None) -> ModerationClient:
    """Create a ModerationClient; values missing from ``config`` come from the environment."""
    return ModerationClient(config)
