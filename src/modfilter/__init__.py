"""
modfilter - shared message moderation helpers

Checks user messages with a two-stage filter: a word-boundary blocklist
pre-filter followed by an LLM classifier reached over an OpenAI-compatible
chat completion API (Groq by default).

Core Components:

- **ModerationClient**: runs the pipeline and returns a Verdict; fails open
  when unconfigured or when the classifier answer is unusable
- **Validators**: fail-closed predicates and pydantic validators for form fields
- **MaliciousMessageSaver**: protocol for projects that store rejected messages

Usage:
    from modfilter import ClientConfig, ModerationClient

    client = ModerationClient(ClientConfig(blocked_terms=["spam"]))
    verdict = client.check_message_sync("hello there")
"""

from modfilter.ai.llm_engine import ClientConfig, ModerationAPIError, ModerationClient, new_client
from modfilter.datatypes.verdict_datatypes import ErrorCode, Verdict
from modfilter.moderation.malicious_message import MaliciousMessageSaver, save_malicious_message
from modfilter.moderation.moderation_parsing import ModerationParseError
from modfilter.moderation.prompt_builder import PromptTemplate, default_prompt_template
from modfilter.moderation.term_matcher import contains_blocked_term

__version__ = "0.1.0"

__all__ = [
    "ClientConfig",
    "ErrorCode",
    "MaliciousMessageSaver",
    "ModerationAPIError",
    "ModerationClient",
    "ModerationParseError",
    "PromptTemplate",
    "Verdict",
    "contains_blocked_term",
    "default_prompt_template",
    "new_client",
    "save_malicious_message",
]
