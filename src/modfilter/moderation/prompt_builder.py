"""Prompt construction for the moderation classifier.

A prompt template is any callable mapping the message text to the prompt
string. Custom templates must keep asking for the same JSON shape
(``is_malicious``, ``error_code``, ``reason``) so responses stay parseable.
"""

from __future__ import annotations

from typing import Callable

PromptTemplate = Callable[[str], str]

MESSAGE_INJECT = "<|MESSAGE_INJECT|>"

DEFAULT_PROMPT = """Analyze the following message and determine if it contains malicious, inappropriate, spam, or harmful content.

Message: "<|MESSAGE_INJECT|>"

Respond with ONLY a JSON object in this exact format:
{
  "is_malicious": true or false,
  "error_code": "ERROR_CODE" or null,
  "reason": "brief reason"
}

Error codes to use if malicious:
- CONTENT_SPAM: for spam messages
- CONTENT_INAPPROPRIATE: for inappropriate language or content
- CONTENT_HARASSMENT: for harassment or bullying
- CONTENT_SCAM: for scam or phishing attempts
- CONTENT_VIOLENCE: for violent or threatening content
- CONTENT_OTHER: for other malicious content

If the message is safe, set is_malicious to false and error_code to null."""


def default_prompt_template(message_text: str) -> str:
    """Embed the message verbatim into the default moderation instructions."""
    return DEFAULT_PROMPT.replace(MESSAGE_INJECT, message_text)
