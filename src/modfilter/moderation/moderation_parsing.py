"""Utilities for parsing classifier responses into moderation payloads."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Any, Dict

import jsonschema
from jsonschema import ValidationError

from modfilter.util.logger import get_logger

logger = get_logger("moderation_parsing")

# Fields are optional and default to their zero values; only the types are enforced.
MODERATION_RESPONSE_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "is_malicious": {"type": "boolean"},
        "error_code": {"type": ["string", "null"]},
        "reason": {"type": ["string", "null"]},
    },
}

_FENCE = "```"
# Opening fence with an optional language tag (json, JSON, javascript, ...).
_OPENING_FENCE = re.compile(r"^```[\w+-]*")


class ModerationParseError(ValueError):
    """Raised when a classifier response cannot be decoded into a payload."""


@dataclass(frozen=True, slots=True)
class ModerationPayload:
    """Decoded classifier answer, before it is turned into a Verdict."""

    is_malicious: bool = False
    error_code: str = ""
    reason: str = ""


def strip_code_fence(raw: str) -> str:
    """Remove a surrounding markdown code fence (any language tag or bare ```) and trim."""
    text = raw.strip()
    if text.startswith(_FENCE):
        text = _OPENING_FENCE.sub("", text, count=1).removesuffix(_FENCE)
    return text.strip()


def _extract_json_payload(raw: str) -> Any:
    """Extract JSON object from raw text using json.loads()."""
    try:
        return json.loads(raw)
    except json.JSONDecodeError as exc:
        logger.warning("[EXTRACT] Parsing failed: %s", exc)
        raise ModerationParseError("Failed to extract JSON payload") from exc


def parse_moderation_response(response: str) -> ModerationPayload:
    """Parse a classifier response into a ModerationPayload.

    Args:
        response: Raw response text, optionally wrapped in a markdown fence

    Returns:
        The decoded payload. Missing fields and ``null`` values become
        ``False`` / ``""``.

    Raises:
        ModerationParseError: If the text is not a JSON object of the expected shape.
    """
    cleaned = strip_code_fence(response)
    logger.debug("[PARSE] Parsing moderation response (%d chars)", len(cleaned))

    payload = _extract_json_payload(cleaned)

    try:
        jsonschema.validate(instance=payload, schema=MODERATION_RESPONSE_SCHEMA)
    except ValidationError as exc:
        logger.warning("[PARSE] Schema validation failed: %s", exc.message)
        raise ModerationParseError(f"Unexpected moderation payload: {exc.message}") from exc

    return ModerationPayload(
        is_malicious=payload.get("is_malicious") is True,
        error_code=(payload.get("error_code") or "").strip(),
        reason=payload.get("reason") or "",
    )


def looks_malicious(response: str) -> bool:
    """Heuristic used when a response cannot be parsed.

    True when the text mentions both ``is_malicious`` and ``true``, in any
    case and anywhere in the text. Reasoning that merely names the field can
    trigger it, so it is only applied to undecodable responses.
    """
    lowered = response.lower()
    return "is_malicious" in lowered and "true" in lowered
