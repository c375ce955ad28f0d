"""Field-validation adapters around ModerationClient.

Unlike the client itself, validators fail closed: a message that cannot be
verified is treated as unacceptable. Empty values are accepted so optional
fields pass through untouched.
"""

from __future__ import annotations

from typing import Callable, MutableMapping, Optional

from pydantic import AfterValidator
from pydantic_core import PydanticCustomError

from modfilter.ai.llm_engine import ModerationClient
from modfilter.util.logger import get_logger

logger = get_logger("acceptable")

ACCEPTABLE_TAG = "acceptable"

MessagePredicate = Callable[[str], bool]


def acceptable_message_validator(client: ModerationClient, timeout: Optional[float] = None) -> MessagePredicate:
    """Return a predicate that is True when a message is NOT malicious."""

    def validate(message: str) -> bool:
        if not message:
            return True
        try:
            verdict = client.filter_message_with_ai_sync(message, timeout=timeout)
        except Exception as exc:
            logger.warning("[VALIDATOR] Error validating message, rejecting it: %s", exc)
            return False
        return not verdict.is_malicious

    return validate


async def is_acceptable(client: ModerationClient, message: str, timeout: Optional[float] = None) -> bool:
    """Async counterpart of the predicate returned by :func:`acceptable_message_validator`."""
    if not message:
        return True
    try:
        verdict = await client.filter_message_with_ai(message, timeout=timeout)
    except Exception as exc:
        logger.warning("[VALIDATOR] Error validating message, rejecting it: %s", exc)
        return False
    return not verdict.is_malicious


def AcceptableMessage(client: ModerationClient, timeout: Optional[float] = None) -> AfterValidator:
    """Pydantic validator for ``Annotated[str, AcceptableMessage(client)]`` fields.

    Raises a ``acceptable`` validation error when the message is rejected or
    cannot be checked.
    """
    predicate = acceptable_message_validator(client, timeout=timeout)

    def check(value: str) -> str:
        if not predicate(value):
            raise PydanticCustomError(ACCEPTABLE_TAG, "message is not acceptable")
        return value

    return AfterValidator(check)


def register_acceptable_validator(
    registry: MutableMapping[str, MessagePredicate],
    client: ModerationClient,
    tag: str = ACCEPTABLE_TAG,
) -> MessagePredicate:
    """Register the acceptable-message predicate under ``tag`` in a tag-to-predicate registry."""
    predicate = acceptable_message_validator(client)
    registry[tag] = predicate
    return predicate
