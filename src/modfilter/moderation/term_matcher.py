"""Word-boundary aware matching of messages against the blocklist."""

from __future__ import annotations

from typing import Sequence, Tuple

# Separators read as spaces so "bad_word" and "bad-word" match "bad word".
_SEPARATORS = ("_", "-")


def is_alphanumeric(char: str) -> bool:
    """Return True for ASCII letters and digits only."""
    return char.isascii() and char.isalnum()


def normalize_message(message_lower: str) -> str:
    normalized = message_lower
    for separator in _SEPARATORS:
        normalized = normalized.replace(separator, " ")
    return normalized


def is_whole_word(message: str, term: str) -> bool:
    """Return True if any occurrence of ``term`` in ``message`` sits on word boundaries.

    Every occurrence is tried, so a term embedded in a longer word earlier in
    the message does not hide a standalone occurrence later on.
    """
    if not term:
        return False

    start = 0
    while True:
        position = message.find(term, start)
        if position == -1:
            return False

        before_ok = position == 0 or not is_alphanumeric(message[position - 1])
        after_position = position + len(term)
        after_ok = after_position >= len(message) or not is_alphanumeric(message[after_position])

        if before_ok and after_ok:
            return True

        start = position + 1


def contains_blocked_term(message_text: str, blocked_terms: Sequence[str]) -> Tuple[bool, str]:
    """Check a message against the blocklist.

    Matching is case-insensitive and is done against both the lowercased
    message and a copy with ``_`` and ``-`` replaced by spaces.

    Args:
        message_text: Message to check
        blocked_terms: Terms in priority order

    Returns:
        ``(True, term)`` for the first term, in list order, found on word
        boundaries (the term is returned lowercased and trimmed), otherwise
        ``(False, "")``.
    """
    if not blocked_terms or not message_text:
        return False, ""

    message_lower = message_text.lower()
    normalized_message = normalize_message(message_lower)

    for term in blocked_terms:
        term_lower = term.strip().lower()
        if not term_lower:
            continue

        if term_lower in message_lower or term_lower in normalized_message:
            if is_whole_word(message_lower, term_lower) or is_whole_word(normalized_message, term_lower):
                return True, term_lower

    return False, ""
