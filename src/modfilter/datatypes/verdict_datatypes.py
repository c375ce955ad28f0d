"""
Verdict types produced by the moderation pipeline.

This module defines the ErrorCode enum and the immutable Verdict dataclass
returned by every moderation check.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict


class ErrorCode(str, Enum):
    """Enumeration of rejection reasons understood by the classifier."""

    NONE = ""
    CONTENT_SPAM = "CONTENT_SPAM"
    CONTENT_INAPPROPRIATE = "CONTENT_INAPPROPRIATE"
    CONTENT_HARASSMENT = "CONTENT_HARASSMENT"
    CONTENT_SCAM = "CONTENT_SCAM"
    CONTENT_VIOLENCE = "CONTENT_VIOLENCE"
    CONTENT_OTHER = "CONTENT_OTHER"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def from_model(cls, raw: str | None) -> "ErrorCode":
        """Map a code emitted by the classifier onto a rejection code.

        Blank and unknown codes both become ``CONTENT_OTHER``.
        """
        value = (raw or "").strip().upper()
        if not value:
            return cls.CONTENT_OTHER
        try:
            code = cls(value)
        except ValueError:
            return cls.CONTENT_OTHER
        return cls.CONTENT_OTHER if code is cls.NONE else code


@dataclass(frozen=True, slots=True)
class Verdict:
    """Outcome of a moderation check.

    Attributes:
        is_malicious: True if the message should be rejected
        error_code: Rejection code, ``ErrorCode.NONE`` when the message is allowed
        reason: Brief free-text reason, empty when the message is allowed
    """

    is_malicious: bool = False
    error_code: ErrorCode = ErrorCode.NONE
    reason: str = ""

    def __post_init__(self) -> None:
        if not self.is_malicious and (self.error_code is not ErrorCode.NONE or self.reason):
            raise ValueError("allowed verdicts carry no error code or reason")
        if self.is_malicious and self.error_code is ErrorCode.NONE:
            raise ValueError("rejected verdicts need an error code")

    @classmethod
    def allowed(cls) -> "Verdict":
        return cls()

    @classmethod
    def rejected(cls, error_code: ErrorCode | str | None = None, reason: str = "") -> "Verdict":
        """Build a rejection, defaulting the code to ``CONTENT_OTHER``."""
        if isinstance(error_code, ErrorCode) and error_code is not ErrorCode.NONE:
            code = error_code
        else:
            code = ErrorCode.from_model(error_code)
        return cls(is_malicious=True, error_code=code, reason=reason or "")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "is_malicious": self.is_malicious,
            "error_code": self.error_code.value or None,
            "reason": self.reason,
        }
