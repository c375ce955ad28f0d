from modfilter.validators.acceptable import (
    ACCEPTABLE_TAG,
    AcceptableMessage,
    acceptable_message_validator,
    is_acceptable,
    register_acceptable_validator,
)

__all__ = [
    "ACCEPTABLE_TAG",
    "AcceptableMessage",
    "acceptable_message_validator",
    "is_acceptable",
    "register_acceptable_validator",
]
