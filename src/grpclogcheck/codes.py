"""Check outcome code constants for grpclogcheck.api.check_log().

These constants prevent stringly-typed outcome codes and ensure
client code uses the correct check codes.
"""

from enum import Enum


class CheckCode(str, Enum):
    """Check failure codes."""

    # Protocol violations (log is well-formed but in the wrong shape)
    UNEXPECTED_METHOD = "UNEXPECTED_METHOD"
    MISSING_LOOKUP_DIGEST = "MISSING_LOOKUP_DIGEST"
    MISSING_DONE_RESPONSE = "MISSING_DONE_RESPONSE"
    UNEXPECTED_RESPONSE = "UNEXPECTED_RESPONSE"
    MISSING_OUTPUT_DIGEST = "MISSING_OUTPUT_DIGEST"

    # Input errors
    DECODE_ERROR = "DECODE_ERROR"
    LOG_NOT_FOUND = "LOG_NOT_FOUND"
    LOG_UNREADABLE = "LOG_UNREADABLE"

    # Neither pass nor violation
    LOG_EXHAUSTED = "LOG_EXHAUSTED"
