"""Human-readable rendering of log entries for operator inspection.

Rendering never decides a check outcome: a response that cannot be extracted
is reported as a line of text, not raised.
"""

from typing import List

from google.protobuf import text_format

from grpclogcheck.kernel.extract import extract_result
from grpclogcheck.kernel.reader import RecordDecodeError

DELIMITER = "-" * 57 + "\n"

# details oneof case -> label used in the "Attempted to extract" header
_STREAMING_CALLS = {
    "execute": "Execute",
    "wait_execution": "WaitExecution",
}


def describe_responses(operations) -> List[str]:
    lines: List[str] = []
    for op in operations:
        try:
            result = extract_result(op)
        except RecordDecodeError as e:
            lines.append(f"Could not extract ExecuteResponse: {e}")
            continue
        lines.extend(result.describe(error_label="ExecuteResponse"))
    return lines


def format_log_entry(entry) -> str:
    """Render an entry, plus any ExecuteResponse found in streaming call responses."""
    lines = [text_format.MessageToString(entry)]

    details_case = entry.details.WhichOneof("details")
    call_name = _STREAMING_CALLS.get(details_case)
    if call_name is not None:
        lines.append(
            f"\nAttempted to extract ExecuteResponse from streaming {call_name} call responses:"
        )
        lines.extend(describe_responses(getattr(entry.details, details_case).responses))

    return "\n".join(lines) + "\n"
