"""Typed result extraction from long-running Operation envelopes.

An Operation is pending, done with an error Status, or done with a response
packed into ``google.protobuf.Any``. The extractor classifies it and, for a
response, unpacks the Any as the expected message type.

A response of the wrong embedded type is a defect in the captured log, not a
pending operation, so it raises RecordDecodeError instead of reporting
INCOMPLETE.
"""

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from google.protobuf import text_format
from google.protobuf.message import DecodeError
from google.rpc import code_pb2

from grpclogcheck.kernel.reader import RecordDecodeError
from grpclogcheck.kernel.schema import ExecuteResponse


class ResultKind(str, Enum):
    SUCCESS = "SUCCESS"
    FAILURE = "FAILURE"
    INCOMPLETE = "INCOMPLETE"


@dataclass(frozen=True)
class ExtractedResult:
    """Outcome of extracting a typed response from one Operation."""
    kind: ResultKind
    payload: Optional[object] = None  # Unpacked response message, SUCCESS only
    error: Optional[object] = None  # google.rpc.Status, FAILURE only

    @property
    def message(self) -> str:
        if self.error is None:
            return ""
        return text_format.MessageToString(self.error, as_one_line=True)

    def describe(self, label: str = "ExecuteResponse", error_label: str = "Operation") -> List[str]:
        """Operator-facing lines for this result; empty when INCOMPLETE."""
        if self.kind is ResultKind.SUCCESS:
            return [f"{label} extracted:", text_format.MessageToString(self.payload)]
        if self.kind is ResultKind.FAILURE:
            return [f"{error_label} contained error: {self.message}"]
        return []


INCOMPLETE = ExtractedResult(kind=ResultKind.INCOMPLETE)


def _unpack(packed, expected_type):
    payload = expected_type()
    if not packed.Is(payload.DESCRIPTOR):
        raise RecordDecodeError(
            f"Operation response holds '{packed.type_url}', "
            f"expected {payload.DESCRIPTOR.full_name}"
        )
    try:
        packed.Unpack(payload)
    except DecodeError as e:
        raise RecordDecodeError(
            f"Operation response is not a valid {payload.DESCRIPTOR.full_name}: {e}"
        ) from e
    return payload


def extract_result(operation, expected_type=ExecuteResponse) -> ExtractedResult:
    """Classify an Operation and unpack its response as ``expected_type``.

    Returns:
        SUCCESS with the unpacked payload when done with a response,
        FAILURE with the Status when done with a non-OK error,
        INCOMPLETE otherwise (not done, OK error, or no result set).

    Raises:
        RecordDecodeError: If the response is packed as a different type or
            its bytes do not parse.
    """
    if not operation.done:
        return INCOMPLETE

    result_case = operation.WhichOneof("result")
    if result_case == "error":
        if operation.error.code != code_pb2.OK:
            return ExtractedResult(kind=ResultKind.FAILURE, error=operation.error)
        return INCOMPLETE
    if result_case == "response":
        return ExtractedResult(
            kind=ResultKind.SUCCESS,
            payload=_unpack(operation.response, expected_type),
        )
    return INCOMPLETE


def first_done(operations) -> Optional[object]:
    """First Operation with ``done`` set, in stream order."""
    return next((op for op in operations if op.done), None)
