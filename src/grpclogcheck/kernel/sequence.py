"""Call-sequence state machine over a stream of log entries.

The expected trace for a remotely executed copy action whose input was found in
the disk cache is:

1. a FindMissingBlobs call whose request lists the target digest,
2. at least one Write, one of which uploads the target digest,
3. an Execute whose first done response has the target digest among its
   output files (the action copies its input, so the digests are equal).

Calls whose method name ends in none of the three suffixes are skipped without
touching the stage. Extra Writes after the matching one are tolerated.

``step`` is a pure function of (stage, entry, target). ``CheckSession`` threads
the stage through a stream of entries and prints diagnostics as it goes.
"""

import sys
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional, TextIO, Tuple

from grpclogcheck.codes import CheckCode
from grpclogcheck.kernel.digest import ContentDigest
from grpclogcheck.kernel.extract import ResultKind, extract_result, first_done
from grpclogcheck.kernel.printer import DELIMITER, format_log_entry

LOOKUP_SUFFIX = "/FindMissingBlobs"
UPLOAD_SUFFIX = "/Write"
EXECUTE_SUFFIX = "/Execute"


class Stage(str, Enum):
    """What the checker expects next. Only moves forward."""
    AWAIT_LOOKUP = "AWAIT_LOOKUP"
    AWAIT_UPLOAD = "AWAIT_UPLOAD"
    AWAIT_EXECUTE = "AWAIT_EXECUTE"


class Verdict(str, Enum):
    PASS = "PASS"
    FAIL = "FAIL"
    INCOMPLETE = "INCOMPLETE"


_STAGE_CALLS = {
    Stage.AWAIT_LOOKUP: "FindMissingBlobs",
    Stage.AWAIT_UPLOAD: "Write",
    Stage.AWAIT_EXECUTE: "Execute",
}


@dataclass(frozen=True)
class StepResult:
    """Outcome of feeding one entry to the state machine.

    ``verdict`` is None while the check continues. ``progress`` is a stage
    message printed followed by the delimiter; ``notes`` are printed as-is.
    """
    stage: Stage
    verdict: Optional[Verdict] = None
    code: Optional[CheckCode] = None
    message: Optional[str] = None
    progress: Optional[str] = None
    notes: Tuple[str, ...] = ()

    @property
    def finished(self) -> bool:
        return self.verdict is not None


def is_skippable_method(method_name: str) -> bool:
    """Only the presence and order of lookup, upload and execute calls matter."""
    return not (
        method_name.endswith(LOOKUP_SUFFIX)
        or method_name.endswith(UPLOAD_SUFFIX)
        or method_name.endswith(EXECUTE_SUFFIX)
    )


def _fail(stage: Stage, code: CheckCode, message: str, notes: Tuple[str, ...] = ()) -> StepResult:
    return StepResult(stage=stage, verdict=Verdict.FAIL, code=code, message=message, notes=notes)


def _step_lookup(entry, target: ContentDigest) -> StepResult:
    stage = Stage.AWAIT_LOOKUP
    method_name = entry.method_name
    if not method_name.endswith(LOOKUP_SUFFIX):
        return _fail(
            stage,
            CheckCode.UNEXPECTED_METHOD,
            f"Unexpected method: {method_name}. Expected FindMissingBlobs",
        )
    request = entry.details.find_missing_blobs.request
    if not target.in_digests(request.blob_digests):
        return _fail(
            stage,
            CheckCode.MISSING_LOOKUP_DIGEST,
            f"Found FindMissingBlob, but missing expected digest: {target.hash}",
        )
    return StepResult(
        stage=Stage.AWAIT_UPLOAD,
        progress=f"Found first FindMissingBlobs, with expected digest ({target.hash})",
    )


def _step_upload(entry, target: ContentDigest) -> StepResult:
    stage = Stage.AWAIT_UPLOAD
    method_name = entry.method_name
    if not method_name.endswith(UPLOAD_SUFFIX):
        return _fail(
            stage,
            CheckCode.UNEXPECTED_METHOD,
            f"Unexpected method: {method_name}. Expected at least one Write for digest: {target.hash}",
        )
    if not target.in_resource_names(entry.details.write.resource_names):
        return StepResult(
            stage=stage,
            progress="Found Write before first Execute, but not the expected digest yet",
        )
    return StepResult(
        stage=Stage.AWAIT_EXECUTE,
        progress=f"Found Write with expected digest ({target.hash})",
    )


def _step_execute(entry, target: ContentDigest) -> StepResult:
    stage = Stage.AWAIT_EXECUTE
    method_name = entry.method_name
    if method_name.endswith(UPLOAD_SUFFIX):
        return StepResult(stage=stage)
    if not method_name.endswith(EXECUTE_SUFFIX):
        return _fail(
            stage,
            CheckCode.UNEXPECTED_METHOD,
            f"Unexpected method: {method_name}. Expected Execute",
        )

    operation = first_done(entry.details.execute.responses)
    if operation is None:
        return _fail(
            stage,
            CheckCode.MISSING_DONE_RESPONSE,
            "Found first Execute, but missing response with 'done == True'",
        )

    # RecordDecodeError from a mistyped payload propagates to the caller.
    extracted = extract_result(operation)
    notes = tuple(extracted.describe())
    if extracted.kind is not ResultKind.SUCCESS:
        return _fail(
            stage,
            CheckCode.UNEXPECTED_RESPONSE,
            "Found first Execute, but got unexpected response",
            notes=notes,
        )

    output_files = extracted.payload.result.output_files
    if not target.in_digests(f.digest for f in output_files):
        return _fail(
            stage,
            CheckCode.MISSING_OUTPUT_DIGEST,
            f"Found first Execute, but it is missing the expected digest ({target.hash}) in output files",
            notes=notes,
        )

    message = f"Found first Execute, with expected digest ({target.hash}) in its output files"
    return StepResult(
        stage=stage,
        verdict=Verdict.PASS,
        message=message,
        progress=message,
        notes=notes,
    )


_STEPS = {
    Stage.AWAIT_LOOKUP: _step_lookup,
    Stage.AWAIT_UPLOAD: _step_upload,
    Stage.AWAIT_EXECUTE: _step_execute,
}


def step(stage: Stage, entry, target: ContentDigest) -> StepResult:
    """Advance the state machine by one entry."""
    if is_skippable_method(entry.method_name):
        return StepResult(stage=stage)
    return _STEPS[stage](entry, target)


def exhausted(stage: Stage) -> StepResult:
    """Result for a stream that ended before the Execute stage passed."""
    return StepResult(
        stage=stage,
        verdict=Verdict.INCOMPLETE,
        code=CheckCode.LOG_EXHAUSTED,
        message=f"Log ended while still expecting {_STAGE_CALLS[stage]}",
    )


class CheckSession:
    """Owns the stage for one pass over one log and prints as it goes."""

    def __init__(self, target: ContentDigest, out: Optional[TextIO] = None, verbose: bool = True):
        self.target = target
        self.stage = Stage.AWAIT_LOOKUP
        self.entries_read = 0
        self._out = out if out is not None else sys.stdout
        self._verbose = verbose

    def _print(self, text: str) -> None:
        self._out.write(text)

    def feed(self, entry) -> StepResult:
        self.entries_read += 1
        if self._verbose:
            self._print(format_log_entry(entry))
            self._print(DELIMITER)

        result = step(self.stage, entry, self.target)
        self.stage = result.stage

        if self._verbose:
            for note in result.notes:
                self._print(note + "\n")
        if result.progress is not None and (self._verbose or result.verdict is Verdict.PASS):
            self._print(result.progress + "\n")
            self._print(DELIMITER)
        return result

    def run(self, entries: Iterable) -> StepResult:
        """Feed entries until a verdict, or report exhaustion."""
        for entry in entries:
            result = self.feed(entry)
            if result.finished:
                return result
        return exhausted(self.stage)
