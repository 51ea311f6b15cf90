"""Public API for grpclogcheck.

High-level functions that return complete, structured results.
"""

import os
from pathlib import Path
from typing import List, Optional, TextIO, Union

from pydantic import BaseModel, ConfigDict, Field

from grpclogcheck.codes import CheckCode
from grpclogcheck.kernel.digest import ContentDigest
from grpclogcheck.kernel.hash_utils import HashingReader
from grpclogcheck.kernel.reader import DelimitedRecordReader, RecordDecodeError
from grpclogcheck.kernel.sequence import CheckSession, Stage, StepResult, Verdict


class CheckConfig(BaseModel):
    """Inputs of one check run: the log and the digest the trace must carry."""
    model_config = ConfigDict(frozen=True)

    log_path: Path
    file_hash: str = Field(min_length=1)
    size_bytes: int = Field(ge=0)

    @property
    def target(self) -> ContentDigest:
        return ContentDigest(hash=self.file_hash, size_bytes=self.size_bytes)


class CheckIssue(BaseModel):
    """A single reason the check did not pass."""
    code: str  # CheckCode value
    message: str
    stage: Optional[str] = None  # Stage the checker was in when it stopped
    entry_index: Optional[int] = None  # 0-based index of the offending entry, if any


class CheckResult(BaseModel):
    """Result of checking one log."""
    ok: bool  # True only for PASS
    verdict: str  # "PASS" | "FAIL" | "INCOMPLETE"
    stage: str  # Final stage
    entries_read: int
    message: Optional[str] = None
    log_sha256: Optional[str] = None
    issues: List[CheckIssue] = Field(default_factory=list)


def _normalize_path(path: Union[str, os.PathLike, Path]) -> Path:
    """Normalize path input to Path object."""
    return Path(path) if not isinstance(path, Path) else path


def _result_from_step(outcome: StepResult, entries_read: int, log_sha256: Optional[str]) -> CheckResult:
    issues = []
    if outcome.verdict is not Verdict.PASS:
        issues.append(CheckIssue(
            code=outcome.code.value,
            message=outcome.message,
            stage=outcome.stage.value,
            entry_index=entries_read - 1 if outcome.verdict is Verdict.FAIL else None,
        ))
    return CheckResult(
        ok=outcome.verdict is Verdict.PASS,
        verdict=outcome.verdict.value,
        stage=outcome.stage.value,
        entries_read=entries_read,
        message=outcome.message,
        log_sha256=log_sha256,
        issues=issues,
    )


def _failure(code: CheckCode, message: str, stage: Stage, entries_read: int,
             log_sha256: Optional[str] = None) -> CheckResult:
    return CheckResult(
        ok=False,
        verdict=Verdict.FAIL.value,
        stage=stage.value,
        entries_read=entries_read,
        message=message,
        log_sha256=log_sha256,
        issues=[CheckIssue(code=code.value, message=message, stage=stage.value)],
    )


def run_check(config: CheckConfig, out: Optional[TextIO] = None, verbose: bool = True) -> CheckResult:
    """Run one pass over ``config.log_path``.

    Entry dumps and stage progress are printed to ``out`` (stdout by default)
    while reading; ``verbose=False`` keeps only the passing stage message.
    The log file is opened once, hashed as it is read, and closed on every
    exit path.
    """
    log_path = config.log_path
    session = CheckSession(config.target, out=out, verbose=verbose)
    decode_error = None
    try:
        with open(log_path, "rb") as raw:
            stream = HashingReader(raw)
            try:
                outcome = session.run(DelimitedRecordReader(stream))
            except RecordDecodeError as e:
                decode_error = e
            log_sha256 = stream.hexdigest()
    except FileNotFoundError:
        return _failure(
            CheckCode.LOG_NOT_FOUND,
            f"Log file not found: {log_path}",
            session.stage,
            session.entries_read,
        )
    except OSError as e:
        return _failure(
            CheckCode.LOG_UNREADABLE,
            f"Cannot read log file {log_path}: {e}",
            session.stage,
            session.entries_read,
        )

    if decode_error is not None:
        return _failure(
            CheckCode.DECODE_ERROR,
            str(decode_error),
            session.stage,
            session.entries_read,
            log_sha256,
        )
    return _result_from_step(outcome, session.entries_read, log_sha256)


def check_log(
    log_path: Union[str, os.PathLike, Path],
    file_hash: str,
    size_bytes: int,
    out: Optional[TextIO] = None,
    verbose: bool = True,
) -> CheckResult:
    """Check that a gRPC log shows lookup, upload, then execute for one digest.

    Args:
        log_path: Path to the length-delimited LogEntry file
        file_hash: Expected content hash
        size_bytes: Expected content size in bytes
        out: Text stream for diagnostics (defaults to stdout)
        verbose: Print every entry as it is read

    Returns:
        CheckResult with verdict PASS, FAIL or INCOMPLETE

    Raises:
        pydantic.ValidationError: If file_hash is empty or size_bytes negative
    """
    config = CheckConfig(
        log_path=_normalize_path(log_path),
        file_hash=file_hash,
        size_bytes=size_bytes,
    )
    return run_check(config, out=out, verbose=verbose)
