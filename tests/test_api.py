"""Tests for the public check API."""

import hashlib
import io

import pytest
from pydantic import ValidationError

from grpclogcheck import CheckCode, CheckConfig, CheckResult, check_log, run_check
from grpclogcheck.kernel.schema import ActionResult

HASH = "abc123"
SIZE = 42


def _check(path, hash_=HASH, size=SIZE):
    out = io.StringIO()
    result = check_log(path, hash_, size, out=out)
    return result, out.getvalue()


def test_passing_log(entries, write_log):
    path = write_log(entries.passing_trace())
    result, out = _check(path)
    assert isinstance(result, CheckResult)
    assert result.ok is True
    assert result.verdict == "PASS"
    assert result.stage == "AWAIT_EXECUTE"
    assert result.entries_read == 3
    assert result.issues == []
    assert "Found first Execute, with expected digest (abc123) in its output files" in out


def test_wrong_output_digest_fails(entries, write_log):
    response = entries.execute_response(entries.digest("xyz999", 42))
    path = write_log([entries.lookup(), entries.write(), entries.execute(entries.done_operation(response))])
    result, _ = _check(path)
    assert result.ok is False
    assert result.verdict == "FAIL"
    assert result.issues[0].code == CheckCode.MISSING_OUTPUT_DIGEST.value
    assert result.issues[0].entry_index == 2
    assert "missing the expected digest (abc123) in output files" in result.message


def test_lookup_skipped_fails_on_first_entry(entries, write_log):
    path = write_log([entries.write(), entries.execute()])
    result, _ = _check(path)
    assert result.issues[0].code == CheckCode.UNEXPECTED_METHOD.value
    assert result.entries_read == 1
    assert result.message.startswith("Unexpected method:")


def test_lookup_missing_digest_does_not_advance(entries, write_log):
    path = write_log([entries.lookup(entries.digest("other", 1)), entries.write(), entries.execute()])
    result, _ = _check(path)
    assert result.issues[0].code == CheckCode.MISSING_LOOKUP_DIGEST.value
    assert result.stage == "AWAIT_LOOKUP"


def test_empty_log_is_incomplete(write_log):
    result, out = _check(write_log([]))
    assert result.ok is False
    assert result.verdict == "INCOMPLETE"
    assert result.issues[0].code == CheckCode.LOG_EXHAUSTED.value
    assert result.issues[0].entry_index is None
    assert out == ""


def test_missing_log_file(tmp_path):
    result, _ = _check(tmp_path / "absent.log")
    assert result.verdict == "FAIL"
    assert result.issues[0].code == CheckCode.LOG_NOT_FOUND.value
    assert result.log_sha256 is None


def test_truncated_log_is_decode_error(entries, write_log):
    path = write_log(entries.passing_trace())
    data = path.read_bytes()
    path.write_bytes(data[:-3])
    result, _ = _check(path)
    assert result.verdict == "FAIL"
    assert result.issues[0].code == CheckCode.DECODE_ERROR.value
    assert result.entries_read == 2


def test_mistyped_execute_response_is_decode_error(entries, write_log):
    execute = entries.execute(entries.done_operation(ActionResult()))
    path = write_log([entries.lookup(), entries.write(), execute])
    result, _ = _check(path)
    assert result.issues[0].code == CheckCode.DECODE_ERROR.value
    assert "ActionResult" in result.message


def test_log_sha256_matches_file(entries, write_log):
    path = write_log(entries.passing_trace())
    result, _ = _check(path)
    assert result.log_sha256 == "sha256:" + hashlib.sha256(path.read_bytes()).hexdigest()


def test_rerun_gives_identical_result_and_output(entries, write_log):
    path = write_log([entries.other(), entries.lookup(), entries.write("x/blobs/q/1"), entries.write(), entries.execute()])
    first, first_out = _check(path)
    second, second_out = _check(path)
    assert first == second
    assert first_out == second_out


def test_unrelated_calls_never_change_verdict(entries, write_log):
    trace = entries.passing_trace()
    noisy = []
    for entry in trace:
        noisy.extend([entries.other(), entry, entries.other("/google.bytestream.ByteStream/Read")])
    plain_result, _ = _check(write_log(trace, name="plain.log"))
    noisy_result, _ = _check(write_log(noisy, name="noisy.log"))
    assert plain_result.verdict == noisy_result.verdict == "PASS"


def test_quiet_output(entries, write_log):
    out = io.StringIO()
    run_check(
        CheckConfig(log_path=write_log(entries.passing_trace()), file_hash=HASH, size_bytes=SIZE),
        out=out,
        verbose=False,
    )
    assert "method_name" not in out.getvalue()


@pytest.mark.parametrize("hash_, size", [("", 1), (HASH, -1)])
def test_invalid_config_rejected(tmp_path, hash_, size):
    with pytest.raises(ValidationError):
        check_log(tmp_path / "grpc.log", hash_, size)


def test_config_target():
    config = CheckConfig(log_path="grpc.log", file_hash=HASH, size_bytes=SIZE)
    assert config.target.resource_suffix() == "abc123/42"


def test_output_mode_does_not_change_verdict(entries, write_log):
    wait = entries.other("/build.bazel.remote.execution.v2.Execution/WaitExecution")
    wait.details.wait_execution.responses.append(entries.done_operation(ActionResult(exit_code=1)))
    execute = entries.execute(entries.done_operation(), entries.done_operation(ActionResult()))
    path = write_log([entries.lookup(), wait, entries.write(), execute])
    verbose = check_log(path, HASH, SIZE, out=io.StringIO(), verbose=True)
    quiet = check_log(path, HASH, SIZE, out=io.StringIO(), verbose=False)
    assert verbose.verdict == quiet.verdict == "PASS"


def test_log_sha256_covers_entries_after_pass(entries, write_log):
    path = write_log(entries.passing_trace() + [entries.lookup(), entries.other()])
    result, _ = _check(path)
    assert result.verdict == "PASS"
    assert result.entries_read == 3
    assert result.log_sha256 == "sha256:" + hashlib.sha256(path.read_bytes()).hexdigest()


def test_decode_error_still_reports_log_sha256(tmp_path):
    path = tmp_path / "grpc.log"
    path.write_bytes(b"\x05\x00")
    result, _ = _check(path)
    assert result.issues[0].code == CheckCode.DECODE_ERROR.value
    assert result.log_sha256 == "sha256:" + hashlib.sha256(b"\x05\x00").hexdigest()


def test_log_opened_once(entries, write_log, monkeypatch):
    import builtins

    path = write_log(entries.passing_trace())
    opened = []
    real_open = builtins.open

    def _counting_open(file, *args, **kwargs):
        opened.append(file)
        return real_open(file, *args, **kwargs)

    monkeypatch.setattr("grpclogcheck.api.open", _counting_open, raising=False)
    result, _ = _check(path)
    assert result.ok is True
    assert opened == [path]


def test_unreadable_log_is_failure(entries, write_log, monkeypatch):
    path = write_log(entries.passing_trace())

    def _denied(file, *args, **kwargs):
        raise PermissionError(13, "Permission denied", str(file))

    monkeypatch.setattr("grpclogcheck.api.open", _denied, raising=False)
    result, _ = _check(path)
    assert result.verdict == "FAIL"
    assert result.issues[0].code == CheckCode.LOG_UNREADABLE.value
    assert "Permission denied" in result.message


def test_directory_is_unreadable_log(tmp_path):
    result, _ = _check(tmp_path)
    assert result.verdict == "FAIL"
    assert result.issues[0].code == CheckCode.LOG_UNREADABLE.value
