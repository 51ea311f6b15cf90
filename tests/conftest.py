"""Pytest configuration and log-authoring fixtures.

No sys.path hacks - tests should import from the installed grpclogcheck package.
Logs are written with the same delimited framing the reader consumes.
"""

from pathlib import Path

import pytest
from google.longrunning import operations_proto_pb2
from google.rpc import code_pb2, status_pb2

from grpclogcheck.kernel import schema
from grpclogcheck.kernel.reader import write_delimited

HASH = "abc123"
SIZE = 42

FIND_MISSING_BLOBS = "/build.bazel.remote.execution.v2.ContentAddressableStorage/FindMissingBlobs"
WRITE = "/google.bytestream.ByteStream/Write"
EXECUTE = "/build.bazel.remote.execution.v2.Execution/Execute"
GET_CAPABILITIES = "/build.bazel.remote.execution.v2.Capabilities/GetCapabilities"
GET_ACTION_RESULT = "/build.bazel.remote.execution.v2.ActionCache/GetActionResult"
READ = "/google.bytestream.ByteStream/Read"


class EntryFactory:
    """Builds LogEntry messages for the calls the checker cares about."""

    def digest(self, hash_=HASH, size=SIZE):
        return schema.Digest(hash=hash_, size_bytes=size)

    def lookup(self, *digests):
        if not digests:
            digests = (self.digest(),)
        entry = schema.LogEntry(method_name=FIND_MISSING_BLOBS)
        entry.details.find_missing_blobs.request.blob_digests.extend(digests)
        return entry

    def write(self, *resource_names):
        if not resource_names:
            resource_names = (f"instance/uploads/1234/blobs/{HASH}/{SIZE}",)
        entry = schema.LogEntry(method_name=WRITE)
        entry.details.write.resource_names.extend(resource_names)
        entry.details.write.num_writes = 1
        return entry

    def execute_response(self, *output_digests):
        if not output_digests:
            output_digests = (self.digest(),)
        response = schema.ExecuteResponse()
        for index, digest in enumerate(output_digests):
            output = response.result.output_files.add(path=f"out/file{index}")
            output.digest.CopyFrom(digest)
        return response

    def done_operation(self, response=None, name="operations/1"):
        op = operations_proto_pb2.Operation(name=name, done=True)
        op.response.Pack(response if response is not None else self.execute_response())
        return op

    def error_operation(self, code=code_pb2.INTERNAL, message="boom", name="operations/1"):
        op = operations_proto_pb2.Operation(name=name, done=True)
        op.error.CopyFrom(status_pb2.Status(code=code, message=message))
        return op

    def pending_operation(self, name="operations/1"):
        return operations_proto_pb2.Operation(name=name, done=False)

    def execute(self, *operations):
        if not operations:
            operations = (self.pending_operation(), self.done_operation())
        entry = schema.LogEntry(method_name=EXECUTE)
        entry.details.execute.request.instance_name = "instance"
        entry.details.execute.responses.extend(operations)
        return entry

    def other(self, method_name=GET_CAPABILITIES):
        return schema.LogEntry(method_name=method_name)

    def passing_trace(self):
        return [self.lookup(), self.write(), self.execute()]


@pytest.fixture
def entries():
    return EntryFactory()


@pytest.fixture
def write_log(tmp_path):
    """Write entries to a delimited log file and return its path."""
    def _write(items, name="grpc.log") -> Path:
        path = tmp_path / name
        with open(path, "wb") as f:
            for item in items:
                write_delimited(f, item)
        return path
    return _write
