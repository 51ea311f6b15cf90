"""Protobuf schema for recorded remote-execution gRPC log entries.

The log is a stream of ``remote_logging.LogEntry`` messages. Only the subset of
the remote-execution API that the checker and the printer look at is declared
here; anything else in a record survives as unknown fields.

Operation, Status and Any come from their published runtime packages
(googleapis-common-protos and protobuf). The remaining messages are declared
as FileDescriptorProtos and registered in the default descriptor pool, the
same way generated ``*_pb2`` modules register themselves.
"""

from google.protobuf import descriptor_pb2, descriptor_pool, message_factory
from google.protobuf import timestamp_pb2
from google.longrunning import operations_proto_pb2
from google.rpc import status_pb2

REMOTE_EXECUTION_PACKAGE = "build.bazel.remote.execution.v2"
BYTESTREAM_PACKAGE = "google.bytestream"
LOGGING_PACKAGE = "remote_logging"

_F = descriptor_pb2.FieldDescriptorProto

_STRING = _F.TYPE_STRING
_INT32 = _F.TYPE_INT32
_INT64 = _F.TYPE_INT64
_BOOL = _F.TYPE_BOOL
_BYTES = _F.TYPE_BYTES
_MESSAGE = _F.TYPE_MESSAGE


def _field(name, number, kind, type_name=None, repeated=False, oneof_index=None):
    field = _F(
        name=name,
        number=number,
        type=kind,
        label=_F.LABEL_REPEATED if repeated else _F.LABEL_OPTIONAL,
    )
    if type_name is not None:
        field.type_name = type_name
    if oneof_index is not None:
        field.oneof_index = oneof_index
    return field


def _message(name, *fields, oneofs=()):
    message = descriptor_pb2.DescriptorProto(name=name)
    message.field.extend(fields)
    for oneof_name in oneofs:
        message.oneof_decl.add(name=oneof_name)
    return message


def _file(name, package, messages, dependencies=()):
    file_proto = descriptor_pb2.FileDescriptorProto(
        name=name,
        package=package,
        syntax="proto3",
    )
    file_proto.dependency.extend(dependencies)
    file_proto.message_type.extend(messages)
    return file_proto


def _remote_execution_file():
    digest = f".{REMOTE_EXECUTION_PACKAGE}.Digest"
    return _file(
        "build/bazel/remote/execution/v2/remote_execution.proto",
        REMOTE_EXECUTION_PACKAGE,
        [
            _message(
                "Digest",
                _field("hash", 1, _STRING),
                _field("size_bytes", 2, _INT64),
            ),
            _message(
                "FindMissingBlobsRequest",
                _field("instance_name", 1, _STRING),
                _field("blob_digests", 2, _MESSAGE, digest, repeated=True),
            ),
            _message(
                "FindMissingBlobsResponse",
                _field("missing_blob_digests", 2, _MESSAGE, digest, repeated=True),
            ),
            _message(
                "ExecuteRequest",
                _field("instance_name", 1, _STRING),
                _field("skip_cache_lookup", 3, _BOOL),
                _field("action_digest", 6, _MESSAGE, digest),
            ),
            _message(
                "WaitExecutionRequest",
                _field("name", 1, _STRING),
            ),
            _message(
                "GetActionResultRequest",
                _field("instance_name", 1, _STRING),
                _field("action_digest", 2, _MESSAGE, digest),
            ),
            _message(
                "OutputFile",
                _field("path", 1, _STRING),
                _field("digest", 2, _MESSAGE, digest),
                _field("is_executable", 4, _BOOL),
                _field("contents", 5, _BYTES),
            ),
            _message(
                "ActionResult",
                _field("output_files", 2, _MESSAGE, f".{REMOTE_EXECUTION_PACKAGE}.OutputFile", repeated=True),
                _field("exit_code", 4, _INT32),
                _field("stdout_raw", 5, _BYTES),
                _field("stdout_digest", 6, _MESSAGE, digest),
                _field("stderr_raw", 7, _BYTES),
                _field("stderr_digest", 8, _MESSAGE, digest),
            ),
            _message(
                "ExecuteResponse",
                _field("result", 1, _MESSAGE, f".{REMOTE_EXECUTION_PACKAGE}.ActionResult"),
                _field("cached_result", 2, _BOOL),
                _field("status", 3, _MESSAGE, ".google.rpc.Status"),
                _field("message", 5, _STRING),
            ),
        ],
        dependencies=[status_pb2.DESCRIPTOR.name],
    )


def _bytestream_file():
    return _file(
        "google/bytestream/bytestream.proto",
        BYTESTREAM_PACKAGE,
        [
            _message(
                "ReadRequest",
                _field("resource_name", 1, _STRING),
                _field("read_offset", 2, _INT64),
                _field("read_limit", 3, _INT64),
            ),
        ],
    )


def _logging_file(remote_execution_name, bytestream_name):
    rex = f".{REMOTE_EXECUTION_PACKAGE}"
    log = f".{LOGGING_PACKAGE}"
    operation = ".google.longrunning.Operation"
    return _file(
        "src/main/protobuf/remote_execution_log.proto",
        LOGGING_PACKAGE,
        [
            _message(
                "ExecuteDetails",
                _field("request", 1, _MESSAGE, f"{rex}.ExecuteRequest"),
                _field("responses", 2, _MESSAGE, operation, repeated=True),
            ),
            _message(
                "WaitExecutionDetails",
                _field("request", 1, _MESSAGE, f"{rex}.WaitExecutionRequest"),
                _field("responses", 2, _MESSAGE, operation, repeated=True),
            ),
            _message(
                "GetActionResultDetails",
                _field("request", 1, _MESSAGE, f"{rex}.GetActionResultRequest"),
                _field("response", 2, _MESSAGE, f"{rex}.ActionResult"),
            ),
            _message(
                "FindMissingBlobsDetails",
                _field("request", 1, _MESSAGE, f"{rex}.FindMissingBlobsRequest"),
                _field("response", 2, _MESSAGE, f"{rex}.FindMissingBlobsResponse"),
            ),
            _message(
                "ReadDetails",
                _field("request", 1, _MESSAGE, f".{BYTESTREAM_PACKAGE}.ReadRequest"),
                _field("num_reads", 2, _INT64),
                _field("bytes_read", 3, _INT64),
            ),
            _message(
                "WriteDetails",
                _field("resource_names", 1, _STRING, repeated=True),
                _field("offsets", 2, _INT64, repeated=True),
                _field("finish_writes", 3, _BOOL, repeated=True),
                _field("num_writes", 4, _INT64),
                _field("bytes_sent", 5, _INT64),
            ),
            _message(
                "RpcCallDetails",
                _field("execute", 1, _MESSAGE, f"{log}.ExecuteDetails", oneof_index=0),
                _field("get_action_result", 2, _MESSAGE, f"{log}.GetActionResultDetails", oneof_index=0),
                _field("wait_execution", 3, _MESSAGE, f"{log}.WaitExecutionDetails", oneof_index=0),
                _field("find_missing_blobs", 4, _MESSAGE, f"{log}.FindMissingBlobsDetails", oneof_index=0),
                _field("read", 5, _MESSAGE, f"{log}.ReadDetails", oneof_index=0),
                _field("write", 6, _MESSAGE, f"{log}.WriteDetails", oneof_index=0),
                oneofs=["details"],
            ),
            _message(
                "LogEntry",
                _field("start_time", 1, _MESSAGE, ".google.protobuf.Timestamp"),
                _field("end_time", 2, _MESSAGE, ".google.protobuf.Timestamp"),
                _field("status", 3, _MESSAGE, ".google.rpc.Status"),
                _field("method_name", 5, _STRING),
                _field("details", 6, _MESSAGE, f"{log}.RpcCallDetails"),
            ),
        ],
        dependencies=[
            timestamp_pb2.DESCRIPTOR.name,
            status_pb2.DESCRIPTOR.name,
            operations_proto_pb2.DESCRIPTOR.name,
            remote_execution_name,
            bytestream_name,
        ],
    )


def _register():
    pool = descriptor_pool.Default()
    remote_execution = _remote_execution_file()
    bytestream = _bytestream_file()
    logging_file = _logging_file(remote_execution.name, bytestream.name)
    for file_proto in (remote_execution, bytestream, logging_file):
        pool.AddSerializedFile(file_proto.SerializeToString())
    return pool


_POOL = _register()


def _message_class(full_name):
    return message_factory.GetMessageClass(_POOL.FindMessageTypeByName(full_name))


Operation = operations_proto_pb2.Operation
Status = status_pb2.Status

Digest = _message_class(f"{REMOTE_EXECUTION_PACKAGE}.Digest")
FindMissingBlobsRequest = _message_class(f"{REMOTE_EXECUTION_PACKAGE}.FindMissingBlobsRequest")
FindMissingBlobsResponse = _message_class(f"{REMOTE_EXECUTION_PACKAGE}.FindMissingBlobsResponse")
ExecuteRequest = _message_class(f"{REMOTE_EXECUTION_PACKAGE}.ExecuteRequest")
WaitExecutionRequest = _message_class(f"{REMOTE_EXECUTION_PACKAGE}.WaitExecutionRequest")
GetActionResultRequest = _message_class(f"{REMOTE_EXECUTION_PACKAGE}.GetActionResultRequest")
OutputFile = _message_class(f"{REMOTE_EXECUTION_PACKAGE}.OutputFile")
ActionResult = _message_class(f"{REMOTE_EXECUTION_PACKAGE}.ActionResult")
ExecuteResponse = _message_class(f"{REMOTE_EXECUTION_PACKAGE}.ExecuteResponse")

ReadRequest = _message_class(f"{BYTESTREAM_PACKAGE}.ReadRequest")

ExecuteDetails = _message_class(f"{LOGGING_PACKAGE}.ExecuteDetails")
WaitExecutionDetails = _message_class(f"{LOGGING_PACKAGE}.WaitExecutionDetails")
GetActionResultDetails = _message_class(f"{LOGGING_PACKAGE}.GetActionResultDetails")
FindMissingBlobsDetails = _message_class(f"{LOGGING_PACKAGE}.FindMissingBlobsDetails")
ReadDetails = _message_class(f"{LOGGING_PACKAGE}.ReadDetails")
WriteDetails = _message_class(f"{LOGGING_PACKAGE}.WriteDetails")
RpcCallDetails = _message_class(f"{LOGGING_PACKAGE}.RpcCallDetails")
LogEntry = _message_class(f"{LOGGING_PACKAGE}.LogEntry")
