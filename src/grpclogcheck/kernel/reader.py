"""Length-delimited record framing.

Each record is a base-128 varint byte length followed by that many bytes of a
serialized protobuf message. This is the framing produced by
``writeDelimitedTo`` in the protobuf runtimes, and the one gRPC log files use.

End of input exactly on a record boundary is end-of-stream; anything else that
cannot be framed or parsed is a RecordDecodeError.
"""

from typing import BinaryIO, Iterator, Optional

from google.protobuf.message import DecodeError

from grpclogcheck.kernel.schema import LogEntry

# A 64-bit varint never needs more than ten 7-bit groups.
MAX_VARINT_BYTES = 10


class RecordDecodeError(ValueError):
    """Raised when a delimited record cannot be framed or its payload cannot be decoded."""
    pass


def _read_varint(stream: BinaryIO) -> Optional[int]:
    """Read one varint, or return None on a clean EOF before its first byte."""
    result = 0
    shift = 0
    for index in range(MAX_VARINT_BYTES):
        b = stream.read(1)
        if not b:
            if index == 0:
                return None
            raise RecordDecodeError("Truncated record length prefix")
        byte = b[0]
        result |= (byte & 0x7F) << shift
        if not byte & 0x80:
            return result
        shift += 7
    raise RecordDecodeError(f"Record length prefix longer than {MAX_VARINT_BYTES} bytes")


def _encode_varint(value: int) -> bytes:
    if value < 0:
        raise ValueError(f"Cannot encode negative length: {value}")
    out = bytearray()
    while True:
        bits = value & 0x7F
        value >>= 7
        if value:
            out.append(bits | 0x80)
        else:
            out.append(bits)
            return bytes(out)


class DelimitedRecordReader:
    """Sequential, forward-only reader of length-delimited protobuf records.

    Iterating yields decoded messages until end-of-stream. ``read()`` returns
    None at end-of-stream instead of raising StopIteration.
    """

    def __init__(self, stream: BinaryIO, message_class=LogEntry):
        self._stream = stream
        self._message_class = message_class
        self.records_read = 0

    def read(self):
        length = _read_varint(self._stream)
        if length is None:
            return None

        index = self.records_read
        payload = self._stream.read(length)
        if len(payload) != length:
            raise RecordDecodeError(
                f"Record {index} declares {length} bytes but only {len(payload)} remain"
            )

        message = self._message_class()
        try:
            message.ParseFromString(payload)
        except DecodeError as e:
            raise RecordDecodeError(
                f"Record {index} is not a valid {message.DESCRIPTOR.full_name}: {e}"
            ) from e

        self.records_read += 1
        return message

    def __iter__(self) -> "DelimitedRecordReader":
        return self

    def __next__(self):
        message = self.read()
        if message is None:
            raise StopIteration
        return message


def iter_log_entries(stream: BinaryIO) -> Iterator:
    """Yield LogEntry messages from a delimited stream until end-of-stream."""
    return iter(DelimitedRecordReader(stream, LogEntry))


def write_delimited(stream: BinaryIO, message) -> int:
    """Write one message with its varint length prefix. Returns bytes written."""
    payload = message.SerializeToString()
    prefix = _encode_varint(len(payload))
    stream.write(prefix)
    stream.write(payload)
    return len(prefix) + len(payload)
