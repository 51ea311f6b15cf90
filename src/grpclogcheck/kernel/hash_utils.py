"""Hash utilities for check reports."""

import hashlib
from typing import BinaryIO

_CHUNK_SIZE = 1 << 20


class HashingReader:
    """Binary stream wrapper that hashes every byte read through it.

    Lets the checker hash the log on the same handle it decodes, so the file
    is opened once.
    """

    def __init__(self, stream: BinaryIO):
        self._stream = stream
        self._digest = hashlib.sha256()

    def read(self, size: int = -1) -> bytes:
        data = self._stream.read(size)
        self._digest.update(data)
        return data

    def hexdigest(self) -> str:
        """Consume the rest of the stream and return its SHA256.

        Returns:
            SHA256 hash as hex string (prefixed with "sha256:")
        """
        for _ in iter(lambda: self.read(_CHUNK_SIZE), b""):
            pass
        return f"sha256:{self._digest.hexdigest()}"
