"""Content digest value type.

A digest identifies a content-addressed blob by (hash, size_bytes). Two digests
are equal only when both parts match exactly; no hash-function detection and no
prefix matching.
"""

from typing import Iterable

from pydantic import BaseModel, ConfigDict, Field


class ContentDigest(BaseModel):
    """Immutable (hash, size_bytes) pair."""
    model_config = ConfigDict(frozen=True)

    hash: str = Field(min_length=1)
    size_bytes: int = Field(ge=0)

    def matches(self, digest) -> bool:
        """True if a protobuf Digest carries exactly this hash and size."""
        return digest.hash == self.hash and digest.size_bytes == self.size_bytes

    def resource_suffix(self) -> str:
        """Trailing ``<hash>/<size>`` segment of a CAS upload resource name."""
        return f"{self.hash}/{self.size_bytes}"

    def in_digests(self, digests: Iterable) -> bool:
        return any(self.matches(d) for d in digests)

    def in_resource_names(self, resource_names: Iterable[str]) -> bool:
        suffix = self.resource_suffix()
        return any(name.endswith(suffix) for name in resource_names)

    def __str__(self) -> str:
        return self.resource_suffix()
