"""Storage abstraction shared by local and cloud backends."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Tuple

from filepipe.errors import InvalidCloudPathError


@dataclass(frozen=True)
class ObjectInfo:
    """Metadata about one stored object."""

    key: str
    last_modified: Optional[datetime] = None
    size: int = 0


class Storage(ABC):
    """Uniform interface for listing, reading and writing objects."""

    @abstractmethod
    def list_objects(self, path: str) -> List[ObjectInfo]:
        """List objects matching a prefix or glob pattern."""

    @abstractmethod
    def read_object(self, path: str) -> bytes:
        """Read a whole object into memory."""

    @abstractmethod
    def write_object(self, path: str, data: bytes) -> None:
        """Create or overwrite an object with ``data``."""


def parse_cloud_path(path: str) -> Tuple[str, str]:
    """Split ``scheme://bucket/key`` into ``(bucket, key)``.

    The key is empty when the path names only a bucket.
    """
    _, sep, rest = path.partition("://")
    if not sep:
        raise InvalidCloudPathError(f"missing '://' scheme in path: {path}")
    bucket, _, key = rest.partition("/")
    if not bucket:
        raise InvalidCloudPathError(f"empty bucket name in path: {path}")
    return bucket, key