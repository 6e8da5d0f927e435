"""Local filesystem storage backend and backend selection."""

from __future__ import annotations

import glob
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

from filepipe.config import LocalBackend, StorageBackend
from filepipe.errors import CloudStorageError, NoFilesMatchedError, SourceIoError
from filepipe.storage import ObjectInfo, Storage


def _object_info(path: Path) -> ObjectInfo:
    try:
        stat = path.stat()
    except OSError as exc:
        raise SourceIoError(f"{path}: {exc}") from exc
    return ObjectInfo(
        key=str(path),
        last_modified=datetime.fromtimestamp(stat.st_mtime, timezone.utc),
        size=stat.st_size,
    )


class LocalStorage(Storage):
    """Objects are files; keys are filesystem paths."""

    def list_objects(self, pattern: str) -> List[ObjectInfo]:
        """List files matching a glob pattern, or the literal path if it is a file."""
        paths = [
            Path(match)
            for match in sorted(glob.glob(pattern, recursive=True))
            if Path(match).is_file()
        ]
        if not paths:
            literal = Path(pattern)
            if literal.is_file():
                return [_object_info(literal)]
            raise NoFilesMatchedError(pattern)
        return [_object_info(path) for path in paths]

    def read_object(self, path: str) -> bytes:
        """Read a file fully into memory."""
        try:
            return Path(path).read_bytes()
        except OSError as exc:
            raise SourceIoError(f"{path}: {exc}") from exc

    def write_object(self, path: str, data: bytes) -> None:
        """Write bytes to a file, creating parent directories as needed."""
        target = Path(path)
        parent = target.parent
        if str(parent) not in ("", "."):
            try:
                parent.mkdir(parents=True, exist_ok=True)
            except OSError as exc:
                raise SourceIoError(f"{parent}: {exc}") from exc
        try:
            target.write_bytes(bytes(data))
        except OSError as exc:
            raise SourceIoError(f"{path}: {exc}") from exc


def create_storage(config: Optional[StorageBackend]) -> Storage:
    """Return the storage for a backend configuration; ``None`` means local.

    Only the local filesystem is available; cloud backends raise
    :class:`CloudStorageError`.
    """
    if config is None or isinstance(config, LocalBackend):
        return LocalStorage()
    raise CloudStorageError(
        f"storage backend {type(config).__name__} is not available"
    )