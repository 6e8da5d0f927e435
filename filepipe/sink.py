"""File sink connector: writes CSV and newline-delimited JSON files."""

from __future__ import annotations

import tempfile
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Iterator, List, Tuple, Union

from filepipe.config import CsvOptions, FileSinkConfig, SinkFileFormat, parse_sink_config
from filepipe.csv_writer import CsvFileWriter
from filepipe.errors import (
    FileSinkError,
    FileSourceError,
    InvalidConfigError,
    LoadError,
    MissingFieldError,
    ValidationError,
)
from filepipe.json_writer import JsonFileWriter
from filepipe.records import Record, RecordBatch
from filepipe.storage import parse_cloud_path
from filepipe.storage_local import create_storage

FLEXIBLE = 0
"""Schema requirement code: the sink accepts any schema."""

_SUFFIXES = {
    SinkFileFormat.CSV: ".csv",
    SinkFileFormat.JSON: ".jsonl",
}

BatchLike = Union[RecordBatch, Iterable[Record]]


@dataclass(frozen=True)
class SinkDescriptor:
    """Name, version and description of a sink connector."""

    name: str
    version: str
    description: str


@dataclass(frozen=True)
class LoadResult:
    """Outcome of a load: how many rows were written or failed."""

    rows_written: int
    rows_errored: int = 0
    error_message: str = ""


def _records_of(batch: BatchLike) -> List[Record]:
    if isinstance(batch, RecordBatch):
        return batch.records
    return list(batch)


def _write_file(path: Path, cfg: FileSinkConfig, batches: Iterable[BatchLike]) -> int:
    """Write every batch to ``path`` in the configured format; return the row count."""
    if cfg.format is SinkFileFormat.CSV:
        writer = CsvFileWriter(path, cfg.csv or CsvOptions())
    else:
        writer = JsonFileWriter(path)
    rows_written = 0
    with writer:
        for batch in batches:
            records = _records_of(batch)
            writer.write_records(records)
            rows_written += len(records)
    return rows_written


@contextmanager
def _temp_path(suffix: str) -> Iterator[Path]:
    """A temporary file path that is removed when the block ends."""
    try:
        handle = tempfile.NamedTemporaryFile(suffix=suffix, delete=False)
    except OSError as exc:
        raise LoadError(f"create temp file: {exc}") from exc
    handle.close()
    path = Path(handle.name)
    try:
        yield path
    finally:
        path.unlink(missing_ok=True)


class FileSink:
    """Writes record batches to a local file or, through a storage backend, an object."""

    def describe(self) -> SinkDescriptor:
        return SinkDescriptor(
            name="file",
            version="0.1.0",
            description=(
                "File sink connector — writes CSV and JSON files to local "
                "filesystem or cloud storage"
            ),
        )

    def validate(self, config_json: str) -> None:
        """Check the configuration; raise :class:`ValidationError` if unusable."""
        cfg = parse_sink_config(config_json)
        if not cfg.path:
            raise MissingFieldError("path")
        if cfg.is_cloud():
            try:
                parse_cloud_path(cfg.path)
            except FileSourceError as exc:
                raise InvalidConfigError(str(exc)) from exc
            return
        parent = Path(cfg.path).parent
        if str(parent) not in ("", ".") and not parent.exists():
            raise InvalidConfigError(f"parent directory does not exist: {parent}")

    def schema_requirement(self) -> Tuple[int, list]:
        """Return ``(requirement, fixed_schema)``; this sink accepts any schema."""
        return FLEXIBLE, []

    def load(self, config_json: str, batches: Iterable[BatchLike]) -> LoadResult:
        """Write all batches to the configured destination.

        Each batch is a :class:`RecordBatch` or an iterable of records.
        """
        try:
            cfg = parse_sink_config(config_json)
        except ValidationError as exc:
            raise LoadError(str(exc)) from exc
        try:
            if cfg.is_cloud():
                rows_written = self._load_cloud(cfg, batches)
            else:
                rows_written = _write_file(Path(cfg.path), cfg, batches)
        except (FileSinkError, FileSourceError) as exc:
            raise LoadError(str(exc)) from exc
        return LoadResult(rows_written=rows_written)

    @staticmethod
    def _load_cloud(cfg: FileSinkConfig, batches: Iterable[BatchLike]) -> int:
        with _temp_path(_SUFFIXES[cfg.format]) as path:
            rows_written = _write_file(path, cfg, batches)
            try:
                data = path.read_bytes()
            except OSError as exc:
                raise LoadError(f"read temp file: {exc}") from exc
        store = create_storage(cfg.storage)
        store.write_object(cfg.path, data)
        return rows_written