"""File source connector: reads CSV and newline-delimited JSON files."""

from __future__ import annotations

import glob
import os
import tempfile
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple

from filepipe.config import FileFormat, FileSourceConfig, parse_source_config
from filepipe.csv_reader import infer_csv_schema, read_csv
from filepipe.csv_writer import _rfc3339
from filepipe.errors import (
    DiscoveryError,
    ExtractionError,
    FileSourceError,
    InvalidConfigError,
    MissingFieldError,
    NoFilesMatchedError,
    ParseError,
    SourceIoError,
    ValidationError,
)
from filepipe.json_reader import infer_json_schema, read_ndjson
from filepipe.records import DEFAULT_BATCH_SIZE, RecordBatch
from filepipe.storage import ObjectInfo, parse_cloud_path
from filepipe.storage_local import create_storage

JSON_SCHEMA_SAMPLE_LINES = 100

_SUFFIXES = {
    FileFormat.CSV: ".csv",
    FileFormat.JSON: ".jsonl",
    FileFormat.PARQUET: ".parquet",
}


@dataclass(frozen=True)
class SourceDescriptor:
    """Name, version and description of a source connector."""

    name: str
    version: str
    description: str


@dataclass(frozen=True)
class ColumnSchema:
    """One discovered column."""

    name: str
    data_type: str
    nullable: bool = True
    description: str = ""


@dataclass(frozen=True)
class Partition:
    """A unit of extraction work; here, one file."""

    key: str
    params: Dict[str, str] = field(default_factory=dict)


def resolve_files(pattern: str) -> List[Path]:
    """Return the files matching a glob pattern, or the literal path if it is a file."""
    paths = [
        Path(match)
        for match in sorted(glob.glob(pattern, recursive=True))
        if Path(match).is_file()
    ]
    if paths:
        return paths
    literal = Path(pattern)
    if literal.is_file():
        return [literal]
    raise NoFilesMatchedError(pattern)


def _modified(path: Path) -> Optional[datetime]:
    try:
        return datetime.fromtimestamp(path.stat().st_mtime, timezone.utc)
    except OSError:
        return None


def _latest(moments: Iterable[Optional[datetime]]) -> str:
    known = [moment for moment in moments if moment is not None]
    return _rfc3339(max(known)) if known else ""


def compute_watermark(paths: Iterable[os.PathLike]) -> str:
    """The latest modification time of the given files as RFC 3339, or ``""``."""
    return _latest(_modified(Path(path)) for path in paths)


def _cloud_watermark(objects: Iterable[ObjectInfo]) -> str:
    return _latest(obj.last_modified for obj in objects)


def _read_batches(path: Path, cfg: FileSourceConfig) -> List[RecordBatch]:
    if cfg.format is FileFormat.CSV:
        return read_csv(path, cfg.csv or _default_csv(), DEFAULT_BATCH_SIZE)
    if cfg.format is FileFormat.JSON:
        return read_ndjson(path, DEFAULT_BATCH_SIZE)
    raise ParseError(f"{path}: parquet files are not supported")


def _infer_schema(path: Path, cfg: FileSourceConfig) -> List[Tuple[str, str]]:
    if cfg.format is FileFormat.CSV:
        return infer_csv_schema(path, cfg.csv or _default_csv())
    if cfg.format is FileFormat.JSON:
        return infer_json_schema(path, JSON_SCHEMA_SAMPLE_LINES)
    raise ParseError(f"{path}: parquet files are not supported")


def _default_csv():
    from filepipe.config import CsvOptions

    return CsvOptions()


@contextmanager
def _temp_copy(data: bytes, suffix: str) -> Iterator[Path]:
    """Hold ``data`` in a temporary file for the duration of the block."""
    try:
        handle = tempfile.NamedTemporaryFile(suffix=suffix, delete=False)
    except OSError as exc:
        raise SourceIoError(f"create temp file: {exc}") from exc
    path = Path(handle.name)
    try:
        with handle:
            try:
                handle.write(data)
                handle.flush()
            except OSError as exc:
                raise SourceIoError(f"write temp file: {exc}") from exc
        yield path
    finally:
        path.unlink(missing_ok=True)


def _parse(config_json: str, error: type) -> FileSourceConfig:
    try:
        return parse_source_config(config_json)
    except ValidationError as exc:
        raise error(str(exc)) from exc


class FileSource:
    """Reads records from local files or, through a storage backend, from objects."""

    def describe(self) -> SourceDescriptor:
        return SourceDescriptor(
            name="file",
            version="0.1.0",
            description=(
                "File source connector — reads CSV, JSON, and Parquet files "
                "from local filesystem or cloud storage"
            ),
        )

    def validate(self, config_json: str) -> None:
        """Check the configuration; raise :class:`ValidationError` if unusable."""
        cfg = parse_source_config(config_json)
        if not cfg.path:
            raise MissingFieldError("path")
        try:
            if cfg.is_cloud():
                parse_cloud_path(cfg.path)
            else:
                resolve_files(cfg.path)
        except FileSourceError as exc:
            raise InvalidConfigError(str(exc)) from exc

    def discover_schema(
        self, config_json: str, params: Optional[Mapping[str, str]] = None
    ) -> List[ColumnSchema]:
        """Infer columns from the first matching file or object."""
        cfg = _parse(config_json, DiscoveryError)
        try:
            if cfg.is_cloud():
                store = create_storage(cfg.storage)
                objects = store.list_objects(cfg.path)
                if not objects:
                    raise DiscoveryError("no objects found")
                data = store.read_object(objects[0].key)
                with _temp_copy(data, _SUFFIXES[cfg.format]) as path:
                    pairs = _infer_schema(path, cfg)
            else:
                files = resolve_files(cfg.path)
                pairs = _infer_schema(files[0], cfg)
        except FileSourceError as exc:
            raise DiscoveryError(str(exc)) from exc
        return [ColumnSchema(name=name, data_type=kind) for name, kind in pairs]

    def discover_partitions(
        self, config_json: str, params: Optional[Mapping[str, str]] = None
    ) -> List[Partition]:
        """One partition per matching file or object, keyed by its path."""
        cfg = _parse(config_json, DiscoveryError)
        try:
            if cfg.is_cloud():
                keys = [obj.key for obj in create_storage(cfg.storage).list_objects(cfg.path)]
            else:
                keys = [str(path) for path in resolve_files(cfg.path)]
        except FileSourceError as exc:
            raise DiscoveryError(str(exc)) from exc
        return [Partition(key=key, params={"file": key}) for key in keys]

    def extract(
        self,
        config_json: str,
        params: Optional[Mapping[str, str]],
        emit: Callable[[RecordBatch], None],
    ) -> str:
        """Pass every batch of records to ``emit`` and return the watermark.

        A ``file`` entry in ``params`` restricts extraction to that one file.
        """
        cfg = _parse(config_json, ExtractionError)
        params = params or {}
        try:
            if cfg.is_cloud():
                return self._extract_cloud(cfg, params, emit)
            return self._extract_local(cfg, params, emit)
        except FileSourceError as exc:
            raise ExtractionError(str(exc)) from exc

    @staticmethod
    def _extract_local(
        cfg: FileSourceConfig,
        params: Mapping[str, str],
        emit: Callable[[RecordBatch], None],
    ) -> str:
        chosen = params.get("file")
        files = [Path(chosen)] if chosen is not None else resolve_files(cfg.path)
        watermark = compute_watermark(files)
        for path in files:
            for batch in _read_batches(path, cfg):
                emit(batch)
        return watermark

    @staticmethod
    def _extract_cloud(
        cfg: FileSourceConfig,
        params: Mapping[str, str],
        emit: Callable[[RecordBatch], None],
    ) -> str:
        store = create_storage(cfg.storage)
        chosen = params.get("file")
        if chosen is not None:
            objects = [ObjectInfo(key=chosen)]
        else:
            objects = store.list_objects(cfg.path)
        watermark = _cloud_watermark(objects)
        for obj in objects:
            data = store.read_object(obj.key)
            with _temp_copy(data, _SUFFIXES[cfg.format]) as path:
                batches = _read_batches(path, cfg)
            for batch in batches:
                emit(batch)
        return watermark