"""Newline-delimited JSON writing that keeps nested structure."""

from __future__ import annotations

import json
import math
from datetime import datetime
from os import PathLike
from pathlib import Path
from typing import Any, Iterable, Union

from filepipe.csv_writer import _rfc3339
from filepipe.errors import SerializationError, SinkIoError
from filepipe.records import Record

PathArg = Union[str, "PathLike[str]"]


def value_to_json(value: Any) -> Any:
    """Turn a record value into something the ``json`` module can encode.

    Bytes become ``"<N bytes>"``, timestamps RFC 3339 strings, and
    non-finite floats ``None``.
    """
    if value is None or isinstance(value, (bool, int, str)):
        return value
    if isinstance(value, float):
        return value if math.isfinite(value) else None
    if isinstance(value, (bytes, bytearray)):
        return f"<{len(value)} bytes>"
    if isinstance(value, datetime):
        return _rfc3339(value)
    if isinstance(value, list):
        return [value_to_json(item) for item in value]
    if isinstance(value, dict):
        return {str(key): value_to_json(item) for key, item in value.items()}
    raise SerializationError(f"unsupported value type {type(value).__name__}")


class JsonFileWriter:
    """Writes records to a file as one compact JSON object per line."""

    def __init__(self, path: PathArg) -> None:
        self.path = Path(path)
        try:
            self._handle = self.path.open("w", newline="", encoding="utf-8")
        except OSError as exc:
            raise SinkIoError(f"{self.path}: {exc}") from exc

    def write_records(self, records: Iterable[Record]) -> None:
        """Append each record as a line of JSON."""
        for record in records:
            try:
                line = json.dumps(
                    value_to_json(record),
                    separators=(",", ":"),
                    ensure_ascii=False,
                    allow_nan=False,
                )
            except (TypeError, ValueError) as exc:
                raise SerializationError(str(exc)) from exc
            try:
                self._handle.write(line)
                self._handle.write("\n")
            except OSError as exc:
                raise SinkIoError(str(exc)) from exc

    def finish(self) -> None:
        """Flush and close the file. Calling it again does nothing."""
        if self._handle.closed:
            return
        try:
            self._handle.flush()
            self._handle.close()
        except OSError as exc:
            raise SinkIoError(str(exc)) from exc

    def __enter__(self) -> "JsonFileWriter":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.finish()