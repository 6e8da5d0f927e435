"""Newline-delimited JSON reading that keeps nested structure."""

from __future__ import annotations

import json
from os import PathLike
from pathlib import Path
from typing import Any, Dict, Iterator, List, Tuple, Union

from filepipe.errors import ParseError, SourceIoError
from filepipe.records import Record, RecordBatch, batched

PathArg = Union[str, "PathLike[str]"]

_I64_MIN = -(2**63)
_I64_MAX = 2**63 - 1


def _reject_constant(name: str) -> Any:
    raise ValueError(f"invalid number literal {name}")


def _loads(text: str) -> Any:
    return json.loads(text, parse_constant=_reject_constant)


def _fits_i64(number: int) -> bool:
    return _I64_MIN <= number <= _I64_MAX


def _convert(value: Any) -> Any:
    """Map a decoded JSON value onto a record value."""
    if isinstance(value, bool) or value is None or isinstance(value, (str, float)):
        return value
    if isinstance(value, int):
        return value if _fits_i64(value) else float(value)
    if isinstance(value, list):
        return [_convert(item) for item in value]
    if isinstance(value, dict):
        return {key: _convert(item) for key, item in value.items()}
    return value


def _type_name(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "bool"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    return "object"


def _infer_type(value: Any) -> str:
    if value is None or isinstance(value, str):
        return "string"
    if isinstance(value, bool):
        return "bool"
    if isinstance(value, int):
        return "int" if _fits_i64(value) else "float"
    if isinstance(value, float):
        return "float"
    if isinstance(value, list):
        return "array"
    return "map"


def _lines(path: Path) -> Iterator[Tuple[int, str]]:
    """Yield ``(zero-based line number, stripped text)`` for every line."""
    try:
        handle = path.open("rb")
    except OSError as exc:
        raise SourceIoError(f"{path}: {exc}") from exc
    with handle:
        for index, raw in enumerate(handle):
            try:
                text = raw.decode("utf-8")
            except UnicodeDecodeError as exc:
                raise SourceIoError(f"{path}:{index}: {exc}") from exc
            yield index, text.strip()


def _records(path: Path) -> Iterator[Record]:
    for index, text in _lines(path):
        if not text:
            continue
        try:
            decoded = _loads(text)
        except ValueError as exc:
            raise ParseError(f"{path}:{index + 1}: {exc}") from exc
        if not isinstance(decoded, dict):
            raise ParseError(f"expected JSON object, got {_type_name(decoded)}")
        yield _convert(decoded)


def read_ndjson(path: PathArg, batch_size: int) -> List[RecordBatch]:
    """Read a newline-delimited JSON file into batches; blank lines are skipped."""
    return list(batched(_records(Path(path)), batch_size))


def infer_json_schema(path: PathArg, sample_lines: int) -> List[Tuple[str, str]]:
    """Infer ``(column, type)`` pairs from the first ``sample_lines`` lines.

    A column's type comes from the first value seen for it; ``null`` counts
    as ``string``. Lines that are not JSON objects are ignored.
    """
    path = Path(path)
    columns: Dict[str, str] = {}
    lines = _lines(path)
    try:
        for index, text in lines:
            if index >= sample_lines:
                break
            if not text:
                continue
            try:
                decoded = _loads(text)
            except ValueError as exc:
                raise ParseError(f"{path}:{index + 1}: {exc}") from exc
            if isinstance(decoded, dict):
                for key, value in decoded.items():
                    columns.setdefault(key, _infer_type(value))
    finally:
        lines.close()
    return list(columns.items())