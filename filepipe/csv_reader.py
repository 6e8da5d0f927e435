"""CSV reading: every value is emitted as a string."""

from __future__ import annotations

import csv
from itertools import chain
from os import PathLike
from pathlib import Path
from typing import Iterable, Iterator, List, Tuple, Union

from filepipe.config import CsvOptions
from filepipe.errors import SourceIoError
from filepipe.records import Record, RecordBatch, batched

PathArg = Union[str, "PathLike[str]"]


def _rows(path: Path, options: CsvOptions) -> Iterator[List[str]]:
    """Yield non-empty rows of the file, turning failures into SourceIoError."""
    try:
        with path.open(newline="", encoding="utf-8") as handle:
            reader = csv.reader(handle, delimiter=options.delimiter, quotechar=options.quote)
            for row in reader:
                if row:
                    yield row
    except (OSError, csv.Error, UnicodeDecodeError) as exc:
        raise SourceIoError(f"{path}: {exc}") from exc


def _generated_names(count: int) -> List[str]:
    return [f"column_{i}" for i in range(count)]


def _to_records(
    path: Path, headers: List[str], rows: Iterable[List[str]]
) -> Iterator[Record]:
    width = len(headers)
    for row in rows:
        if len(row) != width:
            raise SourceIoError(
                f"{path}: found record with {len(row)} fields, "
                f"but the previous record has {width} fields"
            )
        yield dict(zip(headers, row))


def read_csv(path: PathArg, options: CsvOptions, batch_size: int) -> List[RecordBatch]:
    """Read a CSV file into batches of string-valued records.

    Without a header row, columns are named ``column_0``, ``column_1``, ...
    """
    path = Path(path)
    rows = _rows(path, options)
    try:
        first = next(rows, None)
        if first is None:
            return []
        if options.has_header:
            headers, data = first, rows
        else:
            headers, data = _generated_names(len(first)), chain([first], rows)
        return list(batched(_to_records(path, headers, data), batch_size))
    finally:
        rows.close()


def infer_csv_schema(path: PathArg, options: CsvOptions) -> List[Tuple[str, str]]:
    """Return ``(column, "string")`` pairs taken from the header or first row."""
    path = Path(path)
    rows = _rows(path, options)
    try:
        first = next(rows, None)
    finally:
        rows.close()
    if first is None:
        return []
    names = first if options.has_header else _generated_names(len(first))
    return [(name, "string") for name in names]