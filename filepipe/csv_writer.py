"""CSV writing: streams record batches to a file."""

from __future__ import annotations

import base64
import csv
import math
from datetime import datetime, timezone
from decimal import Decimal
from os import PathLike
from pathlib import Path
from typing import Any, Iterable, Optional, Union

from filepipe.config import CsvOptions
from filepipe.errors import SerializationError, SinkIoError
from filepipe.records import Record

PathArg = Union[str, "PathLike[str]"]


def _format_float(number: float) -> str:
    """Plain decimal notation with no redundant fraction (``1.0`` -> ``1``)."""
    if math.isnan(number):
        return "NaN"
    if math.isinf(number):
        return "inf" if number > 0 else "-inf"
    text = format(Decimal(repr(number)), "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def _rfc3339(moment: datetime) -> str:
    """Render a timestamp in UTC as RFC 3339; naive values are taken as UTC."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    else:
        moment = moment.astimezone(timezone.utc)
    micros = moment.microsecond
    if micros == 0:
        fraction = ""
    elif micros % 1000 == 0:
        fraction = f".{micros // 1000:03d}"
    else:
        fraction = f".{micros:06d}"
    base = moment.replace(microsecond=0, tzinfo=None).isoformat()
    return f"{base}{fraction}+00:00"


def value_to_csv_string(value: Any) -> str:
    """Render one record value as a CSV field."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return _format_float(value)
    if isinstance(value, str):
        return value
    if isinstance(value, (bytes, bytearray)):
        return base64.b64encode(bytes(value)).decode("ascii")
    if isinstance(value, datetime):
        return _rfc3339(value)
    if isinstance(value, list):
        return f"[{len(value)} items]"
    if isinstance(value, dict):
        return f"{{{len(value)} fields}}"
    raise SerializationError(f"unsupported value type {type(value).__name__}")


class CsvFileWriter:
    """Writes records to a CSV file, taking the header from the first record."""

    def __init__(self, path: PathArg, options: Optional[CsvOptions] = None) -> None:
        options = options or CsvOptions()
        self.path = Path(path)
        try:
            self._handle = self.path.open("w", newline="", encoding="utf-8")
        except OSError as exc:
            raise SinkIoError(f"{self.path}: {exc}") from exc
        self._writer = csv.writer(
            self._handle,
            delimiter=options.delimiter,
            quotechar=options.quote,
            lineterminator="\n",
        )
        self._headers_written = False

    def write_records(self, records: Iterable[Record]) -> None:
        """Write a batch; columns follow the keys of the batch's first record."""
        records = list(records)
        if not records:
            return
        columns = list(records[0])
        try:
            if not self._headers_written:
                self._writer.writerow(columns)
                self._headers_written = True
            self._writer.writerows(
                [value_to_csv_string(record.get(column)) for column in columns]
                for record in records
            )
        except (csv.Error, OSError, ValueError) as exc:
            raise SerializationError(str(exc)) from exc

    def finish(self) -> None:
        """Flush and close the file. Calling it again does nothing."""
        if self._handle.closed:
            return
        try:
            self._handle.flush()
            self._handle.close()
        except OSError as exc:
            raise SinkIoError(str(exc)) from exc

    def __enter__(self) -> "CsvFileWriter":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.finish()