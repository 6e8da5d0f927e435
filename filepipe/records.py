"""Row records and record batches shared by readers and writers.

A record is an insertion-ordered ``dict`` from column name to value. Values
are ``None``, ``bool``, ``int``, ``float``, ``str``, ``bytes``, ``datetime``,
``list`` of values or a nested ``dict`` record.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from itertools import islice
from typing import Any, Dict, Iterable, Iterator, List, Union

Value = Union[None, bool, int, float, str, bytes, datetime, list, dict]
Record = Dict[str, Any]

DEFAULT_BATCH_SIZE = 1000


@dataclass
class RecordBatch:
    """An ordered group of records moved through the pipeline together."""

    records: List[Record] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.records)

    def __iter__(self) -> Iterator[Record]:
        return iter(self.records)


def batched(records: Iterable[Record], batch_size: int) -> Iterator[RecordBatch]:
    """Group records into batches of at most ``batch_size``, keeping order."""
    if batch_size < 1:
        raise ValueError(f"batch_size must be at least 1, got {batch_size}")
    iterator = iter(records)
    while chunk := list(islice(iterator, batch_size)):
        yield RecordBatch(chunk)