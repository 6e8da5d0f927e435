"""Hive-style grouping of records by partition column values."""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Sequence

from filepipe.csv_writer import value_to_csv_string
from filepipe.records import Record

MISSING_PARTITION_VALUE = "__null__"


def partition_value(value: Any) -> str:
    """Render a value as it appears in a ``column=value`` path segment."""
    if value is None:
        return "null"
    if isinstance(value, str):
        return value
    return value_to_csv_string(value)


def group_by_partitions(
    records: Iterable[Record], partition_columns: Sequence[str]
) -> Dict[str, List[Record]]:
    """Group records by their partition path, e.g. ``region=us/year=2024``.

    Groups keep the order in which their first record was seen. A record
    without a partition column is placed under ``column=__null__``.
    """
    groups: Dict[str, List[Record]] = {}
    for record in records:
        path = "/".join(
            f"{column}="
            + (
                partition_value(record[column])
                if column in record
                else MISSING_PARTITION_VALUE
            )
            for column in partition_columns
        )
        groups.setdefault(path, []).append(dict(record))
    return groups