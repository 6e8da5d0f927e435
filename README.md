# filepipe

A small library for moving row-based records between files and a data
pipeline. It reads CSV and newline-delimited JSON, writes CSV and
newline-delimited JSON, and groups records into Hive-style partitions.
It has no dependencies outside the standard library.

A record is an insertion-ordered `dict` from column name to value. Values
can be `None`, `bool`, `int`, `float`, `str`, `bytes`, `datetime`, lists
and nested dicts. Records travel in `filepipe.records.RecordBatch`
objects, which support `len()` and iteration. `batched(records, batch_size)`
groups any iterable of records into batches of at most `batch_size`
(`DEFAULT_BATCH_SIZE` is 1000).

## Reading files

```python
from filepipe.config import CsvOptions
from filepipe.csv_reader import read_csv, infer_csv_schema
from filepipe.json_reader import read_ndjson, infer_json_schema

batches = read_csv("people.csv", CsvOptions(), 1000)
for batch in batches:
    print(len(batch))

# Every CSV column is reported as a string.
print(infer_csv_schema("people.csv", CsvOptions()))
# [("name", "string"), ("age", "string")]

batches = read_ndjson("events.jsonl", 1000)
print(infer_json_schema("events.jsonl", 100))
# e.g. [("name", "string"), ("age", "int"), ("active", "bool")]
```

CSV:

- All values are read as strings; type conversion is left to later steps.
- `CsvOptions(delimiter=",", quote='"', has_header=True)` sets the dialect.
- Without a header row, columns are named `column_0`, `column_1`, ...
- Empty lines are skipped; a row whose field count differs from the header
  raises `SourceIoError`.

Newline-delimited JSON:

- Blank lines are skipped; every other line must hold a JSON object, or
  `ParseError` is raised.
- Nested objects and arrays are kept as dicts and lists. Integers outside
  the signed 64-bit range become floats; `NaN` and `Infinity` literals are
  rejected.
- `infer_json_schema` looks at the first `sample_lines` lines. A column's
  type (`string`, `bool`, `int`, `float`, `array` or `map`) comes from the
  first value seen for it; `null` counts as `string`.

## Writing files

Both writers are context managers and also have an explicit `finish()`:

```python
from filepipe.config import CsvOptions
from filepipe.csv_writer import CsvFileWriter
from filepipe.json_writer import JsonFileWriter

records = [{"name": "Alice", "age": 30}, {"name": "Bob", "age": 25}]

with CsvFileWriter("out.csv", CsvOptions()) as writer:
    writer.write_records(records)

with JsonFileWriter("out.jsonl") as writer:
    writer.write_records(records)
```

`CsvFileWriter` writes the header once, from the keys of the first record
it is given; each batch's columns follow the keys of that batch's first
record. Fields are rendered by `value_to_csv_string`: `None` is empty,
booleans are `true`/`false`, floats are plain decimals (`3.14`, `1`),
bytes are base64, timestamps are RFC 3339 in UTC, lists become
`[N items]` and dicts `{N fields}`.

`JsonFileWriter` writes one compact JSON object per line, through
`value_to_json`: bytes become `"<N bytes>"`, timestamps RFC 3339 strings,
and non-finite floats `null`.

## Source and sink connectors

`FileSource` and `FileSink` in `filepipe.source` and `filepipe.sink` take
their configuration as a JSON string.

```python
import json
from filepipe.source import FileSource
from filepipe.sink import FileSink

source = FileSource()
source_config = json.dumps({"path": "data/*.csv", "format": "csv"})
source.validate(source_config)
print(source.discover_schema(source_config))      # list of ColumnSchema
print(source.discover_partitions(source_config))  # one Partition per file

batches = []
watermark = source.extract(source_config, None, batches.append)

sink = FileSink()
sink_config = json.dumps({"path": "result.jsonl", "format": "json"})
sink.validate(sink_config)
result = sink.load(sink_config, batches)
print(result.rows_written)
```

- `extract` passes each `RecordBatch` to the callback and returns a
  watermark: the latest modification time of the files read, in RFC 3339,
  or `""`. A `{"file": path}` entry in `params` limits it to that file.
- `FileSink.load` accepts `RecordBatch` objects or plain iterables of
  records, and returns a `LoadResult`. `schema_requirement()` returns
  `(0, [])`: any schema is accepted.
- `FileSink.validate` requires the output file's parent directory to exist.

Configuration keys:

- `path`: a file path or glob pattern (source), or an output path (sink)
- `format`: `csv`, `json` or `parquet` for the source; `csv` or `json` for the sink
- `csv`: optional `delimiter`, `quote` and `has_header`
- `storage`: optional backend table tagged by `type`: `local`, `s3`,
  `azure` or `gcs`

## Partitioning

```python
from filepipe.partitioning import group_by_partitions

groups = group_by_partitions(records, ["region", "year"])
# {"region=us/year=2024": [...], "region=eu/year=2025": [...]}
```

Groups keep the order in which they were first seen. A record missing a
partition column goes under `column=__null__`; a `None` value renders as
`null`.

## Storage

`filepipe.storage.Storage` is the abstract interface (`list_objects`,
`read_object`, `write_object`); `filepipe.storage_local.LocalStorage`
implements it for the filesystem, and `create_storage(backend)` returns it
for `None` or a local backend.

```python
from filepipe.storage import parse_cloud_path

parse_cloud_path("s3://my-bucket/folder/file.csv")
# ("my-bucket", "folder/file.csv")
```

A path without `://` or with an empty bucket raises `InvalidCloudPathError`.

## What it does not do

- Parquet files: the `parquet` format is accepted in configuration, but
  reading or inferring a schema from one raises `ParseError`.
- Cloud storage: S3, Azure and GCS backends can be configured and their
  paths validated, but `create_storage` raises `CloudStorageError` for
  them, so discovery, extraction and loading against them fail.
- Partitioned output: `group_by_partitions` only groups records; it
  writes no directories or files.
- There is no command-line program; the package is a library.

## Errors

All in `filepipe.errors`. Reading problems raise subclasses of
`FileSourceError` (`SourceIoError`, `ParseError`, `NoFilesMatchedError`,
`CloudStorageError`, `InvalidCloudPathError`); writing problems raise
subclasses of `FileSinkError` (`SinkIoError`, `SerializationError`).
Bad configuration raises `ValidationError` (`MissingFieldError`,
`InvalidConfigError`). The connector methods wrap failures in
`DiscoveryError`, `ExtractionError` or `LoadError`.