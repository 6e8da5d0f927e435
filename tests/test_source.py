import json
import os

import pytest

from filepipe.errors import (
    DiscoveryError,
    ExtractionError,
    InvalidConfigError,
    MissingFieldError,
    NoFilesMatchedError,
    ValidationError,
)
from filepipe.source import (
    ColumnSchema,
    FileSource,
    Partition,
    compute_watermark,
    resolve_files,
)


def _config(**fields):
    return json.dumps(fields)


@pytest.fixture
def csv_dir(tmp_path):
    (tmp_path / "a.csv").write_text("name,age\nAlice,30\nBob,25\n")
    (tmp_path / "b.csv").write_text("name,age\nCarol,41\n")
    (tmp_path / "sub.csv").mkdir()
    return tmp_path


def test_describe():
    descriptor = FileSource().describe()
    assert descriptor.name == "file"
    assert descriptor.version == "0.1.0"


def test_resolve_files_glob_sorted_and_files_only(csv_dir):
    files = resolve_files(str(csv_dir / "*.csv"))
    assert files == [csv_dir / "a.csv", csv_dir / "b.csv"]


def test_resolve_files_literal(csv_dir):
    assert resolve_files(str(csv_dir / "a.csv")) == [csv_dir / "a.csv"]


def test_resolve_files_no_match(tmp_path):
    with pytest.raises(NoFilesMatchedError):
        resolve_files(str(tmp_path / "*.json"))


def test_compute_watermark_empty():
    assert compute_watermark([]) == ""


def test_compute_watermark_pinned(tmp_path):
    path = tmp_path / "x.csv"
    path.write_text("a\n1\n")
    os.utime(path, (1700000000, 1700000000))
    assert compute_watermark([path]) == "2023-11-14T22:13:20+00:00"


def test_compute_watermark_takes_latest(tmp_path):
    old, new = tmp_path / "old.csv", tmp_path / "new.csv"
    old.write_text("a\n")
    new.write_text("a\n")
    os.utime(old, (1600000000, 1600000000))
    os.utime(new, (1700000000, 1700000000))
    missing = tmp_path / "missing.csv"
    assert compute_watermark([old, new, missing]) == compute_watermark([new])


def test_validate_empty_path():
    with pytest.raises(MissingFieldError):
        FileSource().validate(_config(path="", format="csv"))


def test_validate_no_files(tmp_path):
    with pytest.raises(InvalidConfigError):
        FileSource().validate(_config(path=str(tmp_path / "*.csv"), format="csv"))


def test_validate_bad_json():
    with pytest.raises(ValidationError):
        FileSource().validate("{not json")


def test_validate_bad_cloud_path():
    config = _config(path="just/a/path", format="csv", storage={"type": "s3"})
    with pytest.raises(InvalidConfigError):
        FileSource().validate(config)


def test_discover_schema_csv(csv_dir):
    columns = FileSource().discover_schema(
        _config(path=str(csv_dir / "*.csv"), format="csv"), {}
    )
    assert columns == [ColumnSchema("name", "string"), ColumnSchema("age", "string")]
    assert all(column.nullable for column in columns)


def test_discover_schema_json(tmp_path):
    path = tmp_path / "data.jsonl"
    path.write_text('{"name":"Alice","age":30,"active":true}\n')
    columns = FileSource().discover_schema(_config(path=str(path), format="json"), {})
    assert [(c.name, c.data_type) for c in columns] == [
        ("name", "string"),
        ("age", "int"),
        ("active", "bool"),
    ]


def test_discover_schema_no_files(tmp_path):
    with pytest.raises(DiscoveryError):
        FileSource().discover_schema(
            _config(path=str(tmp_path / "*.csv"), format="csv"), {}
        )


def test_discover_partitions(csv_dir):
    partitions = FileSource().discover_partitions(
        _config(path=str(csv_dir / "*.csv"), format="csv"), {}
    )
    keys = [str(csv_dir / "a.csv"), str(csv_dir / "b.csv")]
    assert partitions == [Partition(key, {"file": key}) for key in keys]


def test_extract_all_files(csv_dir):
    batches = []
    watermark = FileSource().extract(
        _config(path=str(csv_dir / "*.csv"), format="csv"), {}, batches.append
    )
    records = [record for batch in batches for record in batch]
    assert [r["name"] for r in records] == ["Alice", "Bob", "Carol"]
    assert records[0]["age"] == "30"
    assert watermark == compute_watermark([csv_dir / "a.csv", csv_dir / "b.csv"])


def test_extract_single_partition(csv_dir):
    batches = []
    target = str(csv_dir / "b.csv")
    watermark = FileSource().extract(
        _config(path=str(csv_dir / "*.csv"), format="csv"),
        {"file": target},
        batches.append,
    )
    assert [r["name"] for batch in batches for r in batch] == ["Carol"]
    assert watermark == compute_watermark([csv_dir / "b.csv"])


def test_extract_batches_at_default_size(tmp_path):
    path = tmp_path / "big.jsonl"
    path.write_text("".join(json.dumps({"id": i}) + "\n" for i in range(1500)))
    batches = []
    FileSource().extract(_config(path=str(path), format="json"), None, batches.append)
    assert [len(batch) for batch in batches] == [1000, 500]
    assert batches[1].records[-1] == {"id": 1499}


def test_extract_parquet_unsupported(tmp_path):
    path = tmp_path / "data.parquet"
    path.write_bytes(b"PAR1")
    with pytest.raises(ExtractionError):
        FileSource().extract(_config(path=str(path), format="parquet"), {}, list().append)


def test_extract_cloud_backend_unavailable():
    config = _config(path="s3://bucket/data.csv", format="csv", storage={"type": "s3"})
    with pytest.raises(ExtractionError, match="cloud storage error"):
        FileSource().extract(config, {}, list().append)


def test_extract_bad_config():
    with pytest.raises(ExtractionError):
        FileSource().extract(_config(path="x.csv", format="xml"), {}, list().append)