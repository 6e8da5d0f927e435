import json

import pytest

from filepipe.errors import InvalidConfigError, LoadError, MissingFieldError, ValidationError
from filepipe.records import RecordBatch
from filepipe.sink import FLEXIBLE, FileSink, LoadResult


def _config(path, fmt, **extra):
    return json.dumps({"path": str(path), "format": fmt, **extra})


def test_describe():
    descriptor = FileSink().describe()
    assert descriptor.name == "file"
    assert descriptor.version == "0.1.0"
    assert "CSV and JSON" in descriptor.description


def test_schema_requirement_is_flexible():
    requirement, fixed = FileSink().schema_requirement()
    assert requirement == FLEXIBLE == 0
    assert fixed == []


def test_validate_empty_path():
    with pytest.raises(MissingFieldError):
        FileSink().validate(_config("", "csv"))


def test_validate_missing_parent(tmp_path):
    target = tmp_path / "missing" / "out.csv"
    with pytest.raises(InvalidConfigError) as info:
        FileSink().validate(_config(target, "csv"))
    assert "parent directory does not exist" in str(info.value)


def test_validate_existing_parent_returns_none(tmp_path):
    assert FileSink().validate(_config(tmp_path / "out.csv", "json")) is None


def test_validate_bad_cloud_path():
    config = _config("s3://", "csv", storage={"type": "s3"})
    with pytest.raises(InvalidConfigError):
        FileSink().validate(config)


def test_validate_rejects_parquet_format(tmp_path):
    with pytest.raises(ValidationError):
        FileSink().validate(_config(tmp_path / "out.parquet", "parquet"))


def test_validate_rejects_invalid_json():
    with pytest.raises(ValidationError):
        FileSink().validate("{not json")


def test_load_csv(tmp_path):
    target = tmp_path / "out.csv"
    batches = [
        RecordBatch([{"name": "Alice", "age": 30}, {"name": "Bob", "age": 25}]),
        RecordBatch([{"name": "Carol", "age": 41}]),
    ]
    result = FileSink().load(_config(target, "csv"), batches)
    assert result == LoadResult(rows_written=3)
    lines = target.read_text().strip().splitlines()
    assert lines == ["name,age", "Alice,30", "Bob,25", "Carol,41"]


def test_load_csv_custom_delimiter(tmp_path):
    target = tmp_path / "out.csv"
    config = _config(target, "csv", csv={"delimiter": ";"})
    result = FileSink().load(config, [[{"a": 1, "b": 2}]])
    assert result.rows_written == 1
    assert target.read_text().strip().splitlines() == ["a;b", "1;2"]


def test_load_json_round_trip(tmp_path):
    target = tmp_path / "out.jsonl"
    records = [
        {"name": "Alice", "tags": ["a", "b"], "address": {"city": "Portland"}},
        {"name": "Bob", "tags": [], "address": None},
    ]
    result = FileSink().load(_config(target, "json"), [RecordBatch(records)])
    assert result.rows_written == 2
    assert result.rows_errored == 0
    parsed = [json.loads(line) for line in target.read_text().splitlines()]
    assert parsed == records


def test_load_no_batches(tmp_path):
    target = tmp_path / "out.csv"
    result = FileSink().load(_config(target, "csv"), [])
    assert result.rows_written == 0
    assert target.read_text() == ""


def test_load_bad_config():
    with pytest.raises(LoadError):
        FileSink().load("[]", [])


def test_load_missing_parent(tmp_path):
    target = tmp_path / "missing" / "out.jsonl"
    with pytest.raises(LoadError):
        FileSink().load(_config(target, "json"), [[{"a": 1}]])


def test_load_cloud_backend_unavailable():
    config = _config("s3://bucket/out.csv", "csv", storage={"type": "s3"})
    with pytest.raises(LoadError):
        FileSink().load(config, [[{"a": 1}]])


def test_load_explicit_local_storage(tmp_path):
    target = tmp_path / "out.jsonl"
    config = _config(target, "json", storage={"type": "local"})
    result = FileSink().load(config, [[{"x": True}]])
    assert result.rows_written == 1
    assert json.loads(target.read_text()) == {"x": True}