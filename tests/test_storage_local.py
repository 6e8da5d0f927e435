import os
from datetime import timezone

import pytest

from filepipe.config import AzureBackend, GcsBackend, LocalBackend, S3Backend
from filepipe.errors import CloudStorageError, NoFilesMatchedError, SourceIoError
from filepipe.storage_local import LocalStorage, create_storage


def test_write_then_read_round_trip(tmp_path):
    store = LocalStorage()
    target = str(tmp_path / "data.bin")
    payload = b"\x00\x01hello\xff"
    store.write_object(target, payload)
    assert store.read_object(target) == payload


def test_write_creates_parent_directories(tmp_path):
    store = LocalStorage()
    target = tmp_path / "a" / "b" / "out.csv"
    store.write_object(str(target), b"id\n1\n")
    assert target.read_bytes() == b"id\n1\n"


def test_write_overwrites(tmp_path):
    store = LocalStorage()
    target = str(tmp_path / "f.txt")
    store.write_object(target, b"first")
    store.write_object(target, b"second")
    assert store.read_object(target) == b"second"


def test_read_missing_file_raises(tmp_path):
    missing = str(tmp_path / "nope.csv")
    with pytest.raises(SourceIoError) as info:
        LocalStorage().read_object(missing)
    assert missing in str(info.value)


def test_list_objects_glob_sorted_with_sizes(tmp_path):
    contents = {"b.csv": b"12345", "a.csv": b"1", "c.json": b"{}"}
    for name, data in contents.items():
        (tmp_path / name).write_bytes(data)
    (tmp_path / "dir.csv").mkdir()

    objects = LocalStorage().list_objects(str(tmp_path / "*.csv"))
    keys = [obj.key for obj in objects]
    assert keys == [str(tmp_path / "a.csv"), str(tmp_path / "b.csv")]
    assert [obj.size for obj in objects] == [len(contents["a.csv"]), len(contents["b.csv"])]


def test_list_objects_literal_path(tmp_path):
    target = tmp_path / "single.csv"
    target.write_bytes(b"x,y\n")
    objects = LocalStorage().list_objects(str(target))
    assert len(objects) == 1
    assert objects[0].key == str(target)
    assert objects[0].size == len(b"x,y\n")
    assert objects[0].last_modified.tzinfo == timezone.utc
    assert objects[0].last_modified.timestamp() == pytest.approx(os.path.getmtime(target))


def test_list_objects_literal_with_glob_characters(tmp_path):
    target = tmp_path / "data[1].csv"
    target.write_bytes(b"a\n")
    objects = LocalStorage().list_objects(str(target))
    assert [obj.key for obj in objects] == [str(target)]


def test_list_objects_no_match(tmp_path):
    pattern = str(tmp_path / "*.parquet")
    with pytest.raises(NoFilesMatchedError) as info:
        LocalStorage().list_objects(pattern)
    assert info.value.detail == pattern


@pytest.mark.parametrize("config", [None, LocalBackend()])
def test_create_storage_local(config, tmp_path):
    store = create_storage(config)
    target = str(tmp_path / "x.txt")
    store.write_object(target, b"ok")
    assert store.read_object(target) == b"ok"


@pytest.mark.parametrize(
    "config",
    [S3Backend(region="us-east-1"), AzureBackend(), GcsBackend(project_id="demo")],
)
def test_create_storage_cloud_unavailable(config):
    with pytest.raises(CloudStorageError):
        create_storage(config)