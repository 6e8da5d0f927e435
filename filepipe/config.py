"""Configuration for the file source and sink connectors."""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Optional, Type, TypeVar, Union

from filepipe.errors import InvalidConfigError


class FileFormat(str, Enum):
    """Formats the file source can read."""

    CSV = "csv"
    JSON = "json"
    PARQUET = "parquet"


class SinkFileFormat(str, Enum):
    """Formats the file sink can write."""

    CSV = "csv"
    JSON = "json"


@dataclass(frozen=True)
class LocalBackend:
    """The local filesystem."""


@dataclass(frozen=True)
class S3Backend:
    """Amazon S3 or an S3-compatible store."""

    region: Optional[str] = None
    endpoint: Optional[str] = None


@dataclass(frozen=True)
class AzureBackend:
    """Azure Blob Storage."""

    connection_string: Optional[str] = None


@dataclass(frozen=True)
class GcsBackend:
    """Google Cloud Storage."""

    project_id: Optional[str] = None


StorageBackend = Union[LocalBackend, S3Backend, AzureBackend, GcsBackend]
_CLOUD_BACKENDS = (S3Backend, AzureBackend, GcsBackend)

_E = TypeVar("_E", bound=Enum)


def _require_mapping(data: Any, what: str) -> Mapping[str, Any]:
    if not isinstance(data, Mapping):
        raise InvalidConfigError(f"{what} must be an object, got {type(data).__name__}")
    return data


def _optional_str(data: Mapping[str, Any], key: str) -> Optional[str]:
    value = data.get(key)
    if value is not None and not isinstance(value, str):
        raise InvalidConfigError(f"`{key}` must be a string")
    return value


def _required_str(data: Mapping[str, Any], key: str) -> str:
    if key not in data:
        raise InvalidConfigError(f"missing field `{key}`")
    value = data[key]
    if not isinstance(value, str):
        raise InvalidConfigError(f"`{key}` must be a string")
    return value


def _parse_enum(enum_cls: Type[_E], data: Mapping[str, Any], key: str) -> _E:
    raw = _required_str(data, key)
    try:
        return enum_cls(raw)
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        raise InvalidConfigError(
            f"unknown variant `{raw}` for `{key}`, expected one of {allowed}"
        ) from None


def _single_char(data: Mapping[str, Any], key: str, default: str) -> str:
    value = data.get(key, default)
    if not isinstance(value, str) or len(value) != 1:
        raise InvalidConfigError(f"`{key}` must be a single character")
    return value


def parse_storage(data: Optional[Mapping[str, Any]]) -> Optional[StorageBackend]:
    """Build a storage backend from its ``type``-tagged table, or ``None``."""
    if data is None:
        return None
    data = _require_mapping(data, "storage")
    kind = _required_str(data, "type")
    if kind == "local":
        return LocalBackend()
    if kind == "s3":
        return S3Backend(
            region=_optional_str(data, "region"),
            endpoint=_optional_str(data, "endpoint"),
        )
    if kind == "azure":
        return AzureBackend(connection_string=_optional_str(data, "connection_string"))
    if kind == "gcs":
        return GcsBackend(project_id=_optional_str(data, "project_id"))
    raise InvalidConfigError(
        f"unknown storage type `{kind}`, expected one of local, s3, azure, gcs"
    )


@dataclass(frozen=True)
class CsvOptions:
    """CSV dialect options."""

    delimiter: str = ","
    quote: str = '"'
    has_header: bool = True

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "CsvOptions":
        data = _require_mapping(data, "csv")
        has_header = data.get("has_header", True)
        if not isinstance(has_header, bool):
            raise InvalidConfigError("`has_header` must be a boolean")
        return cls(
            delimiter=_single_char(data, "delimiter", ","),
            quote=_single_char(data, "quote", '"'),
            has_header=has_header,
        )


def _optional_csv(data: Mapping[str, Any]) -> Optional[CsvOptions]:
    raw = data.get("csv")
    return None if raw is None else CsvOptions.from_dict(raw)


@dataclass(frozen=True)
class FileSourceConfig:
    """Settings for the file source: a path or glob, its format and backend."""

    path: str
    format: FileFormat
    csv: Optional[CsvOptions] = None
    storage: Optional[StorageBackend] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "FileSourceConfig":
        data = _require_mapping(data, "config")
        return cls(
            path=_required_str(data, "path"),
            format=_parse_enum(FileFormat, data, "format"),
            csv=_optional_csv(data),
            storage=parse_storage(data.get("storage")),
        )

    def is_cloud(self) -> bool:
        """Whether the configured backend is a cloud object store."""
        return isinstance(self.storage, _CLOUD_BACKENDS)


@dataclass(frozen=True)
class FileSinkConfig:
    """Settings for the file sink: an output path, its format and backend."""

    path: str
    format: SinkFileFormat
    csv: Optional[CsvOptions] = None
    storage: Optional[StorageBackend] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "FileSinkConfig":
        data = _require_mapping(data, "config")
        return cls(
            path=_required_str(data, "path"),
            format=_parse_enum(SinkFileFormat, data, "format"),
            csv=_optional_csv(data),
            storage=parse_storage(data.get("storage")),
        )

    def is_cloud(self) -> bool:
        """Whether the configured backend is a cloud object store."""
        return isinstance(self.storage, _CLOUD_BACKENDS)


def _load_json(config_json: str) -> Any:
    try:
        return json.loads(config_json)
    except json.JSONDecodeError as exc:
        raise InvalidConfigError(f"config is not valid JSON: {exc}") from exc


def parse_source_config(config_json: str) -> FileSourceConfig:
    """Parse a JSON document into a :class:`FileSourceConfig`."""
    return FileSourceConfig.from_dict(_load_json(config_json))


def parse_sink_config(config_json: str) -> FileSinkConfig:
    """Parse a JSON document into a :class:`FileSinkConfig`."""
    return FileSinkConfig.from_dict(_load_json(config_json))