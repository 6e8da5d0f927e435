"""Exception hierarchy for the file source and sink connectors."""

from __future__ import annotations


class _PrefixedError(Exception):
    """An error whose message is a fixed prefix followed by a detail string."""

    prefix = ""

    def __init__(self, detail: str) -> None:
        super().__init__(f"{self.prefix}{detail}")
        self.detail = detail


class FileSourceError(_PrefixedError):
    """Base class for failures while reading source files."""


class SourceIoError(FileSourceError):
    """A file could not be opened or read."""

    prefix = "io error: "


class ParseError(FileSourceError):
    """File contents were malformed (bad CSV, invalid JSON, corrupt data)."""

    prefix = "parse error: "


class NoFilesMatchedError(FileSourceError):
    """No files matched the configured path or glob pattern."""

    prefix = "no files matched pattern: "


class CloudStorageError(FileSourceError):
    """A cloud storage operation failed."""

    prefix = "cloud storage error: "


class InvalidCloudPathError(FileSourceError):
    """A cloud object path could not be parsed."""

    prefix = "invalid cloud path: "


class FileSinkError(_PrefixedError):
    """Base class for failures while writing output files."""


class SinkIoError(FileSinkError):
    """The output file could not be created, written or flushed."""

    prefix = "io error: "


class SerializationError(FileSinkError):
    """A record could not be serialised to the output format."""

    prefix = "serialization error: "


class ValidationError(Exception):
    """A connector configuration is unusable."""


class MissingFieldError(ValidationError):
    """A required configuration field is absent or empty."""

    def __init__(self, field: str) -> None:
        super().__init__(f"missing required field: {field}")
        self.field = field


class InvalidConfigError(ValidationError):
    """A configuration value is malformed or inconsistent."""

    def __init__(self, detail: str) -> None:
        super().__init__(f"invalid config: {detail}")
        self.detail = detail


class DiscoveryError(Exception):
    """Schema or partition discovery failed."""


class ExtractionError(Exception):
    """Reading records from the source failed."""


class LoadError(Exception):
    """Writing records to the sink failed."""