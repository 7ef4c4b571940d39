from __future__ import annotations


class BookmarkerError(Exception):
    """Base class for failures the CLI reports as ``Error: ...`` with exit code 1."""


class SourceNotFound(BookmarkerError, FileNotFoundError):
    def __init__(self, path, message: str | None = None) -> None:
        super().__init__(message or f"Database not found: {path}")
        self.path = path


class SourceReadError(BookmarkerError):
    pass


class DataIntegrityError(BookmarkerError):
    """The parent chain of a node is cyclic or deeper than the configured bound."""


class UnsupportedPlatform(BookmarkerError):
    pass


class UnknownExportFormat(BookmarkerError):
    def __init__(self, name: str) -> None:
        super().__init__(f"Unknown export format: {name}")
        self.name = name


class ConfigError(BookmarkerError):
    pass
