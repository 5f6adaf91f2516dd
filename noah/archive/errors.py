from __future__ import annotations


class ArchiveError(RuntimeError):
    """Base class for archive store failures."""


class ConnectivityError(ArchiveError):
    """Remote store could not be reached or rejected the call."""


class SchemaError(ArchiveError):
    """Remote store returned a payload that does not fit the archive models."""


class StorageError(ArchiveError):
    """Local store could not read or append its log files."""
