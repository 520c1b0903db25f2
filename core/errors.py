"""
Typed error variants for the file sync pipeline.

Recoverable conditions get their own exception class so callers branch on
type rather than on error codes or messages.
"""

from pathlib import Path
from typing import Union


class UnpakitError(Exception):
    """Base class for errors raised by Unpakit."""


class BadArchiveError(UnpakitError):
    """The tarball is structurally corrupt (bad header or truncated stream)."""

    def __init__(self, archive_path: Union[str, Path], reason: str):
        self.archive_path = str(archive_path)
        self.reason = reason
        super().__init__(f"Bad archive {self.archive_path}: {reason}")


class DuplicateEntryError(UnpakitError):
    """An index entry for (package_version_id, directory, name) already exists."""

    def __init__(self, package_version_id: str, directory: str, name: str):
        self.package_version_id = package_version_id
        self.directory = directory
        self.name = name
        super().__init__(
            f"Duplicate package version file {package_version_id}:{directory}:{name}"
        )
