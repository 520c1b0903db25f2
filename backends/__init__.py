"""
Storage backends for Unpakit.

Local content-addressed dist store, SQLite file index and an in-memory
package registry.
"""

from .local import LocalBackend, DeduplicationStats
from .file_index import SqliteFileIndex
from .package_registry import InMemoryPackageRegistry

__all__ = ["LocalBackend", "DeduplicationStats", "SqliteFileIndex", "InMemoryPackageRegistry"]
