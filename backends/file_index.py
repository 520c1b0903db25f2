"""
SQLite file index for package version files.

Stores one row per (package_version_id, directory, name) with the unique
constraint enforced by the database, so concurrent syncs of the same
version cannot create duplicate entries.

Key Features:
- Unique (version, directory, name) tuple, duplicate inserts raise DuplicateEntryError
- Dist reference serialized with msgpack
- Optional WAL mode for concurrent readers
- Thread-safe operations, async API backed by worker threads
"""

import asyncio
import sqlite3
from datetime import datetime
from pathlib import Path
from threading import RLock
from typing import List, Optional, Tuple, Union
import logging

import msgpack

from unpakit.core.entities import Dist, PackageVersionFile
from unpakit.core.errors import DuplicateEntryError
from unpakit.core.repositories import PackageVersionFileRepository

logger = logging.getLogger(__name__)

_COLUMNS = (
    "package_version_file_id, package_version_id, directory, name, "
    "dist, content_type, mtime"
)


class SqliteFileIndex(PackageVersionFileRepository):
    """
    Persistent file index using SQLite.

    Each call opens its own connection; an RLock serializes access within
    the process, SQLite itself serializes writers across processes.
    """

    def __init__(
        self,
        db_path: Union[str, Path] = "package_version_files.db",
        enable_wal: bool = True,
        timeout: float = 30.0,
    ):
        """
        Initialize file index.

        Args:
            db_path: Path to SQLite database file
            enable_wal: Enable Write-Ahead Logging for better concurrency
            timeout: Seconds to wait on a locked database
        """
        self.db_path = str(db_path)
        self.timeout = timeout
        self._lock = RLock()

        self._init_db(enable_wal)

    def _connect(self) -> sqlite3.Connection:
        return sqlite3.connect(self.db_path, timeout=self.timeout)

    def _init_db(self, enable_wal: bool) -> None:
        """Initialize SQLite database with schema."""
        with self._lock:
            conn = self._connect()
            try:
                cursor = conn.cursor()

                if enable_wal:
                    cursor.execute("PRAGMA journal_mode=WAL")

                cursor.execute("""
                    CREATE TABLE IF NOT EXISTS package_version_files (
                        package_version_file_id TEXT PRIMARY KEY,
                        package_version_id TEXT NOT NULL,
                        directory TEXT NOT NULL,
                        name TEXT NOT NULL,
                        dist BLOB NOT NULL,
                        content_type TEXT NOT NULL,
                        mtime TEXT NOT NULL,
                        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                        UNIQUE (package_version_id, directory, name)
                    )
                """)

                # Directory listings
                cursor.execute("""
                    CREATE INDEX IF NOT EXISTS idx_version_directory
                    ON package_version_files(package_version_id, directory)
                """)

                conn.commit()
            finally:
                conn.close()

    # Async repository API

    async def has_package_version_files(self, package_version_id: str) -> bool:
        return await asyncio.to_thread(self.count_package_version_files, package_version_id) > 0

    async def find_package_version_file(
        self,
        package_version_id: str,
        directory: str,
        name: str,
    ) -> Optional[PackageVersionFile]:
        return await asyncio.to_thread(self.get, package_version_id, directory, name)

    async def list_package_version_files(
        self,
        package_version_id: str,
        directory: str,
    ) -> List[PackageVersionFile]:
        return await asyncio.to_thread(self.query_by_directory, package_version_id, directory)

    async def create_package_version_file(self, file: PackageVersionFile) -> None:
        await asyncio.to_thread(self.put, file)

    # Blocking operations

    def put(self, file: PackageVersionFile) -> None:
        """
        Insert an index entry.

        Raises:
            DuplicateEntryError: (package_version_id, directory, name) already indexed
        """
        with self._lock:
            conn = self._connect()
            try:
                conn.execute(
                    f"INSERT INTO package_version_files ({_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?)",
                    (
                        file.package_version_file_id,
                        file.package_version_id,
                        file.directory,
                        file.name,
                        msgpack.packb(file.dist.to_dict()),
                        file.content_type,
                        file.mtime.isoformat(),
                    ),
                )
                conn.commit()
            except sqlite3.IntegrityError as e:
                if e.sqlite_errorcode == sqlite3.SQLITE_CONSTRAINT_UNIQUE:
                    raise DuplicateEntryError(file.package_version_id, file.directory, file.name) from e
                raise
            finally:
                conn.close()

        logger.debug(f"Indexed {file.package_version_id}:{file.path}")

    def get(self, package_version_id: str, directory: str, name: str) -> Optional[PackageVersionFile]:
        """
        Retrieve one entry.

        Returns:
            PackageVersionFile if found, None otherwise
        """
        with self._lock:
            conn = self._connect()
            try:
                row = conn.execute(
                    f"SELECT {_COLUMNS} FROM package_version_files "
                    "WHERE package_version_id = ? AND directory = ? AND name = ?",
                    (package_version_id, directory, name),
                ).fetchone()
            finally:
                conn.close()

        if not row:
            return None
        return self._row_to_file(row)

    def query_by_directory(self, package_version_id: str, directory: str) -> List[PackageVersionFile]:
        """
        Entries directly inside a directory, ordered by name.
        """
        with self._lock:
            conn = self._connect()
            try:
                rows = conn.execute(
                    f"SELECT {_COLUMNS} FROM package_version_files "
                    "WHERE package_version_id = ? AND directory = ? ORDER BY name",
                    (package_version_id, directory),
                ).fetchall()
            finally:
                conn.close()

        return [self._row_to_file(row) for row in rows]

    def count_package_version_files(self, package_version_id: str) -> int:
        with self._lock:
            conn = self._connect()
            try:
                row = conn.execute(
                    "SELECT COUNT(*) FROM package_version_files WHERE package_version_id = ?",
                    (package_version_id,),
                ).fetchone()
            finally:
                conn.close()

        return row[0]

    @staticmethod
    def _row_to_file(row: Tuple) -> PackageVersionFile:
        file_id, package_version_id, directory, name, dist_data, content_type, mtime = row
        return PackageVersionFile(
            package_version_id=package_version_id,
            directory=directory,
            name=name,
            dist=Dist.from_dict(msgpack.unpackb(dist_data)),
            content_type=content_type,
            mtime=datetime.fromisoformat(mtime),
            package_version_file_id=file_id,
        )
