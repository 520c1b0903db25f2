"""
Local filesystem dist store.

Blobs are stored once per content digest; every external dist path gets a
small ref file pointing at the digest.
"""

from dataclasses import dataclass
from pathlib import Path
from threading import RLock
from typing import Optional, Union
import asyncio
import logging
import os
import shutil
import uuid

from unpakit.core.entities import Dist
from unpakit.core.repositories import DistRepository

logger = logging.getLogger(__name__)


@dataclass
class DeduplicationStats:
    """Deduplication statistics."""
    total_stores: int = 0
    unique_content: int = 0
    duplicate_saves: int = 0
    bytes_saved: int = 0

    @property
    def deduplication_ratio(self) -> float:
        """Ratio of deduplicated to total stores."""
        return self.duplicate_saves / self.total_stores if self.total_stores > 0 else 0.0


class LocalBackend(DistRepository):
    """
    Content-addressed dist store on local disk.

    Directory structure:
    storage_dir/
        objects/
            AB/
                ABCDEF...123        (blob, named by content key)
        refs/
            packages/foo/1.0.0/files/index.js   (text file holding the content key)

    Writes go to a uniquely named temp file first and are moved into place
    with os.replace, so concurrent saves of the same blob are safe.
    """

    def __init__(self, storage_dir: Union[str, Path]):
        """
        Initialize local backend.

        Args:
            storage_dir: Base directory for storage
        """
        self.storage_dir = Path(storage_dir)
        self.objects_dir = self.storage_dir / "objects"
        self.refs_dir = self.storage_dir / "refs"
        self.objects_dir.mkdir(parents=True, exist_ok=True)
        self.refs_dir.mkdir(parents=True, exist_ok=True)

        self._lock = RLock()
        self.stats = DeduplicationStats()

        logger.info(f"Initialized local dist store at {self.storage_dir}")

    async def save_dist(self, dist: Dist, local_file: Union[str, Path]) -> None:
        await asyncio.to_thread(self.store_file, dist, local_file)

    async def download_dist_to_file(self, dist: Dist, destination: Union[str, Path]) -> None:
        await asyncio.to_thread(self.copy_to_file, dist, destination)

    def store_file(self, dist: Dist, local_file: Union[str, Path]) -> bool:
        """
        Store a local file as the blob for dist.

        Args:
            dist: Dist describing the file
            local_file: File to store

        Returns:
            True if the blob was new, False if it was already stored
        """
        content_key = dist.content_key
        object_path = self._get_object_path(content_key)

        is_new = not object_path.exists()
        if is_new:
            object_path.parent.mkdir(parents=True, exist_ok=True)
            self._atomic_copy(Path(local_file), object_path)

        self._write_ref(dist.path, content_key)

        with self._lock:
            self.stats.total_stores += 1
            if is_new:
                self.stats.unique_content += 1
            else:
                self.stats.duplicate_saves += 1
                self.stats.bytes_saved += dist.size

        if is_new:
            logger.debug(f"Stored {content_key[:16]}... ({dist.size} bytes) for {dist.path}")
        else:
            logger.debug(f"Duplicate content {content_key[:16]}... for {dist.path}")

        return is_new

    def copy_to_file(self, dist: Dist, destination: Union[str, Path]) -> None:
        """
        Copy the blob for dist to destination.

        Raises:
            FileNotFoundError: No blob stored for dist
        """
        object_path = self._get_object_path(dist.content_key)
        if not object_path.exists():
            raise FileNotFoundError(f"Dist {dist.path} ({dist.content_key[:16]}...) not found")

        shutil.copyfile(object_path, destination)
        logger.debug(f"Copied {dist.path} to {destination}")

    def exists(self, dist: Dist) -> bool:
        return self._get_object_path(dist.content_key).exists()

    def retrieve(self, dist: Dist) -> Optional[bytes]:
        """
        Read a blob into memory.

        Returns:
            Blob bytes, or None if not found
        """
        object_path = self._get_object_path(dist.content_key)
        if not object_path.exists():
            logger.warning(f"Content {dist.content_key[:16]}... not found at {object_path}")
            return None
        return object_path.read_bytes()

    def get_size(self, dist: Dist) -> Optional[int]:
        object_path = self._get_object_path(dist.content_key)
        if object_path.exists():
            return object_path.stat().st_size
        return None

    def resolve_ref(self, dist_path: str) -> Optional[str]:
        """Content key recorded for an external dist path, or None."""
        ref_path = self._get_ref_path(dist_path)
        if not ref_path.exists():
            return None
        return ref_path.read_text(encoding="ascii").strip()

    # Internal methods

    def _get_object_path(self, content_key: str) -> Path:
        """Get blob path for content key."""
        return self.objects_dir / content_key[:2] / content_key

    def _get_ref_path(self, dist_path: str) -> Path:
        return self.refs_dir / dist_path.lstrip("/")

    def _write_ref(self, dist_path: str, content_key: str) -> None:
        ref_path = self._get_ref_path(dist_path)
        ref_path.parent.mkdir(parents=True, exist_ok=True)
        temp_path = ref_path.with_name(f".{ref_path.name}.{uuid.uuid4().hex}.tmp")
        temp_path.write_text(content_key, encoding="ascii")
        os.replace(temp_path, ref_path)

    def _atomic_copy(self, source: Path, target: Path) -> None:
        temp_path = target.with_name(f".{target.name}.{uuid.uuid4().hex}.tmp")
        try:
            shutil.copyfile(source, temp_path)
            os.replace(temp_path, target)
        except OSError:
            temp_path.unlink(missing_ok=True)
            raise
