"""
Collaborator interfaces consumed by the sync pipeline.

Concrete implementations live in `backends/` (and `core/readme.py`); tests
substitute in-memory fakes.
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Optional, Union

from .entities import Dist, Package, PackageVersion, PackageVersionFile


class PackageRepository(ABC):
    """Read access to package metadata."""

    @abstractmethod
    async def find_package_by_package_id(self, package_id: str) -> Optional[Package]:
        """Return the package, or None if it does not exist."""


class DistRepository(ABC):
    """Content-addressed blob store."""

    @abstractmethod
    async def download_dist_to_file(self, dist: Dist, destination: Union[str, Path]) -> None:
        """
        Copy a stored blob to a local file.

        Raises:
            OSError: Blob missing or transport/storage failure
        """

    @abstractmethod
    async def save_dist(self, dist: Dist, local_file: Union[str, Path]) -> None:
        """Persist a local file as the blob for dist. Idempotent per digest."""


class PackageVersionFileRepository(ABC):
    """File index keyed by (package_version_id, directory, name)."""

    @abstractmethod
    async def has_package_version_files(self, package_version_id: str) -> bool:
        """True when at least one entry exists for the version."""

    @abstractmethod
    async def find_package_version_file(
        self,
        package_version_id: str,
        directory: str,
        name: str,
    ) -> Optional[PackageVersionFile]:
        """Point lookup."""

    @abstractmethod
    async def list_package_version_files(
        self,
        package_version_id: str,
        directory: str,
    ) -> List[PackageVersionFile]:
        """Entries of one directory, ordered by name."""

    @abstractmethod
    async def create_package_version_file(self, file: PackageVersionFile) -> None:
        """
        Insert a new entry.

        Raises:
            DuplicateEntryError: The (version, directory, name) tuple exists
        """


class ReadmeRepository(ABC):
    """Persists the README found in a version's tarball."""

    @abstractmethod
    async def save_package_version_readme(
        self,
        pkg_version: PackageVersion,
        readme_file: Union[str, Path],
    ) -> None:
        """Store the README file for the version."""
