"""
Read access to a version's files, syncing them lazily on first access.
"""

from typing import List, Optional

from loguru import logger

from .entities import PackageVersion, PackageVersionFile
from .paths import get_directory_and_name
from .repositories import PackageVersionFileRepository
from .sync_orchestrator import PackageVersionFileSyncer


class PackageVersionFileService:
    """
    Lists and shows files of a package version.

    A sync is triggered only while the index holds no entries for the
    version; a lookup miss on a synced version is a genuine miss.
    """

    def __init__(self, file_repository: PackageVersionFileRepository, syncer: PackageVersionFileSyncer):
        self.file_repository = file_repository
        self.syncer = syncer

    async def list_package_version_files(
        self,
        pkg_version: PackageVersion,
        directory: str,
    ) -> List[PackageVersionFile]:
        await self._ensure_package_version_files_sync(pkg_version)
        return await self.file_repository.list_package_version_files(
            pkg_version.package_version_id, directory)

    async def show_package_version_file(
        self,
        pkg_version: PackageVersion,
        path: str,
    ) -> Optional[PackageVersionFile]:
        await self._ensure_package_version_files_sync(pkg_version)
        directory, name = get_directory_and_name(path)
        return await self.file_repository.find_package_version_file(
            pkg_version.package_version_id, directory, name)

    async def sync_package_version_files(self, pkg_version: PackageVersion) -> List[PackageVersionFile]:
        """Explicitly (re)sync a version. Existing entries are reused."""
        return await self.syncer.sync_package_version_files(pkg_version)

    async def _ensure_package_version_files_sync(self, pkg_version: PackageVersion) -> None:
        has_files = await self.file_repository.has_package_version_files(pkg_version.package_version_id)
        if not has_files:
            logger.debug(
                "[PackageVersionFileService.ensure_sync] no files indexed for packageVersionId: {}",
                pkg_version.package_version_id)
            await self.syncer.sync_package_version_files(pkg_version)
