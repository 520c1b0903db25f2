"""
Turns one extracted file into a PackageVersionFile index entry.
"""

import asyncio
import os
from pathlib import Path
from typing import Optional, Union

from loguru import logger

from .content_addressing import ContentAddressingEngine, calculate_integrity
from .entities import FileInfo, Package, PackageVersion, PackageVersionFile
from .errors import DuplicateEntryError
from .paths import encode_dist_path, get_directory_and_name, mime_lookup
from .repositories import DistRepository, PackageVersionFileRepository


class PackageVersionFileMaterializer:
    """
    Stores a file's blob and indexes it.

    Materialization is idempotent: an entry that already exists is returned
    as-is, without reading or storing the file again.
    """

    def __init__(
        self,
        file_repository: PackageVersionFileRepository,
        dist_repository: DistRepository,
        content_addressing: Optional[ContentAddressingEngine] = None,
    ):
        self.file_repository = file_repository
        self.dist_repository = dist_repository
        self.content_addressing = content_addressing or ContentAddressingEngine()

    async def materialize(
        self,
        pkg: Package,
        pkg_version: PackageVersion,
        path: str,
        local_file: Union[str, Path],
    ) -> PackageVersionFile:
        """
        Produce (or retrieve) the index entry for one file.

        Args:
            pkg: Owning package
            pkg_version: Version the tarball belongs to
            path: Normalized file path, e.g. "/lib/index.js"
            local_file: Extracted file on disk

        Returns:
            The existing or newly created PackageVersionFile
        """
        directory, name = get_directory_and_name(path)
        file = await self.file_repository.find_package_version_file(
            pkg_version.package_version_id, directory, name)
        if file:
            return file

        stat = await asyncio.to_thread(os.stat, local_file)
        dist_integrity = await calculate_integrity(local_file, self.content_addressing)
        # dist.path must stay ASCII, e.g. '/resource/ToOneFromχ.js' => '/resource/ToOneFrom%CF%87.js'
        dist_path = encode_dist_path(path)
        dist = pkg.create_package_version_file(dist_path, pkg_version.version, FileInfo(
            size=stat.st_size,
            shasum=dist_integrity.shasum,
            integrity=dist_integrity.integrity,
        ))
        await self.dist_repository.save_dist(dist, local_file)

        file = PackageVersionFile.create(
            package_version_id=pkg_version.package_version_id,
            directory=directory,
            name=name,
            dist=dist,
            content_type=mime_lookup(path),
            mtime=pkg_version.publish_time,
        )
        try:
            await self.file_repository.create_package_version_file(file)
        except DuplicateEntryError:
            # a concurrent sync of the same version inserted it first
            logger.info(
                "[PackageVersionFileMaterializer.materialize:duplicate] packageVersionId: {}, path: {}",
                pkg_version.package_version_id, file.path)
            stored = await self.file_repository.find_package_version_file(
                pkg_version.package_version_id, directory, name)
            return stored or file

        logger.info(
            "[PackageVersionFileMaterializer.materialize:success] fileId: {}, size: {}, path: {}",
            file.package_version_file_id, dist.size, file.path)
        return file
