"""
README persistence through the dist store.
"""

import asyncio
import os
from pathlib import Path
from typing import Optional, Union

from loguru import logger

from .content_addressing import ContentAddressingEngine, calculate_integrity
from .entities import Dist, FileInfo, PackageVersion
from .repositories import DistRepository, PackageRepository, ReadmeRepository


class DistReadmeRepository(ReadmeRepository):
    """Stores a version's raw README as its "readme.md" dist."""

    def __init__(
        self,
        package_repository: PackageRepository,
        dist_repository: DistRepository,
        content_addressing: Optional[ContentAddressingEngine] = None,
    ):
        self.package_repository = package_repository
        self.dist_repository = dist_repository
        self.content_addressing = content_addressing or ContentAddressingEngine()

    async def save_package_version_readme(
        self,
        pkg_version: PackageVersion,
        readme_file: Union[str, Path],
    ) -> Optional[Dist]:
        pkg = await self.package_repository.find_package_by_package_id(pkg_version.package_id)
        if not pkg:
            return None

        stat = await asyncio.to_thread(os.stat, readme_file)
        dist_integrity = await calculate_integrity(readme_file, self.content_addressing)
        dist = pkg.create_readme(pkg_version.version, FileInfo(
            size=stat.st_size,
            shasum=dist_integrity.shasum,
            integrity=dist_integrity.integrity,
        ))
        await self.dist_repository.save_dist(dist, readme_file)

        logger.info(
            "[DistReadmeRepository.save_package_version_readme:success] packageVersionId: {}, size: {}, path: {}",
            pkg_version.package_version_id, dist.size, dist.path)
        return dist
