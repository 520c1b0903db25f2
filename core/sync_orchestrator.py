"""
Package version file sync.

Downloads a version's tarball, extracts it into a temporary directory,
materializes every file into the index and hands the README over for
storage. The temporary tarball and directory are removed on every exit
path.
"""

from pathlib import Path
from typing import List, Optional, Union

from loguru import logger

from .archive_extractor import ArchiveExtractor, ExtractionResult
from .entities import PackageVersion, PackageVersionFile
from .errors import BadArchiveError
from .file_materializer import PackageVersionFileMaterializer
from .repositories import (
    DistRepository,
    PackageRepository,
    PackageVersionFileRepository,
    ReadmeRepository,
)
from .workspace import sync_workspace


class PackageVersionFileSyncer:
    """
    Orchestrates download → extract → materialize → cleanup.

    No locks are taken: two syncs of the same version may run at once and
    rely on idempotent blob writes and duplicate-insert absorption.
    """

    def __init__(
        self,
        package_repository: PackageRepository,
        dist_repository: DistRepository,
        file_repository: PackageVersionFileRepository,
        data_dir: Union[str, Path],
        readme_repository: Optional[ReadmeRepository] = None,
        extractor: Optional[ArchiveExtractor] = None,
        materializer: Optional[PackageVersionFileMaterializer] = None,
    ):
        """
        Args:
            package_repository: Resolves a version's owning package
            dist_repository: Source of the tarball and sink for file blobs
            file_repository: File index
            data_dir: Base directory for temporary downloads
            readme_repository: Receives the README member, if any
            extractor: Tarball extractor (default strips one path segment)
            materializer: Per-file materializer
        """
        self.package_repository = package_repository
        self.dist_repository = dist_repository
        self.file_repository = file_repository
        self.data_dir = Path(data_dir)
        self.readme_repository = readme_repository
        self.extractor = extractor or ArchiveExtractor()
        self.materializer = materializer or PackageVersionFileMaterializer(
            file_repository, dist_repository)

    async def sync_package_version_files(self, pkg_version: PackageVersion) -> List[PackageVersionFile]:
        """
        Extract and index every file of a version's tarball.

        Safe to call repeatedly: already indexed files are returned without
        being stored again.

        Returns:
            Index entries in archive order; empty when the package is
            missing or the tarball is corrupt
        """
        files: List[PackageVersionFile] = []
        pkg = await self.package_repository.find_package_by_package_id(pkg_version.package_id)
        if not pkg:
            return files

        tar_dist = pkg_version.tar_dist
        extraction = ExtractionResult()
        async with sync_workspace(self.data_dir, pkg.fullname, pkg_version.version) as workspace:
            try:
                logger.info(
                    "[PackageVersionFileSyncer.sync_package_version_files:download-start] "
                    "dist:{}(path:{}, size:{}) => tarFile:{}",
                    tar_dist.dist_id, tar_dist.path, tar_dist.size, workspace.tar_file)
                await self.dist_repository.download_dist_to_file(tar_dist, workspace.tar_file)

                logger.info(
                    "[PackageVersionFileSyncer.sync_package_version_files:extract-start] tmpdir:{}",
                    workspace.tmpdir)
                extraction = await self.extractor.extract_async(workspace.tar_file, workspace.tmpdir)

                for path in extraction.paths:
                    local_file = workspace.tmpdir / path.lstrip("/")
                    file = await self.materializer.materialize(pkg, pkg_version, path, local_file)
                    files.append(file)

                logger.info(
                    "[PackageVersionFileSyncer.sync_package_version_files:success] "
                    "packageVersionId: {}, {} paths, {} files, tmpdir: {}",
                    pkg_version.package_version_id, extraction.file_count, len(files), workspace.tmpdir)

                if extraction.readme_filename and self.readme_repository:
                    readme_file = workspace.tmpdir / extraction.readme_filename
                    await self.readme_repository.save_package_version_readme(pkg_version, readme_file)
                return files
            except BadArchiveError as e:
                logger.warning(
                    "[PackageVersionFileSyncer.sync_package_version_files:bad-archive] "
                    "packageVersionId: {}, tmpdir: {}, error: {}",
                    pkg_version.package_version_id, workspace.tmpdir, e)
                return files
            except Exception as e:
                logger.warning(
                    "[PackageVersionFileSyncer.sync_package_version_files:error] "
                    "packageVersionId: {}, {} paths, tmpdir: {}, error: {}",
                    pkg_version.package_version_id, extraction.file_count, workspace.tmpdir, e)
                raise
