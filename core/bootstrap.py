"""
Wires the local backends into a ready-to-use PackageVersionFileService.
"""

from typing import Optional

from loguru import logger

from unpakit.backends.file_index import SqliteFileIndex
from unpakit.backends.local import LocalBackend

from .archive_extractor import ArchiveExtractor
from .config import UnpakitConfig, configure_logging
from .file_service import PackageVersionFileService
from .readme import DistReadmeRepository
from .repositories import PackageRepository, ReadmeRepository
from .sync_orchestrator import PackageVersionFileSyncer


def create_file_service(
    package_repository: PackageRepository,
    config: Optional[UnpakitConfig] = None,
    readme_repository: Optional[ReadmeRepository] = None,
) -> PackageVersionFileService:
    """
    Build a file service backed by the local dist store and SQLite index.

    Args:
        package_repository: Package metadata lookup
        config: Configuration (default: read from the environment)
        readme_repository: README sink (default: store READMEs as dists)
    """
    config = config or UnpakitConfig.from_env()
    configure_logging(config)

    config.data_dir.mkdir(parents=True, exist_ok=True)
    config.index_db_path.parent.mkdir(parents=True, exist_ok=True)

    dist_repository = LocalBackend(config.storage_dir)
    file_repository = SqliteFileIndex(config.index_db_path, enable_wal=config.enable_wal)
    if readme_repository is None:
        readme_repository = DistReadmeRepository(package_repository, dist_repository)

    syncer = PackageVersionFileSyncer(
        package_repository=package_repository,
        dist_repository=dist_repository,
        file_repository=file_repository,
        data_dir=config.data_dir,
        readme_repository=readme_repository,
        extractor=ArchiveExtractor(strip_components=config.strip_components),
    )

    logger.info("✅ Unpakit file service initialized")
    logger.info("   Data dir: {}", config.data_dir)
    logger.info("   Storage dir: {}", config.storage_dir)
    logger.info("   Index: {}", config.index_db_path)

    return PackageVersionFileService(file_repository, syncer)
