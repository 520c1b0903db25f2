"""
Unpakit Core Module

Tarball ingestion into a content-addressed file index:
- Content addressing (sha512 integrity, sha1 shasum)
- Streaming archive extraction
- Per-file materialization (blob store + index entry)
- Sync orchestration and lazy file queries
"""

from unpakit.core.archive_extractor import ArchiveExtractor, ExtractionResult
from unpakit.core.content_addressing import ContentAddressingEngine, ContentID, DistIntegrity
from unpakit.core.entities import Dist, FileInfo, Package, PackageVersion, PackageVersionFile
from unpakit.core.errors import BadArchiveError, DuplicateEntryError, UnpakitError
from unpakit.core.file_materializer import PackageVersionFileMaterializer
from unpakit.core.file_service import PackageVersionFileService
from unpakit.core.sync_orchestrator import PackageVersionFileSyncer

__all__ = [
    "ArchiveExtractor",
    "ExtractionResult",
    "ContentAddressingEngine",
    "ContentID",
    "DistIntegrity",
    "Dist",
    "FileInfo",
    "Package",
    "PackageVersion",
    "PackageVersionFile",
    "BadArchiveError",
    "DuplicateEntryError",
    "UnpakitError",
    "PackageVersionFileMaterializer",
    "PackageVersionFileService",
    "PackageVersionFileSyncer",
]
