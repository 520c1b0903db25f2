"""
Streaming tarball extraction.

Published tarballs wrap their files in a single top-level directory
(usually "package/"). The extractor strips that directory, keeps regular
files only and reports the extracted paths in archive order together with
the README member, if any.
"""

import asyncio
import shutil
import tarfile
import zlib
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Union
import logging

from .errors import BadArchiveError

logger = logging.getLogger(__name__)

README_FILENAMES = ("README.md", "readme.md", "Readme.md")

# Raised by tarfile and the decompressors on corrupt input
CORRUPT_ARCHIVE_ERRORS = (
    tarfile.ReadError,
    tarfile.CompressionError,
    tarfile.HeaderError,
    EOFError,
    zlib.error,
)


@dataclass
class ExtractionResult:
    """Outcome of extracting one tarball."""
    paths: List[str] = field(default_factory=list)  # "/"-prefixed, archive order
    readme_filename: Optional[str] = None            # relative to the extraction dir

    @property
    def file_count(self) -> int:
        return len(self.paths)


def normalize_member_path(member_name: str, strip_components: int = 1) -> Optional[str]:
    """
    Normalize a tar member name to a "/"-prefixed path.

    Empty segments are dropped after stripping. Returns None for members
    that must be skipped: hidden directory segments ("/./"), nothing left
    after stripping, or ".." segments.

    >>> normalize_member_path("package/dir/sub/file.js")
    '/dir/sub/file.js'
    >>> normalize_member_path("package//abs/x.js")
    '/abs/x.js'
    """
    if "/./" in member_name:
        return None

    parts = [part for part in member_name.split("/")[strip_components:] if part]
    if not parts or ".." in parts:
        return None

    return "/" + "/".join(parts)


class ArchiveExtractor:
    """
    Extracts file members of a tarball into a directory.

    Gzip, bzip2 and xz compression are detected automatically. The archive
    is read as a stream, one member at a time.
    """

    def __init__(self, strip_components: int = 1, chunk_size: int = 64 * 1024):
        """
        Args:
            strip_components: Leading path segments removed from every member
            chunk_size: Copy buffer size when writing members to disk
        """
        self.strip_components = strip_components
        self.chunk_size = chunk_size

    def extract(self, tar_file: Union[str, Path], dest_dir: Union[str, Path]) -> ExtractionResult:
        """
        Extract all file members of tar_file into dest_dir.

        Args:
            tar_file: Path of the tarball
            dest_dir: Existing directory receiving the files

        Returns:
            ExtractionResult with the manifest and README member

        Raises:
            BadArchiveError: The archive is corrupt or truncated
            OSError: Any other I/O failure
        """
        dest_dir = Path(dest_dir).resolve()
        result = ExtractionResult()

        try:
            # undecodable member names become U+FFFD instead of lone surrogates
            with tarfile.open(tar_file, mode="r|*", encoding="utf-8", errors="replace") as tar:
                for member in tar:
                    self._extract_member(tar, member, dest_dir, result)
        except CORRUPT_ARCHIVE_ERRORS as e:
            raise BadArchiveError(tar_file, str(e)) from e

        logger.debug(
            f"Extracted {result.file_count} files from {tar_file} "
            f"(readme={result.readme_filename})"
        )

        return result

    async def extract_async(
        self,
        tar_file: Union[str, Path],
        dest_dir: Union[str, Path],
    ) -> ExtractionResult:
        """Run extract() on a worker thread."""
        return await asyncio.to_thread(self.extract, tar_file, dest_dir)

    def _extract_member(
        self,
        tar: tarfile.TarFile,
        member: tarfile.TarInfo,
        dest_dir: Path,
        result: ExtractionResult,
    ) -> None:
        if not member.isfile():
            return

        path = normalize_member_path(member.name, self.strip_components)
        if path is None:
            logger.debug(f"Skipping tar member {member.name!r}")
            return

        filename = path[1:]
        target = dest_dir / filename
        if not target.resolve().is_relative_to(dest_dir):
            logger.warning(f"Skipping tar member {member.name!r} outside {dest_dir}")
            return
        target.parent.mkdir(parents=True, exist_ok=True)

        source = tar.extractfile(member)
        with source, open(target, "wb") as f:
            shutil.copyfileobj(source, f, self.chunk_size)

        result.paths.append(path)
        if result.readme_filename is None and filename in README_FILENAMES:
            result.readme_filename = filename
