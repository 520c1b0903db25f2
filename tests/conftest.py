"""
Shared fixtures for Unpakit tests: tarball builders, recording fakes and a
harness that publishes package versions into a local dist store.
"""

import hashlib
import io
import shutil
import tarfile
import tempfile
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

import pytest

from unpakit.backends import InMemoryPackageRegistry, LocalBackend, SqliteFileIndex
from unpakit.core.content_addressing import ContentAddressingEngine
from unpakit.core.entities import Dist, FileInfo, Package, PackageVersion
from unpakit.core.file_service import PackageVersionFileService
from unpakit.core.repositories import DistRepository, ReadmeRepository
from unpakit.core.sync_orchestrator import PackageVersionFileSyncer

PUBLISH_TIME = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)


# ===== TARBALL BUILDERS =====

@dataclass
class Member:
    """One tar member to write."""
    name: str
    data: bytes = b""
    type: bytes = tarfile.REGTYPE
    linkname: str = ""


def file_member(name: str, data: bytes) -> Member:
    return Member(name=name, data=data)


def dir_member(name: str) -> Member:
    return Member(name=name, type=tarfile.DIRTYPE)


def symlink_member(name: str, target: str) -> Member:
    return Member(name=name, type=tarfile.SYMTYPE, linkname=target)


def build_tarball(path: Path, members: Sequence[Member], mode: str = "w:gz") -> Path:
    """Write members, in order, into a tarball at path."""
    with tarfile.open(path, mode) as tar:
        for member in members:
            info = tarfile.TarInfo(member.name)
            info.type = member.type
            info.mtime = int(PUBLISH_TIME.timestamp())
            if member.type == tarfile.REGTYPE:
                info.size = len(member.data)
                tar.addfile(info, io.BytesIO(member.data))
            else:
                info.linkname = member.linkname
                info.mode = 0o755
                tar.addfile(info)
    return path


def incompressible_bytes(size: int) -> bytes:
    """Deterministic bytes that gzip cannot shrink."""
    chunks = []
    counter = 0
    while sum(len(c) for c in chunks) < size:
        chunks.append(hashlib.sha512(str(counter).encode()).digest())
        counter += 1
    return b"".join(chunks)[:size]


# ===== FAKES =====

class RecordingDistRepository(DistRepository):
    """Delegates to a LocalBackend and records every call."""

    def __init__(self, backend: LocalBackend):
        self.backend = backend
        self.saved: List[Tuple[Dist, Path]] = []
        self.downloads: List[Tuple[Dist, Path]] = []

    async def download_dist_to_file(self, dist, destination):
        self.downloads.append((dist, Path(destination)))
        await self.backend.download_dist_to_file(dist, destination)

    async def save_dist(self, dist, local_file):
        self.saved.append((dist, Path(local_file)))
        await self.backend.save_dist(dist, local_file)


@dataclass
class ReadmeCall:
    pkg_version: PackageVersion
    readme_file: Path
    content: Optional[bytes]


class RecordingReadmeRepository(ReadmeRepository):
    """Captures README hand-offs, reading the file while it still exists."""

    def __init__(self):
        self.calls: List[ReadmeCall] = []

    async def save_package_version_readme(self, pkg_version, readme_file):
        readme_file = Path(readme_file)
        content = readme_file.read_bytes() if readme_file.exists() else None
        self.calls.append(ReadmeCall(pkg_version, readme_file, content))


# ===== HARNESS =====

@dataclass
class SyncHarness:
    """Everything needed to publish versions and sync their files."""
    root: Path
    registry: InMemoryPackageRegistry
    backend: LocalBackend
    dist_repository: RecordingDistRepository
    file_index: SqliteFileIndex
    readme_repository: RecordingReadmeRepository
    syncer: PackageVersionFileSyncer
    service: PackageVersionFileService
    packages: dict = field(default_factory=dict)

    @property
    def data_dir(self) -> Path:
        return self.root / "data"

    def package(self, name: str, scope: str = "") -> Package:
        fullname = f"{scope}/{name}" if scope else name
        if fullname not in self.packages:
            self.packages[fullname] = self.registry.save_package(Package(name=name, scope=scope))
        return self.packages[fullname]

    def publish(
        self,
        name: str,
        version: str,
        members: Sequence[Member],
        scope: str = "",
        mode: str = "w:gz",
    ) -> PackageVersion:
        tarball = build_tarball(self.root / f"{name}-{version}.tgz", members, mode)
        return self.publish_file(name, version, tarball, scope)

    def publish_file(self, name: str, version: str, tarball: Path, scope: str = "") -> PackageVersion:
        pkg = self.package(name, scope)
        digests = ContentAddressingEngine().compute_file_integrity(tarball)
        tar_dist = pkg.create_tar(version, FileInfo(
            size=tarball.stat().st_size,
            shasum=digests.shasum,
            integrity=digests.integrity,
        ))
        self.backend.store_file(tar_dist, tarball)
        pkg_version = PackageVersion(
            package_id=pkg.package_id,
            version=version,
            tar_dist=tar_dist,
            publish_time=PUBLISH_TIME,
        )
        return self.registry.save_package_version(pkg_version)

    def leftover_workspaces(self) -> List[Path]:
        downloads = self.data_dir / "downloads"
        if not downloads.exists():
            return []
        return [p for p in downloads.rglob("*") if p.name.startswith("unpkg_")]


# ===== FIXTURES =====

@pytest.fixture
def temp_storage_dir():
    """Create a temporary directory for storage tests."""
    temp_dir = tempfile.mkdtemp(prefix="unpakit_test_")
    yield Path(temp_dir)
    shutil.rmtree(temp_dir, ignore_errors=True)


@pytest.fixture
def harness(temp_storage_dir):
    """Wired registry, dist store, SQLite index, syncer and service."""
    registry = InMemoryPackageRegistry()
    backend = LocalBackend(temp_storage_dir / "storage")
    dist_repository = RecordingDistRepository(backend)
    file_index = SqliteFileIndex(temp_storage_dir / "files.db")
    readme_repository = RecordingReadmeRepository()
    syncer = PackageVersionFileSyncer(
        package_repository=registry,
        dist_repository=dist_repository,
        file_repository=file_index,
        data_dir=temp_storage_dir / "data",
        readme_repository=readme_repository,
    )
    return SyncHarness(
        root=temp_storage_dir,
        registry=registry,
        backend=backend,
        dist_repository=dist_repository,
        file_index=file_index,
        readme_repository=readme_repository,
        syncer=syncer,
        service=PackageVersionFileService(file_index, syncer),
    )
