"""
Entities of the package file index.

A Package owns PackageVersions; each version points at its tarball Dist.
Extracting the tarball yields one PackageVersionFile per member, each
referencing a content-addressed Dist.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict
import posixpath
import uuid

from .content_addressing import ContentID


def _new_id() -> str:
    return uuid.uuid4().hex


@dataclass
class FileInfo:
    """Size and digests of a local file, used to build a Dist."""
    size: int
    shasum: str
    integrity: str


@dataclass
class Dist:
    """Reference to a content blob in the dist store."""
    name: str
    path: str        # external key, ASCII only
    size: int
    shasum: str      # sha1 hex
    integrity: str   # e.g. "sha512-<base64>"
    dist_id: str = field(default_factory=_new_id)

    @property
    def content_key(self) -> str:
        """Hex digest addressing the blob in the store."""
        return ContentID.from_integrity(self.integrity).hex

    def to_dict(self) -> Dict[str, Any]:
        return {
            "dist_id": self.dist_id,
            "name": self.name,
            "path": self.path,
            "size": self.size,
            "shasum": self.shasum,
            "integrity": self.integrity,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Dist":
        return cls(
            name=data["name"],
            path=data["path"],
            size=data["size"],
            shasum=data["shasum"],
            integrity=data["integrity"],
            dist_id=data["dist_id"],
        )


@dataclass
class Package:
    """A package identified by scope and name."""
    name: str
    scope: str = ""
    package_id: str = field(default_factory=_new_id)

    @property
    def fullname(self) -> str:
        if self.scope:
            return f"{self.scope}/{self.name}"
        return self.name

    def dist_dir(self, version: str) -> str:
        return f"/packages/{self.fullname}/{version}"

    def create_tar(self, version: str, info: FileInfo) -> Dist:
        filename = f"{self.name}-{version}.tgz"
        return self._create_dist(filename, f"{self.dist_dir(version)}/{filename}", info)

    def create_readme(self, version: str, info: FileInfo) -> Dist:
        return self._create_dist("readme.md", f"{self.dist_dir(version)}/readme.md", info)

    def create_package_version_file(self, path: str, version: str, info: FileInfo) -> Dist:
        """
        Create the Dist for one extracted file.

        Args:
            path: URI-encoded file path inside the tarball, starting with "/"
            version: Package version string
            info: Size and digests of the file
        """
        return self._create_dist(
            posixpath.basename(path),
            f"{self.dist_dir(version)}/files{path}",
            info,
        )

    def _create_dist(self, name: str, path: str, info: FileInfo) -> Dist:
        return Dist(
            name=name,
            path=path,
            size=info.size,
            shasum=info.shasum,
            integrity=info.integrity,
        )


@dataclass(frozen=True)
class PackageVersion:
    """A published version of a package. Immutable."""
    package_id: str
    version: str
    tar_dist: Dist
    publish_time: datetime
    package_version_id: str = field(default_factory=_new_id)


@dataclass
class PackageVersionFile:
    """Index entry for one file extracted from a version's tarball."""
    package_version_id: str
    directory: str
    name: str
    dist: Dist
    content_type: str
    mtime: datetime
    package_version_file_id: str = field(default_factory=_new_id)

    @property
    def path(self) -> str:
        return posixpath.join(self.directory, self.name)

    @classmethod
    def create(
        cls,
        package_version_id: str,
        directory: str,
        name: str,
        dist: Dist,
        content_type: str,
        mtime: datetime,
    ) -> "PackageVersionFile":
        return cls(
            package_version_id=package_version_id,
            directory=directory,
            name=name,
            dist=dist,
            content_type=content_type,
            mtime=mtime,
        )
