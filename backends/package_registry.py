"""
In-memory package registry.
"""

from threading import RLock
from typing import Dict, List, Optional
import logging

from unpakit.core.entities import Package, PackageVersion
from unpakit.core.repositories import PackageRepository

logger = logging.getLogger(__name__)


class InMemoryPackageRegistry(PackageRepository):
    """Packages and their published versions, kept in process memory."""

    def __init__(self):
        self._packages: Dict[str, Package] = {}
        self._versions: Dict[str, Dict[str, PackageVersion]] = {}
        self._lock = RLock()

    def save_package(self, pkg: Package) -> Package:
        with self._lock:
            self._packages[pkg.package_id] = pkg
            self._versions.setdefault(pkg.package_id, {})
        logger.debug(f"Registered package {pkg.fullname} ({pkg.package_id})")
        return pkg

    def save_package_version(self, pkg_version: PackageVersion) -> PackageVersion:
        with self._lock:
            if pkg_version.package_id not in self._packages:
                raise KeyError(f"Unknown package id: {pkg_version.package_id}")
            self._versions[pkg_version.package_id][pkg_version.version] = pkg_version
        return pkg_version

    async def find_package_by_package_id(self, package_id: str) -> Optional[Package]:
        with self._lock:
            return self._packages.get(package_id)

    def find_package_version(self, package_id: str, version: str) -> Optional[PackageVersion]:
        with self._lock:
            return self._versions.get(package_id, {}).get(version)

    def list_package_versions(self, package_id: str) -> List[PackageVersion]:
        with self._lock:
            return list(self._versions.get(package_id, {}).values())
