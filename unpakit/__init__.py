"""
Unpakit - tarball ingestion into a content-addressed file index.

Quick Start:
    >>> from unpakit.backends import InMemoryPackageRegistry
    >>> from unpakit.core.bootstrap import create_file_service
    >>>
    >>> registry = InMemoryPackageRegistry()
    >>> service = create_file_service(registry)
    >>>
    >>> # First access extracts and indexes the tarball
    >>> files = await service.list_package_version_files(pkg_version, "/")
    >>> readme = await service.show_package_version_file(pkg_version, "/README.md")

The package namespace redirects imports to the flat repo layout, so
`from unpakit.core import ...` resolves to `core/...` at the project root.
"""
import os as _os

__version__ = "0.1.0"

__path__ = [_os.path.dirname(_os.path.dirname(_os.path.abspath(__file__)))]
