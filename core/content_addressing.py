"""
Content addressing for extracted files.

Every blob is identified by the cryptographic hash of its bytes. The digest
is exposed both as a hex content key (used to address the blob store) and
as a subresource-integrity string ("sha512-<base64>") stored on the Dist.
"""

import asyncio
import base64
import hashlib
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union
import logging

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 64 * 1024


@dataclass
class ContentID:
    """Content identifier (hash of data)."""
    hash_algorithm: str  # e.g., "sha512"
    hash_value: bytes    # Binary hash

    @property
    def hex(self) -> str:
        """Get hex representation of hash."""
        return self.hash_value.hex()

    @property
    def integrity(self) -> str:
        """Subresource-integrity form, e.g. "sha512-<base64>"."""
        return f"{self.hash_algorithm}-{base64.b64encode(self.hash_value).decode('ascii')}"

    @classmethod
    def from_integrity(cls, integrity: str) -> "ContentID":
        """Parse an integrity string back into a ContentID."""
        algorithm, sep, encoded = integrity.partition("-")
        if not sep or not encoded:
            raise ValueError(f"Invalid integrity value: {integrity!r}")
        return cls(hash_algorithm=algorithm, hash_value=base64.b64decode(encoded))

    def __str__(self) -> str:
        return self.hex

    def __repr__(self) -> str:
        return f"ContentID({self.hash_algorithm}:{self.hex[:16]}...)"


@dataclass
class DistIntegrity:
    """Digests of a local file."""
    shasum: str     # sha1 hex, kept for registry compatibility
    integrity: str  # "<algorithm>-<base64>"


class ContentAddressingEngine:
    """
    Computes content IDs and integrity values.

    Files are hashed in chunks so large tarball members never have to be
    held in memory.
    """

    def __init__(self, hash_algorithm: str = "sha512", chunk_size: int = DEFAULT_CHUNK_SIZE):
        """
        Initialize content addressing engine.

        Args:
            hash_algorithm: Hash algorithm for integrity values (sha512, sha384, sha256)
            chunk_size: Read size when hashing files
        """
        self.hash_algorithm = hash_algorithm
        self.chunk_size = chunk_size

        # Algorithms allowed in subresource-integrity strings
        self.hash_functions = {
            "sha256": hashlib.sha256,
            "sha384": hashlib.sha384,
            "sha512": hashlib.sha512,
        }

        if hash_algorithm not in self.hash_functions:
            raise ValueError(f"Unsupported hash algorithm: {hash_algorithm}")

    def compute_content_id(self, data: bytes) -> ContentID:
        """
        Compute content ID for in-memory data.

        Args:
            data: Raw data bytes

        Returns:
            ContentID with cryptographic hash
        """
        hash_func = self.hash_functions[self.hash_algorithm]
        return ContentID(hash_algorithm=self.hash_algorithm, hash_value=hash_func(data).digest())

    def compute_file_integrity(self, path: Union[str, Path]) -> DistIntegrity:
        """
        Hash a file's full byte content.

        Args:
            path: Local file path

        Returns:
            DistIntegrity with sha1 shasum and integrity value
        """
        sha1 = hashlib.sha1()
        digest = self.hash_functions[self.hash_algorithm]()

        with open(path, "rb") as f:
            for chunk in iter(lambda: f.read(self.chunk_size), b""):
                sha1.update(chunk)
                digest.update(chunk)

        content_id = ContentID(hash_algorithm=self.hash_algorithm, hash_value=digest.digest())
        logger.debug(f"Computed {content_id!r} for {path}")

        return DistIntegrity(shasum=sha1.hexdigest(), integrity=content_id.integrity)

    def verify_file(self, path: Union[str, Path], integrity: str) -> bool:
        """
        Verify a file matches an integrity value.

        Args:
            path: Local file path
            integrity: Expected integrity string

        Returns:
            True if the file hashes to the expected value
        """
        expected = ContentID.from_integrity(integrity)
        if expected.hash_algorithm not in self.hash_functions:
            raise ValueError(f"Unsupported hash algorithm: {expected.hash_algorithm}")

        digest = self.hash_functions[expected.hash_algorithm]()
        with open(path, "rb") as f:
            for chunk in iter(lambda: f.read(self.chunk_size), b""):
                digest.update(chunk)

        return digest.digest() == expected.hash_value


_default_engine = ContentAddressingEngine()


async def calculate_integrity(
    path: Union[str, Path],
    engine: Optional[ContentAddressingEngine] = None,
) -> DistIntegrity:
    """Compute a file's DistIntegrity on a worker thread."""
    return await asyncio.to_thread((engine or _default_engine).compute_file_integrity, path)
