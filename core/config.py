"""
Unpakit configuration.
"""

import os
from pathlib import Path
from typing import Optional

from loguru import logger
from pydantic import BaseModel, Field


class UnpakitConfig(BaseModel):
    """File sync configuration."""

    data_dir: Path = Field(
        default=Path("./unpakit_data"),
        description="Base directory for temporary tarball downloads and extraction"
    )
    storage_dir: Path = Field(
        default=Path("./unpakit_storage"),
        description="Local content-addressed dist store"
    )
    index_db_path: Path = Field(
        default=Path("./unpakit_storage/package_version_files.db"),
        description="SQLite database holding the file index"
    )
    enable_wal: bool = Field(default=True, description="Enable SQLite Write-Ahead Logging")
    strip_components: int = Field(
        default=1,
        ge=0,
        description="Leading path segments stripped from tarball members"
    )

    # Logging
    log_level: str = Field(default="INFO", description="Log level for the file sink")
    log_file: Optional[str] = Field(
        default=None,
        description="Log file path (loguru format tokens allowed), None to disable"
    )

    @classmethod
    def from_env(cls) -> "UnpakitConfig":
        """Build a config from UNPAKIT_* environment variables."""
        storage_dir = Path(os.getenv("UNPAKIT_STORAGE_DIR", "./unpakit_storage"))
        return cls(
            data_dir=Path(os.getenv("UNPAKIT_DATA_DIR", "./unpakit_data")),
            storage_dir=storage_dir,
            index_db_path=Path(os.getenv(
                "UNPAKIT_INDEX_DB", str(storage_dir / "package_version_files.db"))),
            enable_wal=os.getenv("UNPAKIT_ENABLE_WAL", "true").lower() == "true",
            strip_components=int(os.getenv("UNPAKIT_STRIP_COMPONENTS", "1")),
            log_level=os.getenv("UNPAKIT_LOG_LEVEL", "INFO"),
            log_file=os.getenv("UNPAKIT_LOG_FILE") or None,
        )


def configure_logging(config: UnpakitConfig) -> Optional[int]:
    """
    Add a rotating loguru file sink when config.log_file is set.

    Returns:
        The loguru handler id, or None when no sink was added
    """
    if not config.log_file:
        return None

    return logger.add(
        config.log_file,
        rotation="1 day",
        retention="30 days",
        level=config.log_level,
    )
