"""
Temporary working space for one sync invocation.
"""

import asyncio
import shutil
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import AsyncIterator, Union

from loguru import logger

from .paths import temp_dir_name


@dataclass
class SyncWorkspace:
    """A temp directory plus the tarball file sitting next to it."""
    tmpdir: Path
    tar_file: Path

    async def cleanup(self) -> None:
        """Delete the tarball and the directory. Failures are logged only."""
        try:
            await asyncio.to_thread(self.tar_file.unlink, missing_ok=True)
        except Exception as e:
            logger.warning("[SyncWorkspace.cleanup:warn] remove tarFile: {}, error: {}", self.tar_file, e)
        try:
            await asyncio.to_thread(_remove_tree, self.tmpdir)
        except Exception as e:
            logger.warning("[SyncWorkspace.cleanup:warn] remove tmpdir: {}, error: {}", self.tmpdir, e)


def _remove_tree(path: Path) -> None:
    if path.exists():
        shutil.rmtree(path)


async def create_temp_dir(data_dir: Union[str, Path], dirname: str = "") -> Path:
    """
    Create <data_dir>/downloads/YYYY/MM/DD[/dirname].

    Args:
        data_dir: Base data directory
        dirname: Optional leaf directory name

    Returns:
        The created directory
    """
    tmpdir = Path(data_dir) / "downloads" / datetime.now().strftime("%Y/%m/%d")
    if dirname:
        tmpdir = tmpdir / dirname
    await asyncio.to_thread(tmpdir.mkdir, parents=True, exist_ok=True)
    return tmpdir


@asynccontextmanager
async def sync_workspace(
    data_dir: Union[str, Path],
    fullname: str,
    version: str,
) -> AsyncIterator[SyncWorkspace]:
    """
    Provide a uniquely named workspace, removed on every exit path.

    Example:
        async with sync_workspace(data_dir, "@scope/foo", "1.0.0") as workspace:
            await download(workspace.tar_file)
    """
    tmpdir = await create_temp_dir(data_dir, temp_dir_name(fullname, version))
    workspace = SyncWorkspace(tmpdir=tmpdir, tar_file=tmpdir.with_name(f"{tmpdir.name}.tgz"))
    try:
        yield workspace
    finally:
        await workspace.cleanup()
