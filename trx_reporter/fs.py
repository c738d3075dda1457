"""Filesystem helpers used when writing documents and attachments."""

import asyncio
import logging
import shutil
from pathlib import Path

log = logging.getLogger(__name__)


async def ensure_folder_exists(path: Path | None) -> None:
    """Create ``path`` and its parents.

    A folder that already exists is fine. Other failures are logged and
    swallowed, later writes into the folder will report them.
    """
    if path is None:
        return
    try:
        await asyncio.to_thread(path.mkdir, parents=True, exist_ok=True)
    except FileExistsError:
        pass
    except OSError as exc:
        log.error("Error creating trx output folder %s: %s", path, exc)


async def copy_file(source: Path, destination: Path) -> None:
    """Copy the contents of ``source`` to ``destination``."""
    await asyncio.to_thread(shutil.copyfile, source, destination)


async def write_bytes(path: Path, data: bytes) -> None:
    """Write binary ``data`` to ``path``."""
    await asyncio.to_thread(path.write_bytes, data)


def write_document(path: Path, document: str) -> None:
    """Write a whole document to ``path``."""
    path.write_text(document, encoding="utf-8")
