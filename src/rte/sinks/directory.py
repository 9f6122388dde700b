from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path

from rte.errors import DestinationExistsError, SinkWriteError
from rte.paths import resolve_destination
from rte.schemas import FileRecord

logger = logging.getLogger(__name__)


def write_to_directory(dest: Path, records: Iterable[FileRecord], force: bool = False) -> int:
    if dest.exists() and not force:
        raise DestinationExistsError(f"Destination '{dest}' already exists. Use --force to overwrite.")

    try:
        dest.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise SinkWriteError(f"failed to create destination directory {dest}: {exc}") from exc

    written = 0
    for record in records:
        if write_file(dest, record):
            written += 1
    logger.info("wrote %d files to %s", written, dest)
    return written


def write_file(dest: Path, record: FileRecord) -> bool:
    """Write one record below ``dest``; return False when its path is empty."""
    target = resolve_destination(dest, record.path)
    if target is None:
        logger.debug("skipping record with empty path %r", str(record.path))
        return False

    try:
        target.parent.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise SinkWriteError(f"failed to create parent directory {target.parent}: {exc}") from exc
    try:
        target.write_bytes(record.content)
    except OSError as exc:
        raise SinkWriteError(f"failed to write file {target}: {exc}") from exc
    logger.debug("wrote %s (%d bytes)", target, len(record.content))
    return True
