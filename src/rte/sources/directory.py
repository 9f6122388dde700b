from __future__ import annotations

import logging
import os
from collections.abc import Iterator
from pathlib import Path, PurePosixPath

from rte.errors import SourceReadError
from rte.schemas import FileRecord

logger = logging.getLogger(__name__)

EXCLUDED_DIRS = {".git"}


def _skip_unreadable(exc: OSError) -> None:
    logger.warning("skipping unreadable directory %s: %s", exc.filename, exc.strerror)


def walk_directory(root: Path) -> Iterator[FileRecord]:
    """Yield every regular file below ``root`` in traversal order.

    ``.git`` directories are pruned at any depth. Record paths are relative
    to ``root``.
    """
    logger.info("reading template directory %s", root)
    for current, dirnames, filenames in os.walk(root, onerror=_skip_unreadable):
        dirnames[:] = [name for name in dirnames if name not in EXCLUDED_DIRS]
        current_path = Path(current)
        for name in filenames:
            path = current_path / name
            if not path.is_file():
                continue
            relative = PurePosixPath(path.relative_to(root).as_posix())
            try:
                content = path.read_bytes()
            except OSError as exc:
                raise SourceReadError(f"failed to read {path}: {exc}") from exc
            logger.debug("template file %s (%d bytes)", relative, len(content))
            yield FileRecord(path=relative, content=content)
