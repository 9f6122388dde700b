from __future__ import annotations

import io
import logging
import tarfile
from collections.abc import Iterable
from pathlib import Path

from rte.errors import SinkWriteError
from rte.paths import is_empty, sanitize_path
from rte.schemas import FileRecord

logger = logging.getLogger(__name__)

FILE_MODE = 0o644


def _member_for(record: FileRecord) -> tarfile.TarInfo | None:
    path = sanitize_path(record.path)
    if is_empty(path):
        return None
    info = tarfile.TarInfo(name=path.as_posix())
    info.size = len(record.content)
    info.mode = FILE_MODE
    info.mtime = 0
    info.type = tarfile.REGTYPE
    return info


def write_to_tar_gz(dest: Path, records: Iterable[FileRecord]) -> int:
    """Stream records into a new ``.tar.gz`` archive at ``dest``.

    Only regular-file members are written. If a record fails, the archive is
    left as it is on disk.
    """
    try:
        dest.parent.mkdir(parents=True, exist_ok=True)
        archive = tarfile.open(dest, mode="w:gz", format=tarfile.GNU_FORMAT, encoding="utf-8")
    except OSError as exc:
        raise SinkWriteError(f"failed to create archive {dest}: {exc}") from exc

    written = 0
    with archive:
        for record in records:
            member = _member_for(record)
            if member is None:
                continue
            try:
                archive.addfile(member, io.BytesIO(record.content))
            except (OSError, tarfile.TarError, ValueError) as exc:
                raise SinkWriteError(f"failed to add file to archive: {member.name}: {exc}") from exc
            written += 1

    logger.info("wrote %d files to %s", written, dest)
    return written
