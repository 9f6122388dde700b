from __future__ import annotations

import re
from pathlib import Path, PurePath, PurePosixPath

from rte.errors import PathTraversalError

_DRIVE_RE = re.compile(r"^[A-Za-z]:$")


def path_segments(path: PurePath | str) -> list[str]:
    raw = path.as_posix() if isinstance(path, PurePath) else str(path)
    return raw.replace("\\", "/").split("/")


def sanitize_path(path: PurePath | str) -> PurePosixPath:
    """Normalize a record path into a safe relative path.

    Root, drive and current-directory markers are dropped. A parent-directory
    segment anywhere in the path is rejected. The result may be empty
    (``PurePosixPath(".")``) when only markers were present.
    """
    kept: list[str] = []
    for index, part in enumerate(path_segments(path)):
        if part in {"", "."}:
            continue
        if index == 0 and _DRIVE_RE.match(part):
            continue
        if part == "..":
            raise PathTraversalError(f"invalid path '{path}' containing ..")
        kept.append(part)
    return PurePosixPath(*kept)


def is_empty(path: PurePosixPath) -> bool:
    return not path.parts


def resolve_destination(root: Path, path: PurePath | str) -> Path | None:
    safe = sanitize_path(path)
    if is_empty(safe):
        return None
    return root.joinpath(*safe.parts)
