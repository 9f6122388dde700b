from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import PurePosixPath


@dataclass(frozen=True, slots=True)
class FileRecord:
    path: PurePosixPath
    content: bytes

    @classmethod
    def of(cls, path: str, content: bytes | str) -> FileRecord:
        data = content.encode("utf-8") if isinstance(content, str) else content
        return cls(path=PurePosixPath(path), content=data)


FileStream = Iterator[FileRecord]
