from __future__ import annotations

import enum
import gzip
import logging
import tarfile
import zlib
from collections.abc import Iterable, Iterator
from pathlib import Path, PurePosixPath
from typing import BinaryIO

from rte.errors import ArchiveDecodeError, SourceReadError
from rte.paths import path_segments
from rte.schemas import FileRecord

logger = logging.getLogger(__name__)

_DECODE_ERRORS = (tarfile.TarError, gzip.BadGzipFile, EOFError, zlib.error, OSError)
_DRAIN_CHUNK = 64 * 1024


def is_tar_gz(path: Path | str) -> bool:
    return str(path).endswith(".tar.gz")


class _StrictTarInfo(tarfile.TarInfo):
    """TarInfo that treats a damaged header anywhere in the stream as fatal.

    ``TarFile.next`` only raises for a bad first header; later ones end the
    iteration silently. Re-raising them as ``SubsequentHeaderError`` makes
    ``next`` raise ``ReadError`` instead. All-NUL blocks still mark the end.
    """

    @classmethod
    def frombuf(cls, buf, encoding, errors):
        try:
            return super().frombuf(buf, encoding, errors)
        except (tarfile.EmptyHeaderError, tarfile.TruncatedHeaderError, tarfile.InvalidHeaderError) as exc:
            raise tarfile.SubsequentHeaderError(str(exc) or "unexpected end of archive") from exc


class _State(enum.Enum):
    HEADER_PENDING = "header-pending"
    BODY_PENDING = "body-pending"
    DONE = "done"


class TarGzReader:
    """Pull file records out of a gzip-compressed tar stream.

    The reader owns both the decompressor and the tar cursor. Callers only
    ever see finished ``FileRecord`` values; a tar member is read to the end
    before the next header is touched, so nothing borrowed from the stream
    outlives a pull. Directory entries are skipped. Any decode failure is
    fatal: the reader raises ``ArchiveDecodeError`` once and then reports
    exhaustion.
    """

    def __init__(self, stream: BinaryIO, *, name: str = "<stream>", owns_stream: bool = False) -> None:
        self._stream = stream
        self._name = name
        self._owns_stream = owns_stream
        self._gzip: gzip.GzipFile | None = None
        self._tar: tarfile.TarFile | None = None
        self._member: tarfile.TarInfo | None = None
        self._state = _State.HEADER_PENDING

    @classmethod
    def open(cls, path: Path) -> TarGzReader:
        try:
            handle = path.open("rb")
        except OSError as exc:
            raise SourceReadError(f"failed to open archive: {path}: {exc}") from exc
        logger.info("reading archive %s", path)
        return cls(handle, name=str(path), owns_stream=True)

    def __iter__(self) -> Iterator[FileRecord]:
        return self

    def __next__(self) -> FileRecord:
        record = self.next_record()
        if record is None:
            raise StopIteration
        return record

    def __enter__(self) -> TarGzReader:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def next_record(self) -> FileRecord | None:
        try:
            while self._state is not _State.DONE:
                if self._state is _State.HEADER_PENDING:
                    self._read_header()
                else:
                    return self._read_body()
        except _DECODE_ERRORS as exc:
            self.close()
            raise ArchiveDecodeError(f"failed to decode archive {self._name}: {exc}") from exc
        return None

    def close(self) -> None:
        self._state = _State.DONE
        self._member = None
        if self._tar is not None:
            self._tar.close()
            self._tar = None
        if self._gzip is not None:
            self._gzip.close()
            self._gzip = None
        if self._owns_stream:
            self._stream.close()

    def _read_header(self) -> None:
        if self._tar is None:
            self._gzip = gzip.GzipFile(fileobj=self._stream, mode="rb")
            self._tar = tarfile.open(
                fileobj=self._gzip, mode="r|", encoding="utf-8", tarinfo=_StrictTarInfo
            )
        member = self._tar.next()
        # stream mode would otherwise keep every header seen so far
        self._tar.members.clear()
        if member is None:
            self._check_end_of_archive(self._tar)
            self.close()
            return
        if member.isdir():
            return
        self._member = member
        self._state = _State.BODY_PENDING

    @staticmethod
    def _check_end_of_archive(tar: tarfile.TarFile) -> None:
        """Consume the rest of the stream after the end-of-archive block.

        Only NUL padding may follow. Reading the gzip stream to its end also
        makes ``GzipFile`` verify the CRC and length trailer.
        """
        while True:
            chunk = tar.fileobj.read(_DRAIN_CHUNK)
            if not chunk:
                return
            if chunk.strip(tarfile.NUL):
                raise tarfile.ReadError("unexpected data after end of archive")

    def _read_body(self) -> FileRecord:
        tar, member = self._tar, self._member
        if tar is None or member is None:
            raise tarfile.StreamError("no pending archive entry")
        content = b""
        if member.isreg():
            handle = tar.extractfile(member)
            if handle is not None:
                content = handle.read()
                if len(content) != member.size:
                    raise EOFError(f"truncated entry {member.name}")
        self._member = None
        self._state = _State.HEADER_PENDING
        logger.debug("archive entry %s (%d bytes)", member.name, len(content))
        return FileRecord(path=PurePosixPath(member.name), content=content)


def strip_components(records: Iterable[FileRecord], count: int) -> Iterator[FileRecord]:
    """Drop the first ``count`` segments of every path.

    Records left with no segments are skipped.
    """
    for record in records:
        parts = [part for part in path_segments(record.path) if part not in {"", "."}]
        if len(parts) <= count:
            continue
        yield FileRecord(path=PurePosixPath(*parts[count:]), content=record.content)
