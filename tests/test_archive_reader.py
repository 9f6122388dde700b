from __future__ import annotations

import gzip
import io
import random
import tarfile
from pathlib import Path, PurePosixPath

import pytest

from rte.errors import ArchiveDecodeError, SourceReadError
from rte.schemas import FileRecord
from rte.sources.archive import TarGzReader, is_tar_gz, strip_components


def _tar_gz(entries: list[tuple[str, bytes | None]]) -> bytes:
    buffer = io.BytesIO()
    with tarfile.open(fileobj=buffer, mode="w:gz") as tar:
        for name, content in entries:
            info = tarfile.TarInfo(name)
            if content is None:
                info.type = tarfile.DIRTYPE
                info.mode = 0o755
                tar.addfile(info)
                continue
            info.size = len(content)
            tar.addfile(info, io.BytesIO(content))
    return buffer.getvalue()


def test_reader_skips_directories_and_keeps_order() -> None:
    data = _tar_gz(
        [
            ("root/", None),
            ("root/b.txt", b"bee"),
            ("root/sub/", None),
            ("root/sub/a.txt", b"ay"),
        ]
    )

    records = list(TarGzReader(io.BytesIO(data)))

    assert [item.path for item in records] == [PurePosixPath("root/b.txt"), PurePosixPath("root/sub/a.txt")]
    assert [item.content for item in records] == [b"bee", b"ay"]


def test_reader_yields_empty_content_for_symlinks() -> None:
    buffer = io.BytesIO()
    with tarfile.open(fileobj=buffer, mode="w:gz") as tar:
        link = tarfile.TarInfo("root/link")
        link.type = tarfile.SYMTYPE
        link.linkname = "target.txt"
        tar.addfile(link)

    records = list(TarGzReader(io.BytesIO(buffer.getvalue())))

    assert records == [FileRecord(path=PurePosixPath("root/link"), content=b"")]


def test_reader_fails_lazily_on_garbage_and_then_stops() -> None:
    reader = TarGzReader(io.BytesIO(b"definitely not gzip"))

    with pytest.raises(ArchiveDecodeError):
        reader.next_record()
    assert reader.next_record() is None
    assert list(reader) == []


def test_reader_fails_on_truncated_stream() -> None:
    payload = random.Random(7).randbytes(64 * 1024)
    data = _tar_gz([("root/big.bin", payload), ("root/after.txt", b"x")])
    truncated = data[: len(data) // 2]

    with pytest.raises(ArchiveDecodeError):
        list(TarGzReader(io.BytesIO(truncated)))


def _raw_tar(entries: list[tuple[str, bytes]]) -> bytes:
    buffer = io.BytesIO()
    with tarfile.open(fileobj=buffer, mode="w", format=tarfile.GNU_FORMAT) as tar:
        for name, content in entries:
            info = tarfile.TarInfo(name)
            info.size = len(content)
            tar.addfile(info, io.BytesIO(content))
    return buffer.getvalue()


THREE_FILES = [("a.txt", b"first"), ("b.txt", b"second"), ("c.txt", b"third")]


def test_reader_fails_on_corrupt_later_header() -> None:
    raw = bytearray(_raw_tar(THREE_FILES))
    # second header starts after one header block and one data block
    raw[tarfile.BLOCKSIZE * 2 + 6] ^= 0xFF
    reader = TarGzReader(io.BytesIO(gzip.compress(bytes(raw))))

    assert reader.next_record() == FileRecord.of("a.txt", b"first")
    with pytest.raises(ArchiveDecodeError):
        reader.next_record()
    assert reader.next_record() is None


def test_reader_fails_on_archive_cut_inside_header() -> None:
    raw = _raw_tar(THREE_FILES)[: tarfile.BLOCKSIZE * 2 + 200]

    with pytest.raises(ArchiveDecodeError):
        list(TarGzReader(io.BytesIO(gzip.compress(raw))))


def test_reader_fails_on_archive_cut_at_header_boundary() -> None:
    raw = _raw_tar(THREE_FILES)[: tarfile.BLOCKSIZE * 2]

    with pytest.raises(ArchiveDecodeError):
        list(TarGzReader(io.BytesIO(gzip.compress(raw))))


def test_reader_fails_on_data_after_end_of_archive() -> None:
    raw = _raw_tar([("a.txt", b"first")]) + b"trailing junk"

    with pytest.raises(ArchiveDecodeError):
        list(TarGzReader(io.BytesIO(gzip.compress(raw))))


def test_reader_fails_on_gzip_checksum_mismatch() -> None:
    data = bytearray(_tar_gz([("a.txt", b"first")]))
    # the gzip trailer is CRC32 followed by the uncompressed size
    data[-8] ^= 0xFF

    with pytest.raises(ArchiveDecodeError):
        list(TarGzReader(io.BytesIO(bytes(data))))


def test_reader_accepts_zero_padded_archive() -> None:
    raw = _raw_tar(THREE_FILES) + tarfile.NUL * tarfile.RECORDSIZE

    records = list(TarGzReader(io.BytesIO(gzip.compress(raw))))

    assert records == [FileRecord.of(name, content) for name, content in THREE_FILES]


def test_reader_keeps_no_header_history() -> None:
    reader = TarGzReader(io.BytesIO(gzip.compress(_raw_tar(THREE_FILES))))

    for _ in THREE_FILES:
        assert reader.next_record() is not None
        assert reader._tar is not None
        assert reader._tar.members == []
    assert reader.next_record() is None


def test_open_owns_and_closes_file(tmp_path: Path) -> None:
    archive = tmp_path / "template.tar.gz"
    archive.write_bytes(_tar_gz([("a.txt", b"a")]))

    with TarGzReader.open(archive) as reader:
        records = list(reader)

    assert records == [FileRecord.of("a.txt", b"a")]


def test_open_missing_archive_raises_source_error(tmp_path: Path) -> None:
    with pytest.raises(SourceReadError):
        TarGzReader.open(tmp_path / "missing.tar.gz")


def test_strip_components_drops_short_paths() -> None:
    records = [
        FileRecord.of("a", b"1"),
        FileRecord.of("a/b", b"2"),
        FileRecord.of("a/b/c", b"3"),
        FileRecord.of("a/b/c/d", b"4"),
    ]

    stripped = list(strip_components(records, 2))

    assert [item.path for item in stripped] == [PurePosixPath("c"), PurePosixPath("c/d")]
    assert [item.content for item in stripped] == [b"3", b"4"]


def test_strip_one_component_removes_archive_root() -> None:
    data = _tar_gz([("group-project-abc123/", None), ("group-project-abc123/README.md", b"hi")])

    stripped = list(strip_components(TarGzReader(io.BytesIO(data)), 1))

    assert stripped == [FileRecord.of("README.md", b"hi")]


def test_is_tar_gz() -> None:
    assert is_tar_gz(Path("out/project.tar.gz"))
    assert not is_tar_gz(Path("out/project.tgz"))
    assert not is_tar_gz(Path("out/project"))
