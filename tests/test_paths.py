from __future__ import annotations

from pathlib import Path, PurePosixPath

import pytest

from rte.errors import PathTraversalError
from rte.paths import resolve_destination, sanitize_path


def test_sanitize_drops_root_and_current_dir_markers() -> None:
    assert sanitize_path("/abs/./file.txt") == PurePosixPath("abs/file.txt")
    assert sanitize_path(PurePosixPath("./a/b")) == PurePosixPath("a/b")


def test_sanitize_drops_windows_drive_and_separators() -> None:
    assert sanitize_path("C:\\templates\\file.txt") == PurePosixPath("templates/file.txt")


@pytest.mark.parametrize("raw", ["../escape.txt", "a/../../b.txt", "a\\..\\b.txt"])
def test_sanitize_rejects_parent_segments(raw: str) -> None:
    with pytest.raises(PathTraversalError) as excinfo:
        sanitize_path(raw)
    assert ".." in str(excinfo.value)


def test_resolve_destination_returns_none_for_marker_only_paths(tmp_path: Path) -> None:
    assert resolve_destination(tmp_path, ".") is None
    assert resolve_destination(tmp_path, "/") is None
    assert resolve_destination(tmp_path, "sub/file.txt") == tmp_path / "sub" / "file.txt"
