from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import closing
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import urlsplit

import httpx

from rte.config import RunSettings
from rte.errors import SourceUrlError
from rte.params import build_parameters
from rte.render.templating import TemplateRenderer
from rte.schemas import FileRecord
from rte.sinks.archive import write_to_tar_gz
from rte.sinks.directory import write_to_directory
from rte.sources import github, gitlab
from rte.sources.archive import TarGzReader, is_tar_gz
from rte.sources.directory import walk_directory

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class RunResult:
    destination: Path
    sink: str
    files_written: int


def open_source(
    source: str,
    settings: RunSettings,
    transport: httpx.BaseTransport | None = None,
) -> Iterator[FileRecord]:
    if "://" in source:
        scheme = urlsplit(source).scheme
        if scheme == gitlab.SCHEME:
            return gitlab.fetch_archive(source, settings.gitlab_token, http=settings.http, transport=transport)
        if scheme == github.SCHEME:
            return github.fetch_archive(source, settings.github_token, http=settings.http, transport=transport)
        raise SourceUrlError(f"unknown url scheme '{scheme}'")

    path = Path(source)
    if path.is_dir():
        return walk_directory(path)
    return TarGzReader.open(path)


def run(settings: RunSettings, transport: httpx.BaseTransport | None = None) -> RunResult:
    params = build_parameters(settings.parameter_files, settings.assignments)
    renderer = TemplateRenderer(params, settings.template_config())
    source = open_source(settings.source, settings, transport=transport)

    destination = settings.destination
    with closing(source):
        records = renderer(source)
        if is_tar_gz(destination):
            logger.info("rendering %s into archive %s", settings.source, destination)
            written = write_to_tar_gz(destination, records)
            return RunResult(destination=destination, sink="archive", files_written=written)

        logger.info("rendering %s into directory %s", settings.source, destination)
        written = write_to_directory(destination, records, force=settings.force)
        return RunResult(destination=destination, sink="directory", files_written=written)
