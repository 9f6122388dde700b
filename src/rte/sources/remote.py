from __future__ import annotations

import io
import logging
from collections.abc import Iterator, Mapping
from urllib.parse import unquote, urlsplit

import httpx

from rte.config import HttpSettings
from rte.errors import FetchError, SourceUrlError
from rte.schemas import FileRecord
from rte.sources.archive import TarGzReader, strip_components

logger = logging.getLogger(__name__)

ERROR_BODY_LIMIT = 4096
# Hosted archives wrap everything in one folder such as "owner-repo-sha/".
ARCHIVE_ROOT_COMPONENTS = 1


def split_scheme_url(source: str, scheme: str) -> tuple[str, str, str | None]:
    """Split ``scheme://host/path[@ref]`` into host, path and ref.

    The ref is separated at the last ``@`` of the path.
    """
    prefix = f"{scheme}://"
    if not source.startswith(prefix):
        raise SourceUrlError(f"URL must start with {prefix}: {source}")
    try:
        parts = urlsplit(source)
        hostname = parts.hostname
        port = parts.port
    except ValueError as exc:
        raise SourceUrlError(f"invalid URL format '{source}': {exc}") from exc
    if not hostname:
        raise SourceUrlError(f"URL must contain a host: {source}")
    host = f"{hostname}:{port}" if port else hostname

    path = unquote(parts.path).strip("/")
    if not path:
        raise SourceUrlError(f"project path cannot be empty: {source}")

    ref: str | None = None
    if "@" in path:
        path, ref = path.rsplit("@", 1)
        if not ref:
            raise SourceUrlError(f"ref after '@' cannot be empty: {source}")
    if any(not segment for segment in path.split("/")):
        raise SourceUrlError(f"malformed project path '{path}' in {source}")
    return host, path, ref


def fetch_bytes(
    url: str,
    headers: Mapping[str, str],
    *,
    http: HttpSettings,
    transport: httpx.BaseTransport | None = None,
) -> bytes:
    logger.info("fetching archive %s", url)
    try:
        with httpx.Client(
            follow_redirects=True,
            max_redirects=http.max_redirects,
            timeout=http.timeout,
            transport=transport,
        ) as client:
            response = client.get(url, headers=dict(headers))
    except httpx.HTTPError as exc:
        raise FetchError(f"failed to fetch archive from {url}: {exc}") from exc

    if not response.is_success:
        raise FetchError(
            f"archive request {url} returned error {response.status_code}: {_error_body(response)}"
        )
    logger.debug("fetched %d bytes from %s", len(response.content), url)
    return response.content


def _error_body(response: httpx.Response) -> str:
    try:
        text = response.text
    except (UnicodeDecodeError, LookupError, httpx.HTTPError):
        return ""
    return text[:ERROR_BODY_LIMIT]


def open_remote_archive(
    url: str,
    headers: Mapping[str, str],
    *,
    http: HttpSettings,
    transport: httpx.BaseTransport | None = None,
) -> Iterator[FileRecord]:
    body = fetch_bytes(url, headers, http=http, transport=transport)
    reader = TarGzReader(io.BytesIO(body), name=url)
    return strip_components(reader, ARCHIVE_ROOT_COMPONENTS)
