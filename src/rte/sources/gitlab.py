from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from urllib.parse import quote

import httpx

from rte.config import HttpSettings
from rte.schemas import FileRecord
from rte.sources.remote import open_remote_archive, split_scheme_url

SCHEME = "gitlab"


@dataclass(frozen=True, slots=True)
class GitLabSource:
    """Archive coordinate parsed from ``gitlab://host/group[/subgroup...]/project[@ref]``."""

    host: str
    project_path: str
    ref: str | None = None

    @classmethod
    def parse(cls, source: str) -> GitLabSource:
        host, path, ref = split_scheme_url(source, SCHEME)
        return cls(host=host, project_path=path, ref=ref)

    def archive_url(self) -> str:
        # The project path travels as one segment: "group/project" -> "group%2Fproject".
        encoded = quote(self.project_path, safe="")
        url = f"https://{self.host}/api/v4/projects/{encoded}/repository/archive.tar.gz"
        if self.ref:
            url += f"?sha={quote(self.ref, safe='')}"
        return url

    def headers(self, token: str | None) -> dict[str, str]:
        return {"PRIVATE-TOKEN": token} if token else {}


def fetch_archive(
    source: str,
    token: str | None = None,
    *,
    http: HttpSettings | None = None,
    transport: httpx.BaseTransport | None = None,
) -> Iterator[FileRecord]:
    settings = http or HttpSettings()
    parsed = GitLabSource.parse(source)
    return open_remote_archive(
        parsed.archive_url(),
        parsed.headers(token),
        http=settings,
        transport=transport,
    )
