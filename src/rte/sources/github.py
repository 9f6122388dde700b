from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from urllib.parse import quote

import httpx

from rte.config import HttpSettings
from rte.errors import SourceUrlError
from rte.schemas import FileRecord
from rte.sources.remote import open_remote_archive, split_scheme_url

SCHEME = "github"


@dataclass(frozen=True, slots=True)
class GitHubSource:
    """Archive coordinate parsed from ``github://host/owner/repo[@ref]``."""

    host: str
    owner: str
    repo: str
    ref: str | None = None

    @classmethod
    def parse(cls, source: str) -> GitHubSource:
        host, path, ref = split_scheme_url(source, SCHEME)
        parts = path.split("/")
        if len(parts) != 2:
            raise SourceUrlError(f"GitHub path must be owner/repo, got: {path}")
        return cls(host=host, owner=parts[0], repo=parts[1], ref=ref)

    def archive_url(self) -> str:
        url = f"https://api.{self.host}/repos/{self.owner}/{self.repo}/tarball"
        if self.ref:
            url += f"/{quote(self.ref, safe='/')}"
        return url

    def headers(self, token: str | None, user_agent: str) -> dict[str, str]:
        # The GitHub API rejects requests without a User-Agent.
        headers = {"User-Agent": user_agent}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers


def fetch_archive(
    source: str,
    token: str | None = None,
    *,
    http: HttpSettings | None = None,
    transport: httpx.BaseTransport | None = None,
) -> Iterator[FileRecord]:
    settings = http or HttpSettings()
    parsed = GitHubSource.parse(source)
    return open_remote_archive(
        parsed.archive_url(),
        parsed.headers(token, settings.user_agent),
        http=settings,
        transport=transport,
    )
