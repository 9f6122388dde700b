from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from rte.render.templating import SyntaxMode, TemplateConfig

DEFAULT_ROOT_VALUE = "values"
DEFAULT_USER_AGENT = "rte"
DEFAULT_TIMEOUT = 30.0
DEFAULT_MAX_REDIRECTS = 10


@dataclass(slots=True)
class HttpSettings:
    timeout: float = DEFAULT_TIMEOUT
    max_redirects: int = DEFAULT_MAX_REDIRECTS
    user_agent: str = DEFAULT_USER_AGENT

    @classmethod
    def from_env(cls) -> HttpSettings:
        settings = cls()
        env_timeout = os.getenv("RTE_HTTP_TIMEOUT", "").strip()
        if env_timeout:
            try:
                timeout = float(env_timeout)
            except ValueError:
                timeout = 0.0
            if timeout > 0:
                settings.timeout = timeout
        return settings


@dataclass(slots=True)
class RunSettings:
    source: str
    destination: Path
    parameter_files: list[Path] = field(default_factory=list)
    assignments: list[str] = field(default_factory=list)
    force: bool = False
    syntax: SyntaxMode = SyntaxMode.JINJA
    root_value: str | None = DEFAULT_ROOT_VALUE
    gitlab_token: str | None = None
    github_token: str | None = None
    http: HttpSettings = field(default_factory=HttpSettings)

    def template_config(self) -> TemplateConfig:
        return TemplateConfig(syntax=self.syntax, root_value=self.root_value)
