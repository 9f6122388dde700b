from __future__ import annotations

import enum
import logging
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import Any

from jinja2 import Environment, StrictUndefined, TemplateError

from rte.errors import ParameterError, TemplateEncodingError, TemplateRenderError
from rte.schemas import FileRecord

logger = logging.getLogger(__name__)

_RENDER_ERRORS = (TemplateError, TypeError, ValueError, ArithmeticError)


class SyntaxMode(enum.Enum):
    JINJA = "jinja"
    # Backstage software templates: ${{ }} for variables, Jinja blocks otherwise.
    BACKSTAGE = "backstage"


@dataclass(frozen=True, slots=True)
class TemplateConfig:
    syntax: SyntaxMode = SyntaxMode.JINJA
    root_value: str | None = "values"


def build_environment(syntax: SyntaxMode, newline_sequence: str = "\n") -> Environment:
    options: dict[str, Any] = {
        "undefined": StrictUndefined,
        "autoescape": False,
        "keep_trailing_newline": True,
        "newline_sequence": newline_sequence,
    }
    if syntax is SyntaxMode.BACKSTAGE:
        options["variable_start_string"] = "${{"
        options["variable_end_string"] = "}}"
    return Environment(**options)


def build_context(params: Any, root_value: str | None) -> dict[str, Any]:
    if root_value:
        return {root_value: params}
    if params is None:
        return {}
    if not isinstance(params, Mapping):
        raise ParameterError(
            "parameters must be a mapping when they are not nested under a root key"
        )
    return dict(params)


class TemplateRenderer:
    """Render record paths and contents with one shared Jinja environment.

    Undefined parameters are errors. Text that contains none of the active
    syntax's opening delimiters is returned untouched, so plain files come
    out byte for byte.
    """

    def __init__(self, params: Any, config: TemplateConfig | None = None) -> None:
        self.config = config or TemplateConfig()
        self._env = build_environment(self.config.syntax)
        # Jinja rewrites template line breaks to one sequence; CRLF files get their own
        self._crlf_env = build_environment(self.config.syntax, newline_sequence="\r\n")
        self._context = build_context(params, self.config.root_value)
        self._openers = (
            self._env.variable_start_string,
            self._env.block_start_string,
            self._env.comment_start_string,
        )

    def __call__(self, records: Iterable[FileRecord]) -> Iterator[FileRecord]:
        for record in records:
            yield self.render_record(record)

    def render_record(self, record: FileRecord) -> FileRecord:
        raw_path = record.path.as_posix()
        try:
            raw_path.encode("utf-8")
        except UnicodeEncodeError as exc:
            raise TemplateEncodingError(f"invalid path {raw_path!r} is not UTF8") from exc

        try:
            rendered_path = self.render_text(raw_path)
        except _RENDER_ERRORS as exc:
            raise TemplateRenderError(f"failed to render path '{raw_path}': {exc}") from exc

        try:
            text = record.content.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise TemplateEncodingError(f"file '{raw_path}' is not a UTF8 text file: {exc}") from exc

        try:
            rendered = self.render_text(text)
        except _RENDER_ERRORS as exc:
            raise TemplateRenderError(f"template execution for '{raw_path}' failed: {exc}") from exc

        logger.debug("rendered %s -> %s", raw_path, rendered_path)
        return FileRecord(path=PurePosixPath(rendered_path), content=rendered.encode("utf-8"))

    def render_text(self, text: str) -> str:
        if not any(opener in text for opener in self._openers):
            return text
        env = self._crlf_env if "\r\n" in text else self._env
        return env.from_string(text).render(self._context)
