from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path
from typing import Any

import yaml

from rte.errors import ParameterError

logger = logging.getLogger(__name__)


def load_parameter_file(path: Path) -> dict[str, Any]:
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ParameterError(f"Failed to read parameters file: {path}: {exc}") from exc
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ParameterError(f"Failed to parse parameters file: {path}: {exc}") from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        logger.warning("ignoring parameters file %s: top level is not a mapping", path)
        return {}
    return data


def load_parameter_files(paths: Iterable[Path]) -> dict[str, Any]:
    """Merge parameter files in order; later files override earlier keys."""
    params: dict[str, Any] = {}
    for path in paths:
        params.update(load_parameter_file(path))
    return params


def parse_assignment(value: str) -> tuple[str, str]:
    key, sep, rest = value.partition("=")
    if not sep:
        raise ParameterError(f"invalid assignment '{value}': expected format KEY=VALUE")
    if not key:
        raise ParameterError(f"invalid assignment '{value}': key cannot be empty")
    return key, rest


def build_parameters(paths: Iterable[Path], assignments: Iterable[str]) -> dict[str, Any]:
    params = load_parameter_files(paths)
    for assignment in assignments:
        key, value = parse_assignment(assignment)
        params[key] = value
    return params
