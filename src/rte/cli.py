from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version
from pathlib import Path
from typing import List, Optional

import typer

from rte.config import DEFAULT_ROOT_VALUE, HttpSettings, RunSettings
from rte.errors import RteError
from rte.logging_config import setup_logging
from rte.pipeline import run
from rte.render.templating import SyntaxMode

app = typer.Typer(help="rte: bootstrap code projects from template trees")


def _version_callback(value: bool) -> None:
    if not value:
        return
    try:
        typer.echo(f"rte {version('rte')}")
    except PackageNotFoundError:
        typer.echo("rte (not installed)")
    raise typer.Exit()


@app.command()
def render(
    source: str = typer.Argument(..., help="Template source: directory, .tar.gz archive, gitlab:// or github:// URL"),
    destination: Path = typer.Argument(..., help="Destination directory or .tar.gz archive"),
    parameters: Optional[List[Path]] = typer.Option(
        None, "--parameters", "-p", help="YAML parameter file; later files override earlier ones"
    ),
    assignments: Optional[List[str]] = typer.Option(
        None, "--set", "-s", metavar="KEY=VALUE", help="Set a parameter; always overrides parameter files"
    ),
    force: bool = typer.Option(False, "--force", "-f", help="Write into an already existing destination directory"),
    backstage: bool = typer.Option(False, "--backstage", help="Use Backstage variable syntax ${{ }} instead of {{ }}"),
    parameters_on_root: bool = typer.Option(
        False, "--parameters-on-root", help=f"Pass parameters at root level instead of under '{DEFAULT_ROOT_VALUE}'"
    ),
    gitlab_token: Optional[str] = typer.Option(None, "--gitlab-token", envvar="GITLAB_TOKEN", help="GitLab access token"),
    github_token: Optional[str] = typer.Option(None, "--github-token", envvar="GITHUB_TOKEN", help="GitHub access token"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
    show_version: bool = typer.Option(
        False, "--version", callback=_version_callback, is_eager=True, help="Show the version and exit"
    ),
) -> None:
    setup_logging("DEBUG" if verbose else "WARNING")

    settings = RunSettings(
        source=source,
        destination=destination,
        parameter_files=list(parameters or []),
        assignments=list(assignments or []),
        force=force,
        syntax=SyntaxMode.BACKSTAGE if backstage else SyntaxMode.JINJA,
        root_value=None if parameters_on_root else DEFAULT_ROOT_VALUE,
        gitlab_token=gitlab_token or None,
        github_token=github_token or None,
        http=HttpSettings.from_env(),
    )

    try:
        result = run(settings)
    except RteError as exc:
        typer.echo(f"[rte] error: {exc}", err=True)
        raise typer.Exit(code=1) from exc

    typer.echo(f"[rte] rendered {result.files_written} files -> {result.destination}")


if __name__ == "__main__":
    app()
