"""Command line entry point: launch the TUI or inspect groups from a script."""

import asyncio

import typer

from evt.backends import BackendError, EnvBackend, ShellBackend
from evt.config import load_db, save_db
from evt.constants import HIDDEN_VALUE
from evt.domain.dotenv import parse_dotenv
from evt.log import setup_logging
from evt.workspace import Workspace

app = typer.Typer(
    help="Manage groups of environment variables and overlay them on your shell.",
    invoke_without_command=True,
)

_FILTER_HELP = "Only show keys containing this text (case-insensitive)"
_SHOW_VALUES_HELP = "Print values instead of masking them"


def _backend() -> EnvBackend:
    return ShellBackend()


def _workspace() -> Workspace:
    return Workspace(load_db(), persist=save_db)


@app.callback()
def main(ctx: typer.Context) -> None:
    setup_logging()
    if ctx.invoked_subcommand is None:
        tui()


@app.command()
def tui() -> None:
    """Open the interactive terminal UI."""
    from evt.app import EvtApp

    EvtApp(backend=_backend(), _use_store=True).run()


@app.command()
def groups() -> None:
    """List custom groups in sidebar order; * marks active ones."""
    workspace = _workspace()
    custom = workspace.custom_groups()
    if not custom:
        typer.echo("No groups yet. Press n in the TUI to create one.")
        return
    for group in custom:
        marker = "*" if workspace.is_active(group.id) else " "
        count = len(parse_dotenv(group.content))
        typer.echo(f"{marker} {group.name}  ({count} vars)  {group.id}")


@app.command()
def merged() -> None:
    """Print the merged dotenv content of the active groups."""
    typer.echo(_workspace().merged_content())


@app.command()
def effective(
    query: str = typer.Option("", "--filter", "-f", help=_FILTER_HELP),
    show_values: bool = typer.Option(False, "--show-values", help=_SHOW_VALUES_HELP),
) -> None:
    """Print the live environment with the active groups overlaid."""
    workspace = _workspace()
    try:
        baseline = asyncio.run(_backend().get_current_environment())
    except BackendError as exc:
        typer.echo(f"Could not read the current environment: {exc}", err=True)
        raise typer.Exit(code=1) from exc
    view = workspace.effective_view(baseline)
    for row in view.filtered(query):
        value = row.value if show_values else HIDDEN_VALUE
        suffix = f"  # {row.source}" if row.source else ""
        typer.echo(f"{row.key}={value}{suffix}")


@app.command()
def integration() -> None:
    """Show how to hook applied groups into your shell."""
    try:
        info = asyncio.run(_backend().get_integration_info())
    except BackendError as exc:
        typer.echo(f"Integration info unavailable: {exc}", err=True)
        raise typer.Exit(code=1) from exc
    typer.echo(f"Files: {info.ev_dir}")
    for shell, line in info.source_lines.items():
        typer.echo(f"{shell:>5}: {line}")
    typer.echo(info.note)


if __name__ == "__main__":
    app()
