# src/graphtune/cli.py
"""graphtune Command Line Interface.

Entry point for the graphtune CLI tool.
"""

from pathlib import Path

import typer
from pydantic import ValidationError

from graphtune import __version__
from graphtune.core.config import DispatchSettings, GraphtuneSettings, load_settings
from graphtune.core.logging import configure_logging
from graphtune.core.workspace import (
    InMemoryWorkspace,
    WorkspaceValidationError,
    load_workspace,
)
from graphtune.engine.session import ProfilerSession
from graphtune.tui.widgets.row_table import RowTable

app = typer.Typer(
    name="graphtune",
    help="graphtune: execution profiling for node-based workspaces.",
    no_args_is_help=True,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"graphtune version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
) -> None:
    """graphtune: execution profiling for node-based workspaces."""
    pass


def _report_validation_error(e: ValidationError) -> None:
    typer.echo("Configuration errors:", err=True)
    for error in e.errors():
        loc = ".".join(str(x) for x in error["loc"])
        typer.echo(f"  - {loc}: {error['msg']}", err=True)


def _load_settings(settings: str | None) -> GraphtuneSettings:
    if settings is None:
        return GraphtuneSettings()
    try:
        return load_settings(Path(settings))
    except FileNotFoundError:
        typer.echo(f"Error: Settings file not found: {settings}", err=True)
        raise typer.Exit(1) from None
    except ValidationError as e:
        _report_validation_error(e)
        raise typer.Exit(1) from None


def _load_workspace(workspace: str) -> InMemoryWorkspace:
    try:
        definition = load_workspace(Path(workspace))
        return InMemoryWorkspace.from_definition(definition)
    except FileNotFoundError:
        typer.echo(f"Error: Workspace file not found: {workspace}", err=True)
        raise typer.Exit(1) from None
    except ValidationError as e:
        _report_validation_error(e)
        raise typer.Exit(1) from None
    except WorkspaceValidationError as e:
        typer.echo(f"Workspace graph error: {e}", err=True)
        raise typer.Exit(1) from None


def _profile(
    config: GraphtuneSettings,
    workspace: InMemoryWorkspace,
    *,
    runs: int,
    modify: list[str],
    sort: list[str],
) -> ProfilerSession:
    """Attach a session, run the workspace and apply sort requests."""
    session = ProfilerSession(config)
    session.attach(workspace)
    session.enable_profiling()

    for run_index in range(runs):
        if run_index > 0:
            for node_id in modify:
                if not workspace.has_node(node_id):
                    typer.echo(f"Error: Unknown node for --modify: {node_id}", err=True)
                    raise typer.Exit(1)
                workspace.mark_modified(node_id)
        workspace.run()
        session.pump()

    for criterion in sort:
        try:
            session.request_sort(criterion)
        except ValueError:
            typer.echo(
                f"Error: Invalid sort '{criterion}'. Valid: number, name, time",
                err=True,
            )
            raise typer.Exit(1) from None
    return session


@app.command()
def profile(
    workspace: str = typer.Option(
        ...,
        "--workspace",
        "-w",
        help="Path to workspace definition YAML file.",
    ),
    settings: str | None = typer.Option(
        None,
        "--settings",
        "-s",
        help="Path to settings YAML file.",
    ),
    runs: int = typer.Option(
        1,
        "--runs",
        "-n",
        min=1,
        help="Number of workspace runs.",
    ),
    modify: list[str] = typer.Option(
        [],
        "--modify",
        "-m",
        help="Node id to mark modified before each run after the first (repeatable).",
    ),
    sort: list[str] = typer.Option(
        [],
        "--sort",
        help="Sort criterion: number, name or time (repeat to toggle direction).",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Show run summary.",
    ),
) -> None:
    """Run a workspace and print its profiling table."""
    config = _load_settings(settings)
    configure_logging(config.logging)
    ws = _load_workspace(workspace)

    session = _profile(config, ws, runs=runs, modify=modify, sort=sort)

    typer.echo(RowTable(session.buckets()).render_content(), nl=False)
    summary = session.last_summary
    if verbose and summary is not None:
        typer.echo("")
        typer.echo(f"Runs: {summary.run_number}")
        typer.echo(f"  Nodes executed: {summary.nodes_executed}")
        typer.echo(f"  Latest run: {summary.current_total_ms:.0f} ms")
        typer.echo(f"  Previous run: {summary.previous_total_ms:.0f} ms")


@app.command()
def export(
    workspace: str = typer.Option(
        ...,
        "--workspace",
        "-w",
        help="Path to workspace definition YAML file.",
    ),
    output: str = typer.Option(
        ...,
        "--output",
        "-o",
        help="Path of the CSV file to write.",
    ),
    settings: str | None = typer.Option(
        None,
        "--settings",
        "-s",
        help="Path to settings YAML file.",
    ),
    runs: int = typer.Option(1, "--runs", "-n", min=1, help="Number of workspace runs."),
    modify: list[str] = typer.Option(
        [],
        "--modify",
        "-m",
        help="Node id to mark modified before each run after the first (repeatable).",
    ),
    sort: list[str] = typer.Option(
        [],
        "--sort",
        help="Sort criterion: number, name or time (repeat to toggle direction).",
    ),
) -> None:
    """Run a workspace and export its profiling table as CSV."""
    config = _load_settings(settings)
    configure_logging(config.logging)
    ws = _load_workspace(workspace)

    session = _profile(config, ws, runs=runs, modify=modify, sort=sort)

    try:
        result = session.export(Path(output))
    except OSError as e:
        typer.echo(f"Error writing export: {e}", err=True)
        raise typer.Exit(1) from None

    typer.echo(f"Exported {result.row_count} rows to {result.path}")
    typer.echo(f"  SHA-256: {result.content_hash}")


@app.command()
def validate(
    workspace: str = typer.Option(
        ...,
        "--workspace",
        "-w",
        help="Path to workspace definition YAML file.",
    ),
) -> None:
    """Validate a workspace definition without running it."""
    ws = _load_workspace(workspace)
    groups = ws.groups()

    typer.echo(f"Workspace valid: {Path(workspace).name}")
    typer.echo(f"  Name: {ws.name}")
    typer.echo(f"  Nodes: {ws.node_count}")
    typer.echo(f"  Edges: {ws.edge_count}")
    typer.echo(f"  Groups: {len(groups)}")


@app.command()
def tui(
    workspace: str = typer.Option(
        ...,
        "--workspace",
        "-w",
        help="Path to workspace definition YAML file.",
    ),
    settings: str | None = typer.Option(
        None,
        "--settings",
        "-s",
        help="Path to settings YAML file.",
    ),
    output: str | None = typer.Option(
        None,
        "--output",
        "-o",
        help="Export path used by the TUI export action.",
    ),
) -> None:
    """Launch the interactive profiler."""
    from graphtune.tui.profiler_app import ProfilerApp

    config = _load_settings(settings)
    configure_logging(config.logging)
    # The UI thread drains signals on a timer.
    dispatch = DispatchSettings(mode="queued", max_batch_size=config.dispatch.max_batch_size)
    config = config.model_copy(update={"dispatch": dispatch})
    ws = _load_workspace(workspace)

    session = ProfilerSession(config)
    session.attach(ws)
    session.pump()

    tui_app = ProfilerApp(
        session=session,
        workspace=ws,
        export_path=Path(output) if output else None,
    )
    tui_app.run()


if __name__ == "__main__":
    app()
