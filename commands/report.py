"""
Report command: run the analysis fleet and write one HTML report.

Usage:
    solhydra report --contract-dir <dir> --dest <file> [--dep-dir <dir>] [tool ...]
    solhydra report --truffle <project> --dest <file> [tool ...]
    solhydra report --git <url> --dest <file> [tool ...]
"""

import signal
from contextlib import contextmanager
from pathlib import Path

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from extensions.hydra import (
    ConfigurationError,
    HydraConfig,
    HydraError,
    PipelineResult,
    ReportPipeline,
    RunRequest,
    load_tool_table,
)


console = Console()


def _absolute(path: str | Path | None) -> Path | None:
    if path is None:
        return None
    return Path(path).expanduser().resolve()


@contextmanager
def _sigterm_as_interrupt():
    """Route SIGTERM through the KeyboardInterrupt cleanup path."""

    def _raise_interrupt(signum, frame):
        raise KeyboardInterrupt

    try:
        previous = signal.signal(signal.SIGTERM, _raise_interrupt)
    except ValueError:
        # not in the main thread
        yield
        return
    try:
        yield
    finally:
        signal.signal(signal.SIGTERM, previous)


def _print_results(result: PipelineResult) -> None:
    console.print("\n[bold]Results:[/bold]")

    table = Table(show_header=True, header_style="bold")
    table.add_column("Output")
    table.add_column("Tool")
    table.add_column("Type")
    table.add_column("Contracts")

    for run in result.tool_runs:
        count = sum(1 for entry in result.model.contracts.values() if run.channel in entry.outputs)
        status = str(count) if run.output_root_exists else "[dim]no output[/dim]"
        table.add_row(run.channel, run.name, run.content_type.value, status)

    console.print(table)
    console.print(f"\n[dim]{len(result.model)} contracts analyzed in {result.metadata.get('duration_s', 0)}s[/dim]")
    console.print(f"\n[bold green]Report written to {escape(str(result.report_path))}[/bold green]")


@click.command("report")
@click.option("--contract-dir", type=click.Path(path_type=Path), help="Directory with Solidity contracts")
@click.option("--truffle", "project_dir", type=click.Path(path_type=Path), help="Truffle project directory")
@click.option("--git", "git_url", help="Git URL of a truffle project")
@click.option(
    "--dep-dir",
    "dep_dirs",
    multiple=True,
    type=click.Path(path_type=Path),
    help="Dependency directory (node_modules), only with --contract-dir",
)
@click.option("--dest", "destination", type=click.Path(path_type=Path), help="Report file (.html appended if missing)")
@click.option("--workspace-id", help="Run id for the workspace directory (default: timestamp)")
@click.argument("tools", nargs=-1)
def report(
    contract_dir: Path | None,
    project_dir: Path | None,
    git_url: str | None,
    dep_dirs: tuple[Path, ...],
    destination: Path | None,
    workspace_id: str | None,
    tools: tuple[str, ...],
):
    """Run the analysis tools and generate an HTML report.

    Runs all enabled tools unless a subset is given. solidity-coverage
    only works on truffle projects and is skipped for --contract-dir runs.
    """
    try:
        if destination is None:
            raise ConfigurationError("missing required arg --dest")

        config = HydraConfig.from_env()
        table = load_tool_table()
        request = RunRequest(
            destination=_absolute(destination),
            contract_dir=_absolute(contract_dir),
            project_dir=_absolute(project_dir),
            git_url=git_url or None,
            dependency_dirs=tuple(_absolute(d) for d in dep_dirs),
            tools=tuple(tools),
            workspace_id=workspace_id,
        )

        source = request.git_url or request.project_dir or request.contract_dir
        console.print(f"\n[bold]solhydra report[/bold]")
        console.print(f"Source: {escape(str(source))}\n")

        pipeline = ReportPipeline(config, table)
        with _sigterm_as_interrupt():
            result = pipeline.run(request)

    except HydraError as e:
        console.print(f"\n[red]ERROR[/red] {escape(str(e))}\n")
        console.print("[dim]Run 'solhydra report --help' for usage.[/dim]")
        raise SystemExit(1)
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted, cleanup ran[/yellow]")
        raise SystemExit(1)

    _print_results(result)
