#!/usr/bin/env python3
"""solhydra - run Solidity contracts through several analysis tools.

Prepares the contracts once, runs every tool in its own container and
merges the per-file results into a single HTML report.
"""

import logging

# Load environment variables from .env file
from dotenv import load_dotenv
load_dotenv()

import click
import typer
from rich.console import Console
from rich.logging import RichHandler

console = Console()

app = typer.Typer(
    name="solhydra",
    help="Run Solidity contracts through several analysis tools and generate an HTML report",
    add_completion=False,
)


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def _invoke_click(command: click.Command, params: dict) -> None:
    """Run a click command with parameters already parsed by typer."""
    with click.Context(command, info_name=command.name) as ctx:
        ctx.invoke(command, **params)


@app.callback()
def main_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging"),
):
    """Run Solidity contracts through several analysis tools."""
    _setup_logging(verbose)


# ─────────────────────────────────────────────────────────────────────────────
# Report Commands
# ─────────────────────────────────────────────────────────────────────────────

@app.command("report")
def report(
    tools: list[str] = typer.Argument(None, help="Subset of tools to run (default: all)"),
    contract_dir: str = typer.Option(None, "--contract-dir", "-c", help="Directory with Solidity contracts"),
    truffle: str = typer.Option(None, "--truffle", "-t", help="Truffle project directory"),
    git: str = typer.Option(None, "--git", "-g", help="Git URL of a truffle project"),
    dep_dir: list[str] = typer.Option(None, "--dep-dir", "-d", help="Dependency directory (node_modules), only with --contract-dir"),
    dest: str = typer.Option(None, "--dest", "-o", help="Report file (.html appended if missing)"),
    workspace_id: str = typer.Option(None, "--workspace-id", help="Run id for the workspace directory"),
):
    """Run the analysis tools and generate an HTML report."""
    from commands.report import report as report_command
    _invoke_click(report_command, {
        'contract_dir': contract_dir,
        'project_dir': truffle,
        'git_url': git,
        'dep_dirs': tuple(dep_dir) if dep_dir else (),
        'destination': dest,
        'workspace_id': workspace_id,
        'tools': tuple(tools) if tools else (),
    })


@app.command("tools")
def list_tools():
    """List enabled tools and the outputs they write."""
    from commands.tools import tools as tools_command
    _invoke_click(tools_command, {})


@app.command()
def version():
    """Show solhydra version."""
    console.print("[bold]solhydra[/bold] v1.0.0")
    console.print("Multi-tool Solidity analysis report")


def main():
    """Main entry point."""
    app()


if __name__ == "__main__":
    main()
