"""
Tools command: list the enabled analysis tools.

Usage:
    solhydra tools
"""

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from extensions.hydra import HydraError, load_tool_table


console = Console()


@click.command("tools")
def tools():
    """List enabled tools and the outputs they write."""
    try:
        table = load_tool_table()
    except HydraError as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        raise SystemExit(1)

    tool_table = Table(show_header=True, header_style="bold")
    tool_table.add_column("Tool")
    tool_table.add_column("Output")
    tool_table.add_column("Type")
    tool_table.add_column("Notes")

    for profile in table.tools:
        for idx, channel in enumerate(profile.outputs):
            notes = "truffle/git runs only" if profile.project_only and idx == 0 else ""
            tool_table.add_row(
                profile.name if idx == 0 else "",
                channel.name,
                channel.content_type.value,
                notes,
            )

    console.print(f"\n[bold]Enabled tools[/bold] [dim](table v{table.version})[/dim]\n")
    console.print(tool_table)
