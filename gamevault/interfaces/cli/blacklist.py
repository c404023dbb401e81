"""Blacklist management CLI for Gamevault.

Provides commands to list, add and remove blacklisted item ids.
"""

from __future__ import annotations

import click
from rich.console import Console
from rich.table import Table

from . import context

console = Console()


@click.group()
def blacklist() -> None:
    """Manage item ids that sync runs must skip."""


@blacklist.command("list")
@click.pass_context
def list_cmd(ctx: click.Context) -> None:
    """List all blacklisted items."""
    entries = context.build_blacklist(ctx.obj["cli_context"]).list_entries()
    if not entries:
        console.print("[yellow]Blacklist is empty.[/yellow]")
        return

    table = Table(title="Blacklisted items")
    table.add_column("Item id", style="bold", justify="right")
    table.add_column("Since")
    for entry in entries:
        table.add_row(str(entry["item_id"]), entry["last_modified"])
    console.print(table)


@blacklist.command("add")
@click.argument("item_id", type=int)
@click.pass_context
def add_cmd(ctx: click.Context, item_id: int) -> None:
    """Blacklist ITEM_ID."""
    context.build_blacklist(ctx.obj["cli_context"]).add(item_id)
    console.print(f"[green]Blacklisted item [bold]{item_id}[/bold][/green]")


@blacklist.command("remove")
@click.argument("item_id", type=int)
@click.pass_context
def remove_cmd(ctx: click.Context, item_id: int) -> None:
    """Remove ITEM_ID from the blacklist."""
    if not context.build_blacklist(ctx.obj["cli_context"]).remove(item_id):
        console.print(f"[red]Item {item_id} is not blacklisted.[/red]")
        ctx.exit(1)
    console.print(f"[green]Removed item [bold]{item_id}[/bold] from the blacklist[/green]")
