"""Subcommand modules for the flatgoose CLI."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register all standalone commands on the root CLI group.

    Uses deferred imports so modules are only loaded when actually invoked.
    """
    from flatgoose.commands.collections import collections, count, find

    cli.add_command(collections)
    cli.add_command(find)
    cli.add_command(count)
