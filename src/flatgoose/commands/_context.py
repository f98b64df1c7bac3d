"""AppContext — shared Click context for all commands.

Created once by the root CLI group and flows to all subcommands via
``@click.pass_obj``.  Provides lazy Store initialization and centralized
output emission (stdout/stderr routing + exit codes).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from flatgoose.output.formatters import format_error

if TYPE_CHECKING:
    from flatgoose.config.settings import FlatgooseSettings
    from flatgoose.infrastructure.store import Store


class AppContext:
    """Shared context flowing through Click's command hierarchy.

    The store is lazily opened on first use so ``--help`` and ``--version``
    never touch the storage root. The CLI only inspects, so it never
    creates a missing root directory.
    """

    def __init__(self, settings: FlatgooseSettings) -> None:
        self.settings = settings
        self._store: Store | None = None

        from flatgoose.config.logging import configure_logging

        configure_logging(verbose=settings.verbose, log_json=settings.log_json)

    @property
    def store(self) -> Store:
        """The store instance (created lazily on first access)."""
        if self._store is None:
            from flatgoose.infrastructure.store import Store

            storage = self.settings.storage.model_copy(update={"create_root": False})
            self._store = Store(self.settings.model_copy(update={"storage": storage}))
        return self._store

    @property
    def json_output(self) -> bool:
        return self.settings.json_output

    def emit(self, output: str) -> None:
        """Write a successful command's output to stdout."""
        click.echo(output)

    def fail(self, op: str, message: str) -> None:
        """Write an error to stderr and exit with code 1."""
        click.echo(format_error(op, message, json_output=self.json_output), err=True)
        raise SystemExit(1)
