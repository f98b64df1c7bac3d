"""Rich rendering into strings.

Formatters never print; they render into a buffer-backed Console and hand
the text back to the CLI, which decides between stdout and stderr. Rich
drops color codes on its own when the real output is not a terminal.
"""

from __future__ import annotations

from io import StringIO

from rich.console import Console, RenderableType
from rich.theme import Theme

DEFAULT_WIDTH = 120

FLATGOOSE_THEME = Theme(
    {
        "fg.ok": "bold green",
        "fg.error": "bold red",
        "fg.op": "bold cyan",
        "fg.key": "dim",
        "fg.id": "bold blue",
        "fg.count": "magenta",
    }
)


def create_console(*, no_color: bool = False, width: int | None = None) -> Console:
    """A themed Console writing to an in-memory buffer."""
    return Console(
        file=StringIO(),
        theme=FLATGOOSE_THEME,
        no_color=no_color,
        highlight=False,
        width=width or DEFAULT_WIDTH,
    )


def get_output(console: Console) -> str:
    """Text rendered so far by a Console from :func:`create_console`."""
    assert isinstance(console.file, StringIO)
    return console.file.getvalue()


def render(*renderables: RenderableType, no_color: bool = False) -> str:
    """Print *renderables* one after another and return the text without the final newline."""
    console = create_console(no_color=no_color)
    for renderable in renderables:
        console.print(renderable)
    return get_output(console).rstrip("\n")
