"""Rich/JSON output helpers.

The CLI renders command results for humans (Rich tables) or machines
(--json). JSON output is a stable envelope: ``{"ok", "op", "data"}`` on
success and ``{"ok", "op", "error"}`` on failure.
"""

from __future__ import annotations

import json as _json
from typing import Any

from rich.table import Table
from rich.text import Text

from flatgoose.domain.ids import ID_FIELD
from flatgoose.output.console import render


def _envelope(op: str, **payload: Any) -> str:
    return _json.dumps({"op": op, **payload}, indent=2, default=str)


def _cell(value: Any) -> Text:
    # Stored values are never parsed as console markup.
    if isinstance(value, (dict, list)):
        return Text(_json.dumps(value, separators=(",", ":"), default=str))
    return Text("" if value is None else str(value))


def _columns(documents: list[dict[str, Any]]) -> list[str]:
    """Union of top-level keys in first-seen order, ``_id`` first."""
    columns: list[str] = [ID_FIELD] if any(ID_FIELD in doc for doc in documents) else []
    for doc in documents:
        for key in doc:
            if key not in columns:
                columns.append(key)
    return columns


def format_documents(
    op: str,
    documents: list[dict[str, Any]],
    *,
    json_output: bool = False,
    no_color: bool = False,
) -> str:
    """Render a list of documents as a table (or a JSON envelope)."""
    if json_output:
        return _envelope(op, ok=True, data={"count": len(documents), "documents": documents})

    if not documents:
        return render(f"[fg.op]{op}[/]: no documents", no_color=no_color)

    table = Table(show_header=True, header_style="fg.key")
    columns = _columns(documents)
    for column in columns:
        table.add_column(column, style="fg.id" if column == ID_FIELD else None)
    for doc in documents:
        table.add_row(*(_cell(doc.get(column)) for column in columns))
    return render(table, f"[fg.count]{len(documents)}[/] document(s)", no_color=no_color)


def format_count(op: str, name: str, count: int, *, json_output: bool = False) -> str:
    if json_output:
        return _envelope(op, ok=True, data={"collection": name, "count": count})
    return f"{name}: {count}"


def format_names(op: str, names: list[str], *, json_output: bool = False) -> str:
    if json_output:
        return _envelope(op, ok=True, data={"collections": names})
    return "\n".join(names) if names else "(no collections)"


def format_error(op: str, message: str, *, json_output: bool = False) -> str:
    if json_output:
        return _envelope(op, ok=False, error=message)
    return f"ERROR: {op} - {message}"
