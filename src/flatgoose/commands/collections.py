"""Read-only inspection commands: list collections, find, and count."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

import click

from flatgoose.domain.query import parse_options, run_query
from flatgoose.errors import FlatgooseError
from flatgoose.output.formatters import format_count, format_documents, format_names

if TYPE_CHECKING:
    from flatgoose.commands._context import AppContext


def _parse_filter(raw: str | None) -> dict[str, Any] | None:
    if raw is None:
        return None
    try:
        value = json.loads(raw)
    except json.JSONDecodeError as exc:
        msg = f"not valid JSON: {exc.msg}"
        raise click.BadParameter(msg, param_hint="--filter") from exc
    if not isinstance(value, dict):
        raise click.BadParameter("must be a JSON object", param_hint="--filter")
    return value


def _parse_sort(specs: tuple[str, ...]) -> dict[str, str]:
    """``field`` or ``field:asc|desc`` -> ordered sort mapping."""
    sort: dict[str, str] = {}
    for spec in specs:
        field, _, direction = spec.partition(":")
        sort[field] = direction or "asc"
    return sort


def _load(app: AppContext, op: str, name: str) -> list[dict[str, Any]]:
    if name.lower() not in app.store.collection_names():
        app.fail(op, f"No collection named {name!r} under {app.store.root}")
    return app.store.read_collection(name)


@click.command()
@click.pass_obj
def collections(app: AppContext) -> None:
    """List the collections stored under the root."""
    app.emit(format_names("collections", app.store.collection_names(), json_output=app.json_output))


@click.command()
@click.argument("name")
@click.option("--filter", "filter_json", default=None, help="Filter as a JSON object.")
@click.option("--sort", "sort_specs", multiple=True, help="FIELD or FIELD:desc (repeatable).")
@click.option("--skip", default=0, type=click.IntRange(min=0), help="Skip N matches.")
@click.option("--limit", default=None, type=click.IntRange(min=0), help="Max results.")
@click.pass_obj
def find(
    app: AppContext,
    name: str,
    filter_json: str | None,
    sort_specs: tuple[str, ...],
    skip: int,
    limit: int | None,
) -> None:
    """Print documents of collection NAME matching a filter."""
    query = _parse_filter(filter_json)
    documents = _load(app, "find", name)
    try:
        options = parse_options({"sort": _parse_sort(sort_specs), "skip": skip, "limit": limit})
        results = run_query(documents, query, options)
    except FlatgooseError as exc:
        app.fail("find", str(exc))
    app.emit(format_documents("find", results, json_output=app.json_output))


@click.command()
@click.argument("name")
@click.option("--filter", "filter_json", default=None, help="Filter as a JSON object.")
@click.pass_obj
def count(app: AppContext, name: str, filter_json: str | None) -> None:
    """Count documents of collection NAME matching a filter."""
    query = _parse_filter(filter_json)
    documents = _load(app, "count", name)
    try:
        total = len(run_query(documents, query))
    except FlatgooseError as exc:
        app.fail("count", str(exc))
    app.emit(format_count("count", name, total, json_output=app.json_output))
