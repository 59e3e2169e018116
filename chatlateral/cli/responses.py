"""
chatlateral CLI - Custom Response Commands

Commands for the canned responses a widget namespace persists.

Commands:
    responses show   - Display the persisted custom responses
    responses set    - Add or replace a custom response
    responses remove - Delete a custom response
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import typer
from rich.markup import escape as escape_markup

from chatlateral.cli import responses_app
from chatlateral.cli.history import NAMESPACE_OPTION, STORAGE_DIR_OPTION, open_adapter
from chatlateral.cli.output import print_error, print_success, print_table, print_warning
from chatlateral.widget.persistence import (
    CUSTOM_RESPONSES_STORAGE_KEY,
    PersistenceAdapter,
    StorageError,
)
from chatlateral.widget.resolver import ResponseResolver


def _load_resolver(adapter: PersistenceAdapter) -> ResponseResolver:
    resolver = ResponseResolver()
    try:
        resolver.set_responses(adapter.load_responses())
    except ValueError as exc:
        print_error(str(exc))
        raise typer.Exit(1)
    return resolver


def _save(adapter: PersistenceAdapter, resolver: ResponseResolver) -> None:
    try:
        adapter.storage.set_item(
            CUSTOM_RESPONSES_STORAGE_KEY,
            json.dumps(resolver.mapping, ensure_ascii=False),
        )
    except StorageError as exc:
        print_error(str(exc))
        raise typer.Exit(1)


@responses_app.command("show")
def show_responses(
    namespace: str = NAMESPACE_OPTION,
    storage_dir: Optional[Path] = STORAGE_DIR_OPTION,
) -> None:
    """Display the persisted custom responses."""
    mapping = open_adapter(namespace, storage_dir).load_responses()
    if not mapping:
        print_warning(f"No custom responses stored for namespace '{namespace}'")
        return

    rows = []
    for trigger, reply in sorted(mapping.items()):
        if isinstance(reply, dict):
            actions = reply.get("actions") or reply.get("buttons") or []
            text = str(reply.get("text", ""))
        else:
            actions, text = [], str(reply)
        rows.append([escape_markup(trigger), escape_markup(text), str(len(actions))])

    print_table(
        f"Custom responses ({namespace})",
        ["Trigger", "Reply", "Actions"],
        rows,
        styles=["cyan", None, "dim"],
    )


@responses_app.command("set")
def set_response(
    trigger: str = typer.Argument(..., help="Text that triggers the reply."),
    reply: str = typer.Argument(..., help="Reply text."),
    namespace: str = NAMESPACE_OPTION,
    storage_dir: Optional[Path] = STORAGE_DIR_OPTION,
) -> None:
    """Add or replace a plain-text custom response."""
    adapter = open_adapter(namespace, storage_dir)
    resolver = _load_resolver(adapter)
    try:
        resolver.add_response(trigger, reply)
    except ValueError as exc:
        print_error(str(exc))
        raise typer.Exit(1)

    _save(adapter, resolver)
    print_success(f"Saved response for '{trigger.strip().lower()}'")


@responses_app.command("remove")
def remove_response(
    trigger: str = typer.Argument(..., help="Trigger to delete."),
    namespace: str = NAMESPACE_OPTION,
    storage_dir: Optional[Path] = STORAGE_DIR_OPTION,
) -> None:
    """Delete a custom response."""
    adapter = open_adapter(namespace, storage_dir)
    resolver = _load_resolver(adapter)
    if not resolver.remove_response(trigger):
        print_error(f"No response for '{trigger}'")
        raise typer.Exit(1)

    _save(adapter, resolver)
    print_success(f"Removed response for '{trigger.strip().lower()}'")
