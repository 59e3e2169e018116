"""
chatlateral CLI - History Commands

Commands for the conversation log a widget namespace persists, plus the
options shared by every storage command.

Commands:
    history show     - Display the persisted conversation log
    history clear    - Delete the persisted conversation log
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
from rich.markup import escape as escape_markup

from chatlateral.cli import history_app
from chatlateral.cli.output import (
    print_error,
    print_json,
    print_success,
    print_table,
    print_warning,
)
from chatlateral.config.settings import settings
from chatlateral.widget.models import MessageKind
from chatlateral.widget.persistence import (
    CHAT_STORAGE_KEY,
    FileStorage,
    PersistenceAdapter,
    StorageError,
)

NAMESPACE_OPTION = typer.Option(
    "default",
    "--namespace",
    "-n",
    help="Widget storage namespace.",
)

STORAGE_DIR_OPTION = typer.Option(
    None,
    "--storage-dir",
    "-d",
    help="Storage root directory (defaults to STORAGE_DIR).",
)


def open_adapter(namespace: str, storage_dir: Optional[Path]) -> PersistenceAdapter:
    root = storage_dir if storage_dir is not None else Path(settings.STORAGE_DIR)
    return PersistenceAdapter(FileStorage(root, namespace))


@history_app.command("show")
def show_history(
    namespace: str = NAMESPACE_OPTION,
    storage_dir: Optional[Path] = STORAGE_DIR_OPTION,
    format: str = typer.Option(
        "table",
        "--format",
        "-f",
        help="Output format: table, json.",
    ),
) -> None:
    """Display the persisted conversation log."""
    messages = open_adapter(namespace, storage_dir).load_log()

    if format == "json":
        print_json([message.to_dict() for message in messages])
        return
    if format != "table":
        print_error(f"Unknown format: {format}", hint="Use table or json.")
        raise typer.Exit(1)

    if not messages:
        print_warning(f"No messages stored for namespace '{namespace}'")
        return

    rows = []
    for message in messages:
        content = message.text if message.kind is MessageKind.TEXT else "[image]"
        if message.actions:
            labels = ", ".join(action.label for action in message.actions)
            content = f"{content} [{labels}]"
        rows.append([message.timestamp_label, message.origin.value, escape_markup(content)])

    print_table(
        f"Conversation ({namespace})",
        ["Time", "Origin", "Message"],
        rows,
        styles=["dim", "cyan", None],
    )


@history_app.command("clear")
def clear_history(
    namespace: str = NAMESPACE_OPTION,
    storage_dir: Optional[Path] = STORAGE_DIR_OPTION,
    yes: bool = typer.Option(
        False,
        "--yes",
        "-y",
        help="Do not ask for confirmation.",
    ),
) -> None:
    """Delete the persisted conversation log."""
    if not yes and not typer.confirm(f"Delete the conversation stored for '{namespace}'?"):
        print_warning("Nothing deleted")
        return

    adapter = open_adapter(namespace, storage_dir)
    try:
        adapter.storage.remove_item(CHAT_STORAGE_KEY)
    except StorageError as exc:
        print_error(str(exc))
        raise typer.Exit(1)
    print_success(f"Cleared conversation for namespace '{namespace}'")
