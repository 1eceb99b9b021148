"""Command line interface for common cartridge workflows."""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from cartridges.config import CartridgeSettings, ConfigManager, StoreBackend
from cartridges.core import CartridgeSelector, ChatService
from cartridges.storage import (
    CartridgeStore,
    create_store,
    load_cartridge_file,
    seed_default_cartridges,
)
from cartridges.utils.exceptions import CartridgeError


def _load_settings(database_url: str | None = None) -> CartridgeSettings:
    manager = ConfigManager.get_instance()
    manager.auto_load()
    settings = manager.get_settings()
    if database_url:
        database = settings.database.model_copy(
            update={
                "backend": StoreBackend.SQLALCHEMY,
                "connection_string": database_url,
            }
        )
        settings = settings.model_copy(update={"database": database})
        manager.set_settings(settings, source="command line")
    return settings


def _close_store(store: CartridgeStore) -> None:
    close = getattr(store, "close", None)
    if callable(close):
        close()


def _build_selector(
    store: CartridgeStore, settings: CartridgeSettings
) -> CartridgeSelector:
    return CartridgeSelector.from_settings(store, settings)


def _run_with_store(args: argparse.Namespace, action) -> Any:
    """Open the configured store, run ``action(store, settings)`` and close it."""

    settings = _load_settings(args.database_url)
    store = create_store(settings)
    try:
        return asyncio.run(action(store, settings))
    finally:
        _close_store(store)


def _handle_list(args: argparse.Namespace) -> int:
    """Print every cartridge, most recently updated first."""

    async def action(store: CartridgeStore, _settings: CartridgeSettings):
        return await store.list_cartridges()

    try:
        cartridges = _run_with_store(args, action)
    except CartridgeError as exc:
        print(f"Error: {exc.message}", file=sys.stderr)
        return 1

    if args.json:
        print(json.dumps([c.to_wire() for c in cartridges], indent=2))
        return 0

    if not cartridges:
        print("No cartridges found.")
        return 0
    for cartridge in cartridges:
        marker = "*" if cartridge.is_active else " "
        tags = ", ".join(cartridge.metadata.tags)
        print(f"{marker} [{cartridge.id}] {cartridge.name} ({tags})")
    return 0


def _handle_ask(args: argparse.Namespace) -> int:
    """Route a single query and print the answer."""

    async def action(store: CartridgeStore, settings: CartridgeSettings):
        service = ChatService(store, _build_selector(store, settings))
        return await service.handle_chat(args.query, args.cartridge)

    try:
        turn = _run_with_store(args, action)
    except CartridgeError as exc:
        print(f"Error: {exc.message}", file=sys.stderr)
        return 1

    if args.json:
        print(json.dumps(turn.to_wire(), indent=2))
        return 0

    selection = turn.selection
    print(
        f"Cartridge {selection.selected_cartridge_id} "
        f"(match {selection.match_score}%): {selection.reasoning}"
    )
    print()
    print(turn.ai_message.content)
    return 0


def _handle_seed(args: argparse.Namespace) -> int:
    """Insert the default cartridges into an empty store."""

    async def action(store: CartridgeStore, _settings: CartridgeSettings):
        return await seed_default_cartridges(store)

    try:
        created = _run_with_store(args, action)
    except CartridgeError as exc:
        print(f"Error: {exc.message}", file=sys.stderr)
        return 1

    if created:
        print(f"Seeded {created} default cartridges.")
    else:
        print("Store already contains cartridges; nothing seeded.")
    return 0


def _handle_import(args: argparse.Namespace) -> int:
    """Create a cartridge from a .json, .yaml or .txt file."""

    try:
        data = load_cartridge_file(
            Path(args.path), name=args.name, description=args.description
        )
    except CartridgeError as exc:
        print(f"Error: {exc.message}", file=sys.stderr)
        return 1

    async def action(store: CartridgeStore, _settings: CartridgeSettings):
        return await store.create_cartridge(data)

    try:
        cartridge = _run_with_store(args, action)
    except CartridgeError as exc:
        print(f"Error: {exc.message}", file=sys.stderr)
        return 1
    print(f"Imported cartridge {cartridge.id}: {cartridge.name}")
    return 0


def _handle_activate(args: argparse.Namespace) -> int:
    """Make one cartridge the active one."""

    async def action(store: CartridgeStore, _settings: CartridgeSettings):
        if await store.get_cartridge(args.cartridge_id) is None:
            return None
        await store.set_active(args.cartridge_id)
        return await store.get_cartridge(args.cartridge_id)

    try:
        cartridge = _run_with_store(args, action)
    except CartridgeError as exc:
        print(f"Error: {exc.message}", file=sys.stderr)
        return 1

    if cartridge is None:
        print(f"Error: Cartridge {args.cartridge_id} not found", file=sys.stderr)
        return 1
    print(f"Activated cartridge {cartridge.id}: {cartridge.name}")
    return 0


def _handle_runserver(args: argparse.Namespace) -> int:
    """Start the bundled Flask development server."""

    from cartridges_server.api import create_app

    settings = _load_settings(args.database_url)
    app = create_app(settings=settings)
    app.run(
        host=args.host,
        port=args.port,
        debug=args.reload,
        use_reloader=args.reload,
    )
    return 0


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cartridges",
        description=(
            "Utilities for managing memory cartridges, routing queries and "
            "running the API server."
        ),
    )
    parser.add_argument(
        "--database-url",
        help="Override the configured database connection string.",
    )
    subparsers = parser.add_subparsers(dest="command")
    subparsers.required = True

    list_parser = subparsers.add_parser("list", help="List stored cartridges.")
    list_parser.add_argument(
        "--json", action="store_true", help="Emit the cartridges as JSON."
    )
    list_parser.set_defaults(func=_handle_list)

    ask = subparsers.add_parser(
        "ask", help="Route a query to a cartridge and print the answer."
    )
    ask.add_argument("query", help="Question to answer.")
    ask.add_argument(
        "--cartridge",
        type=int,
        default=None,
        help="Skip classification and answer with this cartridge id.",
    )
    ask.add_argument("--json", action="store_true", help="Emit the turn as JSON.")
    ask.set_defaults(func=_handle_ask)

    seed = subparsers.add_parser(
        "seed", help="Insert the default cartridges when the store is empty."
    )
    seed.set_defaults(func=_handle_seed)

    import_parser = subparsers.add_parser(
        "import", help="Create a cartridge from a .json, .yaml or .txt file."
    )
    import_parser.add_argument("path", help="Document to import.")
    import_parser.add_argument("--name", help="Override the cartridge name.")
    import_parser.add_argument(
        "--description", help="Override the cartridge description."
    )
    import_parser.set_defaults(func=_handle_import)

    activate = subparsers.add_parser("activate", help="Activate a cartridge.")
    activate.add_argument("cartridge_id", type=int, help="Cartridge id.")
    activate.set_defaults(func=_handle_activate)

    runserver = subparsers.add_parser(
        "runserver", help="Run the Flask development server."
    )
    runserver.add_argument("--host", default="127.0.0.1")
    runserver.add_argument("--port", type=int, default=5000)
    runserver.add_argument(
        "--reload",
        action="store_true",
        help="Enable the debugger and auto-reloader.",
    )
    runserver.set_defaults(func=_handle_runserver)

    return parser


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    handler = getattr(args, "func", None)
    if handler is None:
        parser.print_help()
        return 1
    return int(handler(args) or 0)


if __name__ == "__main__":  # pragma: no cover - invoked manually
    sys.exit(main())
