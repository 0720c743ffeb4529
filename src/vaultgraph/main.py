"""
main.py – Command-line entry point for vaultgraph.

Usage:
    vaultgraph sync                     # reconcile the store with the vault
    vaultgraph index Notes/Idea.md      # re-index one document
    vaultgraph rename Old.md New.md     # carry a rename through the graph
    vaultgraph links Notes/Idea.md      # outgoing links
    vaultgraph backlinks Notes/Idea.md  # incoming links
    vaultgraph edges | orphans | broken | status
    vaultgraph watch --debounce 2       # re-sync whenever the vault changes

Document paths may be absolute or relative to the vault root.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from collections.abc import Iterable
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from vaultgraph.config import settings
from vaultgraph.errors import VaultGraphError
from vaultgraph.services.link_store import Edge
from vaultgraph.services.store_handle import StoreHandle
from vaultgraph.services.vault_indexer import SyncResult, VaultIndexer
from vaultgraph.services.watcher import VaultWatcher

console = Console()
log = logging.getLogger(__name__)


def _setup_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="vaultgraph",
        description="vaultgraph – wiki-link graph indexer for a folder of notes",
    )
    parser.add_argument(
        "--log-level",
        default=settings.log_level,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("sync", help="Reconcile the link store with the vault")
    sub.add_parser("status", help="Show document / link counts")
    sub.add_parser("edges", help="List every link in the graph")
    sub.add_parser("orphans", help="List documents with no links in or out")
    sub.add_parser("broken", help="List links whose target document is missing")

    p = sub.add_parser("index", help="Re-index a single document")
    p.add_argument("path")

    p = sub.add_parser("rename", help="Record a document rename in the graph")
    p.add_argument("old_path")
    p.add_argument("new_path")

    p = sub.add_parser("links", help="Outgoing links of a document")
    p.add_argument("path")

    p = sub.add_parser("backlinks", help="Documents linking to a document")
    p.add_argument("path")

    p = sub.add_parser("watch", help="Re-sync whenever the vault changes")
    p.add_argument(
        "--debounce",
        type=float,
        default=settings.watch_debounce_seconds,
        metavar="SECONDS",
        help=f"Quiet period before syncing (default: {settings.watch_debounce_seconds})",
    )
    return parser.parse_args(argv)


# ── Rendering helpers ────────────────────────────────────────────────────────

def _display(path: str | Path) -> str:
    try:
        return Path(path).relative_to(settings.vault_path).as_posix()
    except ValueError:
        return str(path)


def _doc_path(raw: str) -> Path:
    path = Path(raw).expanduser()
    if path.is_absolute():
        return path
    return settings.vault_path / path


def _print_paths(title: str, paths: Iterable[str]) -> None:
    table = Table(title=title)
    table.add_column("Document")
    for p in paths:
        table.add_row(_display(p))
    console.print(table)


def _print_edges(title: str, edges: Iterable[Edge]) -> None:
    table = Table(title=title)
    table.add_column("Source")
    table.add_column("Target")
    for e in edges:
        table.add_row(_display(e.source), _display(e.target))
    console.print(table)


def _print_sync_result(result: SyncResult) -> None:
    if not result.success:
        console.print(f"[bold red]✗ Sync failed:[/] {result.error}")
        return
    console.print(
        f"[bold green]✓[/] Sync complete – {result.files_indexed} indexed, "
        f"{result.files_deleted} deleted, {result.files_skipped} unchanged "
        f"({result.duration_ms} ms)"
    )
    if result.files_failed:
        console.print(f"[yellow]{result.files_failed} document(s) could not be indexed:[/]")
        for failure in result.failures:
            console.print(f"  [red]• {failure}[/red]")


# ── Commands ─────────────────────────────────────────────────────────────────

async def _run(args: argparse.Namespace) -> int:
    handle = StoreHandle()
    store = await handle.open(settings.db_path, settings.vault_path)
    indexer = VaultIndexer(
        handle,
        settings.vault_path,
        extension=settings.note_extension,
        trash_folder=settings.trash_folder,
    )

    if args.command == "sync":
        result = await indexer.full_sync()
        _print_sync_result(result)
        return 0 if result.success else 1

    if args.command == "index":
        edges = await indexer.index_document(_doc_path(args.path))
        console.print(f"[bold green]✓[/] Indexed {args.path} ({edges} links)")
    elif args.command == "rename":
        await indexer.rename_document(_doc_path(args.old_path), _doc_path(args.new_path))
        console.print(f"[bold green]✓[/] {args.old_path} → {args.new_path}")
    elif args.command == "links":
        _print_paths(f"Links from {args.path}", await store.get_outgoing_links(str(_doc_path(args.path))))
    elif args.command == "backlinks":
        _print_paths(f"Backlinks to {args.path}", await store.get_backlinks(str(_doc_path(args.path))))
    elif args.command == "edges":
        _print_edges("Links", await store.get_all_edges())
    elif args.command == "orphans":
        _print_paths("Orphaned documents", await store.get_orphaned_documents())
    elif args.command == "broken":
        _print_edges("Broken links", await store.get_broken_edges())
    elif args.command == "status":
        counts = await store.counts()
        console.print(
            f"  Documents : {counts['documents']}\n"
            f"  Links     : {counts['links']}\n"
            f"  Broken    : {counts['broken']}"
        )
    elif args.command == "watch":
        _print_sync_result(await indexer.full_sync())
        watcher = VaultWatcher(indexer, args.debounce, on_result=_print_sync_result)
        log.info("Watching for changes (debounce=%.1fs). Ctrl-C to stop.", args.debounce)
        await watcher.run()
    return 0


def main(argv: list[str] | None = None) -> None:
    args = _parse_args(argv)
    _setup_logging(args.log_level)

    if not settings.vault_path.is_dir():
        console.print(f"[red]Vault not found: {settings.vault_path}[/red]")
        sys.exit(1)

    console.rule("[bold blue]vaultgraph[/bold blue]")
    console.print(f"  Vault    : {settings.vault_path}")
    console.print(f"  Database : {settings.db_path}")
    console.rule()

    try:
        code = asyncio.run(_run(args))
    except VaultGraphError as exc:
        console.print(f"[bold red]✗[/] {exc}")
        sys.exit(1)
    except KeyboardInterrupt:
        console.print("\n[yellow]Stopped by user.[/yellow]")
        sys.exit(0)
    sys.exit(code)


if __name__ == "__main__":
    main()
