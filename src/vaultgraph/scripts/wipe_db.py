"""
wipe_db.py – Command-line utility to clear the vaultgraph link store.
"""

from __future__ import annotations

import asyncio
import logging
import sqlite3
import sys

from rich.console import Console

from vaultgraph.config import settings
from vaultgraph.services.link_store import LinkStore

console = Console()


def main() -> None:
    logging.basicConfig(level=logging.WARNING)
    db_path = settings.db_path

    if not db_path.exists():
        console.print(f"[yellow]Database not found at {db_path}[/yellow]")
        return

    console.print(f"[bold red]WARNING:[/] This will delete all documents and links in [cyan]{db_path}[/]")
    console.print("The next `vaultgraph sync` re-indexes every document in the vault.")

    try:
        response = console.input("\nAre you sure you want to completely wipe the database? \\[y/N]: ")
        if response.lower() not in ("y", "yes"):
            console.print("[yellow]Aborted.[/yellow]")
            sys.exit(0)

        asyncio.run(LinkStore(db_path, settings.vault_path).clear())
        console.print("[bold green]✓ Database successfully wiped.[/bold green]")

    except KeyboardInterrupt:
        console.print("\n[yellow]Aborted.[/yellow]")
        sys.exit(1)
    except sqlite3.Error as e:
        console.print(f"[bold red]Error wiping database:[/] {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
