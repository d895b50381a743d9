import os
import json
from typing import List, Any, Dict
from rich.console import Console
from rich.table import Table
from rich.panel import Panel

# Environment variable to control CLI output mode
# Allowed values: 'plain' (default), 'json', 'rich'
OUTPUT_MODE_ENV = "BOOKSHELF_CLI_OUTPUT"

_console = Console()


def set_output_mode(mode: str) -> None:
    mode = (mode or "").lower().strip()
    if mode in {"plain", "json", "rich"}:
        os.environ[OUTPUT_MODE_ENV] = mode


def get_output_mode() -> str:
    return os.environ.get(OUTPUT_MODE_ENV, "plain").lower()


def print_list_result(books: List[Dict[str, Any]]) -> None:
    """Print book projections in the current output mode.
    - plain: 'id - name (publisher)' lines, or 'No books on the shelf.'
    - json: JSON array of id, name, publisher
    - rich: Rich table
    """
    mode = get_output_mode()

    if not books:
        print("No books on the shelf.")
        return

    if mode == "json":
        print(json.dumps(books, ensure_ascii=False))
    elif mode == "rich":
        table = Table(title="📚 Books", show_lines=True, header_style="bold cyan")
        table.add_column("ID", style="magenta", no_wrap=True)
        table.add_column("Name", style="white")
        table.add_column("Publisher", style="white")
        for b in books:
            table.add_row(b.get("id", ""), str(b.get("name", "")), str(b.get("publisher") or "-"))
        _console.print(table)
    else:
        for b in books:
            print(f"{b.get('id', '')} - {b.get('name', '')} ({b.get('publisher') or '-'})")


def print_book_result(book: Dict[str, Any]) -> None:
    """Print a full book record in the current output mode."""
    mode = get_output_mode()

    if mode == "json":
        print(json.dumps(book, ensure_ascii=False))
        return

    progress = f"{book.get('readPage')}/{book.get('pageCount')}"
    status = "finished" if book.get("finished") else ("reading" if book.get("reading") else "not started")
    if mode == "rich":
        content = (
            f"[bold]Name:[/] {book.get('name')}\n"
            f"[bold]Author:[/] {book.get('author') or '-'}\n"
            f"[bold]Year:[/] {book.get('year')}\n"
            f"[bold]Publisher:[/] {book.get('publisher') or '-'}\n"
            f"[bold]Progress:[/] {progress} ({status})"
        )
        _console.print(Panel.fit(content, title=f"📖 {book.get('id')}", border_style="blue"))
    else:
        print(f"Name: {book.get('name')}")
        print(f"Author: {book.get('author') or '-'}")
        print(f"Year: {book.get('year')}")
        print(f"Publisher: {book.get('publisher') or '-'}")
        print(f"Progress: {progress} ({status})")
