import logging
import subprocess
import sys
from typing import Any, Dict, Optional

import httpx
import typer
from rich.console import Console

from config import configure_logging, settings
from utils.ui_helpers import print_book_result, print_list_result, set_output_mode

APP_NAME = "Bookshelf CLI"

console = Console()
logger = logging.getLogger(__name__)

app = typer.Typer(help=APP_NAME)


def get_client() -> httpx.Client:
    """HTTP client pointed at the configured server."""
    return httpx.Client(base_url=settings.base_url, timeout=settings.client_timeout)


def _request(method: str, path: str, **kwargs) -> Dict[str, Any]:
    """Call the server and return the JSON envelope, exiting on failure."""
    try:
        with get_client() as client:
            response = client.request(method, path, **kwargs)
    except httpx.RequestError as exc:
        logger.debug("Request to %s failed: %s", path, exc)
        print(f"Could not reach the server at {settings.base_url}.")
        raise typer.Exit(code=1)

    try:
        body = response.json()
    except ValueError:
        print(f"Unexpected response from server (HTTP {response.status_code}).")
        raise typer.Exit(code=1)

    if body.get("status") != "success":
        print(f"Error: {body.get('message', 'request failed')}")
        raise typer.Exit(code=1)
    return body


def _flag(value: Optional[bool]) -> Optional[str]:
    if value is None:
        return None
    return "true" if value else "false"


@app.callback()
def _global_options(
    output: Optional[str] = typer.Option(
        None,
        "--output",
        "-o",
        help="Output format: plain | json | rich (default: plain)",
    )
):
    """Global CLI options (e.g. output mode)."""
    configure_logging()
    if output:
        set_output_mode(output)


@app.command("serve")
def cli_serve(reload: bool = typer.Option(False, "--reload", help="Restart the server when code changes")):
    """Start the API with uvicorn."""
    host = settings.api_host
    port = int(settings.api_port)
    print(f"Starting {settings.app_name} on http://{host}:{port}/")
    args = [
        sys.executable,
        "-m", "uvicorn",
        "api:app",
        "--host", host,
        "--port", str(port),
        "--log-level", settings.log_level.lower(),
    ]
    if reload:
        args.append("--reload")
    try:
        subprocess.run(args, check=False)
    except FileNotFoundError:
        console.print("[bold red]Error:[/] could not start uvicorn. Make sure it is installed.")
        raise typer.Exit(code=1)
    except KeyboardInterrupt:
        print("Server stopped.")


@app.command("list")
def cli_list(
    name: Optional[str] = typer.Option(None, "--name", "-n", help="Filter by part of the name"),
    reading: Optional[bool] = typer.Option(None, "--reading/--not-reading", help="Filter by reading flag"),
    finished: Optional[bool] = typer.Option(None, "--finished/--unfinished", help="Filter by finished flag"),
):
    """List books on the shelf."""
    params = {"name": name, "reading": _flag(reading), "finished": _flag(finished)}
    params = {key: value for key, value in params.items() if value is not None}
    body = _request("GET", "/books", params=params)
    print_list_result(body["data"]["books"])


@app.command("show")
def cli_show(book_id: str):
    """Show the details of one book."""
    body = _request("GET", f"/books/{book_id}")
    print_book_result(body["data"]["book"])


@app.command("remove")
def cli_remove(book_id: str):
    """Remove a book by id."""
    body = _request("DELETE", f"/books/{book_id}")
    print(body.get("message", "Book deleted"))


if __name__ == "__main__":
    app()
