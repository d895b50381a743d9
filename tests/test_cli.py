import json
from unittest.mock import patch

import httpx
import pytest
from fastapi.testclient import TestClient
from typer.testing import CliRunner

import main
from api import create_app
from main import app
from utils.ui_helpers import OUTPUT_MODE_ENV
from utils.validators import BookFields

runner = CliRunner()


@pytest.fixture(autouse=True)
def plain_output(monkeypatch):
    monkeypatch.delenv(OUTPUT_MODE_ENV, raising=False)


@pytest.fixture
def server(lib, monkeypatch):
    """Point the CLI at an in-process app backed by the test registry."""
    monkeypatch.setattr(main, "get_client", lambda: TestClient(create_app(lib)))
    return lib


def _fields(name, read_page=0, reading=False):
    return BookFields(name=name, year=2000, page_count=10, read_page=read_page,
                      publisher="Pub", reading=reading)


def test_list_no_books(server):
    result = runner.invoke(app, ["list"])
    assert result.exit_code == 0
    assert "No books on the shelf." in result.stdout


def test_list_books(server):
    book_id = server.add_book(_fields("War and Peace"))
    server.add_book(_fields("Dune"))

    result = runner.invoke(app, ["list", "--name", "war"])
    assert result.exit_code == 0
    assert f"{book_id} - War and Peace (Pub)" in result.stdout
    assert "Dune" not in result.stdout


def test_list_books_flags(server):
    done = server.add_book(_fields("Done", read_page=10))
    server.add_book(_fields("Open"))

    result = runner.invoke(app, ["--output", "json", "list", "--finished"])
    assert result.exit_code == 0
    assert json.loads(result.stdout.strip().splitlines()[-1]) == [{"id": done, "name": "Done", "publisher": "Pub"}]


def test_show_book(server):
    book_id = server.add_book(_fields("Dune", read_page=10))

    result = runner.invoke(app, ["show", book_id])
    assert result.exit_code == 0
    assert "Name: Dune" in result.stdout
    assert "Progress: 10/10 (finished)" in result.stdout


def test_show_book_not_found(server):
    result = runner.invoke(app, ["show", "nonexistent"])
    assert result.exit_code == 1
    assert "Error: Book not found" in result.stdout


def test_remove_book(server):
    book_id = server.add_book(_fields("Dune"))

    result = runner.invoke(app, ["remove", book_id])
    assert result.exit_code == 0
    assert "Book deleted successfully" in result.stdout
    assert len(server) == 0


def test_server_unreachable(monkeypatch):
    def refuse(request):
        raise httpx.ConnectError("connection refused", request=request)

    monkeypatch.setattr(main, "get_client",
                        lambda: httpx.Client(base_url="http://testserver", transport=httpx.MockTransport(refuse)))
    result = runner.invoke(app, ["list"])
    assert result.exit_code == 1
    assert "Could not reach the server" in result.stdout


@patch("subprocess.run")
def test_serve_command(mock_subprocess_run):
    result = runner.invoke(app, ["serve"])
    assert result.exit_code == 0
    assert "Starting" in result.stdout
    mock_subprocess_run.assert_called_once()
    args = mock_subprocess_run.call_args[0][0]
    assert "uvicorn" in args
    assert "api:app" in args
    assert "--host" in args
    assert "--port" in args
    assert "--reload" not in args
