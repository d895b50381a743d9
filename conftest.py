import pytest
from fastapi.testclient import TestClient

from api import create_app
from library import Library


@pytest.fixture
def lib():
    # Each test gets its own registry so no state leaks between tests
    return Library()


@pytest.fixture
def client(lib):
    with TestClient(create_app(lib)) as test_client:
        yield test_client


@pytest.fixture
def book_payload():
    return {
        "name": "War and Peace",
        "year": 1869,
        "author": "Leo Tolstoy",
        "summary": "Napoleon invades Russia.",
        "publisher": "The Russian Messenger",
        "pageCount": 1225,
        "readPage": 100,
    }
