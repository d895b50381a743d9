from __future__ import annotations

from datetime import datetime, timezone
from typing import Any


def utc_timestamp() -> str:
    """Current UTC time as ISO-8601 with millisecond precision and a 'Z' suffix."""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


class Book:
    """A single book on the shelf."""

    def __init__(self, id: str, name: str, year: int, page_count: int, read_page: int,
                 author: Any = None, summary: Any = None, publisher: Any = None,
                 reading: bool = False, inserted_at: str | None = None,
                 updated_at: str | None = None) -> None:
        self.id = id
        self.name = name
        self.year = year
        self.author = author
        self.summary = summary
        self.publisher = publisher
        self.page_count = page_count
        self.read_page = read_page
        self.reading = reading
        self.inserted_at = inserted_at or utc_timestamp()
        self.updated_at = updated_at or self.inserted_at

    @property
    def finished(self) -> bool:
        return self.read_page == self.page_count

    def __str__(self) -> str:  # pragma: no cover - string formatting trivial
        return f"{self.name} ({self.id})"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "year": self.year,
            "author": self.author,
            "summary": self.summary,
            "publisher": self.publisher,
            "pageCount": self.page_count,
            "readPage": self.read_page,
            "finished": self.finished,
            "reading": self.reading,
            "insertedAt": self.inserted_at,
            "updatedAt": self.updated_at,
        }

    def to_summary(self) -> dict:
        """Projection used by the listing endpoint."""
        return {"id": self.id, "name": self.name, "publisher": self.publisher}

