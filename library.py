import logging
import threading
import uuid
from typing import Dict, List, Optional

from book import Book, utc_timestamp
from config import settings
from utils.validators import BookFields, BookValidationError

logger = logging.getLogger(__name__)

# uuid4 hex gives at most 32 characters
MIN_ID_LENGTH = 8
MAX_ID_LENGTH = 32
MAX_ID_ATTEMPTS = 100

__all__ = [
    "Library",
    "LibraryError",
    "BookNotFoundError",
    "BookLookupError",
    "BookInsertError",
    "BookValidationError",
]


class LibraryError(Exception):
    """Base class for registry failures."""


class BookNotFoundError(LibraryError, LookupError):
    """No book matches the given id or name."""

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f"Book {key!r} not found.")


class BookLookupError(LibraryError, ValueError):
    """A lookup was requested without the data needed to perform it."""


class BookInsertError(LibraryError):
    """A new book could not be stored: no free id, or it did not resolve after insert."""


class Library:
    """In-memory, insertion-ordered collection of books.

    Every operation runs under one re-entrant lock, so concurrent request
    handlers see each mutation as a whole or not at all.
    """

    def __init__(self, id_length: Optional[int] = None) -> None:
        if id_length is None:
            id_length = settings.book_id_length
        if not MIN_ID_LENGTH <= id_length <= MAX_ID_LENGTH:
            raise ValueError(
                f"Book id length must be between {MIN_ID_LENGTH} and {MAX_ID_LENGTH}, got {id_length}."
            )
        self.id_length = id_length
        self.books: List[Book] = []
        self._lock = threading.RLock()

    def __len__(self) -> int:
        with self._lock:
            return len(self.books)

    # ------------------------- Core operations ------------------------- #
    def add_book(self, fields: BookFields) -> str:
        """Store a new book built from validated fields and return its id."""
        with self._lock:
            book_id = self._generate_id()
            book = Book(
                id=book_id,
                name=fields.name,
                year=fields.year,
                author=fields.author,
                summary=fields.summary,
                publisher=fields.publisher,
                page_count=fields.page_count,
                read_page=fields.read_page,
                reading=False,
            )
            self.books.append(book)

            if self._index_of(book_id) is None:
                logger.error("Book %s vanished right after insert", book_id)
                raise BookInsertError("Failed to add book.")

        logger.info("Added book %s (%s)", book_id, fields.name)
        return book_id

    def list_books(self, name: Optional[str] = None, reading: Optional[bool] = None,
                   finished: Optional[bool] = None) -> List[Dict]:
        """Return {id, name, publisher} projections of matching books.

        The name filter is a case-insensitive substring match; the flag
        filters match exactly. Filters left as None are ignored.
        """
        needle = name.lower() if name else None
        with self._lock:
            books = list(self.books)

        if needle:
            books = [b for b in books if needle in b.name.lower()]
        if reading is not None:
            books = [b for b in books if b.reading is reading]
        if finished is not None:
            books = [b for b in books if b.finished is finished]
        return [b.to_summary() for b in books]

    def find_book(self, book_id: str) -> Book:
        with self._lock:
            index = self._index_of(book_id)
            if index is None:
                raise BookNotFoundError(book_id)
            return self.books[index]

    def find_book_by_name(self, name: Optional[str]) -> Book:
        """Return the first book whose name matches exactly."""
        if not name:
            raise BookLookupError("Failed to get book. Please fill in the book name")
        with self._lock:
            for book in self.books:
                if book.name == name:
                    return book
        raise BookNotFoundError(name)

    def update_book(self, book_id: str, fields: BookFields) -> Book:
        """Replace every mutable field of a book. id and insertedAt are kept."""
        with self._lock:
            index = self._index_of(book_id)
            if index is None:
                raise BookNotFoundError(book_id)

            current = self.books[index]
            updated = Book(
                id=current.id,
                name=fields.name,
                year=fields.year,
                author=fields.author,
                summary=fields.summary,
                publisher=fields.publisher,
                page_count=fields.page_count,
                read_page=fields.read_page,
                reading=fields.reading,
                inserted_at=current.inserted_at,
                updated_at=self._next_timestamp(current.updated_at),
            )
            self.books[index] = updated

        logger.info("Updated book %s", book_id)
        return updated

    def remove_book(self, book_id: str) -> None:
        with self._lock:
            index = self._index_of(book_id)
            if index is None:
                raise BookNotFoundError(book_id)
            del self.books[index]
        logger.info("Removed book %s", book_id)

    def clear(self) -> None:
        with self._lock:
            self.books.clear()

    # ------------------------- Utilities ------------------------- #
    def _index_of(self, book_id: str) -> Optional[int]:
        for index, book in enumerate(self.books):
            if book.id == book_id:
                return index
        return None

    def _generate_id(self) -> str:
        for _ in range(MAX_ID_ATTEMPTS):
            candidate = uuid.uuid4().hex[:self.id_length]
            if self._index_of(candidate) is None:
                return candidate
        logger.error("No free book id after %d attempts", MAX_ID_ATTEMPTS)
        raise BookInsertError("Failed to add book.")

    @staticmethod
    def _next_timestamp(previous: str) -> str:
        # Clock adjustments must not move updatedAt backwards
        now = utc_timestamp()
        return now if now >= previous else previous
