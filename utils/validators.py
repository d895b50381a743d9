import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

logger = logging.getLogger(__name__)

ADD_PREFIX = "Failed to add book."
UPDATE_PREFIX = "Failed to update book."


class ValidationReason(Enum):
    """Reasons a book payload is rejected, in the order they are checked."""
    MISSING_PAYLOAD = "Please fill in the book data correctly"
    MISSING_NAME = "Please fill in the book name"
    INVALID_YEAR = "year must be a number"
    INVALID_PAGE_COUNT = "pageCount must be a non-negative number"
    INVALID_READ_PAGE = "readPage must be a non-negative number"
    READ_PAGE_EXCEEDS_PAGE_COUNT = "readPage cannot be greater than pageCount"
    INVALID_READING = "reading must be a boolean"


class BookValidationError(ValueError):
    """Raised when a book payload fails validation."""

    def __init__(self, reason: ValidationReason, prefix: str = ADD_PREFIX) -> None:
        self.reason = reason
        self.message = f"{prefix} {reason.value}"
        super().__init__(self.message)


@dataclass
class BookFields:
    """Validated, typed book fields ready for the registry."""
    name: str
    year: int
    page_count: int
    read_page: int
    author: Any = None
    summary: Any = None
    publisher: Any = None
    reading: bool = False


class BookPayloadValidator:
    """Parses raw JSON payloads into BookFields.

    Checks run in a fixed order and the first failing one wins, so clients
    always see the same message for the same payload.
    """

    @staticmethod
    def parse_integer(value: Any) -> Optional[int]:
        """Return value as an int, or None if it is not an integral number.

        Numeric strings are accepted ("12", " 12 ", "12.0"); booleans, blank
        strings and fractional or non-finite numbers are not.
        """
        if value is None or isinstance(value, bool):
            return None
        if isinstance(value, int):
            return value
        if isinstance(value, float):
            if math.isfinite(value) and value.is_integer():
                return int(value)
            return None
        if isinstance(value, str):
            text = value.strip()
            if not text:
                return None
            try:
                return int(text)
            except ValueError:
                pass
            try:
                return BookPayloadValidator.parse_integer(float(text))
            except ValueError:
                return None
        return None

    @staticmethod
    def parse_count(value: Any) -> Optional[int]:
        number = BookPayloadValidator.parse_integer(value)
        if number is None or number < 0:
            return None
        return number

    @staticmethod
    def parse_flag(value: Any) -> Optional[bool]:
        if value is None:
            return False
        if isinstance(value, bool):
            return value
        if isinstance(value, int) and value in (0, 1):
            return bool(value)
        if isinstance(value, str):
            text = value.strip().lower()
            if text in ("true", "1"):
                return True
            if text in ("false", "0"):
                return False
        return None

    @staticmethod
    def _is_valid_name(name: Any) -> bool:
        return isinstance(name, str) and bool(name.strip())

    @classmethod
    def _parse(cls, payload: Any, prefix: str) -> BookFields:
        def fail(reason: ValidationReason) -> BookValidationError:
            logger.debug("Rejected book payload: %s", reason.name)
            return BookValidationError(reason, prefix)

        if not isinstance(payload, dict):
            raise fail(ValidationReason.MISSING_PAYLOAD)

        name = payload.get("name")
        if not cls._is_valid_name(name):
            raise fail(ValidationReason.MISSING_NAME)

        year = cls.parse_integer(payload.get("year"))
        if year is None:
            raise fail(ValidationReason.INVALID_YEAR)

        page_count = cls.parse_count(payload.get("pageCount"))
        if page_count is None:
            raise fail(ValidationReason.INVALID_PAGE_COUNT)

        read_page = cls.parse_count(payload.get("readPage"))
        if read_page is None:
            raise fail(ValidationReason.INVALID_READ_PAGE)

        if read_page > page_count:
            raise fail(ValidationReason.READ_PAGE_EXCEEDS_PAGE_COUNT)

        return BookFields(
            name=name,
            year=year,
            page_count=page_count,
            read_page=read_page,
            author=payload.get("author"),
            summary=payload.get("summary"),
            publisher=payload.get("publisher"),
        )

    @classmethod
    def parse_new_book(cls, payload: Any) -> BookFields:
        """Validate a creation payload. New books are never marked as reading."""
        return cls._parse(payload, ADD_PREFIX)

    @classmethod
    def parse_book_update(cls, payload: Any) -> BookFields:
        """Validate an update payload, including the caller-supplied reading flag."""
        fields = cls._parse(payload, UPDATE_PREFIX)
        reading = cls.parse_flag(payload.get("reading"))
        if reading is None:
            logger.debug("Rejected book payload: %s", ValidationReason.INVALID_READING.name)
            raise BookValidationError(ValidationReason.INVALID_READING, UPDATE_PREFIX)
        fields.reading = reading
        return fields
