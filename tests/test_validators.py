import pytest

from utils.validators import BookPayloadValidator, BookValidationError, ValidationReason


def _reason(payload, update=False):
    parse = BookPayloadValidator.parse_book_update if update else BookPayloadValidator.parse_new_book
    with pytest.raises(BookValidationError) as exc_info:
        parse(payload)
    return exc_info.value.reason


def test_parse_new_book_returns_typed_fields(book_payload):
    fields = BookPayloadValidator.parse_new_book(dict(book_payload, year="1869", pageCount="1225"))
    assert fields.name == "War and Peace"
    assert fields.year == 1869
    assert fields.page_count == 1225
    assert fields.read_page == 100
    assert fields.publisher == "The Russian Messenger"
    assert fields.reading is False


@pytest.mark.parametrize("value, expected", [
    (12, 12),
    (12.0, 12),
    ("12", 12),
    (" 12 ", 12),
    ("12.0", 12),
    ("-3", -3),
    (12.5, None),
    ("", None),
    ("abc", None),
    (None, None),
    (True, None),
    (float("nan"), None),
    ([], None),
])
def test_parse_integer(value, expected):
    assert BookPayloadValidator.parse_integer(value) == expected


def test_parse_count_rejects_negative_numbers():
    assert BookPayloadValidator.parse_count(-1) is None
    assert BookPayloadValidator.parse_count(0) == 0


def test_missing_payload():
    assert _reason(None) is ValidationReason.MISSING_PAYLOAD
    assert _reason(["not", "a", "dict"]) is ValidationReason.MISSING_PAYLOAD


def test_empty_object_is_missing_name():
    assert _reason({}) is ValidationReason.MISSING_NAME


@pytest.mark.parametrize("name", [None, "", "   ", 42])
def test_missing_name(book_payload, name):
    assert _reason(dict(book_payload, name=name)) is ValidationReason.MISSING_NAME


def test_precedence_first_violation_wins(book_payload):
    payload = dict(book_payload, name="", year="x", pageCount="y", readPage="z")
    assert _reason(payload) is ValidationReason.MISSING_NAME

    payload["name"] = "Dune"
    assert _reason(payload) is ValidationReason.INVALID_YEAR

    payload["year"] = 1965
    assert _reason(payload) is ValidationReason.INVALID_PAGE_COUNT

    payload["pageCount"] = 10
    assert _reason(payload) is ValidationReason.INVALID_READ_PAGE

    payload["readPage"] = 11
    assert _reason(payload) is ValidationReason.READ_PAGE_EXCEEDS_PAGE_COUNT


def test_missing_numbers_are_invalid(book_payload):
    payload = dict(book_payload)
    del payload["year"]
    assert _reason(payload) is ValidationReason.INVALID_YEAR


def test_messages_carry_operation_prefix(book_payload):
    with pytest.raises(BookValidationError) as exc_info:
        BookPayloadValidator.parse_new_book(dict(book_payload, readPage=2000))
    assert exc_info.value.message == "Failed to add book. readPage cannot be greater than pageCount"

    with pytest.raises(BookValidationError) as exc_info:
        BookPayloadValidator.parse_book_update(dict(book_payload, name=""))
    assert exc_info.value.message == "Failed to update book. Please fill in the book name"


def test_update_uses_numeric_checks(book_payload):
    assert _reason(dict(book_payload, pageCount="lots"), update=True) is ValidationReason.INVALID_PAGE_COUNT


@pytest.mark.parametrize("value, expected", [
    (None, False),
    (True, True),
    (False, False),
    ("true", True),
    ("0", False),
    (1, True),
])
def test_update_reading_flag(book_payload, value, expected):
    fields = BookPayloadValidator.parse_book_update(dict(book_payload, reading=value))
    assert fields.reading is expected


def test_update_rejects_bad_reading_flag(book_payload):
    assert _reason(dict(book_payload, reading="maybe"), update=True) is ValidationReason.INVALID_READING
    # reading is checked after the page counts
    payload = dict(book_payload, reading="maybe", readPage=5000)
    assert _reason(payload, update=True) is ValidationReason.READ_PAGE_EXCEEDS_PAGE_COUNT
