import logging
import time
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

from fastapi import Body, Depends, FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from starlette.exceptions import HTTPException as StarletteHTTPException

from book import utc_timestamp
from config import configure_logging, settings
from library import (
    BookInsertError,
    BookLookupError,
    BookNotFoundError,
    BookValidationError,
    Library,
)
from utils.validators import (
    ADD_PREFIX,
    UPDATE_PREFIX,
    BookPayloadValidator,
    ValidationReason,
)

logger = logging.getLogger(__name__)


# --- Models ---
class BookPayload(BaseModel):
    """Raw book payload. Types are checked by BookPayloadValidator so that
    every rejected field gets its own message instead of a generic 422."""
    name: Any = Field(default=None, description="Book name (required)")
    year: Any = Field(default=None, description="Publication year")
    author: Any = None
    summary: Any = None
    publisher: Any = None
    pageCount: Any = Field(default=None, description="Total number of pages")
    readPage: Any = Field(default=None, description="Pages read so far, at most pageCount")
    reading: Any = Field(default=None, description="Whether the book is being read (update only)")


class HealthModel(BaseModel):
    status: str
    timestamp: str
    total_books: int


# --- Helpers ---
def success(data: Optional[Dict[str, Any]] = None, message: Optional[str] = None,
            status_code: int = 200) -> JSONResponse:
    body: Dict[str, Any] = {"status": "success"}
    if message:
        body["message"] = message
    if data is not None:
        body["data"] = data
    return JSONResponse(status_code=status_code, content=body)


def fail(message: str, status_code: int) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"status": "fail", "message": message})


def _payload_dict(payload: Optional[BookPayload]) -> Optional[Dict[str, Any]]:
    if payload is None:
        return None
    return payload.model_dump(exclude_unset=True)


def get_library(request: Request) -> Library:
    """Dependency returning the registry owned by the running application."""
    return request.app.state.library


# --- Error handlers ---
def _validation_error_handler(request: Request, exc: BookValidationError) -> JSONResponse:
    return fail(exc.message, 400)


def _lookup_error_handler(request: Request, exc: BookLookupError) -> JSONResponse:
    return fail(str(exc), 400)


def _request_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    if any(error.get("loc", ("",))[0] == "body" for error in errors):
        prefix = UPDATE_PREFIX if request.method == "PUT" else ADD_PREFIX
        return fail(BookValidationError(ValidationReason.MISSING_PAYLOAD, prefix).message, 400)
    fields = ", ".join(str(error.get("loc", ("", "?"))[-1]) for error in errors)
    return fail(f"Invalid query parameter: {fields}", 400)


def _http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    message = str(exc.detail)
    # 400s raised by the framework itself come from an unreadable body
    if exc.status_code == 400 and request.method in ("POST", "PUT"):
        prefix = UPDATE_PREFIX if request.method == "PUT" else ADD_PREFIX
        message = BookValidationError(ValidationReason.MISSING_PAYLOAD, prefix).message
    response = fail(message, exc.status_code)
    if exc.headers:
        response.headers.update(exc.headers)
    return response


@asynccontextmanager
async def lifespan(app: FastAPI):
    # uvicorn only configures its own loggers
    configure_logging()
    yield


# --- Routes ---
def register_routes(app: FastAPI) -> None:

    @app.get("/health", response_model=HealthModel)
    def health(library: Library = Depends(get_library)):
        """Lightweight health endpoint."""
        return HealthModel(status="healthy", timestamp=utc_timestamp(), total_books=len(library))

    @app.post("/books", status_code=201)
    def add_book(payload: Optional[BookPayload] = Body(None),
                 library: Library = Depends(get_library)):
        """Add a new book to the shelf."""
        fields = BookPayloadValidator.parse_new_book(_payload_dict(payload))
        try:
            book_id = library.add_book(fields)
        except BookInsertError:
            return fail("Failed to add book.", 500)
        return success({"bookId": book_id}, "Book added successfully", status_code=201)

    @app.get("/books")
    def get_books(
        name: Optional[str] = Query(None, description="Case-insensitive substring of the name"),
        reading: Optional[bool] = Query(None, description="Only books with this reading flag"),
        finished: Optional[bool] = Query(None, description="Only books with this finished flag"),
        library: Library = Depends(get_library),
    ):
        """List books as {id, name, publisher} projections."""
        books = library.list_books(name=name, reading=reading, finished=finished)
        return success({"books": books})

    # Declared before /books/{book_id} so 'lookup' is not taken as an id
    @app.get("/books/lookup")
    def get_book_by_name(name: Optional[str] = Query(None, description="Exact book name"),
                         library: Library = Depends(get_library)):
        """Get the first book whose name matches exactly."""
        try:
            book = library.find_book_by_name(name)
        except BookNotFoundError:
            return fail("Book not found", 404)
        return success({"book": book.to_dict()})

    @app.get("/books/{book_id}")
    def get_book(book_id: str, library: Library = Depends(get_library)):
        """Get a single book by id."""
        try:
            book = library.find_book(book_id)
        except BookNotFoundError:
            return fail("Book not found", 404)
        return success({"book": book.to_dict()})

    @app.put("/books/{book_id}")
    def update_book(book_id: str, payload: Optional[BookPayload] = Body(None),
                    library: Library = Depends(get_library)):
        """Replace the details of a book. Payload errors win over a missing id."""
        fields = BookPayloadValidator.parse_book_update(_payload_dict(payload))
        try:
            library.update_book(book_id, fields)
        except BookNotFoundError:
            return fail("Failed to update book. Id not found", 404)
        return success(message="Book updated successfully")

    @app.delete("/books/{book_id}")
    def delete_book(book_id: str, library: Library = Depends(get_library)):
        """Remove a book by id."""
        try:
            library.remove_book(book_id)
        except BookNotFoundError:
            return fail("Failed to delete book. Id not found", 404)
        return success(message="Book deleted successfully")


def create_app(library: Optional[Library] = None) -> FastAPI:
    """Build the application around the given registry (a fresh one by default)."""
    app = FastAPI(title=settings.app_name, version=settings.app_version, debug=settings.debug,
                  lifespan=lifespan)
    app.state.library = library if library is not None else Library()

    # --- CORS ---
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # --- Request logging ---
    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start) * 1000
        logger.info("%s %s -> %s (%.1f ms)", request.method, request.url.path,
                    response.status_code, duration_ms)
        return response

    app.add_exception_handler(BookValidationError, _validation_error_handler)
    app.add_exception_handler(BookLookupError, _lookup_error_handler)
    app.add_exception_handler(RequestValidationError, _request_error_handler)
    app.add_exception_handler(StarletteHTTPException, _http_error_handler)

    register_routes(app)
    return app


app = create_app()
