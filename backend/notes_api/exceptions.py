"""
Notes API — Custom Exception Hierarchy
========================================

What:  Application-specific exceptions for each failure class the API reports.
How:   Each exception carries a client-safe message and an optional context
       dict. Global exception handlers (registered in main.py) turn them into
       JSON error envelopes with the matching HTTP status code.
Who:   Raised by the codec, the note store and the route handlers.

Exception Hierarchy:
    NotesAPIError (base)
    ├── BadRequestError          → 400 Bad Request (malformed JSON input)
    ├── RecordNotFoundError      → 404 Not Found (sentinel "no such note")
    ├── EditConflictError        → 409 Conflict (stale version)
    ├── FailedValidationError    → 422 Unprocessable Entity (field errors)
    ├── DatabaseError            → 500 Internal Server Error
    └── ResponseEncodingError    → 500 Internal Server Error
"""

from typing import Any, Dict, Optional


class NotesAPIError(Exception):
    """
    Base exception for all Notes API errors.

    Attributes:
        message:  Client-facing error description
        context:  Additional debug info (logged, never returned to the client)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class BadRequestError(NotesAPIError):
    """
    Raised when a request body cannot be decoded.

    The message names the specific defect (empty body, unknown key, wrong
    type, oversized body, trailing data) and is returned to the client as-is.
    HTTP: 400 Bad Request
    """

    def __init__(
        self,
        message: str = "the request could not be understood",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class RecordNotFoundError(NotesAPIError):
    """
    Sentinel raised by the note store when no note matches an ID.

    Also raised without a round trip for IDs below 1, which can never exist.
    HTTP: 404 Not Found
    """

    def __init__(
        self,
        resource_id: Optional[int] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if resource_id is not None:
            ctx["resource_id"] = resource_id
        super().__init__(message="record not found", context=ctx)


class EditConflictError(NotesAPIError):
    """
    Raised when an update was based on a version that is no longer current.

    HTTP: 409 Conflict
    """

    def __init__(
        self,
        message: str = "unable to update the record due to an edit conflict, please try again",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class FailedValidationError(NotesAPIError):
    """
    Raised when a well-formed body fails field validation.

    Carries one message per offending field; the response body is
    {"error": {"<field>": "<message>", ...}}.
    HTTP: 422 Unprocessable Entity
    """

    def __init__(
        self,
        errors: Dict[str, str],
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message="validation failed", context=context)
        self.errors = dict(errors)


class DatabaseError(NotesAPIError):
    """
    Raised when a database operation fails for any reason other than
    "no matching row".

    The original driver error is kept in `context` for server-side logging;
    clients only ever see the fixed server-error message.
    HTTP: 500 Internal Server Error
    """

    def __init__(
        self,
        message: str = "A database error occurred.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class ResponseEncodingError(NotesAPIError):
    """
    Raised when a response payload cannot be serialized to JSON.

    Nothing has been written to the client when this is raised.
    HTTP: 500 Internal Server Error
    """

    def __init__(
        self,
        message: str = "response could not be encoded",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
