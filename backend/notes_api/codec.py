"""
Notes API — JSON Codec
========================

What:  Strict request decoding and canonical response encoding.
Who:   Used by every route handler and by the global exception handlers.

Decoding rules (read_json):
    - The body is read incrementally and rejected once it exceeds 1 MiB.
    - Exactly one JSON value is allowed; trailing data is an error.
    - Unknown keys and type mismatches are rejected, naming the key.
    - Every failure becomes a BadRequestError with one of a fixed set of
      messages; parser internals never reach the client.

Encoding rules (write_json):
    - Compact JSON followed by a single "\\n".
    - Caller headers are merged first, then Content-Type is forced to
      application/json.
"""

import json
from typing import Any, Iterable, Mapping, Optional, Tuple, Type, TypeVar, Union

from pydantic import BaseModel, ValidationError
from starlette.requests import Request
from starlette.responses import Response

from notes_api.exceptions import BadRequestError, ResponseEncodingError

MAX_BODY_BYTES = 1_048_576

# Insignificant whitespace per RFC 8259; U+00A0 and friends are not included
JSON_WHITESPACE = " \t\n\r"

ModelT = TypeVar("ModelT", bound=BaseModel)

HeadersArg = Optional[Union[Mapping[str, str], Iterable[Tuple[str, str]]]]


# ══════════════════════════════════════════════════════════════════════════
# Encoding
# ══════════════════════════════════════════════════════════════════════════


def write_json(status_code: int, data: Any, headers: HeadersArg = None) -> Response:
    """
    Build a JSON response.

    Raises:
        ResponseEncodingError: `data` is not JSON-serializable. Raised before
        any response object exists, so nothing is partially written.
    """
    try:
        payload = json.dumps(data, separators=(",", ":"), ensure_ascii=False, allow_nan=False)
    except (TypeError, ValueError) as e:
        raise ResponseEncodingError(context={"error_type": type(e).__name__, "detail": str(e)})

    response = Response(content=(payload + "\n").encode("utf-8"), status_code=status_code)

    if headers is not None:
        items = headers.items() if isinstance(headers, Mapping) else headers
        for key, value in items:
            response.headers.append(key, value)

    response.headers["Content-Type"] = "application/json"
    return response


# ══════════════════════════════════════════════════════════════════════════
# Decoding
# ══════════════════════════════════════════════════════════════════════════


async def read_body(request: Request, limit: int = MAX_BODY_BYTES) -> bytes:
    """Read the request body, failing as soon as more than `limit` bytes arrive."""
    chunks = []
    received = 0
    async for chunk in request.stream():
        received += len(chunk)
        if received > limit:
            raise BadRequestError(f"body must not be larger than {limit} bytes")
        chunks.append(chunk)
    return b"".join(chunks)


def _reject_constant(name: str) -> Any:
    # NaN / Infinity are not JSON
    raise ValueError(name)


def _byte_offset(text: str, pos: int) -> int:
    return len(text[:pos].encode("utf-8"))


def decode_json(raw: bytes) -> Any:
    """
    Parse `raw` as exactly one JSON value.

    Raises:
        BadRequestError: with the message describing the defect.
    """
    try:
        text = raw.decode("utf-8")
    except UnicodeDecodeError:
        raise BadRequestError("body contains badly-formed JSON")

    if not text.strip(JSON_WHITESPACE):
        raise BadRequestError("body must not be empty")

    decoder = json.JSONDecoder(parse_constant=_reject_constant)
    start = len(text) - len(text.lstrip(JSON_WHITESPACE))
    try:
        value, end = decoder.raw_decode(text, start)
    except json.JSONDecodeError as e:
        if e.pos >= len(text):
            # Input ended in the middle of a value
            raise BadRequestError("body contains badly-formed JSON")
        raise BadRequestError(
            f"body contains badly-formed JSON (at character {_byte_offset(text, e.pos)})"
        )
    except ValueError:
        raise BadRequestError("body contains badly-formed JSON")

    if text[end:].strip(JSON_WHITESPACE):
        raise BadRequestError("body must only contain a single JSON value")

    return value


def _translate_validation_error(exc: ValidationError) -> BadRequestError:
    """Map the first pydantic error onto the fixed client messages."""
    first = exc.errors()[0]
    loc = first.get("loc", ())
    field = str(loc[0]) if loc else ""

    if first.get("type") == "extra_forbidden":
        return BadRequestError(f'body contains unknown key "{field}"')
    if field:
        return BadRequestError(f'body contains incorrect JSON type for field "{field}"')
    return BadRequestError("body contains incorrect JSON type")


async def read_json(request: Request, schema: Type[ModelT]) -> ModelT:
    """
    Decode the request body into `schema`.

    The schema is expected to forbid extra keys and validate strictly
    (see STRICT_INPUT in notes_api.schemas.note).
    """
    raw = await read_body(request)
    value = decode_json(raw)
    try:
        return schema.model_validate(value, strict=True)
    except ValidationError as e:
        raise _translate_validation_error(e)
