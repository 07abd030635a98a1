"""Response handling shared by the blocking and async clients.

After an HTTP call completes, :func:`raise_for_error` maps a 3xx/4xx/5xx
response onto :class:`~spotify_web_api.exceptions.ApiError`, and
:func:`decode_response` turns a successful body into the caller's type
with a pydantic :class:`~pydantic.TypeAdapter`.

Error bodies come in a few shapes, all understood here::

    {"error": {"status": 404, "message": "Not found", "reason": "..."}}
    {"error": "invalid_client", "error_description": "..."}
    {"message": "..."}

Anything else (including non-JSON bodies) falls back to a message built
from the status line.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Any, Optional

import httpx
from pydantic import TypeAdapter, ValidationError

from spotify_web_api.exceptions import ApiError, DecodeError


@lru_cache(maxsize=256)
def _adapter(response_type: Any) -> TypeAdapter[Any]:
    return TypeAdapter(response_type)


def _typename(response_type: Any) -> str:
    return getattr(response_type, "__name__", None) or repr(response_type)


def decode_response(response: httpx.Response, response_type: Any = None) -> Any:
    """Decode the body of a successful *response*.

    Args:
        response: A 2xx response.
        response_type: Target type. ``None`` returns the parsed JSON as is.
            An empty body decodes as ``None``, which only types accepting
            ``None`` (e.g. ``Optional[PlaybackState]``) allow.

    Raises:
        DecodeError: If the body is not valid JSON or does not match
            *response_type*. No default value is ever substituted.
    """
    content = response.content
    if response_type is None:
        if not content.strip():
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise DecodeError("JSON", str(exc)) from exc

    adapter = _adapter(response_type)
    try:
        if not content.strip():
            return adapter.validate_python(None)
        return adapter.validate_json(content)
    except ValidationError as exc:
        raise DecodeError(_typename(response_type), str(exc)) from exc


def raise_for_error(response: httpx.Response) -> None:
    """Raise :class:`ApiError` unless *response* is a 2xx.

    Raises:
        ApiError: With the status, the envelope message (or a generic
            one), the envelope reason, and ``Retry-After`` when present.
    """
    if response.is_success:
        return

    try:
        body: Any = response.json()
    except ValueError:
        body = None

    message, code = _error_details(body)
    if not message:
        if response.is_redirect:
            location = response.headers.get("Location", "")
            message = f"moved to {location}" if location else "unexpected redirect"
        else:
            message = response.reason_phrase or "request failed"

    raise ApiError(
        response.status_code,
        message,
        code=code,
        retry_after=_retry_after(response),
        body=body if body is not None else response.text,
    )


def _error_details(body: Any) -> tuple[Optional[str], Optional[str]]:
    if not isinstance(body, dict):
        return None, None
    error = body.get("error")
    if isinstance(error, dict):
        return error.get("message"), error.get("reason")
    if isinstance(error, str):
        return body.get("error_description") or error, error
    message = body.get("message")
    return (message if isinstance(message, str) else None), None


def _retry_after(response: httpx.Response) -> Optional[int]:
    value = response.headers.get("Retry-After")
    if value is None:
        return None
    try:
        return int(value.strip())
    except ValueError:
        return None
