"""Turn an endpoint descriptor and a token into an :class:`httpx.Request`.

:func:`build_request` is pure: it reads the endpoint and the token and
returns a request object. It performs no I/O and never mutates either.
"""

from __future__ import annotations

from typing import Iterable, Optional

import httpx

from spotify_web_api.api.endpoint import Endpoint, HTTPMethod
from spotify_web_api.models import Token

_BODY_METHODS = (HTTPMethod.POST, HTTPMethod.PUT)


def build_request(
    endpoint: Endpoint,
    token: Token,
    api_url: str,
    url: Optional[str] = None,
    extra_params: Optional[Iterable[tuple[str, str]]] = None,
) -> httpx.Request:
    """Build the HTTP request for one call of *endpoint*.

    Args:
        endpoint: The call to make.
        token: Supplies the ``Authorization: Bearer`` header.
        api_url: Base URL the endpoint path is joined onto.
        url: Absolute URL to use verbatim instead of the endpoint's path
            and parameters (a page's ``next`` link).
        extra_params: Pairs appended after the endpoint's own parameters.

    Returns:
        An unsent :class:`httpx.Request`.
    """
    method = HTTPMethod(endpoint.method)
    headers = {
        "Accept": "application/json",
        "Authorization": f"Bearer {token.access_token}",
    }

    if url is not None:
        target = httpx.URL(url)
    else:
        params = endpoint.parameters().items()
        if extra_params:
            params.extend(extra_params)
        target = httpx.URL(api_url).join(endpoint.endpoint())
        if params:
            target = target.copy_merge_params(params)

    body = endpoint.body()
    content: Optional[bytes] = None
    if body is not None:
        content = body.content
        headers["Content-Type"] = body.content_type
    elif method in _BODY_METHODS:
        # The service answers 411 to a body-less POST/PUT without it.
        content = b""
        headers["Content-Length"] = "0"

    return httpx.Request(method.value, target, headers=headers, content=content)
