import logging
from typing import Any

import httpx
from pydantic_core import PydanticSerializationError, to_json

from .exceptions import RequestError
from .state import PendingRequest

logger = logging.getLogger(__name__)


def resolve_url(base_url: httpx.URL, url: str | httpx.URL) -> httpx.URL:
    """Parse ``url`` and join it onto ``base_url`` unless it is absolute already."""
    try:
        parsed = httpx.URL(url)
    except (httpx.InvalidURL, TypeError) as e:
        raise RequestError(f"Invalid URL {url!r}: {str(e)}") from None
    if parsed.is_absolute_url:
        return parsed
    try:
        return base_url.join(parsed)
    except httpx.InvalidURL as e:
        raise RequestError(f"Invalid URL {url!r}: {str(e)}") from None


def encode_json(value: Any) -> bytes:
    try:
        return to_json(value)
    except (PydanticSerializationError, TypeError, ValueError) as e:
        raise RequestError(f"Error encoding request body: {str(e)}") from None


def build_request(pending: PendingRequest) -> httpx.Request:
    """Materialize the pending request. The body stream is consumed and closed."""
    headers = httpx.Headers(pending.headers)
    if pending.cookies:
        pairs = "; ".join(cookie.to_pair() for cookie in pending.cookies)
        existing = headers.get("cookie")
        headers["cookie"] = f"{existing}; {pairs}" if existing else pairs

    content: bytes | None = None
    if pending.body is not None:
        try:
            data = pending.body.read()
        except OSError as e:
            raise RequestError(f"Error reading request body: {str(e)}") from None
        finally:
            pending.body.close()
        content = data.encode() if isinstance(data, str) else data

    return httpx.Request(pending.method, pending.url, headers=headers, content=content)


def execute_request(transport: httpx.BaseTransport, request: httpx.Request) -> httpx.Response:
    try:
        response = transport.handle_request(request)
    except httpx.HTTPError as e:
        raise RequestError(f"HTTP request failed: {str(e)}") from None
    except Exception as e:
        raise RequestError(f"Unexpected error: {str(e)}") from None

    response.request = request
    logger.info(f"{request.method} {request.url} -> {response.status_code}")
    return response
