from collections.abc import Callable
from typing import Any

import httpx

Handler = Callable[[httpx.Request], httpx.Response]


def as_transport(handler: httpx.BaseTransport | Handler) -> httpx.BaseTransport:
    """Adapt an in-process handler to an httpx transport.

    Transports are used as-is. A plain callable taking an ``httpx.Request``
    and returning an ``httpx.Response`` is wrapped in ``httpx.MockTransport``.
    """
    if isinstance(handler, httpx.BaseTransport):
        return handler
    if callable(handler):
        return httpx.MockTransport(handler)
    raise TypeError(f"Handler must be an httpx transport or a callable, got {type(handler).__name__}")


def wsgi_transport(app: Any) -> httpx.BaseTransport:
    return httpx.WSGITransport(app=app)
