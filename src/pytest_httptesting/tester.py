"""Fluent tester for chaining HTTP calls against an in-process handler.

A tester is created for a single test. Requests are built with the builder
methods, sent with ``execute`` and checked with the ``assert_*`` methods.
Cookies set by a response are sent with the next request automatically.
Every failure is reported through the failure reporter, which stops the test.
"""

import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import Any, NoReturn, Self

import httpx

from .constants import DEFAULT_BASE_URL
from .exceptions import FatalError, HttpTesterError, NotExecutedError
from .handler import Handler, as_transport, wsgi_transport
from .models import Cookie, response_cookies
from .reporter import FailureReporter
from .request import build_request, encode_json, execute_request, resolve_url
from .response import (
    decode_json,
    extract_jmespath,
    require_cookie,
    verify_body,
    verify_cookie_deep_equals,
    verify_cookie_value,
    verify_deep_equals,
    verify_header,
    verify_json_schema,
    verify_predicate,
    verify_status,
    verify_status_code,
)
from .state import BodySource, PendingRequest, State, as_body_stream

logger = logging.getLogger(__name__)


class HttpTester:
    """Builder for chained HTTP requests. Create a new one for every test."""

    def __init__(
        self,
        reporter: FailureReporter,
        handler: httpx.BaseTransport | Handler,
        *,
        base_url: str | httpx.URL = DEFAULT_BASE_URL,
    ) -> None:
        self._reporter = reporter
        self._transport = as_transport(handler)
        self._base_url = httpx.URL(base_url)
        self._state = State()
        self._executed = False

    @classmethod
    def for_wsgi(cls, reporter: FailureReporter, app: Any, *, base_url: str | httpx.URL = DEFAULT_BASE_URL) -> Self:
        """Create a tester that serves requests with a WSGI application."""
        return cls(reporter, wsgi_transport(app), base_url=base_url)

    @property
    def state(self) -> State:
        return self._state

    @property
    def executed(self) -> bool:
        return self._executed

    @property
    def base_url(self) -> httpx.URL:
        return self._base_url

    # failure handling

    def _fail(self, message: str) -> NoReturn:
        logger.error(message)
        self._reporter.fail(message)
        raise FatalError(message)

    @contextmanager
    def _reported(self) -> Iterator[None]:
        try:
            yield
        except HttpTesterError as e:
            self._fail(str(e))

    def _pending(self) -> PendingRequest:
        """Current request being built. Touching it starts a new cycle."""
        self._executed = False
        self._state.response_result = None
        if self._state.request is None:
            self._state.request = PendingRequest(url=self._base_url.join("/"))
        return self._state.request

    # request builder

    def new_request(self, method: str, url: str | httpx.URL, body: BodySource = None) -> Self:
        request = self._pending()
        request.method = method.upper()
        with self._reported():
            request.url = resolve_url(self._base_url, url)
        return self.set_body(body)

    def new_request_with_state(self, f: Callable[[State], tuple[str, str, BodySource]]) -> Self:
        return self.new_request(*f(self._state))

    def get(self, url: str | httpx.URL) -> Self:
        return self.new_request("GET", url)

    def get_with_state(self, f: Callable[[State], str]) -> Self:
        return self.get(f(self._state))

    def post(self, url: str | httpx.URL, body: BodySource = None) -> Self:
        return self.new_request("POST", url, body)

    def post_with_state(self, f: Callable[[State], tuple[str, BodySource]]) -> Self:
        return self.post(*f(self._state))

    def put(self, url: str | httpx.URL, body: BodySource = None) -> Self:
        return self.new_request("PUT", url, body)

    def put_with_state(self, f: Callable[[State], tuple[str, BodySource]]) -> Self:
        return self.put(*f(self._state))

    def patch(self, url: str | httpx.URL, body: BodySource = None) -> Self:
        return self.new_request("PATCH", url, body)

    def patch_with_state(self, f: Callable[[State], tuple[str, BodySource]]) -> Self:
        return self.patch(*f(self._state))

    def delete(self, url: str | httpx.URL) -> Self:
        return self.new_request("DELETE", url)

    def delete_with_state(self, f: Callable[[State], str]) -> Self:
        return self.delete(f(self._state))

    def set_body(self, body: BodySource) -> Self:
        request = self._pending()
        try:
            request.body = as_body_stream(body)
        except TypeError as e:
            self._fail(str(e))
        return self

    def set_body_with_state(self, f: Callable[[State], BodySource]) -> Self:
        return self.set_body(f(self._state))

    def set_json_body(self, value: Any) -> Self:
        """Encode ``value`` as JSON and use it as the request body."""
        with self._reported():
            content = encode_json(value)
        self.set_body(content)
        self._pending().headers["content-type"] = "application/json"
        return self

    def add_header(self, key: str, value: str) -> Self:
        self._pending().headers[key] = value
        return self

    def add_header_with_state(self, f: Callable[[State], tuple[str, str]]) -> Self:
        return self.add_header(*f(self._state))

    def add_cookie(self, cookie: Cookie | tuple[str, str]) -> Self:
        """Add a cookie to the current request only.

        Cookies are carried to later requests only when a response sets them.
        """
        if isinstance(cookie, tuple):
            name, value = cookie
            cookie = Cookie(name=name, value=value)
        self._pending().cookies.append(cookie)
        return self

    def add_cookie_with_state(self, f: Callable[[State], Cookie | tuple[str, str]]) -> Self:
        return self.add_cookie(f(self._state))

    def set_value(self, key: str, value: Any) -> Self:
        self._state.values[key] = value
        logger.info(f"Saved {key} = {value!r}")
        return self

    def set_value_with_state(self, f: Callable[[State], tuple[str, Any]]) -> Self:
        return self.set_value(*f(self._state))

    # execution

    def execute(self) -> Self:
        """Send the current request and store its response.

        Cookies set by the previous response are added to the request first.
        """
        pending = self._pending()
        if self._state.response is not None:
            forwarded = response_cookies(self._state.response)
            for cookie in forwarded:
                logger.debug(f"Forwarding cookie {cookie.name}")
            pending.cookies.extend(forwarded)

        with self._reported():
            request = build_request(pending)
            response = execute_request(self._transport, request)

        self._executed = True
        self._state.response = response
        self._state.last_request = request
        self._state.request = None
        return self

    # assertions

    def _response(self) -> httpx.Response:
        if not self._executed or self._state.response is None:
            pending = self._state.request
            url = pending.url if pending is not None else self._base_url.join("/")
            with self._reported():
                raise NotExecutedError(f"Request '{url}' was not executed")
        return self._state.response

    def assert_status(self, expected: str) -> Self:
        response = self._response()
        with self._reported():
            verify_status(response, expected)
        return self

    def assert_status_code(self, expected: int) -> Self:
        response = self._response()
        with self._reported():
            verify_status_code(response, expected)
        return self

    def assert_header(self, key: str, expected: str) -> Self:
        response = self._response()
        with self._reported():
            verify_header(response, key, expected)
        return self

    def assert_cookie_exists(self, name: str) -> Self:
        response = self._response()
        with self._reported():
            require_cookie(response, name)
        return self

    def assert_cookie_value(self, name: str, expected: str) -> Self:
        response = self._response()
        with self._reported():
            verify_cookie_value(response, name, expected)
        return self

    def assert_cookie_deep_equals(self, expected: Cookie | None) -> Self:
        response = self._response()
        with self._reported():
            verify_cookie_deep_equals(response, expected)
        return self

    def assert_body(self, expected: bytes | str) -> Self:
        response = self._response()
        with self._reported():
            verify_body(response, expected)
        return self

    def assert_struct(self, shape: Any, predicate: Callable[[Any], bool]) -> Self:
        """Decode the JSON body into ``shape`` and check it with ``predicate``.

        The decoded value is kept in ``state.response_result`` even when the
        predicate fails.
        """
        response = self._response()
        with self._reported():
            decoded = decode_json(response, shape)
            self._state.response_result = decoded
            verify_predicate(decoded, predicate)
        return self

    def assert_struct_deep_equals(self, shape: Any, expected: Any) -> Self:
        response = self._response()
        with self._reported():
            decoded = decode_json(response, shape)
            self._state.response_result = decoded
            verify_deep_equals(decoded, expected)
        return self

    def assert_json_schema(self, schema: dict[str, Any]) -> Self:
        response = self._response()
        with self._reported():
            verify_json_schema(response, schema)
        return self

    def save_jmespath(self, key: str, expression: str) -> Self:
        """Store the result of a JMESPath expression over the JSON body in ``values``."""
        response = self._response()
        with self._reported():
            value = extract_jmespath(response, expression)
        return self.set_value(key, value)

    def __repr__(self) -> str:
        return f"<HttpTester {self._base_url} executed={self._executed}>"
