import httpx
import pytest

from pytest_httptesting import HttpTester


class ReportedFailure(Exception):
    """Raised by RecordingReporter in place of pytest.fail."""


class RecordingReporter:
    Failure = ReportedFailure

    def __init__(self):
        self.messages: list[str] = []

    def fail(self, message: str):
        self.messages.append(message)
        raise ReportedFailure(message)


def request_cookies(request: httpx.Request) -> dict[str, str]:
    pairs = (pair.partition("=") for pair in request.headers.get("cookie", "").split("; ") if pair)
    return {name: value for name, _, value in pairs}


def demo_handler(request: httpx.Request) -> httpx.Response:
    match (request.method, request.url.path):
        case ("GET", "/get"):
            return httpx.Response(200, content=b"Ok")
        case ("POST", "/set-cookie"):
            return httpx.Response(200, content=b"cookie set", headers={"set-cookie": "TestCookie=123"})
        case ("GET", "/assert-cookie"):
            if "TestCookie" not in request_cookies(request):
                return httpx.Response(401)
            return httpx.Response(200)
        case ("GET", "/partitioned"):
            return httpx.Response(200, headers={"set-cookie": "C=v1; Path=/; Secure; Partitioned"})
        case ("GET", "/spaced"):
            return httpx.Response(200, headers={"set-cookie": "C=hello world; Priority=High"})
        case ("GET", "/session"):
            return httpx.Response(200, headers={"set-cookie": "Session=abc; Path=/; HttpOnly; SameSite=Lax"})
        case ("GET", "/value"):
            return httpx.Response(200, json={"value": "123"})
        case ("GET", "/other-value"):
            return httpx.Response(200, json={"value": "456"})
        case ("GET", "/headers"):
            return httpx.Response(200, headers={"x-request-id": "abc123"})
        case ("GET", "/not-json"):
            return httpx.Response(200, content=b"not valid json")
        case (_, "/echo"):
            return httpx.Response(
                200,
                json={
                    "method": request.method,
                    "path": request.url.path,
                    "query": request.url.query.decode(),
                    "body": request.content.decode(),
                    "content_type": request.headers.get("content-type"),
                    "cookies": request_cookies(request),
                    "headers": {k.lower(): v for k, v in request.headers.items() if k.lower().startswith("x-")},
                },
            )
        case _:
            return httpx.Response(404, content=b"not found")


@pytest.fixture
def reporter() -> RecordingReporter:
    return RecordingReporter()


@pytest.fixture
def tester(reporter: RecordingReporter) -> HttpTester:
    return HttpTester(reporter, demo_handler)
