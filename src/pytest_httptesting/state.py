import io
from dataclasses import dataclass, field
from typing import Any, BinaryIO, Protocol

import httpx

from .exceptions import ValueTypeError
from .models import Cookie


class Readable(Protocol):
    def read(self, size: int = -1, /) -> bytes | str: ...


BodySource = bytes | str | Readable | None


class ClosingReader(io.RawIOBase):
    """Closable adapter around a readable that has no ``close`` of its own."""

    def __init__(self, source: Readable):
        super().__init__()
        self._source = source

    def readable(self) -> bool:
        return True

    def read(self, size: int = -1) -> bytes:
        chunk = self._source.read(size)
        if isinstance(chunk, str):
            return chunk.encode()
        return chunk

    def readall(self) -> bytes:
        return self.read(-1)

    def readinto(self, buffer) -> int:
        chunk = self.read(len(buffer))
        buffer[: len(chunk)] = chunk
        return len(chunk)


def as_body_stream(source: BodySource) -> BinaryIO | None:
    """Turn a body source into a closable binary stream, or None when absent."""
    match source:
        case None:
            return None
        case bytes() | bytearray():
            return io.BytesIO(bytes(source))
        case str():
            return io.BytesIO(source.encode())
        case _ if hasattr(source, "read") and hasattr(source, "close"):
            return source
        case _ if hasattr(source, "read"):
            return ClosingReader(source)
        case _:
            raise TypeError(f"Body must be bytes, str or a readable object, got {type(source).__name__}")


@dataclass
class PendingRequest:
    """The request being built for the current cycle."""

    method: str = "GET"
    url: httpx.URL = field(default_factory=lambda: httpx.URL("/"))
    headers: httpx.Headers = field(default_factory=httpx.Headers)
    cookies: list[Cookie] = field(default_factory=list)
    body: BinaryIO | None = None


@dataclass
class State:
    """State of previous requests, passed to every ``*_with_state`` callable.

    ``response_result`` holds the decoded body of the last structured
    assertion and is reset as soon as a new request starts building.
    ``values`` is a free-form store kept for the whole test.
    """

    request: PendingRequest | None = None
    response: httpx.Response | None = None
    response_result: Any = None
    values: dict[str, Any] = field(default_factory=dict)
    last_request: httpx.Request | None = None

    def get_value(self, key: str, expected_type: type | tuple[type, ...] | None = None) -> Any:
        value = self.values[key]
        if expected_type is not None and not isinstance(value, expected_type):
            raise ValueTypeError(f"Value '{key}' has type {type(value).__name__}, expected {expected_type}")
        return value
