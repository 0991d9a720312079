from datetime import UTC, datetime
from email.utils import format_datetime, parsedate_to_datetime
from typing import Literal

import httpx
from pydantic import BaseModel, ConfigDict, Field


class Cookie(BaseModel):
    name: str = Field(description="Cookie name.")
    value: str = Field(default="", description="Cookie value.")
    path: str | None = Field(default=None, description="Path attribute.")
    domain: str | None = Field(default=None, description="Domain attribute.")
    expires: datetime | None = Field(default=None, description="Expires attribute.")
    max_age: int | None = Field(default=None, description="Max-Age attribute in seconds.")
    secure: bool = Field(default=False)
    http_only: bool = Field(default=False)
    same_site: Literal["Strict", "Lax", "None"] | None = Field(default=None)
    model_config = ConfigDict(extra="forbid")

    def to_pair(self) -> str:
        return f"{self.name}={self.value}"

    def to_header(self) -> str:
        """Serialize the cookie the way it appears in a Set-Cookie header."""
        parts = [self.to_pair()]
        if self.path:
            parts.append(f"Path={self.path}")
        if self.domain:
            parts.append(f"Domain={self.domain.lstrip('.')}")
        if self.expires is not None:
            expires = self.expires if self.expires.tzinfo else self.expires.replace(tzinfo=UTC)
            parts.append(f"Expires={format_datetime(expires.astimezone(UTC), usegmt=True)}")
        if self.max_age is not None:
            parts.append(f"Max-Age={max(self.max_age, 0)}")
        if self.http_only:
            parts.append("HttpOnly")
        if self.secure:
            parts.append("Secure")
        if self.same_site:
            parts.append(f"SameSite={self.same_site}")
        return "; ".join(parts)

    def __str__(self) -> str:
        return self.to_header()


def _parse_expires(raw: str) -> datetime | None:
    if not raw:
        return None
    try:
        return parsedate_to_datetime(raw)
    except (TypeError, ValueError):
        return None


def _parse_max_age(raw: str) -> int | None:
    if raw == "":
        return None
    try:
        return int(raw)
    except ValueError:
        return None


def _parse_same_site(raw: str) -> Literal["Strict", "Lax", "None"] | None:
    match raw.strip().lower():
        case "strict":
            return "Strict"
        case "lax":
            return "Lax"
        case "none":
            return "None"
        case _:
            return None


_TOKEN_CHARS = frozenset("!#$%&'*+-.^_`|~0123456789abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ")


def _is_token(name: str) -> bool:
    return bool(name) and all(char in _TOKEN_CHARS for char in name)


def _unquote(value: str) -> str:
    if len(value) > 1 and value[0] == value[-1] == '"':
        return value[1:-1]
    return value


def parse_set_cookie(header: str) -> Cookie | None:
    """Parse a single Set-Cookie header value.

    Unknown attributes and unparsable attribute values are skipped. Only a
    missing ``=`` or an invalid cookie name make the header malformed, in
    which case None is returned.
    """
    pair, *attributes = header.split(";")
    name, sep, value = pair.partition("=")
    name = name.strip()
    if not sep or not _is_token(name):
        return None

    cookie = Cookie(name=name, value=_unquote(value.strip()))
    for attribute in attributes:
        key, _, raw = attribute.partition("=")
        raw = _unquote(raw.strip())
        match key.strip().lower():
            case "path":
                cookie.path = raw or None
            case "domain":
                cookie.domain = raw or None
            case "expires":
                cookie.expires = _parse_expires(raw)
            case "max-age":
                cookie.max_age = _parse_max_age(raw)
            case "secure":
                cookie.secure = True
            case "httponly":
                cookie.http_only = True
            case "samesite":
                cookie.same_site = _parse_same_site(raw)
    return cookie


def response_cookies(response: httpx.Response) -> list[Cookie]:
    """Cookies set by a response, in header order."""
    cookies = []
    for header in response.headers.get_list("set-cookie"):
        cookie = parse_set_cookie(header)
        if cookie is not None:
            cookies.append(cookie)
    return cookies


def find_cookie(cookies: list[Cookie], name: str) -> Cookie | None:
    for cookie in cookies:
        if cookie.name == name:
            return cookie
    return None
