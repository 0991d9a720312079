import json
import logging
from collections.abc import Callable
from typing import Any

import httpx
import jmespath
import jmespath.exceptions
import jsonschema
from pydantic import PydanticUserError, TypeAdapter, ValidationError

from .exceptions import VerificationError
from .models import Cookie, find_cookie, response_cookies

logger = logging.getLogger(__name__)


def status_line(response: httpx.Response) -> str:
    return f"{response.status_code} {response.reason_phrase}".strip()


def first_header(response: httpx.Response, key: str) -> str:
    values = response.headers.get_list(key)
    return values[0] if values else ""


def read_body(response: httpx.Response) -> bytes:
    """Read the whole response body and close the stream.

    httpx caches the content, so later reads return the same bytes.
    """
    try:
        return response.read()
    except (httpx.StreamError, httpx.HTTPError, OSError) as e:
        raise VerificationError(f"Error reading response body: {str(e)}") from None
    finally:
        response.close()


def verify_status(response: httpx.Response, expected: str) -> None:
    actual = status_line(response)
    if actual != expected:
        raise VerificationError(f"Expected status {expected!r}; got {actual!r}")


def verify_status_code(response: httpx.Response, expected: int) -> None:
    if response.status_code != expected:
        raise VerificationError(f"Expected status code {expected}; got {response.status_code}")


def verify_header(response: httpx.Response, key: str, expected: str) -> None:
    actual = first_header(response, key)
    if actual != expected:
        raise VerificationError(f"Expected header '{key}' to be {expected!r}; got {actual!r}")


def require_cookie(response: httpx.Response, name: str) -> Cookie:
    cookie = find_cookie(response_cookies(response), name)
    if cookie is None:
        raise VerificationError(f"Expected to find cookie {name!r}")
    return cookie


def verify_cookie_value(response: httpx.Response, name: str, expected: str) -> None:
    cookie = require_cookie(response, name)
    if cookie.value != expected:
        raise VerificationError(f"Expected cookie {name!r} to have value {expected!r}; got {cookie.value!r}")


def verify_cookie_deep_equals(response: httpx.Response, expected: Cookie | None) -> None:
    if expected is None:
        raise VerificationError("Expected cookie is None")
    if not expected.name:
        raise VerificationError("Expected cookie cannot have an empty name")
    cookie = require_cookie(response, expected.name)
    if cookie.to_header() != expected.to_header():
        raise VerificationError(f"Expected cookie {expected.to_header()!r}; got {cookie.to_header()!r}")


def verify_body(response: httpx.Response, expected: bytes | str) -> None:
    if isinstance(expected, str):
        expected = expected.encode()
    actual = read_body(response)
    if actual != expected:
        raise VerificationError(f"Expected body {expected!r}; got {actual!r}")


def decode_json(response: httpx.Response, shape: Any = None) -> Any:
    """Decode the JSON response body into ``shape``.

    ``shape`` is anything pydantic can validate against: a model class,
    a dataclass, a TypedDict, a generic alias such as ``list[int]``. With no
    shape the plain JSON value is returned.
    """
    body = read_body(response)
    if shape is None or shape is Any:
        try:
            return json.loads(body)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise VerificationError(f"Error parsing response json: {str(e)}") from None

    try:
        adapter = TypeAdapter(shape)
    except (PydanticUserError, TypeError) as e:
        raise VerificationError(f"Cannot decode response json into {shape!r}: {str(e)}") from None
    try:
        return adapter.validate_json(body)
    except ValidationError as e:
        raise VerificationError(f"Error parsing response json: {str(e)}") from None


def verify_predicate(decoded: Any, predicate: Callable[[Any], bool]) -> None:
    if not predicate(decoded):
        raise VerificationError(f"Response body {decoded!r} did not satisfy the predicate")


def verify_deep_equals(decoded: Any, expected: Any) -> None:
    if decoded != expected:
        raise VerificationError(f"Expected {expected!r}; got {decoded!r}")


def verify_json_schema(response: httpx.Response, schema: dict[str, Any]) -> None:
    response_json = decode_json(response)
    try:
        jsonschema.validate(instance=response_json, schema=schema)
    except jsonschema.ValidationError as e:
        raise VerificationError(f"Body schema validation failed: {e.message}") from None
    except jsonschema.SchemaError as e:
        raise VerificationError(f"Invalid body validation schema: {e.message}") from None


def extract_jmespath(response: httpx.Response, expression: str) -> Any:
    try:
        response_json = json.loads(read_body(response))
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise VerificationError(f"Cannot extract value, response is not valid JSON: {str(e)}") from None

    logger.info(f"JMESPath processing: {expression}")
    try:
        return jmespath.search(expression, response_json)
    except jmespath.exceptions.JMESPathError as e:
        raise VerificationError(f"Error evaluating JMESPath expression {expression!r}: {str(e)}") from None
