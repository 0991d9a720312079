"""Formatting utilities for test report generation.

This module provides functions to format HTTP requests and responses
for display in pytest test reports.
"""

import json

import httpx

MAX_BODY_LENGTH = 1000


def _format_body(content: bytes, content_type: str) -> str | None:
    if not content:
        return None

    try:
        text = content.decode("utf-8")
    except UnicodeDecodeError:
        return f"<Binary content: {len(content)} bytes>"

    if "application/json" in content_type:
        try:
            text = json.dumps(json.loads(text), indent=2, ensure_ascii=False)
        except json.JSONDecodeError:
            pass

    if len(text) > MAX_BODY_LENGTH:
        text = text[:MAX_BODY_LENGTH] + "\n... (truncated)"
    return text


def format_request(request: httpx.Request) -> str:
    lines = [f"{request.method} {request.url}"]

    for key, value in request.headers.items():
        lines.append(f"{key}: {value}")

    try:
        content = request.content
    except httpx.RequestNotRead:
        content = b""
    body = _format_body(content, request.headers.get("content-type", ""))
    if body is not None:
        lines.append("")
        lines.append(body)

    return "\n".join(lines)


def format_response(response: httpx.Response) -> str:
    lines = [f"{response.http_version or 'HTTP/1.1'} {response.status_code} {response.reason_phrase}".rstrip()]

    for key, value in response.headers.items():
        lines.append(f"{key}: {value}")

    try:
        content = response.content
    except httpx.ResponseNotRead:
        content = b""
    body = _format_body(content, response.headers.get("content-type", ""))
    if body is not None:
        lines.append("")
        lines.append(body)

    return "\n".join(lines)
