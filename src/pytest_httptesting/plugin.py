"""Pytest plugin for in-process HTTP testing.

This module registers the plugin options, provides the ``http_tester``
fixture and attaches the last HTTP exchange of each tester to the report
of a failing test.
"""

import logging
from typing import Any

import httpx
import pytest
from _pytest import config, nodes, reports, runner
from _pytest.config import argparsing

from .constants import DEFAULT_BASE_URL, ConfigOptions
from .handler import Handler
from .report_formatter import format_request, format_response
from .reporter import PytestFailureReporter
from .tester import HttpTester

logger = logging.getLogger(__name__)

testers_key = pytest.StashKey[list[HttpTester]]()


class HttpTesterFactory:
    """Creates testers bound to the current test.

    Every tester uses the pytest failure reporter and the configured base URL.
    """

    def __init__(self, base_url: str, testers: list[HttpTester]):
        self._base_url = base_url
        self._testers = testers

    def __call__(self, handler: httpx.BaseTransport | Handler) -> HttpTester:
        tester = HttpTester(PytestFailureReporter(), handler, base_url=self._base_url)
        self._testers.append(tester)
        return tester

    def wsgi(self, app: Any) -> HttpTester:
        tester = HttpTester.for_wsgi(PytestFailureReporter(), app, base_url=self._base_url)
        self._testers.append(tester)
        return tester


@pytest.fixture
def http_tester(request: pytest.FixtureRequest) -> HttpTesterFactory:
    """Factory fixture: ``http_tester(handler)`` or ``http_tester.wsgi(app)``."""
    testers: list[HttpTester] = []
    request.node.stash[testers_key] = testers
    return HttpTesterFactory(str(request.config.getini(ConfigOptions.BASE_URL)), testers)


def pytest_addoption(parser: argparsing.Parser) -> None:
    """Add ini options for the plugin.

    - httptesting_base_url: Base URL that relative request URLs are joined onto
    - httptesting_report: Attach the last HTTP exchange to failing test reports
    """
    parser.addini(
        name=ConfigOptions.BASE_URL,
        help="Base URL for requests made by http_tester.",
        type="string",
        default=DEFAULT_BASE_URL,
    )
    parser.addini(
        name=ConfigOptions.REPORT,
        help="Add HTTP request and response sections to failing test reports.",
        type="bool",
        default=True,
    )


def pytest_configure(config: config.Config) -> None:
    """Validate configuration settings.

    Raises:
        ValueError: If the base URL is not an absolute http(s) URL
    """
    base_url = str(config.getini(ConfigOptions.BASE_URL))
    try:
        url = httpx.URL(base_url)
    except httpx.InvalidURL as e:
        raise ValueError(f"base URL is invalid: {str(e)}") from None
    if url.scheme not in ("http", "https") or not url.host:
        raise ValueError("base URL must be an absolute http or https URL")


def _sections(testers: list[HttpTester]) -> list[tuple[str, str]]:
    sections = []
    for index, tester in enumerate(testers):
        suffix = f" #{index}" if len(testers) > 1 else ""
        state = tester.state
        if state.last_request is not None:
            sections.append((f"HTTP Request{suffix}", format_request(state.last_request)))
        if state.response is not None:
            try:
                state.response.read()
            except httpx.StreamError as e:
                logger.warning(f"Cannot read response body for report: {str(e)}")
            sections.append((f"HTTP Response{suffix}", format_response(state.response)))
    return sections


@pytest.hookimpl(hookwrapper=True)
def pytest_runtest_makereport(item: nodes.Item, call: runner.CallInfo[Any]) -> Any:
    """Add the last HTTP exchange of every tester to a failing test report."""
    outcome = yield
    report: reports.TestReport = outcome.get_result()

    if call.when != "call" or not report.failed:
        return
    if not item.config.getini(ConfigOptions.REPORT):
        return

    testers = item.stash.get(testers_key, [])
    report.sections.extend(_sections(testers))
