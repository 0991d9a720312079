"""Failure reporters used by HttpTester to stop the current test."""

from typing import NoReturn, Protocol, runtime_checkable

import pytest


@runtime_checkable
class FailureReporter(Protocol):
    """Anything that can abort the current test with a message.

    Implementations must never return normally from ``fail``.
    """

    def fail(self, message: str) -> NoReturn: ...


class PytestFailureReporter:
    """Reports failures through ``pytest.fail`` without a Python traceback."""

    def fail(self, message: str) -> NoReturn:
        pytest.fail(reason=message, pytrace=False)
