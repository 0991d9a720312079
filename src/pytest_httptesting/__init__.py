from .exceptions import FatalError, HttpTesterError, NotExecutedError, RequestError, ValueTypeError, VerificationError
from .models import Cookie, parse_set_cookie
from .reporter import FailureReporter, PytestFailureReporter
from .state import PendingRequest, State
from .tester import HttpTester

__all__ = [
    "Cookie",
    "FailureReporter",
    "FatalError",
    "HttpTester",
    "HttpTesterError",
    "NotExecutedError",
    "PendingRequest",
    "PytestFailureReporter",
    "RequestError",
    "State",
    "ValueTypeError",
    "VerificationError",
    "parse_set_cookie",
]
