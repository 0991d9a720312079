class HttpTesterError(Exception):
    pass


class RequestError(HttpTesterError):
    pass


class VerificationError(HttpTesterError):
    pass


class NotExecutedError(VerificationError):
    pass


class ValueTypeError(HttpTesterError, TypeError):
    pass


class FatalError(Exception):
    """Raised when a failure reporter returns instead of aborting the test."""
