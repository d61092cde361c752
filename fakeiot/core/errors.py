"""
Error types for the fake IoT simulator.
Every failure raised by the client, the simulation driver or the compliance
harness derives from FakeIOTError.
"""

from typing import List, Optional

# Kinds of server rejection, derived from the HTTP status code
BAD_PARAMETER = "bad-parameter"
ACCESS_DENIED = "access-denied"
NOT_FOUND = "not-found"
ALREADY_EXISTS = "already-exists"
COMPARE_FAILED = "compare-failed"
LIMIT_EXCEEDED = "limit-exceeded"
NOT_IMPLEMENTED = "not-implemented"
CONNECTION_PROBLEM = "connection-problem"
UNEXPECTED_STATUS = "unexpected-status"

_STATUS_KINDS = {
    400: BAD_PARAMETER,
    401: ACCESS_DENIED,
    403: ACCESS_DENIED,
    404: NOT_FOUND,
    409: ALREADY_EXISTS,
    412: COMPARE_FAILED,
    429: LIMIT_EXCEEDED,
    501: NOT_IMPLEMENTED,
    502: CONNECTION_PROBLEM,
    503: CONNECTION_PROBLEM,
    504: CONNECTION_PROBLEM,
}


def kind_for_status(status: int) -> str:
    """Map a non-success HTTP status code to a rejection kind."""
    return _STATUS_KINDS.get(status, UNEXPECTED_STATUS)


class FakeIOTError(Exception):
    """Base class for all simulator errors."""


class InvalidConfiguration(FakeIOTError):
    """Configuration is unusable. Raised before any network activity."""


class TransportFailure(FakeIOTError):
    """Connection, TLS or timeout failure while talking to the server."""


class ProtocolViolation(FakeIOTError):
    """The server answered, but the response does not follow the protocol."""


class ServerRejected(FakeIOTError):
    """The server answered with a non-success status code."""

    def __init__(self, kind: str, status: int, message: str = ""):
        self.kind = kind
        self.status = status
        self.message = message
        detail = f": {message}" if message else ""
        super().__init__(f"server rejected request with HTTP {status} ({kind}){detail}")

    @classmethod
    def from_status(cls, status: int, message: str = "") -> "ServerRejected":
        return cls(kind_for_status(status), status, message)


class AggregateFailure(FakeIOTError):
    """One or more compliance scenarios failed."""

    def __init__(self, failures: List[str], report: Optional[object] = None):
        self.failures = list(failures)
        self.report = report
        lines = "\n".join(f"  - {f}" for f in self.failures)
        super().__init__(f"{len(self.failures)} compliance scenario(s) failed:\n{lines}")


def is_bad_parameter(err: Optional[BaseException]) -> bool:
    return isinstance(err, ServerRejected) and err.kind == BAD_PARAMETER


def is_access_denied(err: Optional[BaseException]) -> bool:
    return isinstance(err, ServerRejected) and err.kind == ACCESS_DENIED
