"""Error hierarchy for the attendance client.

Three failure classes reach the workflow:

- TransportError: the backend could not be reached or gave no usable reply.
- BackendError: the backend replied with an envelope whose ``success`` is false.
- ValidationError: a local precondition failed before any request was made.

Workflow components catch all three at the call site and turn them into
user-visible notices; none of them is fatal to the workflow.
"""


class AttendanceError(Exception):
    """Base exception for all attendance client errors."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class TransportError(AttendanceError):
    """No usable response from the backend.

    Examples: connection refused, request timeout, non-JSON body.
    """

    pass


class BackendError(AttendanceError):
    """Backend answered with ``success=false``.

    The message is the one the backend sent, or a generic fallback.
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ValidationError(AttendanceError):
    """Local precondition failure caught before any network call.

    The message is shown to the user as is.
    """

    pass
