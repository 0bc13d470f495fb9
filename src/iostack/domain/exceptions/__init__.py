"""Client exceptions."""

from typing import Any


class IOStackError(Exception):
    """Base exception for all IOStack client errors."""

    # Hey future me, `reported` is how we avoid spamming error handlers! An error gets
    # reported where it happens (e.g. HTTP 401 inside a token call) and then bubbles up
    # through send_message/start_session, which would report it AGAIN. ErrorReporter
    # flips this flag on first report and skips flagged errors afterwards.
    # `reportable = False` on a subclass means "never route to handlers, just raise".
    reportable: bool = True

    def __init__(self, message: str, *args: Any) -> None:
        super().__init__(message, *args)
        self.message = message
        self.reported = False


class PlatformRequestError(IOStackError):
    """The platform answered with a non-2xx status, or the request never completed."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class RequestTimeoutError(IOStackError, TimeoutError):
    """A platform call ran past its deadline and was cancelled."""

    def __init__(self, message: str, timeout: float | None = None) -> None:
        super().__init__(message)
        self.timeout = timeout


class StreamProtocolError(IOStackError):
    """The server sent an `error` packet in the middle of a response stream.

    The packet's error text has already been handed to the error handlers by the
    time this is raised.
    """

    pass


class StreamDecodeError(IOStackError):
    """A stream frame could not be decoded or one of its handlers failed."""

    pass


class TokenClaimError(IOStackError):
    """A token could not be decoded or is missing its `exp` claim.

    This is a protocol/programming error, not a business error: it is raised
    straight to the caller and never routed through the error handlers.
    """

    reportable = False
