"""Error kinds raised by the elastico core.

Every error is terminal for the current invocation. The CLI maps
``exit_code`` to the process status so that user input errors (1), date
parsing errors (3) and backend errors (4) can be told apart.
"""

from __future__ import annotations

from typing import Optional

EXIT_USER_ERROR = 1
EXIT_DATE_PARSE = 3
EXIT_BACKEND = 4


class ElasticoError(Exception):
    """Base class for all elastico errors."""

    exit_code = EXIT_USER_ERROR

    def __init__(self, message: str, *, value: Optional[str] = None):
        super().__init__(message)
        self.message = message
        # Offending input string or raw backend response
        self.value = value

    def __str__(self) -> str:
        return self.message


class MalformedDuration(ElasticoError):
    """A relative duration token is not ``<N><m|h|d>``."""

    def __init__(self, token: str):
        super().__init__(
            f"Duration '{token}' is not of the form <number><m|h|d>.", value=token
        )


class MalformedTimeExpression(ElasticoError):
    """A time expression matches none of the accepted shapes."""

    def __init__(self, expression: str, message: Optional[str] = None):
        super().__init__(
            message or f"The time string '{expression}' has an unknown format.",
            value=expression,
        )


class DateParseFailure(MalformedTimeExpression):
    """The shape was recognized but the month name or calendar value was not."""

    exit_code = EXIT_DATE_PARSE

    def __init__(self, expression: str, reason: str):
        super().__init__(
            expression,
            f"Cannot parse the date '{expression}' ({reason}), check e.g. month names.",
        )
        self.reason = reason


class EmptyTimeWindow(ElasticoError):
    def __init__(self, expression: str):
        super().__init__(
            f"The time interval '{expression}' is empty, the search would be empty.",
            value=expression,
        )


class ConflictingParameters(ElasticoError):
    def __init__(self, message: str = "Parameters '-l' and '-t' are conflicting and can't be put on the same query."):
        super().__init__(message)


class InvalidLimit(ElasticoError):
    def __init__(self, limit: int, maximum: int):
        super().__init__(
            f"The line limit must be a positive integer not above {maximum:_}, got {limit}.",
            value=str(limit),
        )


class ResultSetTooLarge(ElasticoError):
    """The time window holds at least as many lines as the hard ceiling."""

    def __init__(self, count: int, maximum: int):
        super().__init__(
            f"The number of loglines to get would be {count}. "
            f"Please refine your search criteria, the maximum number of lines allowed in output is {maximum:_}.",
            value=str(count),
        )
        self.count = count


class BackendQueryFailure(ElasticoError):
    """Transport error, non-2xx status or unusable response body."""

    exit_code = EXIT_BACKEND

    def __init__(self, message: str, raw_response: Optional[str] = None, status_code: Optional[int] = None):
        super().__init__(message, value=raw_response)
        self.raw_response = raw_response
        self.status_code = status_code


__all__ = [
    "ElasticoError",
    "MalformedDuration",
    "MalformedTimeExpression",
    "DateParseFailure",
    "EmptyTimeWindow",
    "ConflictingParameters",
    "InvalidLimit",
    "ResultSetTooLarge",
    "BackendQueryFailure",
    "EXIT_USER_ERROR",
    "EXIT_DATE_PARSE",
    "EXIT_BACKEND",
]
