"""Error types shared by the domain layer and the HTTP layer."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from http import HTTPStatus
from typing import Any

NOT_FOUND = "not_found"
BAD_REQUEST = "bad_request"
INTERNAL_SERVER_ERROR = "internal_server_error"
INTERNAL_SERVER = "internal_server"


class InternalError(Exception):
    """Failure raised by entities, use cases and repositories."""

    def __init__(self, message: str, err: str) -> None:
        super().__init__(message)
        self.message = message
        self.err = err

    def __str__(self) -> str:
        return self.message

    def __repr__(self) -> str:
        return f"InternalError(message={self.message!r}, err={self.err!r})"


@dataclass(frozen=True)
class Cause:
    """One field that failed validation, and why."""

    field: str
    message: str


class RestErr(Exception):
    """Error in the shape returned to HTTP clients."""

    def __init__(
        self,
        message: str,
        err: str,
        code: int,
        causes: list[Cause] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.err = err
        self.code = code
        self.causes = causes

    def __str__(self) -> str:
        return self.message

    def __repr__(self) -> str:
        return (
            f"RestErr(message={self.message!r}, err={self.err!r}, "
            f"code={self.code!r}, causes={self.causes!r})"
        )

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON body for this error."""
        return {
            "message": self.message,
            "err": self.err,
            "code": self.code,
            "causes": None
            if self.causes is None
            else [asdict(cause) for cause in self.causes],
        }


def not_found_error(message: str) -> InternalError:
    return InternalError(message, NOT_FOUND)


def internal_server_error(message: str) -> InternalError:
    return InternalError(message, INTERNAL_SERVER_ERROR)


def bad_request_error(message: str) -> InternalError:
    return InternalError(message, BAD_REQUEST)


def rest_bad_request(message: str, *args: Cause) -> RestErr:
    """Build a 400 error; the extra arguments are the field causes."""
    return RestErr(
        message, BAD_REQUEST, int(HTTPStatus.BAD_REQUEST), list(args) or None
    )


def rest_internal_server(message: str) -> RestErr:
    return RestErr(message, INTERNAL_SERVER, int(HTTPStatus.INTERNAL_SERVER_ERROR))


def rest_not_found(message: str) -> RestErr:
    return RestErr(message, NOT_FOUND, int(HTTPStatus.NOT_FOUND))


def convert_error(internal_error: InternalError) -> RestErr:
    """Map a domain error onto the matching HTTP error."""
    if internal_error.err == BAD_REQUEST:
        return rest_bad_request(str(internal_error))
    if internal_error.err == NOT_FOUND:
        return rest_not_found(str(internal_error))
    return rest_internal_server(str(internal_error))