from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..schemas.backend import ApiError


class TimelyError(Exception):
    """Base class for every error raised by the application."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


# ---- Backend failures (transport, decode, API-reported)


class BackendError(TimelyError):
    """A repository call failed. Callers never see partial results."""


class TransportError(BackendError):
    """The HTTP request could not be completed (connection, timeout, ...)."""


class DecodeError(BackendError):
    """The backend answered but the body was not the JSON we expected."""


class BackendApiError(BackendError):
    """Non-2xx response from the backend.

    ``api_error`` holds the structured error payload when the body parsed as
    one, otherwise ``None``.
    """

    def __init__(self, message: str, *, status_code: int, api_error: ApiError | None = None) -> None:
        if api_error is not None:
            message = f"{message}: {api_error.message}"
        super().__init__(message)
        self.status_code = status_code
        self.api_error = api_error


# ---- User-facing failures, rendered inline by the route handlers


class ValidationError(TimelyError):
    """Invalid user input."""


class AuthError(TimelyError):
    """Bad credentials or an unusable token."""


class InvalidSessionError(AuthError):
    """The auth cookie could not be turned into a user."""


class NotFoundError(TimelyError):
    """A referenced entity does not exist."""


USER_FACING_ERRORS = (ValidationError, AuthError, NotFoundError)
