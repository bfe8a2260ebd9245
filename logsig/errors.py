"""Exceptions raised while signing a request.

Every error is terminal for the signing attempt that raised it: the caller's
headers are left exactly as they were and the request must not be sent.
"""


class SigningError(Exception):
    """Base class for all signing failures."""


class InvalidCredentialError(SigningError):
    """Access key id or secret is empty or cannot be carried in a header."""


class InvalidHeaderValueError(SigningError):
    """A header value contains line breaks or other control characters."""

    def __init__(self, name: str, message: str = 'contains forbidden control characters') -> None:
        self.name = name
        super().__init__(f"Invalid value for header {name!r}: {message}")


class InvalidRequestError(SigningError):
    """The request descriptor itself is malformed (method, path, names, params)."""


class BodyReadError(SigningError):
    """The request body could not be fully materialized for hashing."""


class ClockUnavailableError(SigningError):
    """No Date header was supplied and the current time could not be read."""
