"""
Log Service Request Signing

This package signs HTTP requests for the log service (signature version 1)
without depending on a full client SDK.
"""

from .credentials import (
    Credentials,
    CredentialsProvider,
    EnvironmentCredentialsProvider,
    RefreshableCredentialsProvider,
    StaticCredentialsProvider,
)
from .errors import (
    BodyReadError,
    ClockUnavailableError,
    InvalidCredentialError,
    InvalidHeaderValueError,
    InvalidRequestError,
    SigningError,
)
from .headers import Headers
from .query import QueryParams
from .signer import (
    EMPTY_CONTENT_MD5,
    LogSigner,
    Method,
    add_standard_headers,
    canonical_string,
    sign_v1,
)

__version__ = "0.1.0"
__all__ = [
    "sign_v1", "LogSigner", "Method", "Headers", "QueryParams", "EMPTY_CONTENT_MD5",
    "add_standard_headers", "canonical_string",
    "Credentials", "CredentialsProvider", "StaticCredentialsProvider",
    "EnvironmentCredentialsProvider", "RefreshableCredentialsProvider",
    "SigningError", "InvalidCredentialError", "InvalidHeaderValueError",
    "InvalidRequestError", "BodyReadError", "ClockUnavailableError",
]
