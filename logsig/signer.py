"""
Log service request signing, signature version 1.

The string to sign is built from the method, the Content-MD5, Content-Type
and Date headers, every ``x-log-`` / ``x-acs-`` header and the canonical
resource (path plus sorted query string). It is signed with HMAC-SHA1 keyed
by the access key secret and sent as ``Authorization: LOG <id>:<signature>``.
"""

import base64
import hashlib
import hmac
import logging
from datetime import datetime, timezone
from email.utils import format_datetime
from enum import Enum
from typing import IO, Any, List, MutableMapping, Optional, Union

from .credentials import Credentials, CredentialsProvider, StaticCredentialsProvider
from .errors import (
    BodyReadError,
    ClockUnavailableError,
    InvalidHeaderValueError,
    InvalidRequestError,
)
from .headers import (
    API_VERSION,
    AUTHORIZATION,
    CONTENT_LENGTH,
    CONTENT_MD5,
    CONTENT_TYPE,
    DATE,
    SECURITY_TOKEN,
    SIGNATURE_METHOD,
    SIGNED_PREFIXES,
    VALUE_SEPARATOR,
    Headers,
    validate_header_name,
    validate_header_value,
)
from .query import QueryInput, QueryParams

logger = logging.getLogger(__name__)

SCHEME = 'LOG'
DEFAULT_API_VERSION = '0.6.0'
SIGNATURE_METHOD_HMAC_SHA1 = 'hmac-sha1'
EMPTY_CONTENT_MD5 = hashlib.md5(b'').hexdigest().upper()

Body = Union[bytes, bytearray, memoryview, str, IO[bytes]]
HeaderTarget = Union[Headers, MutableMapping[str, str]]


class Method(str, Enum):
    GET = 'GET'
    POST = 'POST'
    PUT = 'PUT'
    DELETE = 'DELETE'
    HEAD = 'HEAD'
    OPTIONS = 'OPTIONS'
    PATCH = 'PATCH'


def normalize_method(method: Union[Method, str]) -> str:
    if isinstance(method, Method):
        return method.value
    try:
        return Method(str(method).upper()).value
    except ValueError as e:
        raise InvalidRequestError(f"Unsupported HTTP method: {method!r}") from e


def http_date(when: Optional[datetime] = None) -> str:
    """Format ``when`` (default: now) as an RFC 1123 date in GMT."""
    if when is None:
        try:
            when = datetime.now(timezone.utc)
        except (OSError, OverflowError, ValueError) as e:
            raise ClockUnavailableError('Unable to read the current time for the Date header') from e
    elif when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)
    return format_datetime(when.astimezone(timezone.utc), usegmt=True)


def read_body(body: Optional[Body]) -> Optional[bytes]:
    """Materialize ``body`` as bytes, rewinding seekable streams afterwards.

    ``None`` stays ``None`` so that an absent body can be told apart from an
    empty one when setting Content-Length.
    """
    if body is None:
        return None
    if isinstance(body, (bytes, bytearray, memoryview)):
        return bytes(body)
    if isinstance(body, str):
        return body.encode('utf-8')

    read = getattr(body, 'read', None)
    if read is None:
        raise BodyReadError(f"Unsupported body type: {type(body).__name__}")
    seekable = getattr(body, 'seekable', None)
    try:
        if seekable is None or not seekable():
            raise BodyReadError('Streaming body is not seekable; buffer it before signing')
        start = body.tell()
        data = read()
        body.seek(start)
    except (OSError, ValueError) as e:
        raise BodyReadError(f"Unable to read request body: {e}") from e
    if not isinstance(data, (bytes, bytearray)):
        raise BodyReadError(f"Body stream returned {type(data).__name__}, expected bytes")
    return bytes(data)


def content_md5(data: Optional[bytes]) -> str:
    """Upper-case hex MD5 of ``data``; absent and empty bodies share one value."""
    if not data:
        return EMPTY_CONTENT_MD5
    return hashlib.md5(data).hexdigest().upper()


def canonical_headers(headers: Headers) -> List[str]:
    """``name:value`` lines for every prefixed header, sorted by name."""
    lines = []
    for name, values in sorted(headers.grouped(), key=lambda item: item[0]):
        if not name.startswith(SIGNED_PREFIXES):
            continue
        lines.append(f"{name}:{VALUE_SEPARATOR.join(v.strip() for v in values)}")
    return lines


def canonical_resource(path: str, query_params: Optional[QueryInput] = None) -> str:
    params = query_params if isinstance(query_params, QueryParams) else QueryParams(query_params)
    if not params:
        return path
    return f"{path}?{params.canonical()}"


def canonical_string(
        method: Union[Method, str],
        path: str,
        headers: Headers,
        query_params: Optional[QueryInput] = None
) -> str:
    lines = [
        normalize_method(method),
        headers.get(CONTENT_MD5, ''),
        headers.get(CONTENT_TYPE, ''),
        headers.get(DATE, ''),
    ]
    lines.extend(canonical_headers(headers))
    lines.append(canonical_resource(path, query_params))
    return '\n'.join(lines)


def compute_signature(access_key_secret: str, message: str) -> str:
    digest = hmac.new(access_key_secret.encode('utf-8'), message.encode('utf-8'), hashlib.sha1).digest()
    return base64.b64encode(digest).decode('ascii')


def add_standard_headers(headers: HeaderTarget, api_version: str = DEFAULT_API_VERSION) -> None:
    """Stamp the API version and signature method headers the service expects.

    Both are ``x-log-`` headers and therefore part of the string to sign, so
    this must run before signing.
    """
    if not _has_header(headers, API_VERSION):
        _store(headers, API_VERSION, api_version)
    _store(headers, SIGNATURE_METHOD, SIGNATURE_METHOD_HMAC_SHA1)


def sign_v1(
        access_key_id: str,
        access_key_secret: str,
        security_token: Optional[str],
        method: Union[Method, str],
        path: str,
        headers: HeaderTarget,
        query_params: Optional[QueryInput] = None,
        body: Optional[Body] = None
) -> str:
    """Sign a request and add the resulting headers to ``headers`` in place.

    Sets Content-MD5 (always), Content-Length (when a body is given), Date
    (unless already present), x-acs-security-token (when a token is given) and
    Authorization. Returns the Authorization value.

    Nothing is written to ``headers`` unless every step succeeds; on failure
    a ``SigningError`` subclass is raised and ``headers`` is unchanged.
    """
    credentials = Credentials(access_key_id, access_key_secret, security_token)
    return _sign(credentials, method, path, headers, query_params, body)


class LogSigner:
    """Signs requests with a credential snapshot taken on every call."""

    def __init__(self, credentials: Union[Credentials, CredentialsProvider]) -> None:
        if isinstance(credentials, Credentials):
            credentials = StaticCredentialsProvider(credentials)
        self.provider = credentials

    def sign(
            self,
            method: Union[Method, str],
            path: str,
            headers: HeaderTarget,
            query_params: Optional[QueryInput] = None,
            body: Optional[Body] = None
    ) -> str:
        return _sign(self.provider.get_credentials(), method, path, headers, query_params, body)

    def create_headers(
            self,
            method: Union[Method, str],
            path: str,
            headers: Optional[Any] = None,
            query_params: Optional[QueryInput] = None,
            body: Optional[Body] = None
    ) -> Headers:
        """Return a signed copy of ``headers``, leaving the original untouched."""
        signed = Headers(headers)
        self.sign(method, path, signed, query_params, body)
        return signed


def _sign(
        credentials: Credentials,
        method: Union[Method, str],
        path: str,
        headers: HeaderTarget,
        query_params: Optional[QueryInput],
        body: Optional[Body]
) -> str:
    credentials.validate()
    verb = normalize_method(method)
    _validate_path(path)
    params = query_params if isinstance(query_params, QueryParams) else QueryParams(query_params)

    working = Headers(headers)
    for name, value in working.items():
        validate_header_name(name)
        validate_header_value(name, value)

    data = read_body(body)

    additions = Headers()
    additions.set(CONTENT_MD5, content_md5(data))
    if data is not None:
        additions.set(CONTENT_LENGTH, str(len(data)))
    if DATE not in working:
        additions.set(DATE, http_date())
    if credentials.security_token is not None:
        additions.set(SECURITY_TOKEN, credentials.security_token)
    for name, value in additions.items():
        working.set(name, value)

    message = canonical_string(verb, path, working, params)
    logger.debug('Make signature: access_key_id: %s, string to be signed = %r',
                 credentials.access_key_id, message)

    signature = compute_signature(credentials.access_key_secret, message)
    authorization = f"{SCHEME} {credentials.access_key_id}:{signature}"
    additions.set(AUTHORIZATION, authorization)

    for name, value in additions.items():
        _store(headers, name, value)
    return authorization


def _validate_path(path: str) -> None:
    if not isinstance(path, str) or not path.startswith('/'):
        raise InvalidRequestError(f"Request path must start with '/': {path!r}")
    try:
        validate_header_value('path', path)
    except InvalidHeaderValueError as e:
        raise InvalidRequestError(f"Request path contains control characters: {path!r}") from e


def _has_header(headers: HeaderTarget, name: str) -> bool:
    if isinstance(headers, Headers):
        return name in headers
    return any(key.lower() == name.lower() for key in headers)


def _store(headers: HeaderTarget, name: str, value: str) -> None:
    """Replace ``name`` in ``headers`` regardless of the casing already used."""
    if isinstance(headers, Headers):
        headers.set(name, value)
        return
    for key in [k for k in headers if k.lower() == name.lower() and k != name]:
        del headers[key]
    headers[name] = value
