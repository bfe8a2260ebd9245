"""requests authentication hook that signs each prepared request."""

import logging
from typing import Optional, Union
from urllib.parse import unquote_plus, urlsplit

from requests.auth import AuthBase
from requests.models import PreparedRequest

from .credentials import Credentials, CredentialsProvider
from .headers import Headers
from .query import QueryParams
from .signer import DEFAULT_API_VERSION, LogSigner, add_standard_headers

logger = logging.getLogger(__name__)


def parse_query(query: str) -> QueryParams:
    """Decode a raw query string, keeping value-less names as ``None``."""
    params = QueryParams()
    for piece in query.split('&'):
        if not piece:
            continue
        name, sep, value = piece.partition('=')
        params.add(unquote_plus(name), unquote_plus(value) if sep else None)
    return params


class LogAuth(AuthBase):
    """Sign requests sent through ``requests`` for the log service.

    A Date header already present on the request is signed as is; otherwise
    the current time is used. The request headers are only updated once
    signing has succeeded.

    Usage::

        session.auth = LogAuth(Credentials('id', 'secret'))
    """

    def __init__(
            self,
            credentials: Union[Credentials, CredentialsProvider],
            api_version: Optional[str] = DEFAULT_API_VERSION
    ) -> None:
        self.signer = LogSigner(credentials)
        self.api_version = api_version

    def __call__(self, r: PreparedRequest) -> PreparedRequest:
        split = urlsplit(r.path_url)
        params = parse_query(split.query)

        signed = Headers(r.headers)
        if self.api_version:
            add_standard_headers(signed, self.api_version)
        self.signer.sign(r.method, split.path or '/', signed, params, r.body)

        for name, value in signed.to_dict().items():
            r.headers[name] = value
        logger.debug('Signed %s %s', r.method, split.path)
        return r
