"""
Credentials and credential providers.

A ``Credentials`` object is an immutable snapshot of the access key pair and
optional security token. Providers hand out a whole snapshot per call, so a
rotation that happens while a request is being signed can never mix the
secret of one snapshot with the token of another.
"""

import logging
import os
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Optional

from .errors import InvalidCredentialError, InvalidHeaderValueError
from .headers import validate_header_value

logger = logging.getLogger(__name__)

ENV_PREFIX = 'ALIYUN_LOG_'


@dataclass(frozen=True)
class Credentials:
    access_key_id: str
    access_key_secret: str = field(repr=False)
    security_token: Optional[str] = field(default=None, repr=False)
    expiration: Optional[datetime] = field(default=None, compare=False)

    def __post_init__(self) -> None:
        if not self.security_token:
            object.__setattr__(self, 'security_token', None)
        if self.expiration is not None and self.expiration.tzinfo is None:
            object.__setattr__(self, 'expiration', self.expiration.replace(tzinfo=timezone.utc))

    def validate(self) -> None:
        if not self.access_key_id or not self.access_key_secret:
            raise InvalidCredentialError('Access key id and secret must not be empty')
        try:
            validate_header_value('Authorization', self.access_key_id)
            if self.security_token is not None:
                validate_header_value('x-acs-security-token', self.security_token)
        except InvalidHeaderValueError as e:
            raise InvalidCredentialError(str(e)) from e

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        if self.expiration is None:
            return False
        if now is None:
            now = datetime.now(timezone.utc)
        elif now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        return now >= self.expiration


class CredentialsProvider(ABC):
    """Source of credential snapshots."""

    @abstractmethod
    def get_credentials(self) -> Credentials:
        ...


class StaticCredentialsProvider(CredentialsProvider):
    def __init__(self, credentials: Credentials) -> None:
        self._credentials = credentials

    def get_credentials(self) -> Credentials:
        return self._credentials


class EnvironmentCredentialsProvider(CredentialsProvider):
    """Reads ``<prefix>ACCESS_KEY_ID``, ``<prefix>ACCESS_KEY_SECRET`` and
    ``<prefix>SECURITY_TOKEN`` from the environment on every call."""

    def __init__(self, prefix: str = ENV_PREFIX) -> None:
        self.prefix = prefix

    def get_credentials(self) -> Credentials:
        access_key_id = os.environ.get(f"{self.prefix}ACCESS_KEY_ID", '').strip()
        access_key_secret = os.environ.get(f"{self.prefix}ACCESS_KEY_SECRET", '').strip()
        if not access_key_id or not access_key_secret:
            raise InvalidCredentialError(
                f"{self.prefix}ACCESS_KEY_ID and {self.prefix}ACCESS_KEY_SECRET must be set"
            )
        security_token = os.environ.get(f"{self.prefix}SECURITY_TOKEN", '').strip() or None
        return Credentials(access_key_id, access_key_secret, security_token)


class RefreshableCredentialsProvider(CredentialsProvider):
    """Caches a snapshot from ``fetch`` and replaces it when it expires.

    The snapshot is swapped as a single reference under a lock; readers that
    already hold the previous snapshot keep signing with it unchanged.
    """

    def __init__(self, fetch: Callable[[], Credentials]) -> None:
        self._fetch = fetch
        self._lock = threading.Lock()
        self._credentials: Optional[Credentials] = None

    def refresh(self) -> Credentials:
        with self._lock:
            return self._refresh_locked()

    def _refresh_locked(self) -> Credentials:
        credentials = self._fetch()
        if not isinstance(credentials, Credentials):
            raise InvalidCredentialError(
                f"Credential source returned {type(credentials).__name__}, expected Credentials"
            )
        logger.debug('Refreshed credentials: access_key_id: %s, access_key_secret: ******',
                     credentials.access_key_id)
        self._credentials = credentials
        return credentials

    def get_credentials(self) -> Credentials:
        with self._lock:
            current = self._credentials
            if current is None or current.is_expired():
                current = self._refresh_locked()
            return current
