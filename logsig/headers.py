"""
Header storage and validation.

Header names are compared case-insensitively. ``Headers`` keeps an explicit
ordered mapping from the lower-cased name to the first display name seen and
the list of values in insertion order, so repeated headers are never merged
or reordered behind the caller's back.
"""

import re
from typing import Dict, Iterable, Iterator, List, Mapping, Optional, Tuple, Union

from .errors import InvalidHeaderValueError, InvalidRequestError

AUTHORIZATION = 'Authorization'
CONTENT_MD5 = 'Content-MD5'
CONTENT_TYPE = 'Content-Type'
CONTENT_LENGTH = 'Content-Length'
DATE = 'Date'
USER_AGENT = 'User-Agent'

SECURITY_TOKEN = 'x-acs-security-token'
API_VERSION = 'x-log-apiversion'
SIGNATURE_METHOD = 'x-log-signaturemethod'
BODY_RAW_SIZE = 'x-log-bodyrawsize'
COMPRESS_TYPE = 'x-log-compresstype'

SIGNED_PREFIXES = ('x-log-', 'x-acs-')
VALUE_SEPARATOR = ','

# RFC 7230 token characters
_TOKEN_RE = re.compile(r"^[!#$%&'*+\-.^_`|~0-9A-Za-z]+$")
# control characters other than horizontal tab, plus DEL
_FORBIDDEN_RE = re.compile(r'[\x00-\x08\x0a-\x1f\x7f]')

HeaderInput = Union['Headers', Mapping[str, str], Iterable[Tuple[str, str]]]


def validate_header_name(name: str) -> str:
    if not isinstance(name, str) or not _TOKEN_RE.match(name):
        raise InvalidRequestError(f"Invalid header name: {name!r}")
    return name


def validate_header_value(name: str, value: str) -> str:
    """Reject values that would break the header framing or the string to sign."""
    if not isinstance(value, str):
        raise InvalidHeaderValueError(name, f"expected str, got {type(value).__name__}")
    match = _FORBIDDEN_RE.search(value)
    if match:
        raise InvalidHeaderValueError(name, f"contains control character {match.group()!r}")
    return value


def is_signed_prefix(name: str) -> bool:
    return name.lower().startswith(SIGNED_PREFIXES)


class Headers:
    """Ordered, case-insensitive multi-map of HTTP headers."""

    def __init__(self, headers: Optional[HeaderInput] = None) -> None:
        self._entries: Dict[str, Tuple[str, List[str]]] = {}
        if headers is not None:
            self.extend(headers)

    @classmethod
    def from_mapping(cls, headers: Optional[HeaderInput]) -> 'Headers':
        return cls(headers)

    def extend(self, headers: HeaderInput) -> None:
        if isinstance(headers, Headers):
            pairs: Iterable[Tuple[str, str]] = headers.items()
        elif isinstance(headers, Mapping):
            pairs = headers.items()
        else:
            pairs = headers
        for name, value in pairs:
            self.add(name, value)

    def add(self, name: str, value: str) -> None:
        """Append a value, keeping any values already stored under ``name``."""
        key = name.lower()
        if key in self._entries:
            self._entries[key][1].append(value)
        else:
            self._entries[key] = (name, [value])

    def set(self, name: str, value: str) -> None:
        """Replace every value stored under ``name`` with a single value."""
        key = name.lower()
        display = self._entries[key][0] if key in self._entries else name
        self._entries[key] = (display, [value])

    def setdefault(self, name: str, value: str) -> str:
        if name not in self:
            self.set(name, value)
        return self[name]

    def get(self, name: str, default: Optional[str] = None) -> Optional[str]:
        entry = self._entries.get(name.lower())
        if entry is None:
            return default
        return VALUE_SEPARATOR.join(entry[1])

    def get_all(self, name: str) -> List[str]:
        entry = self._entries.get(name.lower())
        return list(entry[1]) if entry else []

    def remove(self, name: str) -> None:
        self._entries.pop(name.lower(), None)

    def names(self) -> List[str]:
        return [display for display, _ in self._entries.values()]

    def items(self) -> Iterator[Tuple[str, str]]:
        """Yield one ``(display_name, value)`` pair per stored value."""
        for display, values in self._entries.values():
            for value in values:
                yield display, value

    def grouped(self) -> Iterator[Tuple[str, List[str]]]:
        """Yield ``(lower_name, values)`` for every distinct header."""
        for key, (_, values) in self._entries.items():
            yield key, list(values)

    def copy(self) -> 'Headers':
        return Headers(self)

    def to_dict(self) -> Dict[str, str]:
        return {display: VALUE_SEPARATOR.join(values) for display, values in self._entries.values()}

    def __getitem__(self, name: str) -> str:
        value = self.get(name)
        if value is None:
            raise KeyError(name)
        return value

    def __setitem__(self, name: str, value: str) -> None:
        self.set(name, value)

    def __delitem__(self, name: str) -> None:
        if name.lower() not in self._entries:
            raise KeyError(name)
        del self._entries[name.lower()]

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.lower() in self._entries

    def __iter__(self) -> Iterator[str]:
        return iter(self.names())

    def __len__(self) -> int:
        return len(self._entries)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Headers):
            return NotImplemented
        return list(self.grouped()) == list(other.grouped())

    def __repr__(self) -> str:
        return f"Headers({list(self.items())!r})"
