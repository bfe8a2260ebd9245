"""Query parameters as they take part in the canonical resource."""

from typing import Any, Iterable, Iterator, List, Mapping, Optional, Tuple, Union

from .errors import InvalidRequestError

QueryInput = Union['QueryParams', Mapping[str, Any], Iterable[Tuple[str, Any]]]


def _to_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if isinstance(value, bytes):
        return value.decode('utf-8')
    return str(value)


class QueryParams:
    """Ordered query parameters with unique names.

    A value of ``None`` marks a parameter that is sent without a value and is
    serialized as the bare name.
    """

    def __init__(self, params: Optional[QueryInput] = None) -> None:
        self._pairs: List[Tuple[str, Optional[str]]] = []
        self._names = set()
        if params is None:
            return
        if isinstance(params, QueryParams):
            pairs: Iterable[Tuple[str, Any]] = params
        elif isinstance(params, Mapping):
            pairs = params.items()
        else:
            pairs = params
        for name, value in pairs:
            self.add(name, value)

    @classmethod
    def empty(cls) -> 'QueryParams':
        return cls()

    def add(self, name: str, value: Any = None) -> None:
        if not isinstance(name, str) or not name:
            raise InvalidRequestError(f"Invalid query parameter name: {name!r}")
        if name in self._names:
            raise InvalidRequestError(f"Duplicate query parameter: {name!r}")
        self._names.add(name)
        self._pairs.append((name, _to_text(value)))

    def sorted(self) -> List[Tuple[str, Optional[str]]]:
        # byte-wise order of the UTF-8 names, independent of locale
        return sorted(self._pairs, key=lambda pair: pair[0].encode('utf-8'))

    def canonical(self) -> str:
        parts = []
        for name, value in self.sorted():
            parts.append(name if value is None else f"{name}={value}")
        return '&'.join(parts)

    def __iter__(self) -> Iterator[Tuple[str, Optional[str]]]:
        return iter(list(self._pairs))

    def __len__(self) -> int:
        return len(self._pairs)

    def __bool__(self) -> bool:
        return bool(self._pairs)

    def __contains__(self, name: object) -> bool:
        return name in self._names

    def __repr__(self) -> str:
        return f"QueryParams({self._pairs!r})"
