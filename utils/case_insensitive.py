"""
Case-insensitive mapping used for option-text → score lookups.

Survey answers store the option text exactly as the respondent saw it,
while schemas are edited by hand, so "Satisfied" and "satisfied" must
resolve to the same score.
"""

from collections.abc import MutableMapping
from typing import Any, Dict, Iterator, Optional, Tuple


class CaseInsensitiveDict(MutableMapping):
    """
    A dict keyed by strings, compared with str.casefold().

    The original spelling of the most recent key is kept for iteration.

    Examples:
        >>> scores = CaseInsensitiveDict({"Good": 3})
        >>> scores["GOOD"]
        3
        >>> list(scores)
        ['Good']
    """

    def __init__(self, data: Optional[Any] = None, **kwargs):
        self._store: Dict[str, Tuple[str, Any]] = {}
        if data is not None:
            self.update(data)
        if kwargs:
            self.update(kwargs)

    @staticmethod
    def _fold(key: str) -> str:
        if not isinstance(key, str):
            raise TypeError(f"Keys must be strings, got {type(key).__name__}")
        return key.casefold()

    def __setitem__(self, key: str, value: Any) -> None:
        self._store[self._fold(key)] = (key, value)

    def __getitem__(self, key: str) -> Any:
        return self._store[self._fold(key)][1]

    def __delitem__(self, key: str) -> None:
        del self._store[self._fold(key)]

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, str):
            return False
        return key.casefold() in self._store

    def __iter__(self) -> Iterator[str]:
        return (original for original, _ in self._store.values())

    def __len__(self) -> int:
        return len(self._store)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, MutableMapping):
            other = CaseInsensitiveDict(other)
            return dict(self.folded_items()) == dict(other.folded_items())
        return NotImplemented

    def folded_items(self) -> Iterator[Tuple[str, Any]]:
        """Items keyed by their case-folded form."""
        return ((folded, value) for folded, (_, value) in self._store.items())

    def copy(self) -> "CaseInsensitiveDict":
        return CaseInsensitiveDict(self._store.values())

    def __repr__(self) -> str:
        return f"{type(self).__name__}({dict(self.items())!r})"
