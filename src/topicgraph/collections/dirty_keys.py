"""Per-key dirty flags for keyed collections that don't store records."""

import logging
from typing import Iterator, Set

logger = logging.getLogger(__name__)


class DirtyKeyCollection:
    """A case-insensitive set of keys that have changed since the last save."""

    def __init__(self):
        self._keys: Set[str] = set()

    def mark_dirty(self, key: str) -> None:
        self._keys.add(key.lower())

    def mark_clean(self, key: str = None) -> None:
        """Mark one key clean, or every key when none is given."""
        if key is None:
            self._keys.clear()
        else:
            self._keys.discard(key.lower())

    def is_dirty(self, key: str = None) -> bool:
        """Whether the given key (or any key, when none is given) is dirty."""
        if key is None:
            return bool(self._keys)
        return key.lower() in self._keys

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self._keys))

    def __len__(self) -> int:
        return len(self._keys)


__all__ = ["DirtyKeyCollection"]
