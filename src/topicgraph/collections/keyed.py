"""
Ordered, keyed topic collections.

KeyedTopicCollection keeps insertion order and a case-insensitive key index.
ChildTopicCollection is the flavour owned by a parent topic: its public
mutators go through Topic.set_parent() so the parent pointers and the children
list never disagree.
"""

import logging
from typing import Dict, Iterable, Iterator, List, Optional, Union, TYPE_CHECKING

from ..exceptions import DuplicateKeyError

if TYPE_CHECKING:
    from ..topic import Topic

logger = logging.getLogger(__name__)


class KeyedTopicCollection:
    """A list of topics that can also be indexed by key."""

    def __init__(self, topics: Optional[Iterable["Topic"]] = None):
        self._items: List["Topic"] = []
        self._index: Dict[str, "Topic"] = {}
        for topic in topics or []:
            self.append(topic)

    def __contains__(self, item: Union[str, "Topic"]) -> bool:
        if isinstance(item, str):
            return item.lower() in self._index
        return item is not None and self._index.get(item.key.lower()) is item

    def __getitem__(self, item: Union[int, str]) -> "Topic":
        if isinstance(item, str):
            return self._index[item.lower()]
        return self._items[item]

    def __iter__(self) -> Iterator["Topic"]:
        return iter(list(self._items))

    def __len__(self) -> int:
        return len(self._items)

    def __bool__(self) -> bool:
        return bool(self._items)

    def get(self, key: str) -> Optional["Topic"]:
        return self._index.get(key.lower()) if key else None

    def keys(self) -> List[str]:
        return [topic.key for topic in self._items]

    def index(self, topic: "Topic") -> int:
        for position, item in enumerate(self._items):
            if item is topic:
                return position
        raise ValueError(f"'{topic.key}' is not in the collection")

    def first(self) -> Optional["Topic"]:
        return self._items[0] if self._items else None

    def last(self) -> Optional["Topic"]:
        return self._items[-1] if self._items else None

    def append(self, topic: "Topic") -> None:
        self._insert(len(self._items), topic)

    def insert(self, position: int, topic: "Topic") -> None:
        self._insert(position, topic)

    def remove(self, item: Union[str, "Topic"]) -> bool:
        topic = self.get(item) if isinstance(item, str) else item
        if topic is None or topic not in self:
            return False
        self._remove(topic)
        return True

    def clear(self) -> None:
        for topic in self:
            self.remove(topic)

    def _insert(self, position: int, topic: "Topic") -> None:
        if topic.key.lower() in self._index:
            raise DuplicateKeyError(f"The collection already contains a topic with the key '{topic.key}'.")
        self._items.insert(position, topic)
        self._index[topic.key.lower()] = topic

    def _remove(self, topic: "Topic") -> None:
        self._items.remove(topic)
        del self._index[topic.key.lower()]

    def _change_key(self, topic: "Topic", new_key: str) -> None:
        """Re-index a member whose key is about to change."""
        existing = self._index.get(new_key.lower())
        if existing is not None and existing is not topic:
            raise DuplicateKeyError(
                f"Unable to rename '{topic.key}' to '{new_key}'; a sibling with that key already exists."
            )
        del self._index[topic.key.lower()]
        self._index[new_key.lower()] = topic

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.keys()!r})"


class ChildTopicCollection(KeyedTopicCollection):
    """The children of a topic; membership always matches the children's parent pointers."""

    def __init__(self, parent: "Topic"):
        super().__init__()
        self._parent = parent

    @property
    def parent(self) -> "Topic":
        return self._parent

    def append(self, topic: "Topic") -> None:
        self.insert(len(self._items), topic)

    def insert(self, position: int, topic: "Topic") -> None:
        siblings = [item for item in self._items if item is not topic]
        sibling = siblings[min(position, len(siblings)) - 1] if position > 0 and siblings else None
        topic.set_parent(self._parent, sibling)

    def remove(self, item: Union[str, "Topic"]) -> bool:
        """Detach a child. The detached topic no longer has a parent."""
        topic = self.get(item) if isinstance(item, str) else item
        if topic is None or topic not in self:
            return False
        topic.detach()
        return True


__all__ = ["KeyedTopicCollection", "ChildTopicCollection"]
