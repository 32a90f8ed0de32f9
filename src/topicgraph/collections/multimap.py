"""Storage for keyed, ordered sets of topics."""

from typing import Dict, Iterator, List, Tuple, TYPE_CHECKING

if TYPE_CHECKING:
    from ..topic import Topic


class TopicMultiMap:
    """
    Maps a case-insensitive key to an ordered set of topics.

    A topic appears at most once per key. Keys keep the casing they were first
    added with.
    """

    def __init__(self):
        self._keys: Dict[str, str] = {}
        self._topics: Dict[str, List["Topic"]] = {}

    def add(self, key: str, topic: "Topic") -> bool:
        """Add a topic under a key. Returns False if it was already present."""
        lowered = key.lower()
        topics = self._topics.setdefault(lowered, [])
        self._keys.setdefault(lowered, key)
        if any(item is topic for item in topics):
            return False
        topics.append(topic)
        return True

    def remove(self, key: str, topic: "Topic") -> bool:
        topics = self._topics.get(key.lower(), [])
        for position, item in enumerate(topics):
            if item is topic:
                del topics[position]
                return True
        return False

    def clear(self, key: str = None) -> None:
        if key is None:
            self._keys.clear()
            self._topics.clear()
        elif key.lower() in self._topics:
            self._topics[key.lower()].clear()

    def contains(self, key: str, topic: "Topic" = None) -> bool:
        topics = self._topics.get(key.lower())
        if topics is None:
            return False
        if topic is None:
            return True
        return any(item is topic for item in topics)

    def get_topics(self, key: str) -> List["Topic"]:
        return list(self._topics.get(key.lower(), []))

    def keys(self) -> List[str]:
        return list(self._keys.values())

    def items(self) -> List[Tuple[str, List["Topic"]]]:
        return [(self._keys[lowered], list(topics)) for lowered, topics in self._topics.items()]

    def __contains__(self, key: str) -> bool:
        return self.contains(key)

    def __iter__(self) -> Iterator[str]:
        return iter(self.keys())

    def __len__(self) -> int:
        return len(self._topics)


__all__ = ["TopicMultiMap"]
