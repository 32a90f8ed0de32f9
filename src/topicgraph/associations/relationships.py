"""
Reciprocal, multi-valued relationships between topics.

Every topic owns two TopicRelationshipMultiMaps: relationships (outgoing) and
incoming_relationships. Adding or removing an outgoing relationship updates
the target's incoming map in the same call, passing is_incoming=True so the
reciprocal half doesn't recurse. Incoming maps can only be modified that way.
"""

import logging
from typing import Iterator, List, Optional, Tuple, TYPE_CHECKING

from ..collections.dirty_keys import DirtyKeyCollection
from ..collections.multimap import TopicMultiMap
from ..factory import validate_key

if TYPE_CHECKING:
    from ..topic import Topic

logger = logging.getLogger(__name__)


class TopicRelationshipMultiMap:
    """
    Relationship key -> ordered set of related topics, with per-key dirty state.

    is_fully_loaded is cleared by loaders that could not resolve every stored
    target; callers must not treat the map as authoritative (e.g. to delete
    relationships missing from it) while it is False.
    """

    def __init__(self, parent: "Topic", is_incoming: bool = False):
        self._parent = parent
        self._is_incoming = is_incoming
        self._storage = TopicMultiMap()
        self._dirty_keys = DirtyKeyCollection()
        self.is_fully_loaded = True

    @property
    def is_incoming(self) -> bool:
        return self._is_incoming

    # Read access

    def __contains__(self, key: str) -> bool:
        return key in self._storage

    def __iter__(self) -> Iterator[str]:
        return iter(self._storage)

    def __len__(self) -> int:
        return len(self._storage)

    def contains(self, key: str, topic: Optional["Topic"] = None) -> bool:
        return self._storage.contains(key, topic)

    def get_topics(self, key: str) -> List["Topic"]:
        return self._storage.get_topics(key)

    def get_all_topics(self, content_type: Optional[str] = None) -> List["Topic"]:
        """Every related topic, across keys, optionally filtered by content type."""
        topics: List["Topic"] = []
        for _, related in self._storage.items():
            for topic in related:
                if any(item is topic for item in topics):
                    continue
                if content_type is None or topic.content_type.lower() == content_type.lower():
                    topics.append(topic)
        return topics

    def keys(self) -> List[str]:
        return self._storage.keys()

    def items(self) -> List[Tuple[str, List["Topic"]]]:
        return self._storage.items()

    # Mutation

    def set_topic(
        self,
        key: str,
        topic: "Topic",
        mark_dirty: Optional[bool] = None,
        is_incoming: bool = False,
    ) -> None:
        """
        Relate a topic under a key, and record the reciprocal incoming relationship.

        Args:
            key: The relationship key
            topic: The related topic
            mark_dirty: False records an already persisted relationship
                without dirtying the key
            is_incoming: Set only when called as the reciprocal half of an
                outgoing update

        Raises:
            RuntimeError: If an incoming map is modified directly
        """
        self._ensure_direction(is_incoming)
        validate_key(key)

        if not self._storage.contains(key, topic):
            was_dirty = self._dirty_keys.is_dirty(key)
            self._storage.add(key, topic)
            self._dirty_keys.mark_dirty(key)
            if mark_dirty is False and not topic.is_new and not self._parent.is_new and not was_dirty:
                self._dirty_keys.mark_clean(key)

        if not self._is_incoming:
            topic.incoming_relationships.set_topic(key, self._parent, mark_dirty, is_incoming=True)

    def remove_topic(self, key: str, topic: "Topic", is_incoming: bool = False) -> bool:
        """
        Remove a related topic and its reciprocal. Returns False if not related.
        """
        self._ensure_direction(is_incoming)
        if not self._storage.remove(key, topic):
            return False
        self._dirty_keys.mark_dirty(key)
        if not self._is_incoming:
            topic.incoming_relationships.remove_topic(key, self._parent, is_incoming=True)
        return True

    def clear_topics(self, key: str) -> None:
        """Remove every topic under a key, including the reciprocal entries."""
        self._ensure_direction(False)
        for topic in self._storage.get_topics(key):
            self.remove_topic(key, topic)
        if not self._parent.is_new:
            self._dirty_keys.mark_dirty(key)

    def clear(self) -> None:
        for key in self.keys():
            self.clear_topics(key)

    # Dirty tracking

    def is_dirty(self, key: Optional[str] = None) -> bool:
        return self._dirty_keys.is_dirty(key)

    def mark_clean(self, key: Optional[str] = None) -> None:
        """
        Mark a key (or every key) clean.

        Keys that hold unsaved topics stay dirty, since the relationship
        cannot be persisted until the target has an id.
        """
        if self._parent.is_new:
            return
        keys = [key] if key is not None else self.keys()
        for relationship_key in keys:
            if any(topic.is_new for topic in self._storage.get_topics(relationship_key)):
                continue
            self._dirty_keys.mark_clean(relationship_key)

    def _ensure_direction(self, is_incoming: bool) -> None:
        if self._is_incoming and not is_incoming:
            raise RuntimeError(
                "Incoming relationships are maintained by the outgoing relationships of the related "
                "topic and cannot be modified directly."
            )


__all__ = ["TopicRelationshipMultiMap"]
