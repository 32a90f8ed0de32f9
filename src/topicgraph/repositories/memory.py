"""
In-memory topic repository.

MemoryTopicRepository keeps the whole graph in memory under a single root. It
assigns ids from a counter and snapshots each topic's attributes on every
save, so rollback() works without a database. Saved relationships and
references are kept as target ids per key. Graphs can be seeded from a
YAML or JSON file through from_file().
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Dict, Optional, Set, Union

from ..event_bus import EventBus
from ..factory import TopicFactory
from ..querying import find_all, find_first, get_by_unique_key
from ..topic import Topic
from .base import TopicRepositoryBase

logger = logging.getLogger(__name__)


class MemoryTopicRepository(TopicRepositoryBase):
    """
    Repository over an in-memory topic graph.

    Args:
        root: The root topic; an empty "Root" container is created if omitted
        event_bus: Bus to publish lifecycle events on
    """

    def __init__(self, root: Optional[Topic] = None, event_bus: Optional[EventBus] = None):
        super().__init__(event_bus)
        self.root = root if root is not None else TopicFactory.create("Root", "Container")
        self._snapshots: Dict[int, Dict[datetime, Dict[str, Optional[str]]]] = {}
        self._associations: Dict[int, Dict[str, Set[int]]] = {}
        existing_ids = [topic.id for topic in find_all(self.root) if not topic.is_new]
        self._next_id = max(existing_ids, default=0) + 1

    @classmethod
    def from_file(cls, path: Union[str, Path], event_bus: Optional[EventBus] = None) -> "MemoryTopicRepository":
        """Build a repository from a YAML or JSON topic graph."""
        from ..serialization import load_topics
        return cls(load_topics(path), event_bus)

    # Storage

    def load(
        self,
        unique_key_or_id: Union[str, int, None] = None,
        reference_topic: Optional[Topic] = None,
        is_recursive: bool = True,
    ) -> Optional[Topic]:
        """
        Resolve a topic from the in-memory graph.

        Integer ids below zero and None resolve to the root. Unique keys without
        a colon are treated as children of the root.
        """
        if unique_key_or_id is None:
            return self.root
        if isinstance(unique_key_or_id, int):
            if unique_key_or_id < 0:
                return self.root
            return find_first(self.root, lambda t: t.id == unique_key_or_id)

        unique_key = unique_key_or_id
        if ":" not in unique_key and unique_key.lower() != self.root.key.lower():
            unique_key = f"{self.root.key}:{unique_key}"
        return get_by_unique_key(self.root, unique_key)

    def load_version(self, topic_id: int, version: datetime) -> Optional[Topic]:
        topic = self.load(topic_id)
        values = self._snapshots.get(topic_id, {}).get(version)
        if topic is None or values is None:
            return None

        snapshot = TopicFactory.create(topic.key, topic.content_type, id=topic_id)
        for key, value in values.items():
            snapshot.attributes.set_value(key, value, mark_dirty=False, version=version, enforce_business_logic=False)
        return snapshot

    def save_topic(
        self, topic: Topic, version: datetime, persist_relationships: bool, delete_unmatched: bool = True
    ) -> int:
        if topic.is_new:
            topic.id = self._next_id
            self._next_id += 1
            logger.debug(f"Assigned id {topic.id} to {topic.get_unique_key()}")

        if topic.parent is not None:
            topic.attributes.set_value("ParentId", str(topic.parent.id), enforce_business_logic=False)

        self._snapshots.setdefault(topic.id, {})[version] = {
            record.key: record.value for record in topic.attributes
        }
        if not persist_relationships:
            logger.debug(f"Deferred relationships of {topic.get_unique_key()}")
            return topic.id

        associations = {
            key: {related.id for related in topics if not related.is_new}
            for key, topics in topic.relationships.items()
        }
        for record in topic.references:
            referenced = record.value
            associations[record.key] = {referenced.id} if referenced is not None and not referenced.is_new else set()
        if not delete_unmatched:
            logger.debug(f"Keeping unmatched associations of {topic.get_unique_key()}")
            for key, ids in self._associations.get(topic.id, {}).items():
                associations[key] = associations.get(key, set()) | ids
        self._associations[topic.id] = associations
        return topic.id

    def get_associations(self, topic_id: int) -> Dict[str, Set[int]]:
        """The stored relationship and reference target ids of a topic, by key."""
        return self._associations.get(topic_id, {})

    def move_topic(self, topic: Topic, target: Topic, sibling: Optional[Topic] = None) -> None:
        logger.debug(
            f"Moving {topic.get_unique_key()} to {target.get_unique_key()}"
            + (f" after {sibling.key}" if sibling is not None else "")
        )

    def delete_topic(self, topic: Topic) -> None:
        for descendant in find_all(topic):
            self._snapshots.pop(descendant.id, None)
            self._associations.pop(descendant.id, None)
        logger.debug(f"Deleting {topic.get_unique_key()}")


__all__ = ["MemoryTopicRepository"]
