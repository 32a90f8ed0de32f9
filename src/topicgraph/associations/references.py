"""
Single-valued, reciprocal topic references.

A reference (e.g. BaseTopic) points from one topic to exactly one other. The
target records the reverse pointer in its incoming_relationships under the same
key, so deletes and integrity checks can find every referrer.
"""

import logging
from typing import Optional, TYPE_CHECKING

from ..collections.tracked import TrackedRecordCollection
from ..records import TopicReferenceRecord, TrackedRecord

if TYPE_CHECKING:
    from ..topic import Topic

logger = logging.getLogger(__name__)


class TopicReferenceCollection(TrackedRecordCollection):
    """Reference key -> Topic, with dirty tracking and reciprocal incoming entries."""

    record_type = TopicReferenceRecord
    business_logic_setters = {
        "basetopic": "base_topic",
    }

    def __init__(self, topic: "Topic"):
        super().__init__(topic)
        self.is_fully_loaded = True

    def get_topic(self, key: str, inherit_from_parent: bool = False) -> Optional["Topic"]:
        """Resolve a referenced topic, following base topics (and optionally parents)."""
        return self.get_value(key, None, inherit_from_parent, True)

    def set_topic(self, key: str, topic: Optional["Topic"], mark_dirty: Optional[bool] = None) -> None:
        """Point a reference at a topic; None removes the reference."""
        self.set_value(key, topic, mark_dirty)

    def _collection_for(self, topic: "Topic") -> "TopicReferenceCollection":
        return topic.references

    def _allow_clean(self, record: TrackedRecord) -> bool:
        if record.value is not None and record.value.is_new:
            return False
        return super()._allow_clean(record)

    def _on_inserted(self, record: TrackedRecord) -> None:
        mark_dirty = None if record.is_dirty else False
        record.value.incoming_relationships.set_topic(record.key, self._topic, mark_dirty, is_incoming=True)

    def _on_replaced(self, original: TrackedRecord, record: TrackedRecord) -> None:
        if original.value is not record.value:
            original.value.incoming_relationships.remove_topic(original.key, self._topic, is_incoming=True)
            self._on_inserted(record)

    def _on_removed(self, record: TrackedRecord) -> None:
        record.value.incoming_relationships.remove_topic(record.key, self._topic, is_incoming=True)


__all__ = ["TopicReferenceCollection"]
