"""
Per-call memo of mapped objects.

A MappedTopicCache lives for exactly one top-level mapping call. Entries are
registered before a topic's properties are mapped, so a relationship cycle
that leads back to the same topic finds the in-progress object instead of
mapping it again.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from .annotations import AssociationTypes

logger = logging.getLogger(__name__)


@dataclass
class MappedTopicCacheEntry:
    """A mapped object and the associations already mapped onto it."""
    mapped_topic: Any
    associations: AssociationTypes = AssociationTypes.NONE

    def get_missing_associations(self, associations: AssociationTypes) -> AssociationTypes:
        """Return the requested associations that haven't been mapped yet."""
        return self.associations ^ (associations | self.associations)

    def add_missing_associations(self, associations: AssociationTypes) -> None:
        self.associations |= associations


class MappedTopicCache:
    """
    Mapped objects keyed by (topic id, target type).

    All access goes through an asyncio.Lock, so concurrent mapping branches
    agree on a single object per key.
    """

    def __init__(self):
        self._entries: Dict[Tuple[int, type], MappedTopicCacheEntry] = {}
        self._lock = asyncio.Lock()

    async def get(self, topic_id: int, target_type: type) -> Optional[MappedTopicCacheEntry]:
        async with self._lock:
            return self._entries.get((topic_id, target_type))

    async def get_or_register(
        self,
        topic_id: int,
        target_type: type,
        mapped_topic: Any,
        associations: AssociationTypes,
    ) -> Tuple[MappedTopicCacheEntry, bool]:
        """
        Return the existing entry for a topic, or register mapped_topic.

        Args:
            topic_id: Id of a saved topic
            target_type: The type the topic is mapped to
            mapped_topic: The object to register when no entry exists
            associations: Associations the object will carry

        Returns:
            (entry, created) where created is True if mapped_topic was registered

        Raises:
            ValueError: If topic_id is negative (unsaved topics aren't cached)
        """
        if topic_id < 0:
            raise ValueError("Unsaved topics cannot be cached.")
        async with self._lock:
            entry = self._entries.get((topic_id, target_type))
            if entry is not None:
                return entry, False
            entry = MappedTopicCacheEntry(mapped_topic, associations)
            self._entries[(topic_id, target_type)] = entry
            logger.debug(f"Cached {target_type.__name__} for topic {topic_id}")
            return entry, True

    async def merge_associations(self, entry: MappedTopicCacheEntry, associations: AssociationTypes) -> AssociationTypes:
        """
        Claim the associations entry is missing.

        Returns:
            The associations the caller must now map; NONE when another
            branch already claimed them
        """
        async with self._lock:
            missing = entry.get_missing_associations(associations)
            entry.add_missing_associations(missing)
            return missing

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: Tuple[int, type]) -> bool:
        return key in self._entries


__all__ = ["MappedTopicCache", "MappedTopicCacheEntry"]
