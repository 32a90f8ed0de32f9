"""
Repository orchestration.

TopicRepositoryBase implements the graph-level rules for saving, moving,
deleting and rolling back topics, and leaves the storage itself to
subclasses through a small set of abstract methods:

- load(): Resolve a topic by unique key or id
- load_version(): Load a topic's attributes as of a prior version
- save_topic(): Persist a single topic, returning its id
- move_topic(): Persist a topic's new parent and position
- delete_topic(): Remove a topic (and its descendants) from storage

Lifecycle events are published on the repository's EventBus. Errors raised by
the storage methods propagate unchanged.
"""

import logging
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Callable, List, Optional, Union

from ..event_bus import EventBus
from ..events import TopicDeletedEvent, TopicMovedEvent, TopicRenamedEvent, TopicSavedEvent
from ..exceptions import ReferentialIntegrityError, TopicNotFoundError
from ..factory import TopicFactory
from ..metadata import (
    AttributeDescriptor,
    ContentTypeDescriptor,
    ContentTypeDescriptorCollection,
    ModelType,
)
from ..querying import CONTENT_TYPES_KEY, any_new, find_all, get_by_unique_key, get_root_topic
from ..records import AttributeRecord
from ..topic import Topic, CORE_ATTRIBUTE_KEYS

logger = logging.getLogger(__name__)


class TopicRepositoryBase(ABC):
    """
    Base class for topic repositories.

    Args:
        event_bus: Bus to publish lifecycle events on; a private bus is
            created when omitted
    """

    def __init__(self, event_bus: Optional[EventBus] = None):
        self.event_bus = event_bus or EventBus()
        self._content_type_descriptors = ContentTypeDescriptorCollection()

    # Storage

    @abstractmethod
    def load(
        self,
        unique_key_or_id: Union[str, int, None] = None,
        reference_topic: Optional[Topic] = None,
        is_recursive: bool = True,
    ) -> Optional[Topic]:
        """
        Load a topic by unique key or id.

        Args:
            unique_key_or_id: Unique key, id, or None for the root
            reference_topic: A topic from the graph being resolved against
            is_recursive: Whether to load descendants

        Returns:
            The topic, or None when it doesn't exist
        """

    @abstractmethod
    def load_version(self, topic_id: int, version: datetime) -> Optional[Topic]:
        """Load a detached copy of a topic with its attributes as of version."""

    @abstractmethod
    def save_topic(
        self, topic: Topic, version: datetime, persist_relationships: bool, delete_unmatched: bool = True
    ) -> int:
        """
        Persist one topic; assign and return its id.

        Args:
            topic: The topic to persist
            version: The version stamp of the save
            persist_relationships: False while associations still point at
                unsaved topics; they are written on a later pass
            delete_unmatched: Whether stored associations missing from the
                topic are removed. False when the topic's relationships or
                references were only partially loaded
        """

    @abstractmethod
    def move_topic(self, topic: Topic, target: Topic, sibling: Optional[Topic] = None) -> None:
        """Persist a move before it is applied to the graph."""

    @abstractmethod
    def delete_topic(self, topic: Topic) -> None:
        """Remove a topic and its descendants from storage."""

    # Events

    def subscribe(self, event_type: str, callback: Callable[[Any], None]) -> None:
        """Register a listener for topic.saved, topic.moved, topic.renamed, topic.deleted or '*'."""
        self.event_bus.subscribe(event_type, callback)

    def unsubscribe(self, event_type: str, callback: Callable[[Any], None]) -> bool:
        return self.event_bus.unsubscribe(event_type, callback)

    # Content types

    def get_content_type_descriptors(self) -> ContentTypeDescriptorCollection:
        """
        Return the content type registry, loading Root:Configuration:ContentTypes on first use.

        A repository without configuration yields an empty registry.
        """
        if not len(self._content_type_descriptors):
            try:
                configuration = self.load("Root:Configuration")
            except TopicNotFoundError:
                configuration = None
            content_types = configuration.children.get("ContentTypes") if configuration is not None else None
            self._content_type_descriptors.refresh(content_types)
        return self._content_type_descriptors

    def set_content_type_descriptors(self, source_topic: Optional[Topic]) -> ContentTypeDescriptorCollection:
        """Rebuild the content type registry from the graph containing source_topic."""
        root_content_type = get_by_unique_key(source_topic, CONTENT_TYPES_KEY) if source_topic is not None else None
        self._content_type_descriptors.refresh(root_content_type)
        if not len(self._content_type_descriptors):
            self.get_content_type_descriptors()
        return self._content_type_descriptors

    def get_content_type_descriptor(self, topic: Topic) -> Optional[ContentTypeDescriptor]:
        """Find the descriptor for a topic's content type, retrying against the topic's own graph."""
        content_types = self.get_content_type_descriptors()
        descriptor = content_types.get(topic.content_type)
        if descriptor is not None:
            return descriptor
        self.set_content_type_descriptors(topic)
        return content_types.get(topic.content_type)

    # Save

    def save(self, topic: Topic, is_recursive: bool = False) -> int:
        """
        Save a topic and, optionally, its descendants.

        Topics whose relationships or references point at unsaved topics are
        saved again once the rest of the graph has ids.

        Args:
            topic: The topic to save
            is_recursive: Also save every descendant

        Returns:
            The topic's id

        Raises:
            ReferentialIntegrityError: If a content type is unknown, or
                associations still point at unsaved topics after the second pass
        """
        version = datetime.now()
        unresolved: List[Topic] = []
        was_new = topic.is_new

        self._save(topic, is_recursive, unresolved, version)

        for unresolved_topic in list(unresolved):
            unresolved.remove(unresolved_topic)
            self._save(unresolved_topic, False, unresolved, version)

        if unresolved:
            raise ReferentialIntegrityError(
                f"Saving '{topic.get_unique_key()}' introduced unresolved references on {len(unresolved)} topics, "
                f"including '{unresolved[-1].get_unique_key()}'. Relationships or references point to topics "
                f"outside of the save which have not been saved themselves."
            )

        logger.debug(f"Saved {topic.get_unique_key()} (recursive={is_recursive})")
        self.event_bus.publish(TopicSavedEvent(topic=topic, is_recursive=is_recursive, was_new=was_new))
        return topic.id

    def _save(self, topic: Topic, is_recursive: bool, unresolved: List[Topic], version: datetime) -> None:
        was_new = topic.is_new

        content_types = self.get_content_type_descriptors()
        descriptor = self.get_content_type_descriptor(topic)
        if descriptor is None:
            raise ReferentialIntegrityError(
                f"The content type \"{topic.content_type}\" referenced by \"{topic.key}\" could not be found under "
                f"\"Configuration:ContentTypes\". There are currently {len(content_types)} content types in the "
                f"repository."
            )

        if self._has_unsaved_associations(topic) and not any(item is topic for item in unresolved):
            unresolved.append(topic)

        if topic.original_key is not None and topic.original_key != topic.key:
            self.event_bus.publish(TopicRenamedEvent(topic=topic, original_key=topic.original_key, key=topic.key))

        if topic.parent is not None and topic.attributes.is_dirty("ParentId") and not topic.is_new:
            position = topic.parent.children.index(topic)
            sibling = topic.parent.children[position - 1] if position > 0 else None
            self._move(topic, topic.parent, sibling, previous_parent=None)

        topic.original_key = None

        persist_relationships = not is_recursive or not any(item is topic for item in unresolved)
        delete_unmatched = topic.relationships.is_fully_loaded and topic.references.is_fully_loaded
        self.save_topic(topic, version, persist_relationships, delete_unmatched)

        if version not in topic.version_history:
            topic.version_history.insert(0, version)

        if isinstance(topic, ContentTypeDescriptor):
            if was_new and topic.key not in self._content_type_descriptors:
                self._content_type_descriptors.append(topic)
            if topic.relationships.is_dirty():
                topic.reset_permitted_content_types()

        if was_new and self._is_attribute_descriptor(topic):
            self._reset_attribute_descriptors(topic)

        topic.mark_clean(include_collections=True, version=version)

        if is_recursive:
            for child in topic.children:
                self._save(child, is_recursive, unresolved, version)

    @staticmethod
    def _has_unsaved_associations(topic: Topic) -> bool:
        if any(any_new(topics) for _, topics in topic.relationships.items()):
            return True
        return any_new(record.value for record in topic.references if record.value is not None)

    # Move

    def move(self, topic: Topic, target: Topic, sibling: Optional[Topic] = None) -> None:
        """
        Move a topic under target, immediately after sibling (or first).

        The move is persisted and published before the graph changes, so
        subscribers see the topic under its previous parent.

        Raises:
            ValueError: If the topic is the target or the sibling, or the
                sibling isn't a child of target
            CyclicParentingError: If target is a descendant of the topic
            DuplicateKeyError: If target already has a child with the topic's key
        """
        if topic is target:
            raise ValueError("A topic cannot be its own parent.")
        if topic is sibling:
            raise ValueError("A topic cannot be moved relative to itself.")

        if (
            sibling is not None
            and topic.parent is target
            and sibling in target.children
            and target.children.index(sibling) == target.children.index(topic) - 1
        ):
            return

        self._move(topic, target, sibling, previous_parent=topic.parent)

    def _move(self, topic: Topic, target: Topic, sibling: Optional[Topic], previous_parent: Optional[Topic]) -> None:
        """
        Persist a move, publish it, then apply it to the graph.

        previous_parent is None for a reparent found while saving; the graph
        has already changed and the persisted parent isn't tracked.
        """
        topic.validate_parent(target, sibling)
        self.move_topic(topic, target, sibling)

        self.event_bus.publish(TopicMovedEvent(
            topic=topic,
            target=target,
            sibling=sibling,
            previous_parent=previous_parent,
        ))
        topic.set_parent(target, sibling)

        if previous_parent is not target and isinstance(topic, ContentTypeDescriptor):
            self.set_content_type_descriptors(topic)
            topic.reset_attribute_descriptors()

        logger.debug(f"Moved {topic.get_unique_key()}")

    # Delete

    def delete(self, topic: Topic, is_recursive: bool = False) -> None:
        """
        Delete a topic, detaching it and severing associations that cross the deleted subtree.

        Args:
            topic: The topic to delete
            is_recursive: Required when the topic has children other than
                List containers

        Raises:
            ReferentialIntegrityError: If the topic has children and is_recursive
                is False, or a topic outside the subtree derives from one inside it
        """
        if not is_recursive and any(child.content_type.lower() != "list" for child in topic.children):
            raise ReferentialIntegrityError(
                f"The topic '{topic.get_unique_key()}' cannot be deleted. It has child topics, but is_recursive is "
                f"False. To delete '{topic.get_unique_key()}' and all of its descendants, set is_recursive to True."
            )

        descendants = find_all(topic)
        descendant_ids = {id(item) for item in descendants}
        for other in find_all(get_root_topic(topic)):
            if id(other) in descendant_ids:
                continue
            if other.base_topic is not None and id(other.base_topic) in descendant_ids:
                raise ReferentialIntegrityError(
                    f"The topic '{topic.get_unique_key()}' cannot be deleted. The topic '{other.get_unique_key()}' "
                    f"derives from '{other.base_topic.get_unique_key()}'."
                )

        unique_key = topic.get_unique_key()
        parent = topic.parent

        self.delete_topic(topic)
        self.event_bus.publish(TopicDeletedEvent(topic=topic, unique_key=unique_key, is_recursive=is_recursive))
        topic.detach()

        for descendant in descendants:
            for key, related_topics in descendant.relationships.items():
                for related in related_topics:
                    if id(related) not in descendant_ids:
                        descendant.relationships.remove_topic(key, related)
            for record in descendant.references:
                if record.value is not None and id(record.value) not in descendant_ids:
                    descendant.references.remove(record.key)

        for descendant in descendants:
            for key, related_topics in descendant.incoming_relationships.items():
                for related in related_topics:
                    if id(related) in descendant_ids:
                        continue
                    if related.relationships.contains(key, descendant):
                        related.relationships.remove_topic(key, descendant)
                    elif key in related.references:
                        related.references.remove(key)

        if parent is not None:
            self.set_content_type_descriptors(parent)
        if self._is_attribute_descriptor(topic, parent):
            self._reset_attribute_descriptors(topic, parent)

        logger.debug(f"Deleted {unique_key}")

    # Rollback

    def rollback(self, topic: Topic, version: datetime) -> None:
        """
        Restore a topic's attributes to a prior version and save it.

        Key, content type and parent are never rolled back.

        Raises:
            ValueError: If the version isn't in the topic's version history
            TopicNotFoundError: If storage has no snapshot for the version
        """
        if version not in topic.version_history:
            raise ValueError("The version requested for rollback does not exist in the version history.")

        snapshot = self.load_version(topic.id, version)
        if snapshot is None:
            raise TopicNotFoundError(topic.id, f"No version {version.isoformat()} of topic {topic.id} could be located.")

        records: List[AttributeRecord] = []
        for record in snapshot.attributes:
            if record.key in CORE_ATTRIBUTE_KEYS:
                continue
            current = topic.attributes.get(record.key)
            is_dirty = current is None or current.value != record.value
            records.append(AttributeRecord(
                key=record.key,
                value=record.value,
                is_dirty=is_dirty,
                last_modified=record.last_modified,
            ))

        core_records = [topic.attributes.get(key) for key in CORE_ATTRIBUTE_KEYS]
        topic.attributes.clear()
        for record in core_records:
            if record is not None:
                topic.attributes.add(record)
        for record in records:
            topic.attributes.add(record)

        logger.info(f"Rolled back {topic.get_unique_key()} to {version.isoformat()}")
        self.save(topic)

    # Storage helpers

    def get_attributes(
        self,
        topic: Topic,
        is_extended: Optional[bool] = None,
        is_dirty: Optional[bool] = None,
        exclude_last_modified: bool = False,
    ) -> List[AttributeRecord]:
        """
        Select the attribute records storage needs to write.

        Args:
            topic: The topic being saved
            is_extended: Only indexed (False) or extended (True) attributes;
                attributes without a descriptor count as extended when longer
                than 255 characters
            is_dirty: Only dirty (True) or clean (False) records; a record
                whose storage location changed counts as dirty
            exclude_last_modified: Skip LastModified* attributes

        Returns:
            Matching records with non-empty values
        """
        descriptor = self.get_content_type_descriptor(topic)
        if descriptor is None:
            raise ReferentialIntegrityError(
                f"The repository does not contain a content type descriptor for '{topic.content_type}'."
            )

        attributes: List[AttributeRecord] = []
        for record in topic.attributes:
            if exclude_last_modified and record.key.lower().startswith("lastmodified"):
                continue
            if record.key not in descriptor.attribute_descriptors:
                descriptor.reset_attribute_descriptors()
            attribute = descriptor.attribute_descriptors.get(record.key)
            if not record.value:
                continue
            if (
                is_dirty is not None
                and record.is_dirty != is_dirty
                and is_dirty != self._is_extended_mismatch(attribute, record)
            ):
                continue
            record_is_extended = attribute.is_extended_attribute if attribute is not None else len(record.value) > 255
            if is_extended is None or is_extended == record_is_extended:
                attributes.append(record)
        return attributes

    def get_unmatched_attributes(self, topic: Topic) -> List[AttributeDescriptor]:
        """
        Scalar attributes with no value, which storage should clear.

        Includes descriptors without a value on the topic, plus ad hoc
        descriptors for empty and deleted attribute keys.
        """
        descriptor = self.get_content_type_descriptor(topic)
        if descriptor is None:
            raise ReferentialIntegrityError(
                f"The repository does not contain a content type descriptor for '{topic.content_type}'."
            )

        unmatched: List[AttributeDescriptor] = []
        keys = set()
        if not topic.is_new:
            for attribute in descriptor.attribute_descriptors:
                if attribute.key in CORE_ATTRIBUTE_KEYS:
                    continue
                if topic.attributes.get_value(attribute.key, inherit_from_base=False):
                    continue
                if attribute.model_type is not ModelType.SCALAR_VALUE:
                    continue
                unmatched.append(attribute)
                keys.add(attribute.key.lower())

        empty_keys = [record.key for record in topic.attributes if not record.value]
        for key in empty_keys + list(topic.attributes.deleted_items):
            if key.lower() not in keys:
                unmatched.append(TopicFactory.create(key, "TextAttributeDescriptor"))
                keys.add(key.lower())
        return unmatched

    @staticmethod
    def _is_extended_mismatch(attribute: Optional[AttributeDescriptor], record: AttributeRecord) -> bool:
        return (
            attribute is not None
            and record.is_extended_attribute is not None
            and attribute.is_extended_attribute != record.is_extended_attribute
        )

    @staticmethod
    def _is_attribute_descriptor(topic: Topic, parent: Optional[Topic] = None) -> bool:
        parent = parent if parent is not None else topic.parent
        return (
            isinstance(topic, AttributeDescriptor)
            and parent is not None
            and parent.key == "Attributes"
            and isinstance(parent.parent, ContentTypeDescriptor)
        )

    @staticmethod
    def _reset_attribute_descriptors(topic: Topic, parent: Optional[Topic] = None) -> None:
        parent = parent if parent is not None else topic.parent
        if parent is not None and isinstance(parent.parent, ContentTypeDescriptor):
            parent.parent.reset_attribute_descriptors()


__all__ = ["TopicRepositoryBase"]
