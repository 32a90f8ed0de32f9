"""
Content type descriptors.

A ContentTypeDescriptor is a topic under Root:Configuration:ContentTypes. Its
attribute descriptors are the children of its "Attributes" container plus
those of every ancestor content type; permitted child content types come from
its "ContentTypes" relationship.
"""

import logging
from typing import List, Optional

from ..collections.keyed import KeyedTopicCollection
from ..querying import find_all
from ..topic import Topic
from .attribute_descriptors import AttributeDescriptor

logger = logging.getLogger(__name__)


class ContentTypeDescriptor(Topic):
    """Schema for topics of one content type."""

    def __init__(self, key: str, content_type: str, parent: Optional[Topic] = None, id: int = -1):
        self._attribute_descriptors: Optional[KeyedTopicCollection] = None
        self._permitted_content_types: Optional[List["ContentTypeDescriptor"]] = None
        super().__init__(key, content_type, parent, id)

    @property
    def attribute_descriptors(self) -> KeyedTopicCollection:
        """The attribute descriptors of this content type, including inherited ones."""
        if self._attribute_descriptors is None:
            descriptors = KeyedTopicCollection()
            container = self.children.get("Attributes")
            if container is not None:
                for descriptor in container.children:
                    if isinstance(descriptor, AttributeDescriptor):
                        descriptors.append(descriptor)
            if isinstance(self.parent, ContentTypeDescriptor):
                for descriptor in self.parent.attribute_descriptors:
                    if descriptor.key not in descriptors:
                        descriptors.append(descriptor)
            self._attribute_descriptors = descriptors
        return self._attribute_descriptors

    def get_attribute_descriptor(self, key: str) -> Optional[AttributeDescriptor]:
        return self.attribute_descriptors.get(key)

    def reset_attribute_descriptors(self) -> None:
        """Drop the cached descriptors here and in every derived content type."""
        self._attribute_descriptors = None
        for child in self.children:
            if isinstance(child, ContentTypeDescriptor):
                child.reset_attribute_descriptors()

    @property
    def permitted_content_types(self) -> List["ContentTypeDescriptor"]:
        if self._permitted_content_types is None:
            self._permitted_content_types = [
                topic for topic in self.relationships.get_topics("ContentTypes")
                if isinstance(topic, ContentTypeDescriptor)
            ]
        return list(self._permitted_content_types)

    def reset_permitted_content_types(self) -> None:
        self._permitted_content_types = None

    @property
    def disable_child_topics(self) -> bool:
        return self.attributes.get_boolean("DisableChildTopics")

    def is_type_of(self, content_type: str) -> bool:
        """Whether this content type is, or derives from, the named content type."""
        topic: Optional[Topic] = self
        while isinstance(topic, ContentTypeDescriptor):
            if topic.key.lower() == content_type.lower():
                return True
            topic = topic.parent
        return False


class ContentTypeDescriptorCollection(KeyedTopicCollection):
    """Every content type descriptor in a schema, keyed by content type name."""

    def refresh(self, root: Optional[Topic]) -> None:
        """Rebuild from the ContentTypes subtree rooted at root (None empties it)."""
        self.clear()
        if root is None:
            return
        for descriptor in find_all(root, lambda t: isinstance(t, ContentTypeDescriptor)):
            if descriptor.key in self:
                logger.warning(f"Ignoring duplicate content type descriptor {descriptor.get_unique_key()}")
                continue
            self.append(descriptor)
        logger.debug(f"Loaded {len(self)} content type descriptors")


__all__ = ["ContentTypeDescriptor", "ContentTypeDescriptorCollection"]
