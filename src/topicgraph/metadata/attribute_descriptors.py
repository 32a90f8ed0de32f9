"""
Attribute descriptors.

Attribute descriptors are topics stored under a content type's "Attributes"
container. The descriptor class determines the model type; every other
setting is read from the descriptor's own attributes.
"""

from typing import Optional

from ..topic import Topic
from .model_type import ModelType


class AttributeDescriptor(Topic):
    """Describes a scalar attribute of a content type."""

    model_type = ModelType.SCALAR_VALUE

    @property
    def is_required(self) -> bool:
        return self.attributes.get_boolean("IsRequired")

    @property
    def default_value(self) -> Optional[str]:
        return self.attributes.get_value("DefaultValue")

    @property
    def is_extended_attribute(self) -> bool:
        """Whether storage keeps the value in the extended (unindexed) store."""
        return self.attributes.get_boolean("IsExtendedAttribute")

    @property
    def editor_type(self) -> str:
        """The content type name without the AttributeDescriptor suffix (e.g. Text)."""
        suffix = "AttributeDescriptor"
        name = self.content_type
        return name[:-len(suffix)] if name.endswith(suffix) and name != suffix else name


class TextAttributeDescriptor(AttributeDescriptor):
    pass


class BooleanAttributeDescriptor(AttributeDescriptor):
    pass


class NumberAttributeDescriptor(AttributeDescriptor):
    pass


class DateTimeAttributeDescriptor(AttributeDescriptor):
    pass


class RelationshipAttributeDescriptor(AttributeDescriptor):
    """A many-to-many relationship stored in Topic.relationships."""

    model_type = ModelType.RELATIONSHIP

    @property
    def is_extended_attribute(self) -> bool:
        return False


class TopicReferenceAttributeDescriptor(AttributeDescriptor):
    """A single topic reference stored in Topic.references."""

    model_type = ModelType.REFERENCE

    @property
    def is_extended_attribute(self) -> bool:
        return False


class NestedTopicListAttributeDescriptor(AttributeDescriptor):
    """Child topics kept in a hidden List container named after the attribute."""

    model_type = ModelType.NESTED_TOPIC

    @property
    def is_extended_attribute(self) -> bool:
        return False


__all__ = [
    "AttributeDescriptor",
    "TextAttributeDescriptor",
    "BooleanAttributeDescriptor",
    "NumberAttributeDescriptor",
    "DateTimeAttributeDescriptor",
    "RelationshipAttributeDescriptor",
    "TopicReferenceAttributeDescriptor",
    "NestedTopicListAttributeDescriptor",
]
