"""
Schema topics: content type and attribute descriptors.

BUILTIN_TOPIC_TYPES lists the Topic subclasses TopicFactory resolves by
content type name out of the box.
"""

from .model_type import ModelType
from .attribute_descriptors import (
    AttributeDescriptor,
    TextAttributeDescriptor,
    BooleanAttributeDescriptor,
    NumberAttributeDescriptor,
    DateTimeAttributeDescriptor,
    RelationshipAttributeDescriptor,
    TopicReferenceAttributeDescriptor,
    NestedTopicListAttributeDescriptor,
)
from .content_types import ContentTypeDescriptor, ContentTypeDescriptorCollection

BUILTIN_TOPIC_TYPES = [
    ContentTypeDescriptor,
    AttributeDescriptor,
    TextAttributeDescriptor,
    BooleanAttributeDescriptor,
    NumberAttributeDescriptor,
    DateTimeAttributeDescriptor,
    RelationshipAttributeDescriptor,
    TopicReferenceAttributeDescriptor,
    NestedTopicListAttributeDescriptor,
]

__all__ = [
    "ModelType",
    "AttributeDescriptor",
    "TextAttributeDescriptor",
    "BooleanAttributeDescriptor",
    "NumberAttributeDescriptor",
    "DateTimeAttributeDescriptor",
    "RelationshipAttributeDescriptor",
    "TopicReferenceAttributeDescriptor",
    "NestedTopicListAttributeDescriptor",
    "ContentTypeDescriptor",
    "ContentTypeDescriptorCollection",
    "BUILTIN_TOPIC_TYPES",
]
