"""
Declarative mapping options.

Model properties are configured through dataclass field metadata created by
mapped(). Everything not configured falls back to naming conventions: the
attribute key is the PascalCase form of the field name, and collections are
resolved by that same key.

Usage:
    @dataclass
    class PageTopicViewModel(TopicViewModel):
        meta_title: Optional[str] = None
        related: List[TopicViewModel] = mapped(
            default_factory=list,
            collection_key="Related",
            collection_type=CollectionType.RELATIONSHIP,
            include=AssociationTypes.RELATIONSHIPS,
        )
"""

import dataclasses
from dataclasses import dataclass
from enum import Enum, IntFlag
from typing import Any, Dict, Iterable, Optional, Tuple

MAPPING_OPTIONS = "topicgraph.mapping"


class AssociationTypes(IntFlag):
    """Classes of associated topics a mapping may traverse."""
    NONE = 0
    PARENTS = 1
    CHILDREN = 1 << 1
    RELATIONSHIPS = 1 << 2
    INCOMING_RELATIONSHIPS = 1 << 3
    MAPPED_COLLECTIONS = 1 << 4
    REFERENCES = 1 << 5
    ALL = PARENTS | CHILDREN | RELATIONSHIPS | INCOMING_RELATIONSHIPS | MAPPED_COLLECTIONS | REFERENCES

    @classmethod
    def from_names(cls, names: Iterable[str]) -> "AssociationTypes":
        """
        Combine members by name, e.g. ["children", "references"].

        Raises:
            ValueError: If a name isn't a member
        """
        associations = cls.NONE
        for name in names:
            try:
                associations |= cls[name.strip().upper()]
            except KeyError:
                raise ValueError(f"'{name}' is not a valid association type") from None
        return associations


class CollectionType(Enum):
    """Where a collection property's source topics come from."""
    ANY = "any"
    CHILDREN = "children"
    RELATIONSHIP = "relationship"
    NESTED_TOPICS = "nested_topics"
    INCOMING_RELATIONSHIP = "incoming_relationship"
    MAPPED_COLLECTION = "mapped_collection"


ASSOCIATION_MAP: Dict[CollectionType, AssociationTypes] = {
    CollectionType.ANY: AssociationTypes.NONE,
    CollectionType.CHILDREN: AssociationTypes.CHILDREN,
    CollectionType.RELATIONSHIP: AssociationTypes.RELATIONSHIPS,
    CollectionType.NESTED_TOPICS: AssociationTypes.NONE,
    CollectionType.INCOMING_RELATIONSHIP: AssociationTypes.INCOMING_RELATIONSHIPS,
    CollectionType.MAPPED_COLLECTION: AssociationTypes.MAPPED_COLLECTIONS,
}


@dataclass(frozen=True)
class MappingOptions:
    """
    Per-property mapping options.

    Attributes:
        attribute_key: Attribute (or association) key; defaults to the
            PascalCase field name
        default_value: Used when the topic has no value
        inherit: Fall back to the parent topic's attribute value
        collection_key: Key of the relationship or nested topic list to map
        collection_type: Restrict the source of a collection
        include: Associations to map on related topics
        flatten: Map every descendant of the source collection
        metadata: Name of a lookup list under Root:Configuration:Metadata
        disable: Skip the property entirely
        map_to_parent: Map the property's own fields from the same topic
        attribute_prefix: Prefix for map_to_parent attribute keys; defaults to
            the PascalCase field name
        content_type_filter: Only map collection members of this content type
        attribute_filters: Only map collection members with these attribute values
        map_as: Model type to map related topics to
        required: Fail when the property is None after mapping
    """
    attribute_key: Optional[str] = None
    default_value: Any = None
    inherit: bool = False
    collection_key: Optional[str] = None
    collection_type: CollectionType = CollectionType.ANY
    include: AssociationTypes = AssociationTypes.NONE
    flatten: bool = False
    metadata: Optional[str] = None
    disable: bool = False
    map_to_parent: bool = False
    attribute_prefix: Optional[str] = None
    content_type_filter: Optional[str] = None
    attribute_filters: Tuple[Tuple[str, str], ...] = ()
    map_as: Optional[type] = None
    required: bool = False


DEFAULT_OPTIONS = MappingOptions()


def mapped(
    default: Any = dataclasses.MISSING,
    *,
    default_factory: Any = dataclasses.MISSING,
    attribute_filters: Optional[Dict[str, str]] = None,
    **options: Any,
) -> Any:
    """
    Declare a dataclass field with mapping options.

    Args:
        default: The field default
        default_factory: The field default factory (e.g. list)
        attribute_filters: Attribute key/value pairs collection members must match
        **options: Any other MappingOptions field

    Returns:
        A dataclasses.Field
    """
    filters = tuple((attribute_filters or {}).items())
    return dataclasses.field(
        default=default,
        default_factory=default_factory,
        metadata={MAPPING_OPTIONS: MappingOptions(attribute_filters=filters, **options)},
    )


__all__ = [
    "MAPPING_OPTIONS",
    "AssociationTypes",
    "CollectionType",
    "ASSOCIATION_MAP",
    "MappingOptions",
    "DEFAULT_OPTIONS",
    "mapped",
]
