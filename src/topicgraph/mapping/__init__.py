"""
Mapping between topics and plain objects.

- TopicMappingService maps topics onto view models
- ReverseTopicMappingService maps binding models onto topics
- HierarchicalTopicMappingService maps a topic tree a limited number of tiers deep
"""

from .annotations import (
    ASSOCIATION_MAP,
    AssociationTypes,
    CollectionType,
    MappingOptions,
    mapped,
)
from .cache import MappedTopicCache, MappedTopicCacheEntry
from .configuration import PropertyConfiguration, PropertyKind, TypeMapping, get_type_mapping
from .hierarchical import HierarchicalTopicMappingService
from .models import AssociatedTopicBindingModel, TopicBindingModel
from .reverse import ReverseTopicMappingService
from .service import TopicMappingService
from .validator import BindingModelValidator

__all__ = [
    "ASSOCIATION_MAP",
    "AssociationTypes",
    "CollectionType",
    "MappingOptions",
    "mapped",
    "MappedTopicCache",
    "MappedTopicCacheEntry",
    "PropertyConfiguration",
    "PropertyKind",
    "TypeMapping",
    "get_type_mapping",
    "HierarchicalTopicMappingService",
    "AssociatedTopicBindingModel",
    "TopicBindingModel",
    "ReverseTopicMappingService",
    "TopicMappingService",
    "BindingModelValidator",
]
