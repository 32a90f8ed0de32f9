"""
topicgraph - Content topic graphs

A hierarchical entity model ("topics") with schema-driven attributes,
relationships and references, and a mapping engine converting between
topics and plain Python objects by naming convention.
"""

__version__ = "0.1.0"

from .exceptions import (
    TopicGraphError,
    InvalidKeyError,
    TopicTreeError,
    SelfParentingError,
    CyclicParentingError,
    DuplicateKeyError,
    IdentityError,
    ReferentialIntegrityError,
    MappingModelValidationError,
    InvalidTypeError,
    TopicMappingError,
    ConfigurationError,
    TopicNotFoundError,
)
from .factory import TopicFactory, validate_key
from .lookup import TypeLookupService, CompositeTypeLookupService
from .topic import Topic
from .metadata import ModelType, AttributeDescriptor, ContentTypeDescriptor
from .event_bus import EventBus
from .events import TopicSavedEvent, TopicMovedEvent, TopicRenamedEvent, TopicDeletedEvent
from .repositories import TopicRepositoryBase, MemoryTopicRepository
from .mapping import (
    AssociationTypes,
    CollectionType,
    mapped,
    TopicMappingService,
    ReverseTopicMappingService,
    HierarchicalTopicMappingService,
    TopicBindingModel,
    AssociatedTopicBindingModel,
)
from .view_models import TopicViewModel, create_view_model_lookup
from .config import TopicsConfig, load_config

__all__ = [
    "TopicGraphError",
    "InvalidKeyError",
    "TopicTreeError",
    "SelfParentingError",
    "CyclicParentingError",
    "DuplicateKeyError",
    "IdentityError",
    "ReferentialIntegrityError",
    "MappingModelValidationError",
    "InvalidTypeError",
    "TopicMappingError",
    "ConfigurationError",
    "TopicNotFoundError",
    "TopicFactory",
    "validate_key",
    "TypeLookupService",
    "CompositeTypeLookupService",
    "Topic",
    "ModelType",
    "AttributeDescriptor",
    "ContentTypeDescriptor",
    "EventBus",
    "TopicSavedEvent",
    "TopicMovedEvent",
    "TopicRenamedEvent",
    "TopicDeletedEvent",
    "TopicRepositoryBase",
    "MemoryTopicRepository",
    "AssociationTypes",
    "CollectionType",
    "mapped",
    "TopicMappingService",
    "ReverseTopicMappingService",
    "HierarchicalTopicMappingService",
    "TopicBindingModel",
    "AssociatedTopicBindingModel",
    "TopicViewModel",
    "create_view_model_lookup",
    "TopicsConfig",
    "load_config",
]
