"""
Forward mapping: topics to view models.

TopicMappingService maps a topic onto a plain object by convention. The
target type is resolved from the content type ("Page" maps to
PageTopicViewModel or PageViewModel), and each property of the target is
populated from the topic:

- Scalars come from a compatible topic property, a get_{name}() accessor, or
  the attribute named after the property (with optional default and
  parent inheritance), coerced to the annotated type
- Lists come from children, relationships, nested topics, incoming
  relationships, topic-valued members, metadata lookup lists or a flattened
  subtree, and each element is mapped in turn
- Parent and references are mapped when PARENTS and REFERENCES are requested

Every top-level call gets its own MappedTopicCache, so a relationship cycle
maps each topic exactly once.

Usage:
    service = TopicMappingService(repository, create_view_model_lookup())
    view_model = await service.map(topic, AssociationTypes.CHILDREN)
"""

import asyncio
import inspect
import logging
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, List, Optional

from ..collections.keyed import KeyedTopicCollection
from ..config import TopicsConfig
from ..exceptions import DuplicateKeyError, InvalidTypeError, TopicMappingError
from ..lookup import TypeLookupService
from ..repositories.base import TopicRepositoryBase
from ..topic import Topic
from .annotations import ASSOCIATION_MAP, AssociationTypes, CollectionType, MappingOptions
from .cache import MappedTopicCache
from .configuration import PropertyConfiguration, PropertyKind, get_type_mapping, snake_case

logger = logging.getLogger(__name__)

METADATA_KEY = "Root:Configuration:Metadata:{}:LookupList"


class TopicMappingService:
    """
    Maps topics onto view models.

    Args:
        repository: Resolves referenced topics by id and metadata lookup lists
        type_lookup: Resolves view model types by name
        config: Suffixes, default associations and the inheritance hop limit;
            defaults to TopicsConfig()
    """

    def __init__(
        self,
        repository: TopicRepositoryBase,
        type_lookup: TypeLookupService,
        config: Optional[TopicsConfig] = None,
    ):
        self.repository = repository
        self.type_lookup = type_lookup
        self.config = config or TopicsConfig()

    # Entry points

    async def map(self, topic: Optional[Topic], associations: Optional[AssociationTypes] = None) -> Any:
        """
        Map a topic onto the view model registered for its content type.

        Args:
            topic: The topic to map
            associations: Associations to map; defaults to the configured set

        Returns:
            The view model, or None if topic is None

        Raises:
            InvalidTypeError: If no view model is registered for the content type
            TopicMappingError: If a required property has no value
        """
        if topic is None:
            return None
        target_type = self.type_lookup.lookup(*self._get_type_names(topic.content_type))
        if target_type is None:
            raise InvalidTypeError(
                f"No view model named {' or '.join(self._get_type_names(topic.content_type))} could be found "
                f"for the content type '{topic.content_type}' of '{topic.get_unique_key()}'."
            )
        return await self._map_type(topic, target_type, self._associations(associations), MappedTopicCache())

    async def map_as(
        self,
        topic: Optional[Topic],
        target_type: type,
        associations: Optional[AssociationTypes] = None,
    ) -> Any:
        """Map a topic onto an explicit target type."""
        if topic is None:
            return None
        return await self._map_type(topic, target_type, self._associations(associations), MappedTopicCache())

    async def map_to(self, topic: Optional[Topic], target: Any, associations: Optional[AssociationTypes] = None) -> Any:
        """Map a topic onto an existing object, returning it."""
        if topic is None:
            return target
        return await self._map_object(topic, target, self._associations(associations), MappedTopicCache())

    def _associations(self, associations: Optional[AssociationTypes]) -> AssociationTypes:
        return self.config.associations if associations is None else associations

    def _get_type_names(self, content_type: str) -> List[str]:
        return [f"{content_type}{suffix}" for suffix in self.config.view_model_suffixes]

    # Objects

    async def _map_type(
        self,
        topic: Topic,
        target_type: type,
        associations: AssociationTypes,
        cache: MappedTopicCache,
    ) -> Any:
        if inspect.isclass(target_type) and issubclass(target_type, Topic):
            return topic

        if not topic.is_new:
            entry = await cache.get(topic.id, target_type)
            if entry is not None:
                return await self._map_object(topic, entry.mapped_topic, associations, cache)

        try:
            target = target_type()
        except TypeError as e:
            raise TopicMappingError(
                f"The type {target_type.__name__} must be constructible without arguments to be mapped: {e}"
            ) from e
        return await self._map_object(topic, target, associations, cache)

    async def _map_object(
        self,
        topic: Topic,
        target: Any,
        associations: AssociationTypes,
        cache: MappedTopicCache,
        attribute_prefix: Optional[str] = None,
        associations_only: bool = False,
    ) -> Any:
        if isinstance(target, Topic):
            return topic

        # Nested map_to_parent objects share the topic id, so only the outer object is cached
        if attribute_prefix is None and not topic.is_new:
            entry, created = await cache.get_or_register(topic.id, type(target), target, associations)
            if not created:
                missing = await cache.merge_associations(entry, associations)
                if not missing:
                    return entry.mapped_topic
                target = entry.mapped_topic
                associations = missing
                associations_only = True

        mapping = get_type_mapping(type(target), attribute_prefix)
        await asyncio.gather(*(
            self._set_property(topic, target, configuration, associations, cache, associations_only)
            for configuration in mapping.properties
        ))
        return target

    # Properties

    async def _set_property(
        self,
        topic: Topic,
        target: Any,
        configuration: PropertyConfiguration,
        associations: AssociationTypes,
        cache: MappedTopicCache,
        associations_only: bool,
    ) -> None:
        kind = configuration.kind

        if kind is PropertyKind.MAP_TO_PARENT:
            value = getattr(target, configuration.name, None)
            if value is None:
                value = configuration.value_type()
                setattr(target, configuration.name, value)
            await self._map_object(
                topic, value, associations, cache, configuration.attribute_prefix, associations_only
            )
        elif kind is PropertyKind.LIST:
            await self._set_collection_value(topic, target, configuration, associations, cache, associations_only)
        else:
            value = await self._get_value(topic, configuration, associations, cache, associations_only)
            if value is not None:
                setattr(target, configuration.name, value)

        if configuration.options.required and getattr(target, configuration.name, None) is None:
            raise TopicMappingError(
                f"The property {type(target).__name__}.{configuration.name} is required, but '{topic.get_unique_key()}' "
                f"has no value for '{configuration.attribute_key}'."
            )

    async def _get_value(
        self,
        topic: Topic,
        configuration: PropertyConfiguration,
        associations: AssociationTypes,
        cache: MappedTopicCache,
        associations_only: bool,
    ) -> Any:
        kind = configuration.kind

        if kind is PropertyKind.SCALAR:
            if associations_only:
                return None
            value = self._get_compatible_property(topic, configuration)
            if value is None:
                value = self._get_scalar_value(topic, configuration)
            return value

        if kind is PropertyKind.PARENT:
            if not associations & AssociationTypes.PARENTS or topic.parent is None:
                return None
            return await self._get_topic_reference(topic.parent, configuration.value_type, configuration.options, cache)

        if not associations & AssociationTypes.REFERENCES:
            return None
        value = self._get_compatible_property(topic, configuration)
        if value is not None:
            return value
        reference = self._get_reference(topic, configuration)
        if reference is None:
            return None
        return await self._get_topic_reference(reference, configuration.value_type, configuration.options, cache)

    def _get_compatible_property(self, topic: Topic, configuration: PropertyConfiguration) -> Any:
        value = getattr(topic, configuration.member_name, None)
        if value is None or callable(value):
            return None
        if _is_instance(value, configuration.value_type):
            return value
        return None

    def _get_scalar_value(self, topic: Topic, configuration: PropertyConfiguration) -> Any:
        value = None

        accessor = getattr(topic, f"get_{configuration.member_name}", None)
        if callable(accessor) and _takes_no_arguments(accessor):
            value = accessor()

        if value is None:
            member = getattr(topic, configuration.member_name, None)
            if member is not None and not callable(member) and _is_scalar(member):
                value = member

        if value is None:
            value = topic.attributes.get_value(
                configuration.attribute_key,
                None,
                inherit_from_parent=configuration.options.inherit,
                max_hops=self.config.max_inheritance_hops,
            )

        if value is None:
            value = configuration.options.default_value

        return coerce_value(value, configuration.value_type, configuration.attribute_key)

    def _get_reference(self, topic: Topic, configuration: PropertyConfiguration) -> Optional[Topic]:
        key = configuration.attribute_key
        reference = topic.references.get_topic(key)
        if reference is not None:
            return reference

        id_key = key if key.endswith("Id") else f"{key}Id"
        topic_id = topic.attributes.get_integer(id_key, 0)
        if topic_id > 0:
            reference = self.repository.load(topic_id, reference_topic=topic)
            if reference is None:
                logger.warning(f"'{topic.get_unique_key()}' references missing topic {topic_id} through {id_key}")
        return reference

    async def _get_topic_reference(
        self,
        source: Topic,
        target_type: Any,
        options: MappingOptions,
        cache: MappedTopicCache,
    ) -> Any:
        if source.is_disabled:
            return None
        if inspect.isclass(target_type) and issubclass(target_type, Topic):
            return source

        mapped_type = None
        if options.map_as is not None and _is_assignable(options.map_as, target_type):
            mapped_type = options.map_as
        if mapped_type is None:
            resolved = self.type_lookup.lookup(*self._get_type_names(source.content_type))
            if resolved is not None and _is_assignable(resolved, target_type):
                mapped_type = resolved
        if mapped_type is None:
            logger.debug(f"Skipped '{source.get_unique_key()}': no view model compatible with {target_type}")
            return None

        return await self._map_type(source, mapped_type, options.include, cache)

    # Collections

    async def _set_collection_value(
        self,
        topic: Topic,
        target: Any,
        configuration: PropertyConfiguration,
        associations: AssociationTypes,
        cache: MappedTopicCache,
        associations_only: bool,
    ) -> None:
        source = self._get_source_collection(topic, configuration, associations, associations_only)
        if source is None:
            return

        target_list = getattr(target, configuration.name, None)
        if target_list is None:
            target_list = configuration.list_type()
            setattr(target, configuration.name, target_list)

        await self._populate_target_collection(source, target_list, configuration, cache)

    def _get_source_collection(
        self,
        topic: Topic,
        configuration: PropertyConfiguration,
        associations: AssociationTypes,
        associations_only: bool,
    ) -> Optional[List[Topic]]:
        """
        Resolve the topics a list property maps from.

        Sources are tried in order: children, relationships, nested topics,
        incoming relationships, topic-valued members, then the metadata lookup
        list. Returns None when the property's associations weren't requested.
        """
        key = configuration.collection_key
        collection_type = configuration.collection_type

        association = ASSOCIATION_MAP[collection_type]
        if association and not associations & association:
            return None

        def contains(flag: AssociationTypes, source_type: CollectionType) -> bool:
            return bool(associations & flag) and collection_type in (CollectionType.ANY, source_type)

        source: List[Topic] = []

        if collection_type is CollectionType.CHILDREN:
            source = list(topic.children)

        if not source and contains(AssociationTypes.RELATIONSHIPS, CollectionType.RELATIONSHIP):
            source = topic.relationships.get_topics(key)

        if not source and not associations_only and collection_type in (CollectionType.ANY, CollectionType.NESTED_TOPICS):
            container = topic.children.get(key)
            if container is not None:
                source = list(container.children)

        if not source and contains(AssociationTypes.INCOMING_RELATIONSHIPS, CollectionType.INCOMING_RELATIONSHIP):
            source = topic.incoming_relationships.get_topics(key)

        if not source and contains(AssociationTypes.MAPPED_COLLECTIONS, CollectionType.MAPPED_COLLECTION):
            source = self._get_mapped_collection(topic, key)

        if not source and not associations_only and configuration.options.metadata:
            lookup_list = self.repository.load(
                METADATA_KEY.format(configuration.options.metadata), reference_topic=topic
            )
            if lookup_list is not None:
                source = list(lookup_list.children)

        if configuration.options.flatten:
            flattened: List[Topic] = []
            for item in source:
                _flatten(item, flattened)
            source = flattened

        return source

    @staticmethod
    def _get_mapped_collection(topic: Topic, key: str) -> List[Topic]:
        value = getattr(topic, snake_case(key), None)
        if isinstance(value, (list, tuple, KeyedTopicCollection)):
            items = list(value)
            if items and isinstance(items[0], Topic):
                return items
        return []

    async def _populate_target_collection(
        self,
        source: List[Topic],
        target_list: list,
        configuration: PropertyConfiguration,
        cache: MappedTopicCache,
    ) -> None:
        candidates = [topic for topic in source if self._is_candidate(topic, configuration)]
        item_type = configuration.item_type

        if inspect.isclass(item_type) and issubclass(item_type, Topic):
            mapped = candidates
        else:
            mapped = await asyncio.gather(*(
                self._get_topic_reference(topic, item_type, configuration.options, cache)
                for topic in candidates
            ))

        for item in mapped:
            if item is None or any(existing is item for existing in target_list):
                continue
            try:
                target_list.append(item)
            except DuplicateKeyError:
                logger.debug(f"Skipped duplicate item in {configuration.name}")

    @staticmethod
    def _is_candidate(topic: Topic, configuration: PropertyConfiguration) -> bool:
        if topic.is_disabled or topic.content_type == "List":
            return False
        content_type = configuration.options.content_type_filter
        if content_type and topic.content_type.lower() != content_type.lower():
            return False
        return configuration.satisfies_attribute_filters(topic)


def coerce_value(value: Any, target_type: Any, key: str = "") -> Any:
    """
    Convert a topic value to the annotated type of a property.

    Strings "1"/"true"/"yes" and "0"/"false"/"no" convert to booleans;
    dates use ISO 8601. Values that can't be converted are logged and
    dropped.
    """
    if value is None or target_type is Any or not inspect.isclass(target_type):
        return value
    if isinstance(value, target_type) and not (target_type is int and isinstance(value, bool)):
        return value

    try:
        if target_type is bool:
            if isinstance(value, str):
                lowered = value.strip().lower()
                if lowered in ("1", "true", "yes"):
                    return True
                if lowered in ("0", "false", "no", ""):
                    return False
                raise ValueError(value)
            return bool(value)
        if target_type is int:
            return int(value)
        if target_type is float:
            return float(value)
        if target_type is Decimal:
            return Decimal(str(value))
        if target_type is datetime:
            return datetime.fromisoformat(str(value))
        if target_type is date:
            return date.fromisoformat(str(value))
        if target_type is str:
            return value.isoformat() if isinstance(value, (datetime, date)) else str(value)
        if issubclass(target_type, Enum):
            if isinstance(value, str) and value in target_type.__members__:
                return target_type[value]
            return target_type(value)
    except (TypeError, ValueError, InvalidOperation):
        logger.warning(f"Could not convert '{value}' of '{key}' to {target_type.__name__}")
        return None
    return value


def _flatten(topic: Topic, results: List[Topic]) -> None:
    if topic.is_disabled or topic.content_type == "List":
        return
    results.append(topic)
    for child in topic.children:
        _flatten(child, results)


def _is_instance(value: Any, value_type: Any) -> bool:
    if value_type is Any:
        return True
    if not inspect.isclass(value_type):
        return False
    if value_type is int and isinstance(value, bool):
        return False
    return isinstance(value, value_type)


def _is_assignable(source_type: type, target_type: Any) -> bool:
    if target_type is Any or target_type is object or target_type is None:
        return True
    return inspect.isclass(target_type) and issubclass(source_type, target_type)


def _is_scalar(value: Any) -> bool:
    return isinstance(value, (str, int, float, bool, datetime, date, Decimal, Enum))


def _takes_no_arguments(method: Any) -> bool:
    try:
        signature = inspect.signature(method)
    except (TypeError, ValueError):
        return False
    return all(
        parameter.default is not inspect.Parameter.empty
        or parameter.kind in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD)
        for parameter in signature.parameters.values()
    )


__all__ = ["TopicMappingService", "coerce_value", "METADATA_KEY"]
