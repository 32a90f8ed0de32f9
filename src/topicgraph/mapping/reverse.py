"""
Reverse mapping: binding models to topics.

ReverseTopicMappingService writes a binding model onto a new or existing
topic. The model is validated against the content type first; then each
property is written according to its attribute's model type:

- SCALAR_VALUE sets the attribute (booleans as "1"/"0")
- RELATIONSHIP clears the relationship and relates each unique key
- NESTED_TOPIC maps each item into a hidden List container, reusing
  children with matching keys and removing the rest
- REFERENCE resolves the unique key and stores the topic (or, for keys
  ending in "Id", the topic's id as an attribute)
"""

import asyncio
import logging
from datetime import date, datetime
from enum import Enum
from typing import Any, Optional, Type

from ..exceptions import MappingModelValidationError, TopicNotFoundError
from ..factory import TopicFactory
from ..metadata import ContentTypeDescriptor, ModelType
from ..repositories.base import TopicRepositoryBase
from ..topic import Topic
from .configuration import PropertyConfiguration, PropertyKind, get_type_mapping
from .models import TopicBindingModel
from .validator import BindingModelValidator

logger = logging.getLogger(__name__)


class ReverseTopicMappingService:
    """
    Maps binding models onto topics.

    Args:
        repository: Provides the content type registry and resolves unique keys
    """

    def __init__(self, repository: TopicRepositoryBase):
        self.repository = repository
        self._setters = {
            ModelType.SCALAR_VALUE: self._set_scalar_value,
            ModelType.RELATIONSHIP: self._set_relationships,
            ModelType.NESTED_TOPIC: self._set_nested_topics,
            ModelType.REFERENCE: self._set_reference,
        }

    async def map(self, source: Optional[TopicBindingModel], target: Optional[Topic] = None) -> Optional[Topic]:
        """
        Map a binding model onto a topic.

        Args:
            source: The binding model
            target: The topic to update; a new topic is created when omitted

        Returns:
            The target topic (None only if both are None)

        Raises:
            MappingModelValidationError: If the content type is unknown, the
                target's key or content type differ from the model's, or the
                model doesn't fit the content type
            TopicNotFoundError: If a related or referenced topic can't be found
        """
        if source is None:
            return target

        descriptor = self._get_content_type_descriptor(source)
        if target is None:
            target = TopicFactory.create(source.key, source.content_type)
        return await self._map_checked(source, target, descriptor)

    async def map_as(self, source: Optional[TopicBindingModel], topic_type: Type[Topic]) -> Optional[Topic]:
        """Map a binding model onto a new topic of an explicit Topic subclass."""
        if source is None:
            return None
        descriptor = self._get_content_type_descriptor(source)
        return await self._map_checked(source, topic_type(source.key, source.content_type), descriptor)

    def _get_content_type_descriptor(self, source: TopicBindingModel) -> ContentTypeDescriptor:
        descriptor = self.repository.get_content_type_descriptors().get(source.content_type)
        if descriptor is None:
            raise MappingModelValidationError(
                f"The binding model '{source.key}' has the content type '{source.content_type}', which isn't "
                f"registered with the repository. Content types must be saved before topics of that type are mapped."
            )
        return descriptor

    async def _map_checked(self, source: TopicBindingModel, target: Topic, descriptor: ContentTypeDescriptor) -> Topic:
        if source.content_type != target.content_type:
            raise MappingModelValidationError(
                f"The binding model '{source.key}' has the content type '{source.content_type}', but the topic "
                f"'{target.key}' is a '{target.content_type}'. Change the topic's content type before mapping."
            )
        if source.key and source.key != target.key:
            raise MappingModelValidationError(
                f"The binding model has the key '{source.key}', but the topic has the key '{target.key}'. Rename the "
                f"topic before mapping."
            )
        return await self._map(source, target, descriptor)

    async def _map(self, source: Any, target: Topic, descriptor: ContentTypeDescriptor, attribute_prefix: str = "") -> Topic:
        BindingModelValidator.validate_model(type(source), descriptor, attribute_prefix)
        mapping = get_type_mapping(type(source), attribute_prefix or None)
        await asyncio.gather(*(
            self._set_property(source, target, configuration, descriptor)
            for configuration in mapping.properties
        ))
        return target

    async def _set_property(
        self,
        source: Any,
        target: Topic,
        configuration: PropertyConfiguration,
        descriptor: ContentTypeDescriptor,
    ) -> None:
        if configuration.options.disable:
            return

        value = getattr(source, configuration.name, None)

        if configuration.kind is PropertyKind.MAP_TO_PARENT:
            if value is not None:
                await self._map(value, target, descriptor, configuration.attribute_prefix)
            return

        attribute = descriptor.attribute_descriptors.get(configuration.attribute_key)
        if attribute is None:
            raise MappingModelValidationError(
                f"The attribute '{configuration.attribute_key}' mapped by {type(source).__name__} could not be found "
                f"on the '{descriptor.key}' content type."
            )

        if configuration.options.required and value is None:
            raise MappingModelValidationError(
                f"The property {type(source).__name__}.{configuration.name} is required."
            )

        await self._setters[attribute.model_type](value, target, configuration)

    async def _set_scalar_value(self, value: Any, target: Topic, configuration: PropertyConfiguration) -> None:
        if value is None or value == "":
            value = configuration.options.default_value

        if configuration.attribute_key in ("Key", "ContentType") and not value:
            return

        if isinstance(value, bool):
            value = "1" if value else "0"
        elif isinstance(value, (datetime, date)):
            value = value.isoformat()
        elif isinstance(value, Enum):
            value = value.name
        elif value is not None:
            value = str(value)

        target.attributes.set_value(configuration.attribute_key, value)

    async def _set_relationships(self, value: Any, target: Topic, configuration: PropertyConfiguration) -> None:
        key = configuration.attribute_key
        target.relationships.clear_topics(key)
        for model in value or []:
            target.relationships.set_topic(key, self._load(model.unique_key, target, configuration))

    async def _set_nested_topics(self, value: Any, target: Topic, configuration: PropertyConfiguration) -> None:
        models = list(value or [])
        key = configuration.attribute_key

        container = target.children.get(key)
        if container is None:
            container = TopicFactory.create(key, "List", target)
            container.is_hidden = True

        topics = await asyncio.gather(*(self._map_nested(model, container) for model in models))

        model_keys = {model.key.lower() for model in models if model.key}
        for child in container.children:
            if child.key.lower() not in model_keys:
                container.children.remove(child)
                logger.debug(f"Removed orphaned nested topic {child.key} from {target.key}:{key}")

        for topic in topics:
            if topic is not None and topic.parent is not container:
                container.children.append(topic)

    async def _map_nested(self, model: TopicBindingModel, container: Topic) -> Optional[Topic]:
        existing = container.children.get(model.key) if model.key else None
        if existing is not None:
            return await self.map(model, existing)
        return await self.map(model)

    async def _set_reference(self, value: Any, target: Topic, configuration: PropertyConfiguration) -> None:
        if value is None or value.unique_key is None:
            raise MappingModelValidationError(
                f"The property {configuration.name} must reference a model with unique_key set. The unique key may be "
                f"empty, but not None."
            )

        topic = self._load(value.unique_key, target, configuration) if value.unique_key else None

        if configuration.attribute_key.endswith("Id"):
            target.attributes.set_value(configuration.attribute_key, str(topic.id) if topic is not None else None)
        else:
            target.references.set_value(configuration.attribute_key, topic)

    def _load(self, unique_key: Optional[str], target: Topic, configuration: PropertyConfiguration) -> Topic:
        topic = self.repository.load(unique_key, reference_topic=target) if unique_key else None
        if topic is None:
            raise TopicNotFoundError(
                unique_key,
                f"The topic '{unique_key}' mapped by the {configuration.name} property could not be located.",
            )
        return topic


__all__ = ["ReverseTopicMappingService"]
