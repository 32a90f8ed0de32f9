"""
Up-front validation of binding models against a content type.

A binding model is checked once per (type, content type, attribute prefix);
later mappings of the same pair skip validation.
"""

import inspect
import logging
from threading import Lock
from typing import Any, Set, Tuple

from ..exceptions import MappingModelValidationError
from ..metadata import AttributeDescriptor, ContentTypeDescriptor, ModelType
from .annotations import CollectionType
from .configuration import PropertyConfiguration, PropertyKind, get_type_mapping
from .models import AssociatedTopicBindingModel, TopicBindingModel

logger = logging.getLogger(__name__)

_models_validated: Set[Tuple[type, str, str]] = set()
_models_validated_lock = Lock()


class BindingModelValidator:
    """Checks that a binding model can be mapped onto a content type."""

    @staticmethod
    def validate_model(source_type: type, content_type: ContentTypeDescriptor, attribute_prefix: str = "") -> None:
        """
        Validate every mapped property of source_type.

        Args:
            source_type: The binding model type
            content_type: The content type the model maps onto
            attribute_prefix: Prefix of map_to_parent attribute keys

        Raises:
            MappingModelValidationError: If a property maps children or the
                parent, has no attribute descriptor, or has the wrong shape
                for its attribute's model type
        """
        key = (source_type, content_type.key.lower(), attribute_prefix or "")
        if key in _models_validated:
            return

        for configuration in get_type_mapping(source_type, attribute_prefix or None).properties:
            BindingModelValidator.validate_property(source_type, configuration, content_type)

        with _models_validated_lock:
            _models_validated.add(key)
        logger.debug(f"Validated {source_type.__name__} against {content_type.key}")

    @staticmethod
    def validate_property(
        source_type: type,
        configuration: PropertyConfiguration,
        content_type: ContentTypeDescriptor,
    ) -> None:
        name = f"{source_type.__name__}.{configuration.name}"

        if configuration.options.disable:
            return

        if configuration.kind is PropertyKind.MAP_TO_PARENT:
            BindingModelValidator.validate_model(configuration.value_type, content_type, configuration.attribute_prefix)
            return

        if configuration.collection_type is CollectionType.CHILDREN:
            raise MappingModelValidationError(
                f"The property {name} maps child topics, which binding models don't support. Map children one at a "
                f"time, or disable mapping for the property."
            )

        if configuration.attribute_key == "Parent":
            raise MappingModelValidationError(
                f"The property {name} maps the parent topic, which binding models don't support. Disable mapping for "
                f"the property."
            )

        attribute = content_type.attribute_descriptors.get(configuration.attribute_key)
        if attribute is None:
            raise MappingModelValidationError(
                f"The content type '{content_type.key}' has no attribute named '{configuration.attribute_key}', as "
                f"requested by {name}. Disable mapping for the property if it isn't an attribute."
            )

        if attribute.model_type is ModelType.RELATIONSHIP:
            BindingModelValidator.validate_relationship(name, configuration, attribute)

        elif attribute.model_type is ModelType.NESTED_TOPIC and configuration.kind is PropertyKind.LIST:
            if not _is_subclass(configuration.item_type, TopicBindingModel):
                raise MappingModelValidationError(
                    f"The property {name} maps the nested topics '{attribute.key}', but its items aren't "
                    f"{TopicBindingModel.__name__}s."
                )

        elif attribute.model_type is ModelType.REFERENCE:
            if not _is_subclass(configuration.value_type, AssociatedTopicBindingModel):
                raise MappingModelValidationError(
                    f"The property {name} maps the reference '{attribute.key}', but isn't an "
                    f"{AssociatedTopicBindingModel.__name__}."
                )

    @staticmethod
    def validate_relationship(name: str, configuration: PropertyConfiguration, attribute: AttributeDescriptor) -> None:
        if configuration.kind is not PropertyKind.LIST:
            raise MappingModelValidationError(
                f"The property {name} maps the relationship '{attribute.key}', but isn't a list."
            )
        if configuration.collection_type not in (CollectionType.ANY, CollectionType.RELATIONSHIP):
            raise MappingModelValidationError(
                f"The property {name} maps the relationship '{attribute.key}', but is configured as "
                f"{configuration.collection_type.name}; use ANY or RELATIONSHIP."
            )
        if not _is_subclass(configuration.item_type, AssociatedTopicBindingModel):
            raise MappingModelValidationError(
                f"The property {name} maps the relationship '{attribute.key}', but its items aren't "
                f"{AssociatedTopicBindingModel.__name__}s."
            )


def _is_subclass(value_type: Any, base: type) -> bool:
    return inspect.isclass(value_type) and issubclass(value_type, base)


__all__ = ["BindingModelValidator"]
